"""Encode and decode the query server JSON protocol

Every operation is one JSON object POSTed to the server's single
``/json`` endpoint, named by its ``request`` field. Responses are JSON
objects too; an object carrying an error is never handed over as data.
"""
from __future__ import annotations

import json
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pyphoenixqs.errors import ProtocolError, RemoteError
from pyphoenixqs.globals import MAX_ROW_COUNT
from pyphoenixqs.logger import log_and_raise
from pyphoenixqs.utils import strip_statement, excerpt

OPEN_CONNECTION = "openConnection"
PREPARE_AND_EXECUTE = "prepareAndExecute"
CLOSE_CONNECTION = "closeConnection"

ERROR_FIELDS = ("error", "errorMessage", "exception", "exceptions")


def _dumps(request: Dict[str, Any]) -> str:
    return json.dumps(request, separators=(",", ":"))


def new_connection_id() -> str:
    return str(uuid.uuid4())


def encode_open_connection(connection_id: Optional[str] = None) -> str:
    return _dumps({"request": OPEN_CONNECTION,
                   "connectionId": connection_id or new_connection_id(),
                   "info": {}})


def encode_prepare_and_execute(connection_id: str, sql: str, max_row_count: int = MAX_ROW_COUNT) -> str:
    return _dumps({"request": PREPARE_AND_EXECUTE,
                   "connectionId": connection_id,
                   "sql": strip_statement(sql),
                   "maxRowCount": max_row_count})


def encode_close_connection(connection_id: str) -> str:
    return _dumps({"request": CLOSE_CONNECTION, "connectionId": connection_id})


def _error_message(payload: dict) -> Optional[str]:
    """Engine message of an error response, None for a regular response"""
    if payload.get("response") == "error":
        return payload.get("errorMessage") or _first_exception(payload) or "Unknown query server error"

    for field in ERROR_FIELDS:
        value = payload.get(field)
        if value is None:
            continue
        # an empty exceptions list rides along regular Avatica responses
        if field == "exceptions":
            if value:
                return _first_exception(payload)
            continue
        if isinstance(value, dict):
            return value.get("message") or value.get("errorMessage") or json.dumps(value, default=str)
        return str(value) or f"Query server reported an empty {field}"
    return None


def _first_exception(payload: dict) -> Optional[str]:
    exceptions = payload.get("exceptions") or []
    if not exceptions:
        return None
    # Avatica sends full java stack traces, the first line holds the message
    first = str(exceptions[0])
    return first.splitlines()[0] if first else None


def decode_response(raw: str) -> Dict[str, Any]:
    """Parse a response body into a dict

    Raises:
        ProtocolError: If the body is not JSON, or not a JSON object
        RemoteError: If the server reports an error in the body
    """
    try:
        # Decimal keeps DECIMAL columns exact
        payload = json.loads(raw, parse_float=Decimal)
    except (json.decoder.JSONDecodeError, TypeError):
        log_and_raise(ProtocolError, f"Could not parse server response: {excerpt(raw)}", response=raw)

    if not isinstance(payload, dict):
        log_and_raise(ProtocolError, f"Unexpected server response: {excerpt(raw)}", response=raw)

    message = _error_message(payload)
    if message is not None:
        log_and_raise(RemoteError, message, response=raw,
                      error_code=payload.get("errorCode"),
                      sql_state=payload.get("sqlState"))

    return payload


def decode_open_connection(payload: Dict[str, Any], requested_id: str) -> str:
    """Connection token of an openConnection response

    Servers that echo nothing keep the client generated id.
    """
    return payload.get("connectionId") or requested_id


def decode_execute(payload: Dict[str, Any]) -> Tuple[List[dict], List[list], Optional[int]]:
    """Columns, rows and update count of a prepareAndExecute response

    Both the flat layout (``columns`` / ``rows``) and the Avatica layout
    (``signature.columns`` / ``firstFrame.rows``) of ``results[0]`` are
    accepted. An empty results array is a statement with no rows.
    """
    if "results" not in payload:
        log_and_raise(ProtocolError, f"Response carries no results: {excerpt(json.dumps(payload, default=str))}")

    results = payload["results"]
    if results is None or results == []:
        return [], [], None
    if not isinstance(results, list) or not isinstance(results[0], dict):
        log_and_raise(ProtocolError, f"Unexpected results in response: {excerpt(str(results))}")

    first = results[0]
    signature = first.get("signature") or {}
    frame = first.get("firstFrame") or {}
    columns = first.get("columns", signature.get("columns")) or []
    rows = first.get("rows", frame.get("rows")) or []
    if not isinstance(columns, list) or not isinstance(rows, list):
        log_and_raise(ProtocolError, "Columns and rows of a result must be arrays")

    update_count = first.get("updateCount")
    if update_count is not None:
        update_count = int(update_count)
        # Avatica marks result sets with updateCount -1
        if update_count < 0:
            update_count = None

    return columns, rows, update_count
