"""Protocol transport, JSON requests over HTTP to Phoenix Query Server"""
import logging
import threading

import requests

from pyphoenixqs.casting import normalize_protocol_result
from pyphoenixqs.codec import (encode_open_connection,
                               encode_prepare_and_execute,
                               encode_close_connection,
                               decode_response,
                               decode_open_connection,
                               decode_execute,
                               new_connection_id)
from pyphoenixqs.errors import ConnectFailedError, ProtocolError, TransportError
from pyphoenixqs.globals import (DEFAULT_URL,
                                 OPEN_ATTEMPTS,
                                 OPEN_INTERVAL,
                                 MAX_ROW_COUNT,
                                 EXECUTE_MAX_ROW_COUNT,
                                 REQUEST_TIMEOUT,
                                 PROTOBUF_MARKERS)
from pyphoenixqs.logger import logger, log_and_raise, printdbg
from pyphoenixqs.results import StatementKind, StatementRequest, TabularResult
from pyphoenixqs.utils import json_endpoint, excerpt

PROTOBUF_HINT = ("NOTE: the query server seems to parse JSON as Protobuf, which is its default "
                 "serialization. Check that it is started with phoenix.queryserver.serialization=JSON, "
                 "or wait longer for HBase / Phoenix to finish initializing.")


class ProtocolTransport:
    """Talk to the query server JSON endpoint over one requests session

    The open sequence retries a fixed number of times with a fixed
    delay, since the server is expected to still be warming up. Nothing
    else is retried.
    """

    def __init__(self, url=DEFAULT_URL, http_session=None, request_timeout=REQUEST_TIMEOUT,
                 open_attempts=OPEN_ATTEMPTS, open_interval=OPEN_INTERVAL, max_row_count=MAX_ROW_COUNT):
        self.url = json_endpoint(url)
        self.request_timeout = request_timeout
        self.open_attempts, self.open_interval = open_attempts, open_interval
        self.max_row_count = max_row_count
        self.attempts_made = 0
        self._cancel = threading.Event()

        self._http_session = http_session if http_session is not None else requests.Session()
        self._http_session.headers.update({"Content-Type": "application/json; charset=utf-8"})

    ## Wire

    def send_request(self, json_cmd: str) -> str:
        ''' POST a JSON request and return the response body '''

        printdbg(f'request sent: {json_cmd}')
        try:
            response = self._http_session.post(self.url, data=json_cmd.encode('utf8'),
                                               timeout=self.request_timeout)
        except requests.RequestException as e:
            log_and_raise(ConnectFailedError, f'Could not reach Phoenix Query Server at {self.url}: {e}')

        response.encoding = 'utf-8'
        text = response.text
        printdbg(f'response received: {text}')
        self._raise_for_status(response, text)
        return text

    def _raise_for_status(self, response, text):
        if response.ok:
            return

        error_msg = f'Phoenix Query Server returned HTTP {response.status_code}: {excerpt(text)}'
        # An error object in the body is a RemoteError, raised by the codec
        try:
            decode_response(text)
        except ProtocolError:
            log_and_raise(ProtocolError, error_msg, response=text)
        log_and_raise(ConnectFailedError, error_msg, response=text)

    ## Connection

    def open(self, connection_id=None) -> str:
        """Run the open sequence and return the connection token

        Raises:
            ConnectFailedError: once every attempt failed, or when the
              sequence was cancelled by close()
        """
        connection_id = connection_id or new_connection_id()
        last_error = None
        self.attempts_made = 0

        for attempt in range(1, self.open_attempts + 1):
            self.attempts_made = attempt
            try:
                payload = decode_response(self.send_request(encode_open_connection(connection_id)))
            except TransportError as e:
                last_error = e
                if logger.isEnabledFor(logging.WARNING):
                    logger.warning(f'Connection attempt {attempt}/{self.open_attempts} to {self.url} failed: {e}')
            else:
                token = decode_open_connection(payload, connection_id)
                if logger.isEnabledFor(logging.INFO):
                    logger.info(f'Connected to Phoenix Query Server at {self.url}. Connection ID: {token}')
                return token

            if attempt < self.open_attempts and self._cancel.wait(self.open_interval):
                log_and_raise(ConnectFailedError, f'Opening connection to {self.url} was cancelled')

        error_msg = (f'Failed to connect to Phoenix Query Server at {self.url} after {self.open_attempts} '
                     f'attempts. Please verify that Phoenix Query Server is running and accessible.')
        last_response = getattr(last_error, 'response', None)
        if last_response:
            error_msg += f'\n\nServer Response: {excerpt(last_response)}'
            if any(marker in last_response for marker in PROTOBUF_MARKERS):
                error_msg += f'\n\n{PROTOBUF_HINT}'
        if logger.isEnabledFor(logging.ERROR):
            logger.error(error_msg)
        raise ConnectFailedError(error_msg, response=last_response) from last_error

    def cancel(self):
        ''' Interrupt an open sequence waiting between attempts '''
        self._cancel.set()

    def close(self, token=None):
        ''' Best effort closeConnection, failures are ignored '''

        if token is not None:
            try:
                self.send_request(encode_close_connection(token))
            except TransportError as e:
                if logger.isEnabledFor(logging.INFO):
                    logger.info(f'Ignoring error while closing connection {token}: {e}')
            else:
                if logger.isEnabledFor(logging.INFO):
                    logger.info(f'Disconnected from Phoenix Query Server. Connection ID: {token}')
        self._cancel.clear()

    ## Statements

    def execute(self, token: str, request: StatementRequest) -> TabularResult:
        max_row_count = self.max_row_count if request.kind is StatementKind.QUERY else EXECUTE_MAX_ROW_COUNT
        raw = self.send_request(encode_prepare_and_execute(token, request.sql, max_row_count))
        columns, rows, update_count = decode_execute(decode_response(raw))
        result = normalize_protocol_result(columns, rows, update_count)

        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Executed statement over connection {token}, {result.row_count} rows:\n{request.sql}')
        return result

    def shutdown(self):
        self._http_session.close()
