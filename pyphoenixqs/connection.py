"""Contain ConnectionManager, owner of the single logical connection

The manager decides which transport is used. The driver transport is
tried exactly once, any failure downgrades to the protocol transport
for the rest of the process. Statements go through whichever transport
is active; nothing is reopened or failed over mid-session, callers
call open() again to re-establish.
"""
import logging
import threading
from enum import Enum

from pyphoenixqs.errors import FailureKind, TransportError, ProgrammingError
from pyphoenixqs.globals import TABLES_FALLBACK_LIMIT
from pyphoenixqs.logger import logger, log_and_raise
from pyphoenixqs.results import StatementKind, StatementRequest, TabularResult
from pyphoenixqs.warmup import _end_warmup


class ConnectionState(Enum):
    CLOSED = "Closed"
    OPENING = "Opening"
    OPEN = "Open"
    FAILED = "Failed"


class TransportKind(Enum):
    DRIVER = "Driver"
    PROTOCOL = "Protocol"
    NONE = "None"


class ConnectionManager:
    ''' Connection class used to interact with Phoenix Query Server '''

    def __init__(self, protocol_transport, driver_transport=None):
        self.protocol = protocol_transport
        self.driver = driver_transport
        self.driver_eligible = driver_transport is not None
        self.state = ConnectionState.CLOSED
        self.active_transport_kind = TransportKind.NONE
        self.connection_token = None
        self.warmup = None
        self._lock = threading.Lock()

    @property
    def is_open(self):
        return self.state is ConnectionState.OPEN

    ## Connection lifecycle

    def open(self):
        """Open the logical connection, does nothing when already open

        Blocks for the whole protocol open sequence, up to
        open_attempts * open_interval seconds.

        Raises:
            ConnectFailedError: If every protocol open attempt failed
        """
        with self._lock:
            if self.state is ConnectionState.OPEN:
                return

            self.state = ConnectionState.OPENING
            if self.driver_eligible and self._open_driver():
                return

            try:
                token = self.protocol.open()
            except Exception:
                self.state = ConnectionState.FAILED
                raise

            self.connection_token = token
            self.active_transport_kind = TransportKind.PROTOCOL
            self.state = ConnectionState.OPEN

    def _open_driver(self) -> bool:
        ''' Single driver attempt. Returns False after downgrading to the protocol transport '''

        try:
            failure = self.driver.probe()
            reason = self.driver.unavailable_reason
            if failure is None:
                self.driver.open()
        except TransportError as e:
            failure, reason = e.kind, str(e)
        except Exception as e:
            # any driver failure downgrades
            failure, reason = FailureKind.CONNECT_FAILED, f'{type(e).__name__}: {e}'

        if failure is None:
            self.active_transport_kind = TransportKind.DRIVER
            self.state = ConnectionState.OPEN
            return True

        self.driver_eligible = False
        if logger.isEnabledFor(logging.WARNING):
            logger.warning(f'Driver transport unusable ({failure.value}): {reason}. '
                           f'Using the protocol transport from now on')
        return False

    def close(self):
        ''' Close the active transport and stop a pending warm-up. The driver downgrade is kept '''

        warmup, self.warmup = self.warmup, None
        if warmup is not None:
            warmup.halt()
        self.protocol.cancel()
        _end_warmup(warmup)

        with self._lock:
            if self.active_transport_kind is TransportKind.DRIVER:
                self.driver.close()
            token = self.connection_token if self.active_transport_kind is TransportKind.PROTOCOL else None
            self.protocol.close(token)

            self.connection_token = None
            self.active_transport_kind = TransportKind.NONE
            self.state = ConnectionState.CLOSED

    def shutdown(self):
        ''' close(), then release the HTTP session pool. For process teardown '''

        self.close()
        self.protocol.shutdown()

    ## Statements

    def execute(self, request: StatementRequest) -> TabularResult:
        """Run a statement on the active transport

        The connection must be open, see open(). Failures are surfaced
        as they are and never retried, the state stays Open.
        """
        kind, token = self.active_transport_kind, self.connection_token
        if self.state is not ConnectionState.OPEN:
            log_and_raise(ProgrammingError, 'Connection is not open. Call open() first.')
        if not request.sql:
            log_and_raise(ProgrammingError, 'Empty statement')

        if kind is TransportKind.DRIVER:
            return self.driver.execute(request)
        return self.protocol.execute(token, request)

    def query(self, sql: str) -> TabularResult:
        self.open()
        return self.execute(StatementRequest(sql, StatementKind.QUERY))

    def execute_non_query(self, sql: str) -> int:
        ''' Run DDL / UPSERT / DELETE, returns the number of affected rows '''
        self.open()
        result = self.execute(StatementRequest(sql, StatementKind.EXECUTE))
        return result.update_count or 0

    ## Catalog

    def get_tables(self) -> TabularResult:
        """User tables, with broader catalog queries when there are none"""
        tables = self.query("SELECT TABLE_NAME, TABLE_TYPE, TABLE_SCHEM FROM SYSTEM.CATALOG "
                            "WHERE TABLE_TYPE = 'u' ORDER BY TABLE_NAME")
        if not tables.rows:
            tables = self.query("SELECT TABLE_NAME, TABLE_TYPE, TABLE_SCHEM FROM SYSTEM.CATALOG "
                                "WHERE TABLE_SCHEM IS NULL ORDER BY TABLE_NAME")
        if not tables.rows:
            tables = self.query(f"SELECT TABLE_NAME, TABLE_TYPE, TABLE_SCHEM FROM SYSTEM.CATALOG "
                                f"ORDER BY TABLE_NAME LIMIT {TABLES_FALLBACK_LIMIT}")
        return tables

    def get_columns(self, table_name: str) -> TabularResult:
        ''' Table names are case-sensitive, unquoted Phoenix names are upper case '''
        return self.query(f"SELECT COLUMN_NAME, DATA_TYPE, COLUMN_SIZE, IS_NULLABLE FROM SYSTEM.CATALOG "
                          f"WHERE TABLE_NAME = '{_quote(table_name)}' ORDER BY ORDINAL_POSITION")

    def get_views(self) -> TabularResult:
        return self.query("SELECT TABLE_NAME, TABLE_SCHEM, TABLE_TYPE FROM SYSTEM.CATALOG "
                          "WHERE TABLE_TYPE = 'v' ORDER BY TABLE_NAME")

    # Internal Methods
    # ----------------

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.shutdown()

    def __repr__(self):
        return (f'ConnectionManager(state={self.state.name}, transport={self.active_transport_kind.name}, '
                f'url={self.protocol.url})')


def _quote(literal: str) -> str:
    return literal.replace("'", "''")
