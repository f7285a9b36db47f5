"""Driver transport, a thin pass-through to a DB-API 2.0 driver (pyodbc)

Its only real job is telling apart a deployment that lacks the driver
(Unavailable) from a driver whose handshake was rejected
(ConnectFailed). Neither is retried here.
"""
from __future__ import annotations

import importlib
import logging
from typing import Optional

from pyphoenixqs.casting import normalize_driver_result
from pyphoenixqs.errors import (FailureKind,
                                DriverUnavailableError,
                                ConnectFailedError,
                                ProgrammingError,
                                RemoteError)
from pyphoenixqs.globals import DEFAULT_DRIVER_MODULE, MAX_ROW_COUNT, DRIVER_MISSING_MARKERS
from pyphoenixqs.logger import logger, log_and_raise
from pyphoenixqs.results import StatementKind, StatementRequest, TabularResult


class DriverTransport:

    def __init__(self, connection_string: Optional[str] = None, module=DEFAULT_DRIVER_MODULE,
                 max_row_count: int = MAX_ROW_COUNT):
        """
        Args:
            connection_string: ODBC connection string, e.g.
              "Driver={Phoenix ODBC Driver};Server=localhost;Port=8765"
            module: import name of the DB-API module, or the module itself
            max_row_count: cap of rows fetched per query
        """
        self.connection_string = connection_string
        if isinstance(module, str):
            self.module_name, self.module = module, None
        else:
            self.module_name, self.module = module.__name__, module
        self.max_row_count = max_row_count
        self.connection = None
        self.unavailable_reason = None

    def probe(self) -> Optional[FailureKind]:
        """Check the driver can be used at all

        Returns:
            None when usable, FailureKind.UNAVAILABLE otherwise, with the
              reason kept in unavailable_reason
        """
        if not self.connection_string:
            self.unavailable_reason = 'No ODBC connection string configured'
            return FailureKind.UNAVAILABLE

        if self.module is None:
            try:
                self.module = importlib.import_module(self.module_name)
            except Exception as e:
                # a broken native library surfaces as OSError and the like, not only ImportError
                self.unavailable_reason = f'DB-API driver {self.module_name} is not installed: {e}'
                return FailureKind.UNAVAILABLE

        self.unavailable_reason = None
        return None

    def _errors(self, *names):
        ''' Exception classes the driver module declares, missing ones are skipped '''
        errors = (getattr(self.module, name, None) for name in names)
        return tuple(error for error in errors if isinstance(error, type) and issubclass(error, BaseException))

    def open(self):
        if self.probe() is not None:
            log_and_raise(DriverUnavailableError, self.unavailable_reason)

        try:
            self.connection = self.module.connect(self.connection_string, autocommit=True)
        except Exception as e:
            # not every driver follows PEP 249 errors, or takes autocommit
            if any(marker in str(e) for marker in DRIVER_MISSING_MARKERS):
                log_and_raise(DriverUnavailableError,
                              f'Phoenix ODBC driver not found: {e}. The driver library must be installed '
                              f'and registered in /etc/odbcinst.ini')
            log_and_raise(ConnectFailedError,
                          f'ODBC connection to Phoenix Query Server failed: {type(e).__name__}: {e}')

        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Connected to Phoenix Query Server through {self.module_name}')

    def close(self):
        if self.connection is None:
            return
        try:
            self.connection.close()
        except self._errors('Error') as e:
            if logger.isEnabledFor(logging.INFO):
                logger.info(f'Ignoring error while closing {self.module_name} connection: {e}')
        self.connection = None

        if logger.isEnabledFor(logging.INFO):
            logger.info('Disconnected from Phoenix Query Server')

    def execute(self, request: StatementRequest) -> TabularResult:
        if self.connection is None:
            log_and_raise(ProgrammingError, 'Driver connection is not open')

        cursor = self.connection.cursor()
        try:
            cursor.execute(request.sql)
            if cursor.description:
                result = normalize_driver_result(cursor.description, cursor.fetchmany(self.max_row_count))
            elif request.kind is StatementKind.EXECUTE:
                # rowcount is -1 for DDL
                result = TabularResult(update_count=max(cursor.rowcount, 0))
            else:
                result = TabularResult()
        except self._errors('OperationalError', 'InterfaceError') as e:
            log_and_raise(ConnectFailedError, f'Lost connection to Phoenix Query Server: {e}')
        except self._errors('Error') as e:
            log_and_raise(RemoteError, str(e), sql_state=_sql_state(e))
        finally:
            cursor.close()

        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Executed statement through {self.module_name}, {result.row_count} rows:\n{request.sql}')
        return result


def _sql_state(error) -> Optional[str]:
    # pyodbc puts the SQLSTATE first in args
    if len(error.args) > 1 and isinstance(error.args[0], str):
        return error.args[0]
    return None
