"""Tests for the DB-API driver transport, over a fake pyodbc module"""
from decimal import Decimal

import pytest

from pyphoenixqs.driver_transport import DriverTransport
from pyphoenixqs.errors import (FailureKind,
                                DriverUnavailableError,
                                ConnectFailedError,
                                ProgrammingError,
                                RemoteError)
from pyphoenixqs.results import StatementRequest, StatementKind

from tests.conftest import DEFAULT_ODBC_CONNECTION_STRING
from tests.utils import (FakeDriver,
                         FakeDriverError,
                         FakeDriverInterfaceError,
                         FakeDriverOperationalError,
                         FakeDriverProgrammingError)


def test_probe_without_connection_string(driver_module):
    driver = DriverTransport(None, module=driver_module)
    assert driver.probe() is FailureKind.UNAVAILABLE
    assert "connection string" in driver.unavailable_reason


def test_probe_missing_module(missing_driver):
    assert missing_driver.probe() is FailureKind.UNAVAILABLE
    assert "pyphoenixqs_no_such_odbc_module" in missing_driver.unavailable_reason


def test_probe_usable_driver(driver):
    assert driver.probe() is None
    assert driver.unavailable_reason is None


def test_open_missing_module_is_unavailable(missing_driver):
    with pytest.raises(DriverUnavailableError) as exc_info:
        missing_driver.open()
    assert exc_info.value.kind is FailureKind.UNAVAILABLE


def test_open_passes_connection_string(driver, driver_module):
    driver.open()
    assert driver_module.connect_calls == [(DEFAULT_ODBC_CONNECTION_STRING, {"autocommit": True})]
    assert driver.connection is driver_module.connections[0]


@pytest.mark.parametrize("message", [
    "[01000] [unixODBC][Driver Manager]Can't open lib 'Phoenix ODBC Driver' : file not found (0)",
    "[IM002] [unixODBC][Driver Manager]Data source name not found and no default driver specified",
])
def test_missing_native_driver_is_unavailable(message):
    driver = DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module=FakeDriver(FakeDriverInterfaceError(message)))
    with pytest.raises(DriverUnavailableError, match="odbcinst.ini"):
        driver.open()
    assert driver.connection is None


def test_rejected_handshake_is_connect_failed():
    error = FakeDriverOperationalError("08001", "[08001] Unable to establish connection with phoenix:8765")
    driver = DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module=FakeDriver(error))
    with pytest.raises(ConnectFailedError) as exc_info:
        driver.open()
    assert exc_info.value.kind is FailureKind.CONNECT_FAILED


def test_execute_before_open(driver):
    with pytest.raises(ProgrammingError):
        driver.execute(StatementRequest("SELECT 1"))


def test_query(driver, driver_module):
    driver_module.description = [("ID", int, None, 10, 10, 0, False), ("PRICE", Decimal, None, 10, 10, 2, True)]
    driver_module.rows = [(1, Decimal("2.50")), (2, None)]
    driver.open()

    result = driver.execute(StatementRequest("SELECT ID, PRICE FROM ITEMS;"))

    assert driver_module.executed == ["SELECT ID, PRICE FROM ITEMS"]
    assert result.column_names == ["ID", "PRICE"]
    assert result.rows == [{"ID": 1, "PRICE": "2.50"}, {"ID": 2, "PRICE": None}]
    assert driver_module.closed_cursors == 1


def test_query_is_capped(driver_module):
    driver = DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module=driver_module, max_row_count=3)
    driver_module.description = [("N", int, None, 10, 10, 0, False)]
    driver_module.rows = [(n,) for n in range(10)]
    driver.open()

    result = driver.execute(StatementRequest("SELECT N FROM NUMBERS"))

    assert result.row_count == 3


def test_execute_reports_rowcount(driver, driver_module):
    driver_module.rowcount = 2
    driver.open()
    result = driver.execute(StatementRequest("DELETE FROM ITEMS WHERE ID < 3", StatementKind.EXECUTE))
    assert result.update_count == 2
    assert result.rows == []


def test_ddl_has_zero_rowcount(driver, driver_module):
    driver.open()
    result = driver.execute(StatementRequest("CREATE TABLE T (ID INTEGER PRIMARY KEY)", StatementKind.EXECUTE))
    assert result.update_count == 0


def test_sql_error_is_remote_error(driver, driver_module):
    driver_module.execute_error = FakeDriverProgrammingError("42M03", "ERROR 1012 (42M03): Table undefined.")
    driver.open()

    with pytest.raises(RemoteError) as exc_info:
        driver.execute(StatementRequest("SELECT * FROM NOPE"))

    assert exc_info.value.sql_state == "42M03"
    assert driver_module.closed_cursors == 1


@pytest.mark.parametrize("error", [FakeDriverOperationalError("08S01", "Communication link failure"),
                                   FakeDriverInterfaceError("connection closed")])
def test_lost_connection_is_connect_failed(driver, driver_module, error):
    driver_module.execute_error = error
    driver.open()
    with pytest.raises(ConnectFailedError):
        driver.execute(StatementRequest("SELECT 1"))


def test_close(driver, driver_module):
    driver.open()
    connection = driver.connection
    driver.close()
    assert connection.closed
    assert driver.connection is None


def test_close_ignores_driver_errors(driver):
    driver.open()

    def broken_close():
        raise FakeDriverError("already closed")
    driver.connection.close = broken_close

    driver.close()
    assert driver.connection is None


def test_broken_native_library_is_unavailable(monkeypatch):
    def import_module(name):
        raise OSError("libodbc.so.2: cannot open shared object file")
    monkeypatch.setattr("pyphoenixqs.driver_transport.importlib.import_module", import_module)
    driver = DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module="pyodbc")

    assert driver.probe() is FailureKind.UNAVAILABLE
    assert "libodbc" in driver.unavailable_reason
    with pytest.raises(DriverUnavailableError):
        driver.open()


def test_non_driver_error_on_connect_is_connect_failed(driver_module):
    driver_module.connect_error = TypeError("connect() got an unexpected keyword argument 'autocommit'")
    driver = DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module=driver_module)

    with pytest.raises(ConnectFailedError, match="TypeError"):
        driver.open()
    assert driver.connection is None
