"""Global test configurations and fixtures"""
import pytest

from pyphoenixqs.connection import ConnectionManager
from pyphoenixqs.driver_transport import DriverTransport
from pyphoenixqs.http_transport import ProtocolTransport

from tests.utils import FakeSession, FakeDriver


DEFAULT_URL = "http://phoenix:8765"
DEFAULT_ODBC_CONNECTION_STRING = "Driver={Phoenix ODBC Driver};Server=phoenix;Port=8765"
OPEN_ATTEMPTS = 10
OPEN_INTERVAL = 0.05


@pytest.fixture(name='session')
def fake_session():
    """Fixture that adopts a scripted query server for each test"""
    yield FakeSession()


@pytest.fixture(name='protocol')
def protocol_transport(session):
    """Fixture that create protocol transport over the fake session, with a short retry interval"""
    yield ProtocolTransport(DEFAULT_URL, http_session=session,
                            open_attempts=OPEN_ATTEMPTS, open_interval=OPEN_INTERVAL)


@pytest.fixture(name='driver_module')
def fake_driver_module():
    yield FakeDriver()


@pytest.fixture(name='driver')
def driver_transport(driver_module):
    """Fixture that create driver transport over the fake DB-API module"""
    yield DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module=driver_module)


@pytest.fixture(name='missing_driver')
def missing_driver_transport():
    """Driver transport whose module is not installed"""
    yield DriverTransport(DEFAULT_ODBC_CONNECTION_STRING, module='pyphoenixqs_no_such_odbc_module')


@pytest.fixture(name='manager')
def connection_manager(protocol, missing_driver):
    """Fixture that create a manager which falls back to the protocol transport"""
    manager = ConnectionManager(protocol, missing_driver)
    yield manager
    manager.close()
