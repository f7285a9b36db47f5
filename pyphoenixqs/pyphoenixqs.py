"""Phoenix Query Server Python API"""
import logging
import os

from pyphoenixqs.connection import ConnectionManager
from pyphoenixqs.driver_transport import DriverTransport
from pyphoenixqs.errors import ProgrammingError
from pyphoenixqs.globals import (__version__,
                                 DEFAULT_URL,
                                 DEFAULT_DRIVER_MODULE,
                                 OPEN_ATTEMPTS,
                                 OPEN_INTERVAL,
                                 MAX_ROW_COUNT,
                                 REQUEST_TIMEOUT,
                                 WARM_UP_GRACE_PERIOD,
                                 ENV_SERVER,
                                 ENV_PORT,
                                 ENV_ODBC_CONNECTION_STRING)
from pyphoenixqs.http_transport import ProtocolTransport
from pyphoenixqs.logger import log_and_raise, start_logging, stop_logging
from pyphoenixqs.warmup import _start_warmup


def enable_logs(log_path=None, level=logging.DEBUG):
    start_logging(None if log_path is True else log_path, level)


def stop_logs():
    stop_logging()


def _validate_positive(name, value, allow_zero=False, kinds=(int,)):
    if isinstance(value, bool) or not isinstance(value, kinds) or value < 0 or (value == 0 and not allow_zero):
        log_and_raise(ProgrammingError, f'{name} should be a positive number, got : {value}')


def connect(url=DEFAULT_URL, odbc_connection_string=None, driver_module=DEFAULT_DRIVER_MODULE,
            open_attempts=OPEN_ATTEMPTS, open_interval=OPEN_INTERVAL, max_row_count=MAX_ROW_COUNT,
            request_timeout=REQUEST_TIMEOUT, warm_up=False, warm_up_grace_period=WARM_UP_GRACE_PERIOD,
            http_session=None, log=False):
    ''' Build the connection manager of Phoenix Query Server at url

    The connection is opened lazily: by the warm-up thread when warm_up is
    set, otherwise by the first call to open() / query() / execute_non_query().
    The driver transport is only tried when odbc_connection_string is given.
    '''
    _validate_positive('open attempts', open_attempts)
    _validate_positive('open interval', open_interval, allow_zero=True, kinds=(int, float))
    _validate_positive('max row count', max_row_count)
    _validate_positive('request timeout', request_timeout, kinds=(int, float))
    _validate_positive('warm up grace period', warm_up_grace_period, allow_zero=True, kinds=(int, float))

    if log is not False:
        enable_logs(log)

    protocol = ProtocolTransport(url, http_session=http_session, request_timeout=request_timeout,
                                 open_attempts=open_attempts, open_interval=open_interval,
                                 max_row_count=max_row_count)
    driver = None
    if odbc_connection_string:
        driver = DriverTransport(odbc_connection_string, module=driver_module, max_row_count=max_row_count)

    manager = ConnectionManager(protocol, driver)
    if warm_up:
        manager.warmup = _start_warmup(manager, warm_up_grace_period)

    return manager


def connect_from_env(environ=None, **kwargs):
    ''' connect() configured from PHOENIX_SERVER, PHOENIX_PORT and PHOENIX_ODBC_CONNECTION_STRING '''

    environ = os.environ if environ is None else environ
    server = environ.get(ENV_SERVER, 'localhost')
    port = environ.get(ENV_PORT, '8765')
    if not port.isdigit():
        log_and_raise(ProgrammingError, f'{ENV_PORT} should be a port number, got : {port}')

    kwargs.setdefault('url', f'http://{server}:{port}')
    kwargs.setdefault('odbc_connection_string', environ.get(ENV_ODBC_CONNECTION_STRING) or None)
    return connect(**kwargs)
