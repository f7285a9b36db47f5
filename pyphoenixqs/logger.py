from pyphoenixqs import globals as _globals
import logging


DEFAULT_LOG_PATH = '/tmp/phoenixqs.log'
LOG_FORMAT = '%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s'

logger = logging.getLogger("phoenixqs_logger")
logger.setLevel(logging.DEBUG)
logger.disabled = True


def printdbg(*debug_print):
    if _globals.dbg:
        print(*debug_print)


def _close_handlers():
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def start_logging(log_path=None, level=logging.DEBUG):
    ''' Send the client log to log_path. Calling it again moves the log, no line is written twice '''

    log_path = log_path or DEFAULT_LOG_PATH
    try:
        handler = logging.FileHandler(log_path)
    except OSError as e:
        raise ValueError("Bad log path was given, please verify path is valid and no forbidden characters were used") from e

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    _close_handlers()
    logger.addHandler(handler)
    logger.disabled = False

    return logger


def stop_logging():
    _close_handlers()
    logger.disabled = True


def log_and_raise(exception_type, error_msg, **kwargs):
    ''' Log error_msg, with the exception being handled if any, then raise it as exception_type '''

    if logger.isEnabledFor(logging.ERROR):
        logger.error(error_msg, exc_info=True)

    raise exception_type(error_msg, **kwargs)
