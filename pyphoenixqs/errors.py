"""Provide all error classes hierarchy for pyphoenixqs

Errors conform to python DB API. Failures of a transport additionally
carry a FailureKind, used by the connection manager to decide whether
to fall back, retry or surface the error.

Python has built-in Warning, so it is not necessary to add new class
"""
from enum import Enum


class FailureKind(Enum):
    """Why a transport could not be used"""

    UNAVAILABLE = "Unavailable"
    CONNECT_FAILED = "ConnectFailed"
    PROTOCOL_ERROR = "ProtocolError"
    REMOTE_ERROR = "RemoteError"


class Error(Exception):
    """Exception that is the base class of all other error exceptions.

    Could be used to catch all errors with one single except statement.
    """


class InterfaceError(Error):
    """Raised for errors that are related to the database interface rather
    than the database itself.
    """


class DatabaseError(Error):
    """Exception raised for errors that are related to the database."""


class OperationalError(DatabaseError):
    """Raised for errors that are related to the database’s operation

    Not necessarily under the control of the programmer, e.g. an
    unexpected disconnect occurs, the query server is not reachable, etc.
    """


class InternalError(DatabaseError):
    """Raised when the database interface encounters an internal error

    E.g. the query server answered with something the client does not
    understand.
    """


class ProgrammingError(DatabaseError):
    """Raised for programming errors

    E.g. executing on a connection that was never opened, an empty
    statement, wrong configuration values, etc.
    """


class TransportError(Error):
    """Base of the failures raised by a transport

    Attributes:
        kind: FailureKind classification of the failure
        response: raw server response text, when there was one
    """

    kind = None

    def __init__(self, message: str = "", response: str = None):
        super().__init__(message)
        self.response = response


class DriverUnavailableError(TransportError, InterfaceError):
    """Raised when the DB-API driver or its native library is not present"""

    kind = FailureKind.UNAVAILABLE


class ConnectFailedError(TransportError, OperationalError):
    """Raised on network or handshake failures"""

    kind = FailureKind.CONNECT_FAILED


class ProtocolError(TransportError, InternalError):
    """Raised on malformed responses, i.e. a wire-compatibility break"""

    kind = FailureKind.PROTOCOL_ERROR


class RemoteError(TransportError, DatabaseError):
    """Raised when the query server reports an SQL / engine error

    The engine message is kept verbatim, error_code and sql_state are
    filled when the server sends them.
    """

    kind = FailureKind.REMOTE_ERROR

    def __init__(self, message: str = "", response: str = None,
                 error_code: int = None, sql_state: str = None):
        super().__init__(message, response)
        self.error_code = error_code
        self.sql_state = sql_state
