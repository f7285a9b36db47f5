"""Python client for Apache Phoenix Query Server

Keeps one logical connection to the query server, over a DB-API driver
(pyodbc) when the deployment has one, otherwise over the query server's
JSON-over-HTTP protocol. Results of both come back as one tabular shape,
TabularResult.
"""
# Import modules relatively to the package, e.g. in connection.py use
# "from pyphoenixqs.warmup import ..." rather than "from warmup import ..."
from .pyphoenixqs import connect, connect_from_env, __version__, enable_logs, stop_logs
from .connection import ConnectionManager, ConnectionState, TransportKind
from .results import StatementRequest, StatementKind, TabularResult, ColumnDescriptor, CellKind, cell_kind
from .errors import (Error, InterfaceError, DatabaseError, OperationalError, InternalError, ProgrammingError,
                     TransportError, DriverUnavailableError, ConnectFailedError, ProtocolError, RemoteError,
                     FailureKind)

__all__ = [
    "connect",
    "connect_from_env",
    "__version__",
    "enable_logs",
    "stop_logs",
    "ConnectionManager",
    "ConnectionState",
    "TransportKind",
    "StatementRequest",
    "StatementKind",
    "TabularResult",
    "ColumnDescriptor",
    "CellKind",
    "cell_kind",
    "Error",
    "InterfaceError",
    "DatabaseError",
    "OperationalError",
    "InternalError",
    "ProgrammingError",
    "TransportError",
    "DriverUnavailableError",
    "ConnectFailedError",
    "ProtocolError",
    "RemoteError",
    "FailureKind",
]
