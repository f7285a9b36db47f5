"""Contains pyphoenixqs global variables"""
from datetime import date, datetime, time
from decimal import Decimal

import pyarrow as pa

__version__ = '1.0.0'

DEFAULT_URL = 'http://localhost:8765'
JSON_ENDPOINT = '/json'
DEFAULT_DRIVER_MODULE = 'pyodbc'
OPEN_ATTEMPTS = 10  # Transport B open sequence budget
OPEN_INTERVAL = 15  # seconds between open attempts
WARM_UP_GRACE_PERIOD = 30  # seconds, lets HBase / Phoenix finish booting
MAX_ROW_COUNT = 10000  # cap of rows fetched per query
EXECUTE_MAX_ROW_COUNT = 0  # sent with statements that return no rows
REQUEST_TIMEOUT = 300  # seconds
RESPONSE_EXCERPT = 500  # chars of a server response quoted in errors
TABLES_FALLBACK_LIMIT = 100

ENV_SERVER = 'PHOENIX_SERVER'
ENV_PORT = 'PHOENIX_PORT'
ENV_ODBC_CONNECTION_STRING = 'PHOENIX_ODBC_CONNECTION_STRING'

# Substrings of driver errors meaning the driver itself is missing
DRIVER_MISSING_MARKERS = ("Can't open lib", "file not found", "Data source name not found")
PROTOBUF_MARKERS = ("InvalidProtocolBufferException", "InvalidWireTypeException")

dbg = False

# Logical (Phoenix / Avatica) type names grouped by the cell kind they produce
INTEGER_TYPES = {'INTEGER', 'INT', 'BIGINT', 'SMALLINT', 'TINYINT',
                 'UNSIGNED_INT', 'UNSIGNED_LONG', 'UNSIGNED_SMALLINT', 'UNSIGNED_TINYINT'}
FLOAT_TYPES = {'DOUBLE', 'FLOAT', 'REAL', 'UNSIGNED_DOUBLE', 'UNSIGNED_FLOAT'}
DECIMAL_TYPES = {'DECIMAL', 'NUMERIC'}
BOOLEAN_TYPES = {'BOOLEAN', 'BIT'}
DATE_TYPES = {'DATE', 'UNSIGNED_DATE'}
TIME_TYPES = {'TIME', 'UNSIGNED_TIME'}
TIMESTAMP_TYPES = {'TIMESTAMP', 'UNSIGNED_TIMESTAMP'}
BINARY_TYPES = {'BINARY', 'VARBINARY'}

# DB-API drivers (pyodbc) describe columns with python types
pytype_to_logical = {
    bool: 'BOOLEAN',
    int: 'BIGINT',
    float: 'DOUBLE',
    Decimal: 'DECIMAL',
    str: 'VARCHAR',
    bytes: 'VARBINARY',
    bytearray: 'VARBINARY',
    datetime: 'TIMESTAMP',
    date: 'DATE',
    time: 'TIME',
}

# Temporal and decimal cells are already rendered as text by the normalizer
logical_to_pa = {
    'BOOLEAN': pa.bool_(),
    'BIT': pa.bool_(),
    'TINYINT': pa.int64(),
    'SMALLINT': pa.int64(),
    'INTEGER': pa.int64(),
    'INT': pa.int64(),
    'BIGINT': pa.int64(),
    'UNSIGNED_TINYINT': pa.int64(),
    'UNSIGNED_SMALLINT': pa.int64(),
    'UNSIGNED_INT': pa.int64(),
    'UNSIGNED_LONG': pa.int64(),
    'FLOAT': pa.float64(),
    'REAL': pa.float64(),
    'DOUBLE': pa.float64(),
    'UNSIGNED_FLOAT': pa.float64(),
    'UNSIGNED_DOUBLE': pa.float64(),
    'BINARY': pa.binary(),
    'VARBINARY': pa.binary(),
}
