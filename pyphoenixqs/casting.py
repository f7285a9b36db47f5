"""
Support functions for converting query server values to result cells,
and the normalizers turning either transport's native result into a
TabularResult
"""
from __future__ import annotations

import base64
import binascii
import json
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from pyphoenixqs.errors import ProtocolError
from pyphoenixqs.globals import (INTEGER_TYPES,
                                 FLOAT_TYPES,
                                 DECIMAL_TYPES,
                                 BOOLEAN_TYPES,
                                 DATE_TYPES,
                                 TIME_TYPES,
                                 TIMESTAMP_TYPES,
                                 BINARY_TYPES,
                                 pytype_to_logical)
from pyphoenixqs.logger import log_and_raise
from pyphoenixqs.results import ColumnDescriptor, TabularResult

EPOCH = datetime(1970, 1, 1)
# Avatica sends DATE as days since epoch, some servers send milliseconds.
# No real date is further than this many days from 1970.
MAX_EPOCH_DAYS = 10 ** 7


def format_time(t: time) -> str:
    text = t.strftime('%H:%M:%S')
    if t.microsecond:
        text += f'.{t.microsecond // 1000:03d}' if t.microsecond % 1000 == 0 else f'.{t.microsecond:06d}'
    return text


def format_datetime(dt: datetime) -> str:
    return f'{dt.date().isoformat()} {format_time(dt.time())}'


def epoch_days_to_date(days: int) -> date:
    if abs(days) > MAX_EPOCH_DAYS:
        return (EPOCH + timedelta(milliseconds=days)).date()
    return (EPOCH + timedelta(days=days)).date()


def epoch_millis_to_datetime(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


def millis_of_day_to_time(millis: int) -> time:
    return (EPOCH + timedelta(milliseconds=millis)).time()


def decimal_to_cell(dec: Decimal) -> Union[int, str]:
    """Integral decimals become int, others keep their exact digits as text

    Going through float would lose digits of DECIMAL(38, x) values.
    """
    if dec.as_tuple().exponent >= 0:
        return int(dec)
    return str(dec)


def _unwrap(value):
    """numpy scalars come back from pandas backed drivers"""
    if isinstance(value, np.datetime64):
        return value.astype('datetime64[us]').item()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _native_to_cell(value):
    if isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, Decimal):
        # Untyped JSON numbers, DECIMAL columns never get here
        return int(value) if value.as_tuple().exponent >= 0 else float(value)
    # datetime before date, datetime is a date subclass
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return format_time(value)
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, default=str)
    return str(value)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', 't', '1'):
            return True
        if lowered in ('false', 'f', '0'):
            return False
        raise ValueError(f'not a boolean: {value!r}')
    return bool(value)


def _to_date_text(value) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return epoch_days_to_date(int(value)).isoformat()


def _to_time_text(value) -> str:
    if isinstance(value, time):
        return format_time(value)
    if isinstance(value, str):
        return value
    return format_time(millis_of_day_to_time(int(value)))


def _to_timestamp_text(value) -> str:
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, str):
        return value
    return format_datetime(epoch_millis_to_datetime(int(value)))


def _to_bytes(value) -> bytes:
    if isinstance(value, str):
        return base64.b64decode(value)
    return bytes(value)


def to_cell(value: Any, logical_type: Optional[str] = None):
    """Convert one wire or driver value to a cell of the given logical type

    Cells are None, str, int, float, bool or bytes. Temporal values are
    rendered as ISO text.
    """
    if value is None:
        return None

    value = _unwrap(value)
    type_name = (logical_type or '').upper()

    try:
        if type_name in INTEGER_TYPES:
            return int(value)
        if type_name in FLOAT_TYPES:
            return float(value)
        if type_name in DECIMAL_TYPES:
            return decimal_to_cell(value if isinstance(value, Decimal) else Decimal(str(value)))
        if type_name in BOOLEAN_TYPES:
            return _to_bool(value)
        if type_name in TIMESTAMP_TYPES:
            return _to_timestamp_text(value)
        if type_name in DATE_TYPES:
            return _to_date_text(value)
        if type_name in TIME_TYPES:
            return _to_time_text(value)
        if type_name in BINARY_TYPES:
            return _to_bytes(value)
    except (ValueError, TypeError, ArithmeticError, binascii.Error) as e:
        log_and_raise(ProtocolError, f"Could not convert {value!r} to {type_name}: {e}")

    return _native_to_cell(value)


def _unique_name(name: str, taken: set, position: int) -> str:
    if name not in taken:
        return name
    candidate = f'{name}_{position}'
    while candidate in taken:
        candidate += '_'
    return candidate


def _logical_type(raw_column: dict) -> Optional[str]:
    col_type = raw_column.get('type')
    if isinstance(col_type, dict):
        col_type = col_type.get('name')
    col_type = col_type or raw_column.get('typeName')
    return col_type.upper() if isinstance(col_type, str) else None


def protocol_columns(raw_columns: Sequence[dict]) -> List[ColumnDescriptor]:
    """Column descriptors of a query server signature, in declared order"""
    columns, taken = [], set()
    for position, raw in enumerate(raw_columns, start=1):
        if not isinstance(raw, dict):
            log_and_raise(ProtocolError, f"Unexpected column metadata: {raw!r}")
        name = raw.get('columnName') or raw.get('label') or raw.get('name') or f'COLUMN{position}'
        name = _unique_name(name, taken, position)
        taken.add(name)
        columns.append(ColumnDescriptor(name, _logical_type(raw)))
    return columns


def driver_columns(description: Sequence[Sequence]) -> List[ColumnDescriptor]:
    """Column descriptors of a DB-API cursor.description"""
    columns, taken = [], set()
    for position, desc in enumerate(description or [], start=1):
        name = _unique_name(desc[0] or f'COLUMN{position}', taken, position)
        taken.add(name)
        type_code = desc[1] if len(desc) > 1 else None
        if isinstance(type_code, str):
            logical = type_code.upper()
        else:
            logical = pytype_to_logical.get(type_code)
        columns.append(ColumnDescriptor(name, logical))
    return columns


def normalize_rows(columns: List[ColumnDescriptor], raw_rows) -> List[dict]:
    """Positionally align value rows to the columns

    Short rows are padded with explicit nulls, so no key is ever missing.
    """
    rows = []
    width = len(columns)
    for raw in raw_rows or []:
        # pyodbc.Row is iterable but not a registered Sequence
        if isinstance(raw, (str, bytes, dict)) or not hasattr(raw, '__iter__'):
            log_and_raise(ProtocolError, f"Row values are not a sequence: {raw!r}")
        values = list(raw)[:width]
        values += [None] * (width - len(values))
        rows.append({column.name: to_cell(value, column.logical_type)
                     for column, value in zip(columns, values)})
    return rows


def normalize_protocol_result(raw_columns, raw_rows, update_count=None) -> TabularResult:
    columns = protocol_columns(raw_columns or [])
    return TabularResult(columns, normalize_rows(columns, raw_rows), update_count)


def normalize_driver_result(description, raw_rows, update_count=None) -> TabularResult:
    columns = driver_columns(description)
    return TabularResult(columns, normalize_rows(columns, raw_rows), update_count)
