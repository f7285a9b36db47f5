"""Result and statement types shared by both transports

TabularResult is the one shape every caller consumes, whichever
transport produced it. Rows are dicts keyed by column name, and every
row holds one cell per declared column, nulls included.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

import pyarrow as pa

from pyphoenixqs.globals import logical_to_pa
from pyphoenixqs.utils import strip_statement


class StatementKind(Enum):
    QUERY = "Query"  # rows are expected back
    EXECUTE = "Execute"


class CellKind(Enum):
    NULL = "null"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    BYTES = "bytes"


def cell_kind(value) -> CellKind:
    """Return the tag of a normalized cell value"""
    if value is None:
        return CellKind.NULL
    # bool before int, bool is an int subclass
    if isinstance(value, bool):
        return CellKind.BOOLEAN
    if isinstance(value, int):
        return CellKind.INTEGER
    if isinstance(value, float):
        return CellKind.FLOAT
    if isinstance(value, bytes):
        return CellKind.BYTES
    if isinstance(value, str):
        return CellKind.STRING
    raise TypeError(f"{type(value).__name__} is not a normalized cell value")


class StatementRequest:
    """SQL text plus the kind of operation requested

    The text is kept stripped of surrounding whitespace and trailing
    terminators.
    """

    def __init__(self, sql: str, kind: StatementKind = StatementKind.QUERY):
        self.sql = strip_statement(sql)
        self.kind = kind

    def __repr__(self):
        return f"StatementRequest(sql={self.sql!r}, kind={self.kind.name})"


class ColumnDescriptor(NamedTuple):
    name: str
    logical_type: Optional[str] = None


class TabularResult:
    """Ordered columns plus ordered rows of named cells"""

    def __init__(self, columns: List[ColumnDescriptor] = None,
                 rows: List[Dict[str, Any]] = None,
                 update_count: Optional[int] = None):
        self.columns = list(columns or [])
        self.rows = list(rows or [])
        self.update_count = update_count

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def __len__(self):
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __eq__(self, other):
        if not isinstance(other, TabularResult):
            return NotImplemented
        return (self.columns, self.rows, self.update_count) == (other.columns, other.rows, other.update_count)

    def __repr__(self):
        return f"TabularResult(columns={self.column_names}, row_count={self.row_count})"

    def to_dict(self) -> Dict[str, Any]:
        """Envelope served by an HTTP endpoint layer"""
        return {
            "columns": [{"name": column.name, "type": column.logical_type} for column in self.columns],
            "rows": [dict(row) for row in self.rows],
            "rowCount": self.row_count,
        }

    def format_table(self) -> str:
        """Render as a bordered text table, the way the query GUI shows it"""
        if not self.rows:
            return "No rows returned."

        widths = {}
        for name in self.column_names:
            widths[name] = max([len(name), 15] + [len(_render(row[name])) for row in self.rows])

        header = "|" + "".join(f" {name.ljust(widths[name])} |" for name in self.column_names)
        separator = "|" + "".join(f" {'-' * widths[name]} |" for name in self.column_names)
        lines = [header, separator]
        for row in self.rows:
            lines.append("|" + "".join(f" {_render(row[name]).ljust(widths[name])} |" for name in self.column_names))
        lines.append("")
        lines.append(f"Total rows: {self.row_count}")
        return "\n".join(lines)

    def to_pandas(self):
        import pandas as pd

        return pd.DataFrame.from_records(self.rows, columns=self.column_names)

    def to_arrow(self):
        fields = [pa.field(column.name, logical_to_pa.get((column.logical_type or '').upper(), pa.string()))
                  for column in self.columns]
        schema = pa.schema(fields)
        data = [[_arrow_value(row[column.name], field.type) for row in self.rows]
                for column, field in zip(self.columns, fields)]
        return pa.Table.from_arrays([pa.array(col, type=field.type) for col, field in zip(data, fields)],
                                    schema=schema)


def _render(value) -> str:
    if value is None:
        return "NULL"
    return str(value)


def _arrow_value(value, arrow_type):
    if value is None or arrow_type != pa.string():
        return value
    return value if isinstance(value, str) else str(value)
