"""
Table descriptions consumed by the export/import engine.

A ``TableSchema`` is an ordered list of ``Column`` entries, each pairing a
column name with a ``TypeTag``. The tag selects both the SQL column affinity
used when the table is created and the JSON encoding used in backups.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple
from feedstate.errors import UnsupportedType


class TypeTag(str, Enum):
    PRIMARY_KEY = "PRIMARY_KEY"
    TEXT = "TEXT"
    TEXT_UNIQUE = "TEXT_UNIQUE"
    DATETIME = "DATETIME"
    INTEGER = "INTEGER"
    SMALL_INT = "SMALL_INT"
    BOOLEAN = "BOOLEAN"
    BLOB = "BLOB"

    @property
    def sql_type(self) -> str:
        return _SQL_TYPES[self]

    @classmethod
    def from_sql_type(cls, sql_type: str) -> "TypeTag":
        for tag, declared in _SQL_TYPES.items():
            if declared == sql_type:
                return tag
        raise UnsupportedType(f"Unknown column type {sql_type}")


_SQL_TYPES = {
    TypeTag.PRIMARY_KEY: "INTEGER PRIMARY KEY AUTOINCREMENT",
    TypeTag.TEXT: "TEXT",
    TypeTag.TEXT_UNIQUE: "TEXT UNIQUE",
    TypeTag.DATETIME: "DATETIME",
    TypeTag.INTEGER: "INT",
    TypeTag.SMALL_INT: "INTEGER(7)",
    TypeTag.BOOLEAN: "INTEGER(1)",
    TypeTag.BLOB: "BLOB",
}


@dataclass(frozen=True)
class Column:
    name: str
    type: TypeTag


@dataclass(frozen=True)
class TableSchema:
    table_name: str
    columns: Tuple[Column, ...]

    def __post_init__(self):
        # Accept any sequence but store a tuple so the schema stays hashable.
        object.__setattr__(self, "columns", tuple(self.columns))
        seen = set()
        for column in self.columns:
            if column.name in seen:
                raise ValueError(f"Table {self.table_name} declares column {column.name} twice")
            seen.add(column.name)

    @classmethod
    def of(cls, table_name: str, *columns: Tuple[str, TypeTag]) -> "TableSchema":
        """Build a schema from ``(name, type)`` pairs."""
        return cls(table_name, tuple(Column(name, tag) for name, tag in columns))

    def column_count(self) -> int:
        return len(self.columns)

    def column_name(self, index: int) -> str:
        return self.columns[index].name

    def column_type(self, index: int) -> TypeTag:
        return self.columns[index].type

    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def data_columns(self) -> List[Column]:
        """Every column that is carried in a backup, i.e. all but the primary key."""
        return [c for c in self.columns if c.type is not TypeTag.PRIMARY_KEY]
