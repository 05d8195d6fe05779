"""
Pydantic schemas describing resource tables and controller options.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Columns the model and controller manage themselves.
MANAGED_COLUMNS = ("id", "owner", "modified")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name or ""))


class ColumnType(str, Enum):
    string = "string"
    text = "text"
    integer = "integer"
    number = "number"
    boolean = "boolean"
    json = "json"
    datetime = "datetime"


SQL_TYPES: dict[ColumnType, str] = {
    ColumnType.string: "text",
    ColumnType.text: "text",
    ColumnType.integer: "bigint",
    ColumnType.number: "double precision",
    ColumnType.boolean: "boolean",
    ColumnType.json: "jsonb",
    ColumnType.datetime: "timestamptz",
}


class ColumnSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=63)
    type: ColumnType = ColumnType.string
    required: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not is_identifier(value):
            raise ValueError(f"Invalid column name: {value!r}")
        if value.lower() in MANAGED_COLUMNS:
            raise ValueError(f"Column name is reserved: {value!r}")
        return value

    @property
    def sql_type(self) -> str:
        return SQL_TYPES[self.type]


class TableDefinition(BaseModel):
    """
    A resource: table name plus ordered user columns.

    `id`, `owner` and `modified` are added by the model and must not be
    declared here.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=63)
    columns: tuple[ColumnSpec, ...] = Field(default_factory=tuple)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not is_identifier(value):
            raise ValueError(f"Invalid table name: {value!r}")
        return value

    @field_validator("columns")
    @classmethod
    def _check_unique(cls, value: tuple[ColumnSpec, ...]) -> tuple[ColumnSpec, ...]:
        seen: set[str] = set()
        for column in value:
            key = column.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate column: {column.name!r}")
            seen.add(key)
        return value

    def column(self, name: str) -> ColumnSpec | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]


class ControllerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    table: TableDefinition | None = None
    user_required: bool = Field(default=True, alias="userRequired")
