"""
Resource persistence (raw SQL).

One `ResourceModel` per configured table. SQL is built from a validated
`TableDefinition`, so identifiers are never taken from request data; values
always travel as positional parameters.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Mapping
from uuid import uuid4

from core import db

from .predicates import FieldEquals
from .schemas import ColumnType, TableDefinition

logger = logging.getLogger(__name__)


class ResourceValidationError(ValueError):
    pass


class UnknownColumnError(ResourceValidationError):
    pass


class MissingColumnError(ResourceValidationError):
    pass


def _quote(name: str) -> str:
    # Names are validated identifiers (see schemas.is_identifier).
    return f'"{name}"'


def _json_arg(value: Any) -> str | None:
    """
    asyncpg does not automatically encode Python values for json/jsonb parameters.
    We pass JSON as a string and cast to jsonb in SQL.
    """
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=True)


class ResourceModel:
    def __init__(self, table: TableDefinition) -> None:
        self.table = table
        self._ident = _quote(table.name)
        self._json_columns = {c.name for c in table.columns if c.type is ColumnType.json}
        self._datetime_columns = {c.name for c in table.columns if c.type is ColumnType.datetime}

    @property
    def name(self) -> str:
        return self.table.name

    def __repr__(self) -> str:
        return f"ResourceModel({self.table.name!r})"

    # Table lifecycle

    async def init(self) -> None:
        column_sql = [
            '"id" text PRIMARY KEY',
            '"owner" text',
            '"modified" timestamptz NOT NULL DEFAULT now()',
        ]
        for column in self.table.columns:
            null_sql = " NOT NULL" if column.required else ""
            column_sql.append(f"{_quote(column.name)} {column.sql_type}{null_sql}")

        await db.execute(
            f"CREATE TABLE IF NOT EXISTS {self._ident} (\n  " + ",\n  ".join(column_sql) + "\n)"
        )
        await db.execute(
            f"CREATE INDEX IF NOT EXISTS {_quote(self.table.name + '_owner_idx')} "
            f'ON {self._ident} ("owner")'
        )
        logger.info("resource_table_ready table=%s columns=%s", self.name, len(self.table.columns))

    async def drop(self) -> None:
        await db.execute(f"DROP TABLE IF EXISTS {self._ident}")
        logger.info("resource_table_dropped table=%s", self.name)

    async def count(self) -> int:
        value = await db.fetch_val(f"SELECT count(*) FROM {self._ident}")
        return int(value or 0)

    async def delete_all(self) -> None:
        await db.execute(f"DELETE FROM {self._ident}")

    # Row primitives

    def _check_columns(self, values: Mapping[str, Any], *, allowed_managed: tuple[str, ...]) -> None:
        for key in values:
            if key in allowed_managed:
                continue
            if self.table.column(key) is None:
                raise UnknownColumnError(f"Unknown column for {self.name}: {key!r}")

    def _check_type(self, column: str, value: Any) -> None:
        if value is None:
            return None
        column_type = self.table.column(column).type
        if column_type in (ColumnType.string, ColumnType.text):
            ok = isinstance(value, str)
        elif column_type is ColumnType.integer:
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif column_type is ColumnType.number:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif column_type is ColumnType.boolean:
            ok = isinstance(value, bool)
        elif column_type is ColumnType.datetime:
            ok = isinstance(value, (str, datetime))
        else:
            ok = True
        if not ok:
            raise ResourceValidationError(
                f"Invalid value for {self.name}.{column}: expected {column_type.value}, "
                f"got {type(value).__name__}"
            )

    def validate_create(self, row: Mapping[str, Any]) -> None:
        self._check_columns(row, allowed_managed=("owner",))
        for column in self.table.columns:
            if column.required and row.get(column.name) is None:
                raise MissingColumnError(f"Missing required column for {self.name}: {column.name!r}")
        for key, value in row.items():
            if key != "owner":
                self._check_type(key, value)

    def validate_update(self, partial: Mapping[str, Any]) -> None:
        self._check_columns(partial, allowed_managed=())
        for key, value in partial.items():
            if value is None and self.table.column(key).required:
                raise MissingColumnError(f"Required column cannot be null for {self.name}: {key!r}")
            self._check_type(key, value)

    def _arg(self, column: str, value: Any) -> Any:
        if column in self._json_columns:
            return _json_arg(value)
        if column in self._datetime_columns and isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError as exc:
                raise ResourceValidationError(f"Invalid datetime for {self.name}.{column}: {value!r}") from exc
        return value

    def _placeholder(self, column: str, index: int) -> str:
        if column in self._json_columns:
            return f"${index}::jsonb"
        return f"${index}"

    def _row_out(self, row: dict[str, Any] | None) -> dict[str, Any] | None:
        if row is None:
            return None
        for column in self._json_columns:
            value = row.get(column)
            if isinstance(value, str):
                row[column] = json.loads(value)
        return row

    async def create(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert a row. `id` and `modified` are always generated here.
        """
        self.validate_create(row)

        columns = ["id"]
        args: list[Any] = [uuid4().hex]
        placeholders = ["$1"]
        for key, value in row.items():
            columns.append(key)
            args.append(self._arg(key, value))
            placeholders.append(self._placeholder(key, len(args)))

        created = await db.fetch_one(
            f"INSERT INTO {self._ident} ({', '.join(_quote(c) for c in columns)}, \"modified\")\n"
            f"VALUES ({', '.join(placeholders)}, now())\n"
            "RETURNING *",
            *args,
        )
        if created is None:
            raise RuntimeError(f"Failed to create {self.name} row.")
        return self._row_out(created)

    async def by_id(self, resource_id: Any) -> dict[str, Any] | None:
        if resource_id is None:
            return None
        row = await db.fetch_one(
            f'SELECT * FROM {self._ident} WHERE "id" = $1',
            str(resource_id),
        )
        return self._row_out(row)

    async def by_predicate(self, predicate: FieldEquals) -> list[dict[str, Any]]:
        where, args = predicate.to_sql(1)
        rows = await db.fetch_all(f"SELECT * FROM {self._ident} WHERE {where}", *args)
        return [self._row_out(row) for row in rows]

    async def update(self, resource_id: Any, partial: Mapping[str, Any]) -> dict[str, Any] | None:
        """
        Set the given user columns on one row and re-stamp `modified`.
        Returns the stored row, or None when no row has this id.
        """
        self.validate_update(partial)

        assignments = ['"modified" = now()']
        args: list[Any] = [str(resource_id)]
        for key, value in partial.items():
            args.append(self._arg(key, value))
            assignments.append(f"{_quote(key)} = {self._placeholder(key, len(args))}")

        row = await db.fetch_one(
            f"UPDATE {self._ident}\n"
            f"SET {', '.join(assignments)}\n"
            'WHERE "id" = $1\n'
            "RETURNING *",
            *args,
        )
        return self._row_out(row)

    async def remove(self, resource_id: Any) -> bool:
        row = await db.fetch_one(
            f'DELETE FROM {self._ident} WHERE "id" = $1 RETURNING "id"',
            str(resource_id),
        )
        return row is not None
