"""
Row predicates passed from the controller into the model.

A predicate compiles to a SQL fragment for the Postgres model and can also be
checked against a row that was already loaded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .schemas import is_identifier


@dataclass(frozen=True)
class FieldEquals:
    column: str
    value: Any

    def __post_init__(self) -> None:
        if not is_identifier(self.column):
            raise ValueError(f"Invalid column name: {self.column!r}")

    def to_sql(self, start: int = 1) -> tuple[str, list[Any]]:
        """
        Return `(fragment, args)` with placeholders numbered from `start`.

        A None value (the shared owner) compiles to `IS NULL` and takes no
        placeholder; plain `=` keeps the column index usable.
        """
        if self.value is None:
            return f'"{self.column}" IS NULL', []
        return f'"{self.column}" = ${start}', [self.value]

    def matches(self, row: Mapping[str, Any]) -> bool:
        return row.get(self.column) == self.value


def scoped_by(owner: str | None) -> FieldEquals:
    return FieldEquals("owner", owner)
