"""
Deployment configuration for resource tables.

Env vars:
- RESOURCES_CONFIG_PATH: JSON file with a list of table definitions
- RESOURCES_USER_REQUIRED: require a caller identity (default: true)
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from .schemas import ColumnSpec, ColumnType, TableDefinition

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

DEFAULT_DEFINITIONS = (
    TableDefinition(
        name="notes",
        columns=(
            ColumnSpec(name="title", type=ColumnType.string, required=True),
            ColumnSpec(name="body", type=ColumnType.text),
        ),
    ),
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return default


def user_required_default() -> bool:
    return _env_bool("RESOURCES_USER_REQUIRED", True)


def config_path() -> Path | None:
    raw = os.environ.get("RESOURCES_CONFIG_PATH", "").strip()
    return Path(raw) if raw else None


def load_definitions(path: Path | None = None) -> list[TableDefinition]:
    path = path or config_path()
    if path is None:
        return list(DEFAULT_DEFINITIONS)

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("tables")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of table definitions.")

    definitions = [TableDefinition.model_validate(item) for item in data]
    names = [d.name for d in definitions]
    if len(set(names)) != len(names):
        raise ValueError(f"{path}: duplicate table names.")
    return definitions
