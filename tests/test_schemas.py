import json

import pytest
from pydantic import ValidationError

from resources import config
from resources.schemas import ColumnSpec, ColumnType, ControllerConfig, TableDefinition


def test_table_definition_from_plain_data():
    table = TableDefinition.model_validate(
        {"name": "test", "columns": [{"name": "foo", "required": True, "type": "string"}]}
    )
    assert table.column_names == ["foo"]
    assert table.column("foo").type is ColumnType.string
    assert table.column("foo").sql_type == "text"
    assert table.column("bar") is None


@pytest.mark.parametrize("name", ["id", "owner", "Modified"])
def test_managed_column_names_are_reserved(name):
    with pytest.raises(ValidationError):
        ColumnSpec(name=name)


@pytest.mark.parametrize("name", ["1abc", "with space", 'quo"te', "a-b", "x" * 64])
def test_names_must_be_identifiers(name):
    with pytest.raises(ValidationError):
        ColumnSpec(name=name)
    with pytest.raises(ValidationError):
        TableDefinition(name=name)


def test_duplicate_columns_rejected():
    with pytest.raises(ValidationError):
        TableDefinition(name="t", columns=[ColumnSpec(name="a"), ColumnSpec(name="A")])


def test_definitions_are_frozen():
    table = TableDefinition(name="t")
    with pytest.raises(ValidationError):
        table.name = "other"


def test_controller_config_defaults_to_user_required():
    assert ControllerConfig().user_required is True
    assert ControllerConfig(user_required=False).user_required is False
    assert ControllerConfig.model_validate({"userRequired": False}).user_required is False


def test_load_definitions_default(monkeypatch):
    monkeypatch.delenv("RESOURCES_CONFIG_PATH", raising=False)
    definitions = config.load_definitions()
    assert [d.name for d in definitions] == ["notes"]
    assert definitions[0].column("title").required


def test_load_definitions_from_file(tmp_path, monkeypatch):
    path = tmp_path / "resources.json"
    path.write_text(
        json.dumps({"tables": [{"name": "todos", "columns": [{"name": "done", "type": "boolean"}]}]}),
        encoding="utf-8",
    )
    monkeypatch.setenv("RESOURCES_CONFIG_PATH", str(path))

    definitions = config.load_definitions()
    assert definitions[0].name == "todos"
    assert definitions[0].column("done").sql_type == "boolean"


def test_load_definitions_rejects_duplicates(tmp_path):
    path = tmp_path / "resources.json"
    path.write_text(json.dumps([{"name": "a"}, {"name": "a"}]), encoding="utf-8")
    with pytest.raises(ValueError):
        config.load_definitions(path)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("", True), ("0", False), ("false", False), ("yes", True), ("garbage", True)],
)
def test_user_required_default(monkeypatch, raw, expected):
    monkeypatch.setenv("RESOURCES_USER_REQUIRED", raw)
    assert config.user_required_default() is expected
