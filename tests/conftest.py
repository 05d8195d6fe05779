import copy
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from resources.repository import ResourceModel
from resources.schemas import ColumnSpec, TableDefinition
from resources.service import ResourceController


class InMemoryResourceModel(ResourceModel):
    """
    ResourceModel with rows kept in a dict instead of Postgres.

    Same validation and same stamping rules (`id` generated, `modified`
    advanced on every write), so controller tests exercise the real contract.
    """

    def __init__(self, table):
        super().__init__(table)
        self.rows = {}
        self.calls = []
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    async def init(self):
        self.calls.append("init")

    async def drop(self):
        self.calls.append("drop")
        self.rows.clear()

    async def count(self):
        return len(self.rows)

    async def delete_all(self):
        self.rows.clear()

    async def create(self, row):
        self.calls.append("create")
        self.validate_create(row)
        stored = dict(row)
        stored["id"] = f"{next(self._ids):032x}"
        stored["modified"] = self._tick()
        self.rows[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def by_id(self, resource_id):
        self.calls.append("by_id")
        row = self.rows.get(str(resource_id)) if resource_id is not None else None
        return copy.deepcopy(row) if row is not None else None

    async def by_predicate(self, predicate):
        self.calls.append("by_predicate")
        return [copy.deepcopy(row) for row in self.rows.values() if predicate.matches(row)]

    async def update(self, resource_id, partial):
        self.calls.append("update")
        self.validate_update(partial)
        row = self.rows.get(str(resource_id))
        if row is None:
            return None
        row.update(partial)
        row["modified"] = self._tick()
        return copy.deepcopy(row)

    async def remove(self, resource_id):
        self.calls.append("remove")
        return self.rows.pop(str(resource_id), None) is not None


@pytest.fixture
def table():
    return TableDefinition(
        name="test",
        columns=[ColumnSpec(name="foo", type="string", required=True), ColumnSpec(name="baz")],
    )


@pytest.fixture
def model(table):
    return InMemoryResourceModel(table)


@pytest.fixture
def controller(model):
    return ResourceController(model)


@pytest.fixture
def public_model(table):
    return InMemoryResourceModel(table)


@pytest.fixture
def public_controller(public_model):
    return ResourceController(public_model, user_required=False)
