"""
Owner-scoped CRUD over a `ResourceModel`.

Scope:
- identity guard (`user_required`)
- protected-field sanitization for every write path
- ownership filtering for reads, updates and removals
- stripping `owner` from everything returned

A row that does not exist and a row owned by someone else look the same to
the caller: `None` for reads, a no-op for writes.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from uuid import UUID

from .predicates import scoped_by
from .repository import ResourceModel
from .schemas import ControllerConfig, MANAGED_COLUMNS, TableDefinition

logger = logging.getLogger(__name__)

# Owner of every row created while authentication is not required.
SHARED_OWNER: str | None = None

PROTECTED_FIELDS = frozenset(MANAGED_COLUMNS)


class OwnerRequiredError(Exception):
    def __init__(self, message: str = "Owner is required") -> None:
        super().__init__(message)


def owner_of(identity: Any) -> str | None:
    """
    Map a caller identity to an owner id.

    Accepts a plain id (`str`/`int`/`UUID`), or a mapping/object with an
    `id`. Everything else counts as no identity.
    """
    if identity is None or isinstance(identity, bool):
        return None
    if isinstance(identity, UUID):
        return str(identity)
    if isinstance(identity, (str, int)):
        value = str(identity).strip()
        return value or None
    if isinstance(identity, Mapping):
        raw = identity.get("id")
    else:
        raw = getattr(identity, "id", None)
    if raw is None:
        return None
    return owner_of(raw)


def sanitize(protected: Mapping[str, Any], payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Drop every protected field from `payload`, then apply `protected` on top.
    """
    row = {key: value for key, value in dict(payload).items() if key not in PROTECTED_FIELDS}
    row.update(protected)
    return row


def strip_owner(row: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in row.items() if key != "owner"}


def _selector_id(selector: Any) -> Any:
    if isinstance(selector, Mapping):
        return selector.get("id")
    return getattr(selector, "id", None)


class ResourceController:
    def __init__(
        self,
        model: ResourceModel | None = None,
        *,
        table: TableDefinition | None = None,
        user_required: bool = True,
    ) -> None:
        if model is None:
            if table is None:
                raise ValueError("ResourceController needs a model or a table definition.")
            model = ResourceModel(table)
        self.model = model
        self.user_required = user_required

    @classmethod
    def from_config(
        cls,
        config: ControllerConfig | Mapping[str, Any],
        model: ResourceModel | None = None,
    ) -> ResourceController:
        if not isinstance(config, ControllerConfig):
            config = ControllerConfig.model_validate(config)
        return cls(model, table=config.table, user_required=config.user_required)

    @property
    def name(self) -> str:
        return self.model.name

    async def init(self) -> None:
        await self.model.init()

    async def drop(self) -> None:
        await self.model.drop()

    def effective_owner(self, identity: Any) -> str | None:
        if not self.user_required:
            return SHARED_OWNER
        owner = owner_of(identity)
        if owner is None:
            raise OwnerRequiredError()
        return owner

    async def create(self, identity: Any, payload: Mapping[str, Any]) -> dict[str, Any]:
        owner = self.effective_owner(identity)
        created = await self.model.create(sanitize({"owner": owner}, payload))
        return strip_owner(created)

    async def by_id(self, identity: Any, selector: Any) -> dict[str, Any] | None:
        scope = scoped_by(self.effective_owner(identity))
        row = await self.model.by_id(_selector_id(selector))
        if row is None or not scope.matches(row):
            return None
        return strip_owner(row)

    async def by_owner(self, identity: Any) -> list[dict[str, Any]]:
        scope = scoped_by(self.effective_owner(identity))
        rows = await self.model.by_predicate(scope)
        return [strip_owner(row) for row in rows]

    async def update(self, identity: Any, payload: Mapping[str, Any]) -> dict[str, Any] | None:
        """
        Merge `payload` over the caller's row with the same id.

        Returns the updated resource, or None when nothing was written.
        """
        scope = scoped_by(self.effective_owner(identity))
        resource_id = _selector_id(payload)
        existing = await self.model.by_id(resource_id)
        if existing is None or not scope.matches(existing):
            logger.debug("resource_update_skipped table=%s id=%s", self.name, resource_id)
            return None

        # `id` and `owner` keep their stored values; the model re-stamps `modified`.
        changes = sanitize({}, payload)
        updated = await self.model.update(existing["id"], changes)
        if updated is None:
            return None
        return strip_owner(updated)

    async def remove(self, identity: Any, selector: Any) -> None:
        scope = scoped_by(self.effective_owner(identity))
        resource_id = _selector_id(selector)
        existing = await self.model.by_id(resource_id)
        if existing is None or not scope.matches(existing):
            logger.debug("resource_remove_skipped table=%s id=%s", self.name, resource_id)
            return None
        await self.model.remove(existing["id"])
