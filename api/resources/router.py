"""
Resource API endpoints.

`build_router` mounts the five controller operations for one table under
`/{table name}`.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from auth import dependencies as auth_dependencies

from .service import ResourceController


def build_router(controller: ResourceController) -> APIRouter:
    router = APIRouter(prefix=f"/{controller.name}")

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_resource(
        payload: dict[str, Any] = Body(...),
        current_user: dict | None = Depends(auth_dependencies.get_optional_user),
    ) -> dict:
        return await controller.create(current_user, payload)

    @router.get("")
    async def list_resources(
        current_user: dict | None = Depends(auth_dependencies.get_optional_user),
    ) -> dict:
        items = await controller.by_owner(current_user)
        return {"items": items, "count": len(items)}

    @router.get("/{resource_id}")
    async def get_resource(
        resource_id: str,
        current_user: dict | None = Depends(auth_dependencies.get_optional_user),
    ) -> dict:
        row = await controller.by_id(current_user, {"id": resource_id})
        if row is None:
            raise HTTPException(status_code=404, detail="Resource not found.")
        return row

    @router.put("/{resource_id}")
    async def update_resource(
        resource_id: str,
        payload: dict[str, Any] = Body(...),
        current_user: dict | None = Depends(auth_dependencies.get_optional_user),
    ) -> dict:
        # The path decides which row is targeted, never the body.
        row = await controller.update(current_user, {**payload, "id": resource_id})
        if row is None:
            raise HTTPException(status_code=404, detail="Resource not found.")
        return row

    @router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_resource(
        resource_id: str,
        current_user: dict | None = Depends(auth_dependencies.get_optional_user),
    ) -> Response:
        await controller.remove(current_user, {"id": resource_id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
