from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core import db
from core.logs import configure_logging
from resources import config as resource_config
from resources.repository import ResourceValidationError
from resources.router import build_router
from resources.service import OwnerRequiredError, ResourceController


def build_controllers() -> list[ResourceController]:
    user_required = resource_config.user_required_default()
    return [
        ResourceController(table=definition, user_required=user_required)
        for definition in resource_config.load_definitions()
    ]


async def _owner_required_handler(_: Request, exc: OwnerRequiredError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": str(exc)})


async def _validation_handler(_: Request, exc: ResourceValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app(
    controllers: list[ResourceController] | None = None,
    *,
    manage_db: bool = True,
) -> FastAPI:
    """
    Build the API. With `manage_db=False` the lifespan neither opens the pool
    nor creates tables, so controllers can run on any model.
    """
    if controllers is None:
        controllers = build_controllers()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        configure_logging()
        if not manage_db:
            yield
            return
        # Initialize the DB pool once per process.
        await db.init_pool()
        try:
            for controller in controllers:
                await controller.init()
            yield
        finally:
            await db.close_pool()

    app = FastAPI(lifespan=lifespan)
    app.add_exception_handler(OwnerRequiredError, _owner_required_handler)
    app.add_exception_handler(ResourceValidationError, _validation_handler)

    for controller in controllers:
        app.include_router(build_router(controller), tags=[controller.name])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {
            "message": "owned-resources api",
            "resources": [controller.name for controller in controllers],
        }

    return app


app = create_app()
