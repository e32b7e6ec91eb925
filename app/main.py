from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from catalog.table import build_default_catalog
from logging_config import configure_logging
from storage.partition_store import build_default_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_store()
    build_default_catalog()
    try:
        yield
    finally:
        build_default_store.cache_clear()
        build_default_catalog.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="IoT Sensor Lake",
        description="Read-only query service over date-partitioned synthetic sensor data.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
