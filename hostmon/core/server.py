#!/usr/bin/env python3
"""
hostmon FastAPI application factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..api.queries import MeasurementStore
from ..api.routes.measurement_routes import create_measurement_routes
from ..database import InfluxDatabase, get_database
from .config import ServerConfig
from .log_setup import setup_logging

logger = logging.getLogger("hostmon.server")


def create_app(config: ServerConfig, database: Optional[InfluxDatabase] = None) -> FastAPI:
    """Create the FastAPI app serving measurements from one shared database."""
    setup_logging(config.log_level)

    database = database or get_database(config.database)
    store = MeasurementStore.from_database(database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"hostmon server starting, database {config.database.base_url}/{config.database.name}")
        yield
        await store.writer.drain()
        await database.close()
        logger.info("hostmon server stopped")

    app = FastAPI(title="hostmon", version=__version__, lifespan=lifespan)
    app.state.store = store
    app.include_router(create_measurement_routes(store))
    return app
