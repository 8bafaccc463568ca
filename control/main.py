"""
SimCiv Engine - FastAPI Application
Process entry point. Hosts the tick scheduler and, in end-to-end test mode,
the manual tick control endpoints.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from control.config import Settings, get_settings
from control.routers import control
from engine.db import (
    GameRepository,
    InMemoryGameRepository,
    SupabaseGameRepository,
    get_supabase_client,
)
from engine.simulation import TickScheduler, make_seed_source

logger = logging.getLogger(__name__)


def create_repository(settings: Settings) -> GameRepository:
    """Build the configured persistence backend"""
    if settings.repository_backend == "memory":
        logger.info("Using in-memory repository")
        return InMemoryGameRepository()

    logger.info(f"Supabase URL: {settings.supabase_url}")
    client = get_supabase_client(settings.supabase_url, settings.supabase_key)
    return SupabaseGameRepository(client)


def create_scheduler(settings: Settings, repository: GameRepository) -> TickScheduler:
    return TickScheduler(
        repository,
        tick_interval_ms=settings.tick_interval_ms,
        poll_interval_ms=settings.poll_interval_ms,
        test_mode=settings.e2e_test_mode,
        seed_source=make_seed_source(settings.test_map_seed or None),
        repository_timeout_s=settings.repository_timeout_s,
        generation_timeout_s=settings.generation_timeout_s,
    )


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[GameRepository] = None,
) -> FastAPI:
    """
    Create the application.

    Args:
        settings: Overrides the environment settings
        repository: Overrides the configured backend
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the scheduler on startup and stop it on shutdown."""
        logger.info("Starting SimCiv engine...")
        app.state.repository = repository or create_repository(settings)
        app.state.scheduler = create_scheduler(settings, app.state.repository)
        app.state.scheduler.start()

        yield

        logger.info("Shutting down SimCiv engine...")
        await app.state.scheduler.stop()

    app = FastAPI(
        title="SimCiv Engine",
        description="Tick scheduler and world generation for SimCiv games",
        version="1.0.0",
        lifespan=lifespan,
    )

    if settings.e2e_test_mode:
        logger.info(f"Control server enabled on port {settings.control_port} (E2E test mode)")
        app.include_router(control.router, tags=["control"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(
        app,
        host=settings.control_host,
        port=settings.control_port,
    )
