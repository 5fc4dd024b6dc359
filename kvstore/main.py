import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from kvstore.api.routes import router
from kvstore.config import (
    CORS_ORIGINS,
    ENABLE_REPORTER,
    LOG_LEVEL,
    REPORT_INTERVAL_SECONDS,
    SHUTDOWN_TIMEOUT_SECONDS,
)
from kvstore.core.exceptions import register_exception_handlers
from kvstore.core.store import KeyValueStore
from kvstore.reporter import Reporter

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("kvstore")


@asynccontextmanager
async def lifespan(app: FastAPI):
    reporter: Optional[Reporter] = app.state.reporter
    if reporter is not None:
        reporter.start()
        logger.info("event=reporter_started interval_seconds=%s", reporter.interval)
    try:
        yield
    finally:
        if reporter is not None:
            await run_in_threadpool(reporter.stop, SHUTDOWN_TIMEOUT_SECONDS)


def create_app(
    store: Optional[KeyValueStore] = None,
    *,
    enable_reporter: Optional[bool] = None,
    report_interval: Optional[float] = None,
) -> FastAPI:
    """Build the API around ``store``; a fresh empty store is created when none is given."""
    app = FastAPI(title="KV Store API", version="1.0.0", lifespan=lifespan)

    if enable_reporter is None:
        enable_reporter = ENABLE_REPORTER

    app.state.store = store if store is not None else KeyValueStore()
    if enable_reporter:
        app.state.reporter = Reporter(
            app.state.store,
            interval=REPORT_INTERVAL_SECONDS if report_interval is None else report_interval,
        )
    else:
        app.state.reporter = None

    origins = [origin.strip() for origin in CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    register_exception_handlers(app)
    return app
