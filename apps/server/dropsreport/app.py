"""HTTP service wiring: config -> worker pool -> routes.

Keep this module focused on orchestration; report semantics live in
``report/*`` and wire schemas in ``api_models.py``.
"""

from __future__ import annotations

import argparse
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from . import __version__
from .config import AppConfig, load_config
from .routes import create_router
from .worker_pool import WorkerPool

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeState:
    config: AppConfig
    pool: WorkerPool


def build_runtime(config: AppConfig) -> RuntimeState:
    pool = WorkerPool(
        max_workers=config.report.max_fetch_workers,
        thread_name_prefix="dropsreport-io",
    )
    return RuntimeState(config=config, pool=pool)


def create_app(config_path: Path | None = None) -> FastAPI:
    config = load_config(config_path)
    runtime = build_runtime(config)
    LOGGER.info(
        "Report service configured: backend=%s page=%s/%s fetch_workers=%d",
        config.report.backend,
        config.report.page_size,
        config.report.orientation,
        runtime.pool.max_workers,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            runtime.pool.shutdown(wait=False)
            LOGGER.info("Worker pool stopped: %s", runtime.pool.stats())

    app = FastAPI(title="DROPS Report", version=__version__, lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


app: FastAPI | None = (
    create_app()
    if __name__ != "__main__" and os.getenv("DROPSREPORT_DISABLE_AUTO_APP", "0") != "1"
    else None
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the DROPS report server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    host = runtime.config.server.host
    port = runtime.config.server.port
    try:
        uvicorn.run(runtime_app, host=host, port=port, log_level="info")
    except OSError:
        LOGGER.error("Failed to bind to %s:%d.", host, port, exc_info=True)
        raise


if __name__ == "__main__":
    main()
