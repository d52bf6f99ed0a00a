import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from .api import auth, config, status
from .core.exceptions import TargetConfigError
from .dependencies import (
    get_config_store,
    get_orchestrator,
    get_scheduler,
    get_settings,
)
from .logging_config import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Configuration loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")

    logging.info("Target Monitor starting up...")

    orchestrator = get_orchestrator()
    config_store = get_config_store()
    try:
        orchestrator.replace_targets(await config_store.load())
    except TargetConfigError as e:
        logging.error(f"Could not load targets, starting with none: {e}")

    logging.info(
        f"Monitoring {len(orchestrator.targets.websites)} websites and "
        f"{len(orchestrator.targets.file_stores)} Azure file storages"
    )

    scheduler = get_scheduler()
    await scheduler.start_monitoring()

    yield

    logging.info("Target Monitor shutting down...")
    await scheduler.stop_monitoring()
    logging.info("Monitoring stopped")


app = FastAPI(
    title="Target Monitor",
    description="Periodisk health monitoring af websites og Azure File shares",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logging.debug(
        f"Incoming request: {request.method} {request.url.path}",
        extra={
            "operation": "http_request",
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        },
    )

    response = await call_next(request)

    logging.debug(
        f"Response: {response.status_code}",
        extra={
            "operation": "http_response",
            "status_code": response.status_code,
            "path": request.url.path,
        },
    )

    return response


app.include_router(status.router)
app.include_router(auth.router)
app.include_router(config.router)


def run() -> None:
    uvicorn.run(
        "target_monitor.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
