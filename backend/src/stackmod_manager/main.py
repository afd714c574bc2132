import logging
import shutil
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

import stackmod_manager.models  # noqa: F401
from stackmod_manager.config import settings
from stackmod_manager.database import create_db_and_tables
from stackmod_manager.routers import api_router


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_logging()
logger = logging.getLogger(__name__)


def _check_external_tools() -> None:
    for tool in (settings.overlay_command, settings.unmount_command):
        if shutil.which(tool) is None:
            logger.warning("%s not found on PATH; launching games will fail", tool)
    if shutil.which(settings.sevenzip_command) is None:
        logger.warning(
            "%s not found on PATH; RAR archives cannot be installed", settings.sevenzip_command
        )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    create_db_and_tables()
    _check_external_tools()
    logger.info("Application started (data dir: %s)", settings.data_dir)
    yield
    logger.info("Shutting down...")
    try:
        from stackmod_manager.database import engine

        engine.dispose()
        logger.info("Database engine disposed")
    except Exception:
        logger.exception("Failed to dispose database engine")
    logger.info("Shutdown complete")


app = FastAPI(
    title="StackMod Manager",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
