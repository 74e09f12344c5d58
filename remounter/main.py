import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .api import shares
from .dependencies import get_monitor_loop


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    monitor = get_monitor_loop()
    await monitor.start_monitoring()
    logging.info("MonitorLoop started as background task")

    yield

    logging.info("Remounter shutting down...")
    await monitor.stop_monitoring()


app = FastAPI(
    title="SMB Remounter",
    description="Keeps SMB shares mounted and remounts stale connections",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(shares.router)


@app.get("/health")
async def health():
    """Liveness of the remounter process itself."""
    monitor = get_monitor_loop()
    return {"status": "healthy" if monitor.is_running else "stopped", "service": "remounter"}
