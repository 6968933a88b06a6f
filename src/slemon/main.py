"""slemon application entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, Request

from slemon.config import Settings, load_config, settings
from slemon.controller.base import BaseControllerClient, ControllerError
from slemon.controller.client import ControllerClient
from slemon.database import init_db, make_engine
from slemon.sle.collector import SLECollectionService
from slemon.sle.store import TimeSeriesStore
from slemon.storage.kv import KeyValueStore

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


def _create_client(cfg: Settings) -> ControllerClient | None:
    """Factory: instantiate the controller client from configuration."""
    if not cfg.controller_configured():
        logger.warning("Controller URL or credentials not configured")
        return None
    return ControllerClient(
        base_url=cfg.controller_url or "",
        username=cfg.controller_username,
        password=cfg.controller_password,
        token=cfg.controller_token,
        verify_tls=cfg.controller_verify_tls,
        timeout=cfg.request_timeout,
    )


def build_collector(
    cfg: Settings, api: BaseControllerClient, engine: Any = None
) -> SLECollectionService:
    """Wire the store and collection service for one process."""
    if engine is None:
        engine = make_engine()
    init_db(engine)
    store = TimeSeriesStore(KeyValueStore(engine), max_points=cfg.max_data_points)
    return SLECollectionService(
        api=api,
        store=store,
        interval=cfg.collection_interval,
        poor_rssi_threshold=cfg.poor_rssi_threshold,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    cfg = load_config()
    client = _create_client(cfg)

    if client is not None and not client.is_authenticated():
        try:
            await client.login()
        except ControllerError as e:
            # Ticks skip until a token is available
            logger.error("Controller login failed: %s", e)

    collector = None
    if client is not None:
        collector = build_collector(cfg, client)
        if cfg.autostart:
            await collector.start_collection()
    app.state.collector = collector

    yield

    if collector is not None:
        await collector.stop_collection()
        logger.info("SLE collection stopped")
    if client is not None:
        await client.logout()
        await client.aclose()


app = FastAPI(
    title="slemon",
    description="Service Level Experience collection for network controllers",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
def health(request: Request) -> dict[str, Any]:
    collector: SLECollectionService | None = getattr(request.app.state, "collector", None)
    if collector is None:
        return {"status": "ok", "collection": None}
    return {"status": "ok", "collection": asdict(collector.get_stats())}


def main() -> None:
    import uvicorn

    logger.info("Starting slemon on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
