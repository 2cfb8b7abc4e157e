import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meterline.api.deps import set_dependencies, verify_api_key
from meterline.api.routes.health import set_health_deps
from meterline.buffs.profiles import resolve_startup_profile
from meterline.buffs.service import BuffTimerService
from meterline.config import get_settings
from meterline.live.store import LiveStore
from meterline.tables import load_tables

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings = get_settings()
    logging.getLogger("meterline").setLevel(settings.log_level.upper())

    # Static lookup tables + monitor profile
    tables = load_tables(settings.tables.path)
    profile = resolve_startup_profile(settings.buffs, tables, settings.tables.profiles_path)

    # Live snapshot store
    live_store = LiveStore()

    # Buff timer background service
    buff_service = BuffTimerService(settings, profile, tables)

    # Wire up DI for routes
    set_dependencies(live_store=live_store, buff_service=buff_service, tables=tables)
    set_health_deps(live_store=live_store, buff_service=buff_service)

    await buff_service.start()

    yield

    # Shutdown
    await buff_service.stop()
    set_health_deps(live_store=None, buff_service=None)
    logger.info("Meter shut down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Meterline Combat Meter",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:8000"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["X-API-Key", "Content-Type"],
    )

    from meterline.api.routes.buffs import router as buffs_router
    from meterline.api.routes.health import router as health_router
    from meterline.api.routes.live import router as live_router

    # Health router has no auth
    app.include_router(health_router)
    # Protected routers require API key (when configured)
    app.include_router(live_router, dependencies=[Depends(verify_api_key)])
    app.include_router(buffs_router, dependencies=[Depends(verify_api_key)])

    return app
