"""FastAPI dependency injection providers."""

import hmac

from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader, APIKeyQuery

from meterline.buffs.service import BuffTimerService
from meterline.config import get_settings
from meterline.live.store import LiveStore
from meterline.tables import StaticTables

# Set during lifespan, read by Depends()
_live_store: LiveStore | None = None
_buff_service: BuffTimerService | None = None
_tables: StaticTables | None = None


def set_dependencies(live_store=None, buff_service=None, tables=None) -> None:
    """Called once during app lifespan startup."""
    global _live_store, _buff_service, _tables
    _live_store = live_store
    _buff_service = buff_service
    _tables = tables


def get_live_store() -> LiveStore:
    """FastAPI dependency -- returns the shared live snapshot store."""
    if _live_store is None:
        raise RuntimeError("Live store not initialized")
    return _live_store


def get_buff_service() -> BuffTimerService:
    """FastAPI dependency -- returns the buff timer service."""
    if _buff_service is None:
        raise RuntimeError("Buff timer service not initialized")
    return _buff_service


def get_tables() -> StaticTables:
    """FastAPI dependency -- returns the static lookup tables."""
    if _tables is None:
        raise RuntimeError("Static tables not loaded")
    return _tables


# Auth dependencies
_header_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)
_query_scheme = APIKeyQuery(name="api_key", auto_error=False)


async def verify_api_key(
    header_key: str | None = Depends(_header_scheme),
    query_key: str | None = Depends(_query_scheme),
) -> None:
    """Rejects requests when API key is configured but not provided."""
    configured_key = get_settings().api_key
    if not configured_key:
        return  # auth disabled when key not set
    provided = header_key or query_key
    if not provided or not hmac.compare_digest(provided, configured_key):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
