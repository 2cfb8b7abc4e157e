import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_live_store = None
_buff_service = None


def set_health_deps(live_store=None, buff_service=None) -> None:
    global _live_store, _buff_service
    _live_store = live_store
    _buff_service = buff_service


@router.get("/health")
async def health():
    healthy = True

    if _live_store is not None:
        live_status = "ok" if _live_store.latest is not None else "waiting"
    else:
        live_status = "not configured"

    if _buff_service is not None:
        if _buff_service.running:
            buffs_status = "ok"
        else:
            logger.warning("Health check: buff timer is not running")
            buffs_status = "stopped"
            healthy = False
    else:
        buffs_status = "not configured"

    body = {
        "status": "ok" if healthy else "degraded",
        "version": "0.1.0",
        "live": live_status,
        "buffs": buffs_status,
    }
    status_code = 200 if healthy else 503
    return JSONResponse(content=body, status_code=status_code)
