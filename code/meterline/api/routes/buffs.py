"""Buff timer endpoints."""

from fastapi import APIRouter, Depends

from meterline.api.deps import get_buff_service, get_tables
from meterline.buffs.display import BuffDisplayState
from meterline.buffs.profiles import MonitorProfile, with_class_defaults
from meterline.buffs.service import BuffTimerService
from meterline.live.models import BuffUpdatePayload
from meterline.tables import StaticTables

router = APIRouter(prefix="/api/buffs", tags=["buffs"])


@router.post("")
async def push_buffs(
    payload: BuffUpdatePayload,
    service: BuffTimerService = Depends(get_buff_service),
):
    """Merge a batch of buff observations from the collector."""
    accepted = service.apply_updates(payload.buffs)
    return {"received": len(payload.buffs), "accepted": accepted}


@router.delete("", status_code=204)
async def clear_buffs(service: BuffTimerService = Depends(get_buff_service)):
    service.clear()


@router.get("/active", response_model=BuffDisplayState)
async def get_active_buffs(
    now: int | None = None,
    service: BuffTimerService = Depends(get_buff_service),
):
    """Active buffs projected at ``now`` (defaults to the wall clock)."""
    return service.project(now)


@router.get("/profile", response_model=MonitorProfile)
async def get_profile(service: BuffTimerService = Depends(get_buff_service)):
    return service.profile


@router.put("/profile", response_model=MonitorProfile)
async def put_profile(
    profile: MonitorProfile,
    service: BuffTimerService = Depends(get_buff_service),
    tables: StaticTables = Depends(get_tables),
):
    """Replace the active monitor profile; class defaults are merged in."""
    effective = with_class_defaults(profile, tables)
    service.set_profile(effective)
    return effective


@router.get("/status")
async def get_status(service: BuffTimerService = Depends(get_buff_service)):
    return service.get_status()
