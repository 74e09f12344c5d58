from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_monitor_loop
from ..models import ShareStatus
from ..services.share_monitor import MonitorLoop, UnknownShareError

router = APIRouter(prefix="/api", tags=["shares"])


@router.get("/shares", response_model=List[ShareStatus])
async def list_shares(
    monitor: MonitorLoop = Depends(get_monitor_loop),
) -> List[ShareStatus]:
    """Health and remount bookkeeping for every monitored share."""
    return monitor.get_share_statuses()


@router.get("/shares/{share_name}", response_model=ShareStatus)
async def get_share(
    share_name: str, monitor: MonitorLoop = Depends(get_monitor_loop)
) -> ShareStatus:
    try:
        return monitor.get_share_status(share_name)
    except UnknownShareError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Share '{share_name}' is not monitored",
        )


@router.post("/shares/{share_name}/remount", status_code=status.HTTP_202_ACCEPTED)
async def remount_share(
    share_name: str, monitor: MonitorLoop = Depends(get_monitor_loop)
) -> dict:
    """
    Request an immediate remount, bypassing the backoff gate.

    HTTP Status Codes:
        202: Remount scheduled
        404: Share not monitored
        409: A remount for this share is already in flight
    """
    try:
        accepted = monitor.request_remount(share_name)
    except UnknownShareError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Share '{share_name}' is not monitored",
        )

    if not accepted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Share '{share_name}' is already remounting",
        )

    return {"share": share_name, "status": "remount scheduled"}


@router.get("/monitor")
async def get_monitor_status(monitor: MonitorLoop = Depends(get_monitor_loop)) -> dict:
    return monitor.get_monitoring_status()
