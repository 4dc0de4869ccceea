"""Connectivity indicator and toast delivery."""

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from jobtracker.routers.guards import require_auth
from jobtracker.schemas.views import ConnectivityStatus
from jobtracker.services.connectivity import ConnectivityMonitor
from jobtracker.services.dependencies import get_connectivity, get_notifier
from jobtracker.services.notifications import Notifier, Toast

router = APIRouter(tags=["notifications"])


@router.get("/connectivity", response_model=ConnectivityStatus)
async def connectivity_status(
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    """Online flag plus the persistent offline indicator text."""
    return ConnectivityStatus(
        online=connectivity.is_online, indicator=connectivity.indicator
    )


@router.get(
    "/notifications",
    response_model=list[Toast],
    dependencies=[Depends(require_auth)],
)
async def pending_notifications(notifier: Notifier = Depends(get_notifier)):
    """Return and clear the pending toasts."""
    return notifier.drain()


@router.get("/notifications/stream", dependencies=[Depends(require_auth)])
async def stream_notifications(notifier: Notifier = Depends(get_notifier)):
    """Server-sent stream of toasts as they are posted."""

    async def event_generator():
        async for toast in notifier.subscribe():
            yield {"event": toast.level.value, "data": toast.model_dump_json()}

    return EventSourceResponse(event_generator())
