"""API router for posting and viewing announcements."""

from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from dormmate.config import config
from dormmate.container import get_event_bus, get_store
from dormmate.events.bus import EventBus
from dormmate.models.announcement import AnnouncementDraft
from dormmate.services.composer_service import AnnouncementComposer, ComposerState
from dormmate.services.subscription_service import (
    SessionSnapshot,
    SubscriptionManager,
    SubscriptionState,
)
from dormmate.store.base import AnnouncementStore

router = APIRouter(prefix="/announcements", tags=["announcements"])


class AnnouncementDraftRequest(BaseModel):
    """Request model for a new announcement."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="", description="Announcement title")
    body: str = Field(default="", description="Announcement details")
    building: str = Field(
        default_factory=lambda: config.composer.default_building,
        description="Target building code or ALL",
    )
    date: str = Field(default_factory=lambda: config.composer.default_date)
    start_time: str = Field(
        default_factory=lambda: config.composer.default_start_time, alias="startTime"
    )
    end_time: str = Field(default_factory=lambda: config.composer.default_end_time, alias="endTime")
    urgent: bool = Field(default=False, description="Highlight as urgent")


class PostAnnouncementResponse(BaseModel):
    """Response model for a posted announcement."""

    status: ComposerState = Field(..., description="Composer status")
    id: str = Field(..., description="Store-assigned announcement ID")
    message: str = Field(..., description="Status message")


class AnnouncementListResponse(BaseModel):
    """Response model for a viewer snapshot."""

    building: str = Field(..., description="Normalized building filter")
    state: SubscriptionState = Field(..., description="Subscription state")
    count: int = Field(..., description="Number of visible announcements")
    announcements: list[dict[str, Any]] = Field(
        default_factory=list, description="Visible announcements, newest first"
    )
    error: str | None = Field(default=None, description="Subscription error, if any")


def snapshot_to_dict(snapshot: SessionSnapshot) -> dict[str, Any]:
    """Serialize a session snapshot for JSON transport."""
    return {
        "building": snapshot.building,
        "state": snapshot.state.value,
        "count": len(snapshot.announcements),
        "announcements": [announcement.to_dict() for announcement in snapshot.announcements],
        "error": str(snapshot.error) if snapshot.error else None,
    }


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostAnnouncementResponse)
async def post_announcement(
    request: AnnouncementDraftRequest,
    store: AnnouncementStore = Depends(get_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> PostAnnouncementResponse:
    """Validate a staff draft and append it to the store."""
    draft = AnnouncementDraft(
        title=request.title,
        body=request.body,
        date=request.date,
        start_time=request.start_time,
        end_time=request.end_time,
        urgent=request.urgent,
        building=request.building,
    )
    composer = AnnouncementComposer(store, draft=draft, event_bus=event_bus)
    result = await composer.submit()

    if result.state is ComposerState.VALIDATION_ERROR:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "status": result.state.value,
                "fields": list(result.fields),
                "message": "Please enter Title and Body.",
            },
        )

    if result.state is ComposerState.SUBMISSION_ERROR:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": result.state.value,
                "message": "Could not post the announcement. Please try again.",
            },
        )

    return PostAnnouncementResponse(
        status=result.state,
        id=result.announcement_id or "",
        message="Announcement created successfully.",
    )


@router.get("", response_model=AnnouncementListResponse)
async def list_announcements(
    building: str | None = Query(default=None, description="Viewer building filter"),
    store: AnnouncementStore = Depends(get_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> AnnouncementListResponse:
    """Return the announcements currently visible to a viewer of one building."""
    async with SubscriptionManager(store, event_bus=event_bus) as manager:
        await manager.set_filter(
            building if building is not None else config.viewer.default_building
        )
        try:
            snapshot = await manager.wait_settled(timeout=config.viewer.snapshot_timeout)
        except TimeoutError as e:
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Timed out waiting for announcements",
            ) from e

    if snapshot.state is SubscriptionState.ERROR:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(snapshot.error),
        )

    return AnnouncementListResponse(**snapshot_to_dict(snapshot))


@router.websocket("/stream")
async def stream_announcements(
    websocket: WebSocket,
    store: AnnouncementStore = Depends(get_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> None:
    """Stream a viewer session.

    The initial filter comes from the `building` query parameter. Each
    `{"building": "..."}` message from the client replaces the filter, and
    the session snapshot is sent after every state change.
    """
    await websocket.accept()

    async def send_snapshot(snapshot: SessionSnapshot) -> None:
        await websocket.send_json(snapshot_to_dict(snapshot))

    manager = SubscriptionManager(store, event_bus=event_bus, listener=send_snapshot)
    logger.info(f"Viewer session {manager.session_id} connected")

    try:
        await manager.set_filter(
            websocket.query_params.get("building", config.viewer.default_building)
        )
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError as e:
                logger.warning(f"Session {manager.session_id}: ignoring malformed frame: {e}")
                continue
            building = message.get("building", "") if isinstance(message, dict) else None
            if not isinstance(building, str):
                logger.warning(f"Session {manager.session_id}: ignoring message {message!r}")
                continue
            await manager.set_filter(building)
    except WebSocketDisconnect:
        logger.info(f"Viewer session {manager.session_id} disconnected")
    finally:
        manager.listener = None
        await manager.detach()
