"""Queue API routes.

FastAPI router for table submissions, the venue queue view and
operator playback control.

Error mapping (RFC 7807 detail objects):
- TableNotFoundError -> 404
- QueueItemNotFoundError -> 404
- InvalidPayloadError -> 400
- InvalidTransitionError -> 409
- transient errors (ConcurrentUpdateConflictError) -> 503 with Retry-After

Developer Golden Rules:
1. THIN ROUTES - All scheduling decisions live in SchedulerService
2. FAIL LOUD - Every domain error maps to a meaningful status code
3. EMPTY IS NOT AN ERROR - "Nothing to play" is 204, not 404
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from jukebox.api.dependencies.scheduler import (
    get_scheduler_config,
    get_scheduler_service,
)
from jukebox.api.models.queue import (
    QueueEntryResponse,
    QueueErrorResponse,
    QueueItemResponse,
    SubmitLinksRequest,
    SubmitLinksResponse,
    TableItemsResponse,
    VenueQueueResponse,
)
from jukebox.application.services.scheduler_service import SchedulerService
from jukebox.config.scheduler_config import SchedulerConfig
from jukebox.domain.errors.queue import (
    InvalidPayloadError,
    InvalidTransitionError,
    QueueError,
    QueueItemNotFoundError,
    TableNotFoundError,
)

router = APIRouter(prefix="/v1", tags=["queue"])

_ERROR_TYPE_BASE = "urn:jukebox:queue"

_NOT_FOUND = {"model": QueueErrorResponse, "description": "Table or item not found"}
_CONFLICT = {"model": QueueErrorResponse, "description": "Invalid state transition"}
_BUSY = {
    "model": QueueErrorResponse,
    "description": "Concurrent update conflict, retry later",
}


# =============================================================================
# Error Mapping
# =============================================================================


def _problem(
    request: Request,
    status: int,
    slug: str,
    title: str,
    detail: str,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    return HTTPException(
        status_code=status,
        detail={
            "type": f"{_ERROR_TYPE_BASE}:{slug}",
            "title": title,
            "status": status,
            "detail": detail,
            "instance": str(request.url),
        },
        headers=headers,
    )


def _to_http_error(
    error: QueueError, request: Request, config: SchedulerConfig
) -> HTTPException:
    """Map a queue error to its RFC 7807 HTTPException."""
    if isinstance(error, TableNotFoundError):
        return _problem(request, 404, "table-not-found", "Table Not Found", str(error))
    if isinstance(error, QueueItemNotFoundError):
        return _problem(
            request, 404, "item-not-found", "Queue Item Not Found", str(error)
        )
    if isinstance(error, InvalidPayloadError):
        return _problem(request, 400, "invalid-payload", "Invalid Link", str(error))
    if isinstance(error, InvalidTransitionError):
        return _problem(
            request, 409, "invalid-transition", "Invalid State Transition", str(error)
        )
    if error.transient:
        return _problem(
            request,
            503,
            "concurrent-update",
            "Concurrent Update Conflict",
            str(error),
            headers={"Retry-After": str(config.conflict_retry_after_seconds)},
        )
    return _problem(request, 500, "internal", "Queue Error", str(error))


# =============================================================================
# Table Submission Endpoints
# =============================================================================


@router.post(
    "/tables/{table_id}/queue-items",
    response_model=SubmitLinksResponse,
    status_code=201,
    responses={400: {"model": QueueErrorResponse}, 404: _NOT_FOUND},
    summary="Submit links from a table",
)
async def submit_links(
    table_id: str,
    request_data: SubmitLinksRequest,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> SubmitLinksResponse:
    """Queue one or more links for a table.

    The batch is all-or-nothing: one rejected link rejects every link.
    """
    try:
        items = await service.submit_many(table_id, request_data.links)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return SubmitLinksResponse(items=[QueueItemResponse.from_domain(i) for i in items])


@router.post(
    "/table-codes/{code}/queue-items",
    response_model=SubmitLinksResponse,
    status_code=201,
    responses={400: {"model": QueueErrorResponse}, 404: _NOT_FOUND},
    summary="Submit links using a table's public code",
)
async def submit_links_by_code(
    code: str,
    request_data: SubmitLinksRequest,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> SubmitLinksResponse:
    """Queue links for the table carrying ``code`` (e.g. scanned from its QR code)."""
    try:
        items = await service.submit_by_table_code(code, request_data.links)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return SubmitLinksResponse(items=[QueueItemResponse.from_domain(i) for i in items])


@router.get(
    "/tables/{table_id}/queue-items",
    response_model=TableItemsResponse,
    responses={404: _NOT_FOUND},
    summary="List a table's submissions",
)
async def list_table_items(
    table_id: str,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> TableItemsResponse:
    """List every item the table submitted, including played and removed ones."""
    try:
        items = await service.list_table_items(table_id)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return TableItemsResponse(
        table_id=table_id,
        items=[QueueItemResponse.from_domain(i) for i in items],
    )


# =============================================================================
# Venue Endpoints
# =============================================================================


@router.get(
    "/venues/{venue_id}/queue",
    response_model=VenueQueueResponse,
    summary="Get the venue's upcoming items",
)
async def get_venue_queue(
    venue_id: str,
    service: SchedulerService = Depends(get_scheduler_service),
) -> VenueQueueResponse:
    """Pending items in the order they will be served. Read-only."""
    ranked = await service.peek_ranked(venue_id)
    return VenueQueueResponse(
        venue_id=venue_id,
        pending_count=len(ranked),
        items=[
            QueueEntryResponse.from_ranked(r, position)
            for position, r in enumerate(ranked, start=1)
        ],
    )


@router.post(
    "/venues/{venue_id}/queue/next",
    response_model=QueueItemResponse,
    responses={
        204: {"description": "No item is pending"},
        503: _BUSY,
    },
    summary="Play the next item",
)
async def take_next(
    venue_id: str,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> QueueItemResponse | Response:
    """Hand out the fairest next item and mark it PLAYING.

    Returns 204 when nothing is pending.
    """
    try:
        item = await service.take_next(venue_id)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    if item is None:
        return Response(status_code=204)
    return QueueItemResponse.from_domain(item)


@router.get(
    "/venues/{venue_id}/now-playing",
    response_model=QueueItemResponse,
    responses={204: {"description": "Nothing is playing"}},
    summary="Get the item currently playing",
)
async def now_playing(
    venue_id: str,
    service: SchedulerService = Depends(get_scheduler_service),
) -> QueueItemResponse | Response:
    """Get the venue's PLAYING item. Returns 204 when nothing is playing."""
    item = await service.now_playing(venue_id)
    if item is None:
        return Response(status_code=204)
    return QueueItemResponse.from_domain(item)


# =============================================================================
# Queue Item Endpoints
# =============================================================================


@router.get(
    "/queue-items/{item_id}",
    response_model=QueueItemResponse,
    responses={404: _NOT_FOUND},
    summary="Get a queue item",
)
async def get_queue_item(
    item_id: UUID,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> QueueItemResponse:
    """Get a queue item in any state."""
    try:
        item = await service.get_item(item_id)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return QueueItemResponse.from_domain(item)


@router.put(
    "/queue-items/{item_id}/playing",
    response_model=QueueItemResponse,
    responses={404: _NOT_FOUND, 409: _CONFLICT, 503: _BUSY},
    summary="Force an item to play",
)
async def mark_playing(
    item_id: UUID,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> QueueItemResponse:
    """Operator override: play this item now, out of fairness order.

    Idempotent for an item that is already playing.
    """
    try:
        item = await service.mark_playing(item_id)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return QueueItemResponse.from_domain(item)


@router.put(
    "/queue-items/{item_id}/finished",
    response_model=QueueItemResponse,
    responses={404: _NOT_FOUND, 409: _CONFLICT, 503: _BUSY},
    summary="Mark the playing item as finished",
)
async def complete_item(
    item_id: UUID,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> QueueItemResponse:
    """Record that playback of the item ended."""
    try:
        item = await service.complete(item_id)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return QueueItemResponse.from_domain(item)


@router.delete(
    "/queue-items/{item_id}",
    response_model=QueueItemResponse,
    responses={404: _NOT_FOUND, 409: _CONFLICT, 503: _BUSY},
    summary="Remove an item from the queue",
)
async def remove_item(
    item_id: UUID,
    request: Request,
    service: SchedulerService = Depends(get_scheduler_service),
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> QueueItemResponse:
    """Remove a pending or playing item. The item is kept as REMOVED."""
    try:
        item = await service.remove(item_id)
    except QueueError as e:
        raise _to_http_error(e, request, config) from None
    return QueueItemResponse.from_domain(item)
