"""Queue API request/response models.

Pydantic models for table submissions, the venue queue view and
operator playback control.

Developer Golden Rules:
1. VALIDATE EARLY - Pydantic handles request shape validation
2. FAIL LOUD - Invalid requests return RFC 7807 errors
3. LINKS ARE OPAQUE HERE - Link content is checked by the payload validator
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer, field_validator

from jukebox.domain.models.queue_item import QueueItem
from jukebox.domain.services.fairness_selector import RankedQueueItem

# Custom datetime serializer for ISO 8601 with Z suffix (Pydantic v2)
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]


class QueueStateEnum(str, Enum):
    """Queue item state as exposed by the API."""

    PENDING = "PENDING"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"
    REMOVED = "REMOVED"


class SubmitLinksRequest(BaseModel):
    """Request body for submitting links from a table.

    Attributes:
        links: Video links in the order the table wants them played.
    """

    links: list[str] = Field(
        ...,
        min_length=1,
        description="Video links to queue, in the table's preferred order",
        examples=[["https://youtu.be/dQw4w9WgXcQ"]],
    )

    @field_validator("links")
    @classmethod
    def links_not_blank(cls, v: list[str]) -> list[str]:
        """Reject blank entries before they reach the validator."""
        if any(not link.strip() for link in v):
            raise ValueError("Links must not be blank")
        return v


def _item_fields(item: QueueItem) -> dict[str, Any]:
    return {
        "item_id": item.id,
        "table_id": item.table_id,
        "venue_id": item.venue_id,
        "link": item.payload,
        "content_id": item.content_id,
        "state": QueueStateEnum(item.state.value),
        "sequence": item.sequence,
        "submitted_at": item.submitted_at,
        "updated_at": item.updated_at,
    }


class QueueItemResponse(BaseModel):
    """A queue item.

    Attributes:
        item_id: Queue item identifier.
        table_id: Submitting table.
        venue_id: Venue whose queue holds the item.
        link: The submitted link.
        content_id: Provider content id extracted from the link.
        state: Current lifecycle state.
        sequence: Submission order across the store.
        submitted_at: When the item was submitted.
        updated_at: When the state last changed.
    """

    item_id: UUID
    table_id: str
    venue_id: str
    link: str
    content_id: str
    state: QueueStateEnum
    sequence: int
    submitted_at: DateTimeWithZ
    updated_at: DateTimeWithZ

    @classmethod
    def from_domain(cls, item: QueueItem) -> "QueueItemResponse":
        """Build the response model from a domain item."""
        return cls(**_item_fields(item))


class SubmitLinksResponse(BaseModel):
    """Response for an accepted submission."""

    items: list[QueueItemResponse]


class TableItemsResponse(BaseModel):
    """Every item a table has submitted, in submission order."""

    table_id: str
    items: list[QueueItemResponse]


class QueueEntryResponse(QueueItemResponse):
    """A pending item in the venue's serving order.

    Attributes:
        position: 1-based position in the serving order.
        turn: The item's 1-based turn within its table.
    """

    position: int = Field(..., ge=1)
    turn: int = Field(..., ge=1)

    @classmethod
    def from_ranked(cls, ranked: RankedQueueItem, position: int) -> "QueueEntryResponse":
        """Build an entry from a ranked item and its position."""
        return cls(**_item_fields(ranked.item), position=position, turn=ranked.turn)


class VenueQueueResponse(BaseModel):
    """The venue's pending items, in the order they will be served."""

    venue_id: str
    pending_count: int
    items: list[QueueEntryResponse]


class QueueErrorResponse(BaseModel):
    """Error response model (RFC 7807).

    Attributes:
        type: Error type URI.
        title: Short human-readable title.
        status: HTTP status code.
        detail: Detailed error message.
        instance: Request URI that caused the error.
    """

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Short human-readable title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Detailed error message")
    instance: str | None = Field(default=None, description="Request URI")
