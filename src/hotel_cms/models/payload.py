"""Typed views over the free-form extension fields of a node.

The wire format keeps feature-specific data as flat fields next to the node's
core fields (``startTime``, ``price``, ``answer`` ...). `payload_of` selects a
fixed payload shape from the ``schemaType`` discriminator, falling back to one
inferred from the node kind. The node's raw ``extra`` map stays the source of
truth, so fields unknown to these shapes are never lost.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from hotel_cms.models.node import ContentNode

SchemaType = Literal["generic", "scheduled_event", "dining", "qa", "room"]

SCHEMA_TYPE_FIELD = "schemaType"

_KIND_TO_SCHEMA: dict[str, SchemaType] = {
    "event": "scheduled_event",
    "menu_item": "dining",
    "qa_pair": "qa",
    "room": "room",
}


@dataclass(frozen=True)
class GenericPayload:
    fields: Mapping[str, Any]
    schema_type: Literal["generic"] = "generic"


@dataclass(frozen=True)
class ScheduledEventPayload:
    recurrence_type: str | None = None
    valid_from: str | None = None
    valid_until: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    days: tuple[str, ...] = ()
    event_status: str | None = None
    location: str | None = None
    target_audience: str | None = None
    min_age: int | None = None
    max_age: int | None = None
    requires_reservation: bool | None = None
    is_external_allowed: bool | None = None
    schema_type: Literal["scheduled_event"] = "scheduled_event"


@dataclass(frozen=True)
class DiningPayload:
    price: str | float | None = None
    calories: str | None = None
    is_paid: bool | None = None
    tags: tuple[str, ...] = ()
    schema_type: Literal["dining"] = "dining"


@dataclass(frozen=True)
class QaPayload:
    question: str | None = None
    answer: str | None = None
    schema_type: Literal["qa"] = "qa"


@dataclass(frozen=True)
class RoomPayload:
    capacity: int | None = None
    bed_type: str | None = None
    size: str | None = None
    view: str | None = None
    schema_type: Literal["room"] = "room"


Payload = GenericPayload | ScheduledEventPayload | DiningPayload | QaPayload | RoomPayload


def schema_type_of(node: ContentNode) -> SchemaType:
    """Return the payload tag of a node: explicit discriminator first, then kind."""
    explicit = node.extra.get(SCHEMA_TYPE_FIELD)
    if explicit in ("generic", "scheduled_event", "dining", "qa", "room"):
        return explicit  # type: ignore[no-any-return]
    return _KIND_TO_SCHEMA.get(node.kind, "generic")


def payload_of(node: ContentNode) -> Payload:
    """Build the typed payload view for a node."""
    ext = node.extra
    schema = schema_type_of(node)
    if schema == "scheduled_event":
        return ScheduledEventPayload(
            recurrence_type=ext.get("recurrenceType"),
            valid_from=ext.get("validFrom"),
            valid_until=ext.get("validUntil"),
            start_time=ext.get("startTime"),
            end_time=ext.get("endTime"),
            days=tuple(ext.get("days") or ()),
            event_status=ext.get("eventStatus"),
            location=ext.get("location"),
            target_audience=ext.get("targetAudience"),
            min_age=ext.get("minAge"),
            max_age=ext.get("maxAge"),
            requires_reservation=ext.get("requiresReservation"),
            is_external_allowed=ext.get("isExternalAllowed"),
        )
    if schema == "dining":
        return DiningPayload(
            price=ext.get("price"),
            calories=ext.get("calories"),
            is_paid=ext.get("isPaid"),
            tags=tuple(ext.get("tags") or ()),
        )
    if schema == "qa":
        return QaPayload(question=ext.get("question"), answer=ext.get("answer"))
    if schema == "room":
        return RoomPayload(
            capacity=ext.get("capacity"),
            bed_type=ext.get("bedType"),
            size=ext.get("size"),
            view=ext.get("view"),
        )
    return GenericPayload(fields=ext)


def primary_content(node: ContentNode) -> Any:
    """Return the field that decides whether a node counts as filled in."""
    payload = payload_of(node)
    if isinstance(payload, QaPayload):
        return payload.answer
    if isinstance(payload, DiningPayload):
        return payload.price
    return node.value


def is_empty_content(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
