"""Outbox writer shared by aggregate repositories.

``record_events`` drains the aggregate's pending domain events into
``OutboxEvent`` rows inside the caller's transaction, then schedules
in-process delivery on the event bus once that transaction commits.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Tuple
from uuid import UUID

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent, DomainEventMixin
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def record_events(entity: DomainEventMixin, topic: str) -> List[OutboxEvent]:
    """Persist the entity's pending events and clear them from memory."""
    events = entity.domain_events
    if not events:
        return []

    rows = [
        OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event_payload(event),
            topic=topic,
        )
        for event in events
    ]
    entity.clear_domain_events()

    pairs = list(zip(events, rows))
    transaction.on_commit(lambda: dispatch(pairs))
    return rows


def dispatch(pairs: List[Tuple[DomainEvent, OutboxEvent]]) -> None:
    """Deliver committed events to in-process handlers.

    A failing handler marks its outbox row ``FAILED`` so the event can be
    replayed; the business transaction has already committed.
    """
    for event, row in pairs:
        try:
            event_bus.publish(event)
        except Exception as exc:
            logger.exception(
                "outbox.dispatch_failed",
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
            )
            row.mark_as_failed(str(exc))
            continue
        row.mark_as_published()


def serialize_event_payload(event: Any) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
