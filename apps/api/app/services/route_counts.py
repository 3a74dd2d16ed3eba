"""Maintenance of ``routes.event_count``.

Every code path that creates, deletes or re-points an event goes through
this module, so the denormalized counter always equals the number of event
rows referencing the route. Adjustments are issued as single
``event_count = event_count + :delta`` statements; nothing here reads the
current value back into Python before writing it.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Iterable, Mapping

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models import Event, Route

logger = structlog.get_logger(__name__)


def adjust_event_count(db: Session, route_id: uuid.UUID | None, delta: int) -> None:
    if route_id is None or delta == 0:
        return
    db.execute(
        update(Route)
        .where(Route.id == route_id)
        .values(event_count=Route.event_count + delta)
        .execution_options(synchronize_session=False)
    )


def apply_event_count_deltas(db: Session, deltas: Mapping[uuid.UUID | None, int]) -> None:
    """Apply one batched adjustment per distinct route."""
    for route_id, delta in deltas.items():
        adjust_event_count(db, route_id, delta)


def deltas_for_removed(route_ids: Iterable[uuid.UUID | None]) -> Counter:
    """Negative per-route deltas for a batch of removed events."""
    removed = Counter(rid for rid in route_ids if rid is not None)
    return Counter({rid: -count for rid, count in removed.items()})


def move_event_between_routes(
    db: Session,
    old_route_id: uuid.UUID | None,
    new_route_id: uuid.UUID | None,
) -> None:
    if old_route_id == new_route_id:
        return
    # Both sides are written in the caller's transaction; neither commits alone.
    adjust_event_count(db, old_route_id, -1)
    adjust_event_count(db, new_route_id, 1)


def recount_event_counts(db: Session) -> dict[uuid.UUID, tuple[int, int]]:
    """Recompute every route's counter from the events table.

    Returns ``{route_id: (stored, actual)}`` for routes that had drifted.
    The caller owns the transaction.
    """
    actual_counts = dict(
        db.execute(
            select(Event.route_id, func.count())
            .where(Event.route_id.is_not(None))
            .group_by(Event.route_id)
        ).all()
    )

    drifted: dict[uuid.UUID, tuple[int, int]] = {}
    for route_id, stored in db.execute(select(Route.id, Route.event_count)).all():
        actual = int(actual_counts.get(route_id, 0))
        if stored != actual:
            drifted[route_id] = (stored, actual)
            db.execute(
                update(Route)
                .where(Route.id == route_id)
                .values(event_count=actual)
                .execution_options(synchronize_session=False)
            )

    if drifted:
        logger.warning("route_event_counts_repaired", routes=len(drifted))
    return drifted
