from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import desc, event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.domain.orders.aggregates import Order
from portal.persistence.models import OrderActivityModel

logger = logging.getLogger(__name__)

_PENDING_KEY = "portal.activity.pending"
_HOOKED_KEY = "portal.activity.hooked"


class ActivityFeed:
    """Append-only side channel of committed order facts.

    Facts are buffered on the session and written by a separate session only
    after the order transaction commits. A rolled-back unit of work publishes
    nothing, and a failing feed write is logged without touching the order.
    """

    def __init__(self, session: Session, enabled: bool = True):
        self.session = session
        self.enabled = enabled

    def record(self, kind: str, order: Order) -> None:
        if not self.enabled:
            return
        self._hook()
        self.session.info.setdefault(_PENDING_KEY, []).append(
            {
                "kind": kind,
                "order_id": order.order_id,
                "user_id": order.user_id,
                "payload": {
                    "order_number": order.order_number,
                    "status": order.status,
                    "total": str(order.total),
                    "item_count": order.item_count,
                },
                "occurred_at": order.updated_at,
            }
        )

    def _hook(self) -> None:
        if self.session.info.get(_HOOKED_KEY):
            return
        event.listen(self.session, "after_commit", _publish_pending)
        event.listen(self.session, "after_rollback", _discard_pending)
        self.session.info[_HOOKED_KEY] = True

    def list_recent(self, limit: int = 50, user_id: str | None = None) -> list[OrderActivityModel]:
        stmt = select(OrderActivityModel)
        if user_id is not None:
            stmt = stmt.where(OrderActivityModel.user_id == user_id)
        stmt = stmt.order_by(desc(OrderActivityModel.seq_id)).limit(limit)
        return list(self.session.scalars(stmt).all())


def _discard_pending(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)


def _publish_pending(session: Session) -> None:
    facts = session.info.pop(_PENDING_KEY, None)
    if not facts:
        return
    try:
        with Session(bind=session.get_bind()) as feed_session:
            feed_session.add_all(
                OrderActivityModel(
                    kind=fact["kind"],
                    order_id=fact["order_id"],
                    user_id=fact["user_id"],
                    payload=fact["payload"],
                    occurred_at=fact["occurred_at"] or datetime.now(timezone.utc),
                )
                for fact in facts
            )
            feed_session.commit()
    except SQLAlchemyError as exc:
        logger.warning("activity feed append failed, %d fact(s) dropped: %s", len(facts), exc)
