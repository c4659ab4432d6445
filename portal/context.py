from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from portal.activity.feed import ActivityFeed
from portal.core.config import Settings, get_settings
from portal.domain.inventory.ledger import InventoryLedger
from portal.persistence.pg import get_session


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PortalContext:
    """Everything one unit of work needs: the session it owns and the collaborators bound to it."""

    session: Session
    settings: Settings
    ledger: InventoryLedger
    feed: ActivityFeed
    clock: Callable[[], datetime] = field(default=now_utc)

    @classmethod
    def for_session(
        cls,
        session: Session,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "PortalContext":
        settings = settings or get_settings()
        return cls(
            session=session,
            settings=settings,
            ledger=InventoryLedger(session),
            feed=ActivityFeed(session, enabled=settings.activity_feed_enabled),
            clock=clock or now_utc,
        )


def get_context(session: Session = Depends(get_session)) -> Generator[PortalContext, None, None]:
    yield PortalContext.for_session(session)
