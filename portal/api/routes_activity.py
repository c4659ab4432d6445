from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from portal.api.utils import activity_to_dict
from portal.context import PortalContext, get_context
from portal.core.security import Principal, get_principal

router = APIRouter(tags=["activity"])


@router.get("/activity")
def list_activity(
    limit: int | None = Query(default=None, ge=1, le=500),
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    rows = ctx.feed.list_recent(
        limit or ctx.settings.activity_feed_limit,
        user_id=None if principal.is_admin else principal.id,
    )
    return {"count": len(rows), "events": [activity_to_dict(row) for row in rows]}
