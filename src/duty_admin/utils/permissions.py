# src/duty_admin/utils/permissions.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.models.org import Zone, MehfilDirectory
from src.duty_admin.models.user import User
from src.duty_admin.utils.auth import get_current_user
from src.duty_admin.utils.database import get_db
from src.duty_admin.utils.scope import ScopeDescriptor, resolve_scope

logger = logging.getLogger(__name__)


def _state_get(request: Request, key: str) -> Any:
    return getattr(request.state, key, None)


async def load_scope(db: AsyncSession, user: User) -> ScopeDescriptor:
    """Fetch the reference rows resolve_scope() needs and resolve."""
    zones = (await db.execute(select(Zone.id, Zone.region_id))).all()
    mehfils = (await db.execute(select(MehfilDirectory.id, MehfilDirectory.zone_id))).all()
    return resolve_scope(user, zones, mehfils)


async def get_scope(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ScopeDescriptor:
    """
    Resolve the actor's scope ONCE per request and store it in request.state.scope.
    """
    cached = _state_get(request, "scope")
    if isinstance(cached, ScopeDescriptor):
        return cached

    scope = await load_scope(db, current_user)
    request.state.scope = scope
    logger.debug(
        "SCOPE RESOLVED user=%s level=%s zones=%d mehfils=%d",
        current_user.id,
        scope.level,
        len(scope.allowed_zone_ids),
        len(scope.allowed_mehfil_ids),
    )
    return scope
