# src/duty_admin/crud/reference.py
"""Read-only lookups of the reference data owned by the rest of the portal."""
from __future__ import annotations

from typing import Optional, Tuple, List

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.models.org import Region, Zone, MehfilDirectory
from src.duty_admin.models.user import User
from src.duty_admin.utils.errors import NotFound, ValidationFailed
from src.duty_admin.utils.scope import ScopeDescriptor


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.scalar(select(User).where(User.id == user_id))


async def require_user(db: AsyncSession, user_id: Optional[int]) -> User:
    if user_id is None:
        raise ValidationFailed("User is required.")
    row = await get_user(db, user_id)
    if not row:
        raise NotFound(f"User {user_id} not found.")
    return row


async def require_mehfil(db: AsyncSession, mehfil_id: int) -> MehfilDirectory:
    row = await db.scalar(select(MehfilDirectory).where(MehfilDirectory.id == mehfil_id))
    if not row:
        raise NotFound(f"Mehfil {mehfil_id} not found.")
    return row


async def zone_exists(db: AsyncSession, zone_id: int) -> bool:
    return await db.scalar(select(Zone.id).where(Zone.id == zone_id)) is not None


# -------- Lists for selectors --------
async def list_regions(db: AsyncSession, scope: ScopeDescriptor) -> List[Region]:
    stmt = select(Region).order_by(Region.name)
    if not scope.is_global:
        stmt = stmt.where(Region.id.in_(scope.allowed_region_ids))
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_zones(
    db: AsyncSession,
    scope: ScopeDescriptor,
    region_id: Optional[int] = None,
) -> List[Zone]:
    stmt = select(Zone).order_by(Zone.title)
    if region_id is not None:
        stmt = stmt.where(Zone.region_id == region_id)
    zones = scope.zone_filter()
    if zones is not None:
        stmt = stmt.where(Zone.id.in_(zones))
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_mehfils(
    db: AsyncSession,
    scope: ScopeDescriptor,
    zone_id: Optional[int] = None,
) -> List[MehfilDirectory]:
    stmt = select(MehfilDirectory)
    if zone_id is not None:
        scope.require_zone(zone_id)
        stmt = stmt.where(MehfilDirectory.zone_id == zone_id)
    mehfils = scope.mehfil_filter()
    if mehfils is not None:
        stmt = stmt.where(MehfilDirectory.id.in_(mehfils))
    res = await db.execute(stmt)
    rows = list(res.scalars().all())
    # mehfil numbers are strings ("7", "12"); numeric ones sort numerically
    rows.sort(key=lambda m: (0, int(m.mehfil_number), "") if m.mehfil_number.isdigit() else (1, 0, m.mehfil_number))
    return rows


async def list_users(
    db: AsyncSession,
    scope: ScopeDescriptor,
    q: Optional[str] = None,
    user_type: Optional[str] = None,
    zone_id: Optional[int] = None,
    mehfil_id: Optional[int] = None,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[User], int]:
    stmt = select(User).where(User.status == "active")
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(
                User.name.ilike(like),
                User.email.ilike(like),
                User.phone_number.ilike(like),
            )
        )
    if user_type:
        stmt = stmt.where(User.user_type == user_type)
    if zone_id is not None:
        scope.require_zone(zone_id)
        stmt = stmt.where(User.zone_id == zone_id)
    if mehfil_id is not None:
        scope.require_mehfil(mehfil_id)
        stmt = stmt.where(User.mehfil_directory_id == mehfil_id)

    if scope.is_mehfil_bound:
        stmt = stmt.where(User.mehfil_directory_id.in_(scope.allowed_mehfil_ids))
    else:
        zones = scope.zone_filter()
        if zones is not None:
            stmt = stmt.where(User.zone_id.in_(zones))

    total = int(await db.scalar(stmt.with_only_columns(func.count(User.id)).order_by(None)) or 0)
    res = await db.execute(stmt.order_by(User.name, User.id).limit(limit).offset(offset))
    return list(res.scalars().all()), total
