# src/duty_admin/crud/duty_type.py
from __future__ import annotations

import logging
from typing import Optional, Tuple, List

from sqlalchemy import select, or_, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.models.duty import DutyType, DutyRoster, MehfilCoordinator, Weekday
from src.duty_admin.crud.reference import zone_exists
from src.duty_admin.schemas.duty_type import DutyTypeCreate, DutyTypeUpdate
from src.duty_admin.utils.errors import ValidationFailed, Locked, Conflict, NotFound
from src.duty_admin.utils.scope import ScopeDescriptor
from src.duty_admin.utils.timezone import now_local

logger = logging.getLogger(__name__)


# -------- Get one --------
async def get_duty_type(db: AsyncSession, duty_type_id: int) -> Optional[DutyType]:
    res = await db.execute(select(DutyType).where(DutyType.id == duty_type_id))
    return res.scalar_one_or_none()


async def require_duty_type(db: AsyncSession, duty_type_id: int) -> DutyType:
    row = await get_duty_type(db, duty_type_id)
    if not row:
        raise NotFound(f"Duty type {duty_type_id} not found.")
    return row


async def get_duty_type_in_scope(db: AsyncSession, scope: ScopeDescriptor, duty_type_id: int) -> DutyType:
    row = await require_duty_type(db, duty_type_id)
    scope.require_zone(row.zone_id)
    return row


async def get_duty_types_by_ids(db: AsyncSession, ids: set[int]) -> dict[int, DutyType]:
    if not ids:
        return {}
    res = await db.execute(select(DutyType).where(DutyType.id.in_(ids)))
    return {row.id: row for row in res.scalars().all()}


def _scoped(stmt, scope: ScopeDescriptor, zone_id: Optional[int]):
    if zone_id is not None:
        scope.require_zone(zone_id)
        return stmt.where(DutyType.zone_id == zone_id)
    zones = scope.zone_filter()
    if zones is not None:
        stmt = stmt.where(DutyType.zone_id.in_(zones))
    return stmt


# -------- List (search + pagination), hidden included --------
async def list_duty_types(
    db: AsyncSession,
    scope: ScopeDescriptor,
    zone_id: Optional[int] = None,
    q: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[DutyType], int]:
    base = _scoped(select(DutyType), scope, zone_id)
    if q:
        like = f"%{q.strip()}%"
        base = base.where(or_(DutyType.name.ilike(like), DutyType.description.ilike(like)))

    total = int(await db.scalar(base.with_only_columns(func.count(DutyType.id)).order_by(None)) or 0)

    res = await db.execute(base.order_by(DutyType.zone_id, DutyType.name).limit(limit).offset(offset))
    return list(res.scalars().all()), total


# -------- Selection list: hidden excluded --------
async def list_active_duty_types(
    db: AsyncSession,
    scope: ScopeDescriptor,
    zone_id: Optional[int] = None,
) -> List[DutyType]:
    stmt = _scoped(select(DutyType).where(DutyType.is_hidden.is_(False)), scope, zone_id)
    res = await db.execute(stmt.order_by(DutyType.name))
    return list(res.scalars().all())


# -------- Referential checks --------
def _references(model, duty_type_id: int):
    return or_(*(getattr(model, day.column) == duty_type_id for day in Weekday))


async def count_duty_type_references(db: AsyncSession, duty_type_id: int) -> int:
    """Roster and coordinator rows holding this type on any day."""
    rosters = await db.scalar(
        select(func.count(DutyRoster.id)).where(_references(DutyRoster, duty_type_id))
    )
    coordinators = await db.scalar(
        select(func.count(MehfilCoordinator.id)).where(_references(MehfilCoordinator, duty_type_id))
    )
    return int(rosters or 0) + int(coordinators or 0)


async def _require_zone_exists(db: AsyncSession, zone_id: Optional[int]) -> None:
    if zone_id is None:
        raise ValidationFailed("Zone is required.")
    if not await zone_exists(db, zone_id):
        raise ValidationFailed(f"Zone {zone_id} does not exist.")


# -------- Create --------
async def create_duty_type(
    db: AsyncSession,
    scope: ScopeDescriptor,
    data: DutyTypeCreate,
    created_by: Optional[int] = None,
) -> DutyType:
    name = (data.name or "").strip()
    if not name:
        raise ValidationFailed("Duty type name is required.")
    await _require_zone_exists(db, data.zone_id)
    scope.require_zone_admin(data.zone_id)

    row = DutyType(
        zone_id=data.zone_id,
        name=name,
        description=(data.description or None),
        is_editable=data.is_editable,
        is_hidden=data.is_hidden,
        created_by=created_by,
        updated_by=created_by,
        created_at=now_local(),
        updated_at=now_local(),
    )
    db.add(row)
    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError as e:
        await db.rollback()
        raise Conflict(f"Could not create duty type: {e.orig}")
    logger.info("DUTY TYPE CREATED id=%s zone=%s name=%r by=%s", row.id, row.zone_id, row.name, created_by)
    return row


# -------- Update --------
async def update_duty_type(
    db: AsyncSession,
    scope: ScopeDescriptor,
    duty_type_id: int,
    data: DutyTypeUpdate,
    updated_by: Optional[int] = None,
) -> DutyType:
    row = await require_duty_type(db, duty_type_id)

    # hard lock comes before any permission check
    if not row.is_editable:
        logger.warning("DUTY TYPE LOCKED update refused id=%s by=%s", row.id, updated_by)
        raise Locked(f"Duty type '{row.name}' is locked and cannot be edited.")
    scope.require_zone_admin(row.zone_id)

    fields = data.model_fields_set
    if "name" in fields:
        name = (data.name or "").strip()
        if not name:
            raise ValidationFailed("Duty type name is required.")
        row.name = name
    if "description" in fields:
        row.description = data.description or None
    if "zone_id" in fields and data.zone_id != row.zone_id:
        await _require_zone_exists(db, data.zone_id)
        scope.require_zone_admin(data.zone_id)
        if await count_duty_type_references(db, row.id):
            raise Conflict("Duty type is assigned on rosters; it cannot be moved to another zone.")
        row.zone_id = data.zone_id
    if "is_editable" in fields and data.is_editable is not None:
        row.is_editable = data.is_editable
    if "is_hidden" in fields and data.is_hidden is not None:
        row.is_hidden = data.is_hidden

    row.updated_by = updated_by
    row.updated_at = now_local()
    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError as e:
        await db.rollback()
        raise Conflict(f"Could not update duty type: {e.orig}")
    logger.info("DUTY TYPE UPDATED id=%s fields=%s by=%s", row.id, sorted(fields), updated_by)
    return row


# -------- Delete --------
async def delete_duty_type(
    db: AsyncSession,
    scope: ScopeDescriptor,
    duty_type_id: int,
    deleted_by: Optional[int] = None,
) -> None:
    row = await require_duty_type(db, duty_type_id)

    if not row.is_editable:
        logger.warning("DUTY TYPE LOCKED delete refused id=%s by=%s", row.id, deleted_by)
        raise Locked(f"Duty type '{row.name}' is locked and cannot be deleted.")
    scope.require_zone_admin(row.zone_id)

    refs = await count_duty_type_references(db, row.id)
    if refs:
        raise Conflict(f"Cannot delete: duty type is assigned on {refs} roster/coordinator row(s).")

    try:
        await db.execute(delete(DutyType).where(DutyType.id == row.id))
        await db.commit()
    except IntegrityError:
        # a concurrent assignment landed between the check and the delete
        await db.rollback()
        raise Conflict("Cannot delete: duty type is assigned on a roster.")
    logger.info("DUTY TYPE DELETED id=%s by=%s", duty_type_id, deleted_by)
