# src/duty_admin/crud/coordinator.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, List

from sqlalchemy import select, or_, func, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.crud.duty_roster import validate_slots
from src.duty_admin.crud.reference import require_user, require_mehfil
from src.duty_admin.models.duty import MehfilCoordinator
from src.duty_admin.models.duty.coordinator_type import (
    CoordinatorType,
    TAXONOMY_ORDER,
    lookup_coordinator_type,
)
from src.duty_admin.models.duty.weekly import WeeklySlots
from src.duty_admin.models.org import MehfilDirectory
from src.duty_admin.models.user import User
from src.duty_admin.utils.errors import ValidationFailed, Conflict, NotFound
from src.duty_admin.utils.scope import ScopeDescriptor
from src.duty_admin.utils.timezone import now_local

logger = logging.getLogger(__name__)

ASSIGN_ATTEMPTS = 2


def parse_coordinator_type(raw: Any) -> CoordinatorType:
    if isinstance(raw, CoordinatorType):
        return raw
    ctype = lookup_coordinator_type(raw if isinstance(raw, str) else "")
    if ctype is None:
        raise ValidationFailed(f"Unknown coordinator type {raw!r}.")
    return ctype


# -------- Get one --------
async def get_coordinator(db: AsyncSession, coordinator_id: int) -> Optional[MehfilCoordinator]:
    res = await db.execute(select(MehfilCoordinator).where(MehfilCoordinator.id == coordinator_id))
    return res.scalar_one_or_none()


async def get_coordinator_in_scope(
    db: AsyncSession, scope: ScopeDescriptor, coordinator_id: int
) -> MehfilCoordinator:
    row = await get_coordinator(db, coordinator_id)
    if not row:
        raise NotFound(f"Coordinator {coordinator_id} not found.")
    scope.require_mehfil(row.mehfil_directory_id)
    return row


# -------- Assign (atomic replace of one slot) --------
async def _replace_slot(
    db: AsyncSession,
    mehfil_id: int,
    ctype: CoordinatorType,
    user_id: Optional[int],
    slots: WeeklySlots,
    updated_by: Optional[int],
) -> Optional[MehfilCoordinator]:
    # serialize writers of this mehfil's slots (no-op on SQLite)
    await db.execute(
        select(MehfilDirectory.id).where(MehfilDirectory.id == mehfil_id).with_for_update()
    )
    await db.execute(
        delete(MehfilCoordinator).where(
            MehfilCoordinator.mehfil_directory_id == mehfil_id,
            MehfilCoordinator.coordinator_type == ctype.value,
        )
    )
    if user_id is None:
        await db.commit()
        return None

    row = MehfilCoordinator(
        mehfil_directory_id=mehfil_id,
        user_id=user_id,
        coordinator_type=ctype.value,
        created_by=updated_by,
        updated_by=updated_by,
        created_at=now_local(),
        updated_at=now_local(),
    )
    for day, duty_type_id in slots.items():
        row.set_slot(day, duty_type_id)
    db.add(row)
    await db.flush()
    await db.commit()
    await db.refresh(row)
    return row


async def assign_coordinator(
    db: AsyncSession,
    scope: ScopeDescriptor,
    mehfil_id: int,
    coordinator_type: Any,
    user_id: Optional[int],
    slots: Optional[WeeklySlots] = None,
    updated_by: Optional[int] = None,
) -> Optional[MehfilCoordinator]:
    """
    Put user_id in the (mehfil, coordinator_type) slot, replacing whoever
    held it. user_id None empties the slot. Returns the new row, or None
    after an unassign.
    """
    ctype = parse_coordinator_type(coordinator_type)
    mehfil = await require_mehfil(db, mehfil_id)
    scope.require_mehfil(mehfil.id)
    zone_id = mehfil.zone_id
    if user_id is not None:
        user_id = (await require_user(db, user_id)).id
    slots = slots or {}
    await validate_slots(db, zone_id, slots)

    for attempt in range(1, ASSIGN_ATTEMPTS + 1):
        try:
            row = await _replace_slot(db, mehfil_id, ctype, user_id, slots, updated_by)
            break
        except IntegrityError:
            # another writer filled the slot between our delete and insert
            await db.rollback()
            if attempt == ASSIGN_ATTEMPTS:
                raise Conflict(f"{ctype.label} of mehfil {mehfil_id} is being changed concurrently; try again.")
            logger.warning(
                "COORDINATOR SLOT RACE mehfil=%s type=%s attempt=%s, retrying",
                mehfil_id, ctype.value, attempt,
            )

    if row is None:
        logger.info("COORDINATOR UNASSIGNED mehfil=%s type=%s by=%s", mehfil_id, ctype.value, updated_by)
    else:
        logger.info(
            "COORDINATOR ASSIGNED id=%s mehfil=%s type=%s user=%s by=%s",
            row.id, mehfil_id, ctype.value, user_id, updated_by,
        )
    return row


# -------- Reads --------
async def get_active_by_mehfil(
    db: AsyncSession, scope: ScopeDescriptor, mehfil_id: int
) -> List[MehfilCoordinator]:
    await require_mehfil(db, mehfil_id)
    scope.require_mehfil(mehfil_id)
    res = await db.execute(
        select(MehfilCoordinator).where(MehfilCoordinator.mehfil_directory_id == mehfil_id)
    )
    rows = list(res.scalars().unique().all())

    def _rank(row: MehfilCoordinator) -> Tuple[int, str]:
        ctype = lookup_coordinator_type(row.coordinator_type)
        return (TAXONOMY_ORDER[ctype] if ctype else len(TAXONOMY_ORDER), row.coordinator_type)

    rows.sort(key=_rank)
    return rows


async def list_coordinators(
    db: AsyncSession,
    scope: ScopeDescriptor,
    mehfil_id: Optional[int] = None,
    q: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[MehfilCoordinator], int]:
    base = select(MehfilCoordinator).join(User, User.id == MehfilCoordinator.user_id)
    if mehfil_id is not None:
        scope.require_mehfil(mehfil_id)
        base = base.where(MehfilCoordinator.mehfil_directory_id == mehfil_id)
    mehfils = scope.mehfil_filter()
    if mehfils is not None:
        base = base.where(MehfilCoordinator.mehfil_directory_id.in_(mehfils))
    if q:
        like = f"%{q.strip()}%"
        base = base.where(
            or_(
                User.name.ilike(like),
                User.email.ilike(like),
                User.phone_number.ilike(like),
                MehfilCoordinator.coordinator_type.ilike(like),
            )
        )

    total = int(await db.scalar(base.with_only_columns(func.count(MehfilCoordinator.id)).order_by(None)) or 0)
    res = await db.execute(
        base.order_by(MehfilCoordinator.mehfil_directory_id, MehfilCoordinator.coordinator_type)
        .limit(limit)
        .offset(offset)
    )
    return list(res.scalars().unique().all()), total


# -------- Update --------
async def update_coordinator(
    db: AsyncSession,
    scope: ScopeDescriptor,
    coordinator_id: int,
    slots: WeeklySlots,
    user_id: Optional[int] = None,
    updated_by: Optional[int] = None,
) -> MehfilCoordinator:
    """
    Edit the day slots and optionally hand the slot to another user.
    The (mehfil, coordinator_type) slot itself never moves.
    """
    row = await get_coordinator_in_scope(db, scope, coordinator_id)
    values: Dict[str, Any] = {}
    if user_id is not None and user_id != row.user_id:
        values["user_id"] = (await require_user(db, user_id)).id
    if slots:
        await validate_slots(db, row.mehfil.zone_id, slots)
        values.update({day.column: duty_type_id for day, duty_type_id in slots.items()})
    if not values:
        return row

    values["updated_by"] = updated_by
    values["updated_at"] = now_local()
    await db.execute(
        update(MehfilCoordinator)
        .where(MehfilCoordinator.id == row.id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(row)
    logger.info(
        "COORDINATOR UPDATED id=%s fields=%s by=%s",
        row.id, sorted(k for k in values if k not in ("updated_by", "updated_at")), updated_by,
    )
    return row


# -------- Delete --------
async def remove_coordinator(
    db: AsyncSession,
    scope: ScopeDescriptor,
    coordinator_id: int,
    deleted_by: Optional[int] = None,
) -> None:
    row = await get_coordinator_in_scope(db, scope, coordinator_id)
    await db.execute(delete(MehfilCoordinator).where(MehfilCoordinator.id == row.id))
    await db.commit()
    logger.info(
        "COORDINATOR REMOVED id=%s mehfil=%s type=%s by=%s",
        coordinator_id, row.mehfil_directory_id, row.coordinator_type, deleted_by,
    )
