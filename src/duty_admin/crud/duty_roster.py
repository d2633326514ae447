# src/duty_admin/crud/duty_roster.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, List

from sqlalchemy import select, or_, func, delete, update, union
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.crud.duty_type import get_duty_types_by_ids
from src.duty_admin.crud.reference import require_user, require_mehfil, zone_exists
from src.duty_admin.models.duty import DutyRoster, MehfilCoordinator, Weekday
from src.duty_admin.models.duty.weekly import WeeklySlots
from src.duty_admin.models.org import MehfilDirectory
from src.duty_admin.models.user import User
from src.duty_admin.schemas.duty_roster import DutyRosterCreate
from src.duty_admin.utils.consolidation import consolidate, duty_type_ids_of
from src.duty_admin.utils.errors import ValidationFailed, Conflict, ScopeMismatch, NotFound
from src.duty_admin.utils.scope import ScopeDescriptor
from src.duty_admin.utils.timezone import now_local

logger = logging.getLogger(__name__)


def parse_weekday(raw: Any) -> Weekday:
    if isinstance(raw, Weekday):
        return raw
    try:
        return Weekday((raw or "").strip().lower())
    except (ValueError, AttributeError):
        raise ValidationFailed(
            f"Invalid day {raw!r}; expected one of: {', '.join(d.value for d in Weekday)}."
        )


# -----------------------
# Getters
# -----------------------
async def get_roster(db: AsyncSession, roster_id: int) -> Optional[DutyRoster]:
    res = await db.execute(select(DutyRoster).where(DutyRoster.id == roster_id))
    return res.scalar_one_or_none()


async def get_roster_in_scope(db: AsyncSession, scope: ScopeDescriptor, roster_id: int) -> DutyRoster:
    row = await get_roster(db, roster_id)
    if not row:
        raise NotFound(f"Duty roster {roster_id} not found.")
    scope.require_roster_scope(row.zone_id, row.mehfil_directory_id)
    return row


async def _get_roster_for_write(db: AsyncSession, scope: ScopeDescriptor, roster_id: int) -> DutyRoster:
    row = await get_roster_in_scope(db, scope, roster_id)
    scope.require_user_type(row.user.user_type if row.user else None)
    return row


async def find_roster(
    db: AsyncSession,
    user_id: int,
    zone_id: Optional[int],
    mehfil_id: Optional[int],
) -> Optional[DutyRoster]:
    """Exact (user, zone, mehfil) match, NULL matching NULL."""
    res = await db.execute(
        select(DutyRoster).where(
            DutyRoster.user_id == user_id,
            DutyRoster.zone_id.is_not_distinct_from(zone_id),
            DutyRoster.mehfil_directory_id.is_not_distinct_from(mehfil_id),
        )
    )
    return res.scalars().first()


# -----------------------
# Validation helpers
# -----------------------
async def resolve_roster_scope(
    db: AsyncSession,
    zone_id: Optional[int],
    mehfil_id: Optional[int],
) -> Tuple[Optional[int], Optional[int]]:
    """
    A mehfil pins the zone: it is derived when missing and must agree when given.
    """
    if mehfil_id is not None:
        mehfil = await require_mehfil(db, mehfil_id)
        if zone_id is None:
            zone_id = mehfil.zone_id
        elif mehfil.zone_id != zone_id:
            raise ScopeMismatch(f"Mehfil {mehfil_id} does not belong to zone {zone_id}.")
    elif zone_id is not None and not await zone_exists(db, zone_id):
        raise ValidationFailed(f"Zone {zone_id} does not exist.")
    return zone_id, mehfil_id


async def validate_slots(db: AsyncSession, zone_id: Optional[int], slots: WeeklySlots) -> None:
    """
    Every duty type set on a day must exist and belong to the row's zone.
    """
    wanted = {v for v in slots.values() if v is not None}
    found = await get_duty_types_by_ids(db, wanted)
    for day, duty_type_id in slots.items():
        if duty_type_id is None:
            continue
        duty_type = found.get(duty_type_id)
        if duty_type is None:
            raise NotFound(f"Duty type {duty_type_id} not found.")
        if zone_id is None or duty_type.zone_id != zone_id:
            raise ScopeMismatch(
                f"Duty type '{duty_type.name}' belongs to zone {duty_type.zone_id}, "
                f"not to this roster's zone ({zone_id}); cannot assign it on {day.value}."
            )


# -----------------------
# Create
# -----------------------
async def create_roster(
    db: AsyncSession,
    scope: ScopeDescriptor,
    data: DutyRosterCreate,
    created_by: Optional[int] = None,
) -> DutyRoster:
    user = await require_user(db, data.user_id)
    zone_id, mehfil_id = await resolve_roster_scope(db, data.zone_id, data.mehfil_directory_id)
    scope.require_roster_scope(zone_id, mehfil_id)
    scope.require_user_type(user.user_type)

    user_name = user.name
    if await find_roster(db, user.id, zone_id, mehfil_id):
        raise Conflict(f"{user_name} is already on the duty roster for this zone/mehfil.")

    slots = data.provided_slots()
    await validate_slots(db, zone_id, slots)

    row = DutyRoster(
        user_id=user.id,
        zone_id=zone_id,
        mehfil_directory_id=mehfil_id,
        created_by=created_by,
        updated_by=created_by,
        created_at=now_local(),
        updated_at=now_local(),
    )
    for day, duty_type_id in slots.items():
        row.set_slot(day, duty_type_id)

    # roster and its initial days go in together or not at all
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict(f"{user_name} is already on the duty roster for this zone/mehfil.")
    await db.refresh(row)
    logger.info(
        "ROSTER CREATED id=%s user=%s zone=%s mehfil=%s days=%s by=%s",
        row.id, row.user_id, zone_id, mehfil_id, sorted(d.value for d in slots), created_by,
    )
    return row


# -----------------------
# Day slots
# -----------------------
async def _write_slots(
    db: AsyncSession,
    roster: DutyRoster,
    slots: WeeklySlots,
    updated_by: Optional[int],
) -> DutyRoster:
    """
    Column-level UPDATE of only the given days, so a concurrent edit of
    another day on the same roster is never overwritten.
    """
    roster_id = roster.id
    values: Dict[str, Any] = {day.column: duty_type_id for day, duty_type_id in slots.items()}
    values["updated_by"] = updated_by
    values["updated_at"] = now_local()
    res = await db.execute(
        update(DutyRoster)
        .where(DutyRoster.id == roster_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    # deleted by another request since it was loaded
    if res.rowcount == 0:
        await db.rollback()
        raise NotFound(f"Duty roster {roster_id} not found.")
    await db.commit()
    await db.refresh(roster)
    return roster


async def assign_duty(
    db: AsyncSession,
    scope: ScopeDescriptor,
    roster_id: int,
    day: Any,
    duty_type_id: int,
    updated_by: Optional[int] = None,
) -> DutyRoster:
    weekday = parse_weekday(day)
    roster = await _get_roster_for_write(db, scope, roster_id)
    await validate_slots(db, roster.zone_id, {weekday: duty_type_id})

    roster = await _write_slots(db, roster, {weekday: duty_type_id}, updated_by)
    logger.info("ROSTER DUTY SET roster=%s %s=%s by=%s", roster.id, weekday.value, duty_type_id, updated_by)
    return roster


async def clear_duty(
    db: AsyncSession,
    scope: ScopeDescriptor,
    roster_id: int,
    day: Any,
    updated_by: Optional[int] = None,
) -> DutyRoster:
    weekday = parse_weekday(day)
    roster = await _get_roster_for_write(db, scope, roster_id)
    roster = await _write_slots(db, roster, {weekday: None}, updated_by)
    logger.info("ROSTER DUTY CLEARED roster=%s %s by=%s", roster.id, weekday.value, updated_by)
    return roster


async def update_roster_slots(
    db: AsyncSession,
    scope: ScopeDescriptor,
    roster_id: int,
    slots: WeeklySlots,
    updated_by: Optional[int] = None,
) -> DutyRoster:
    roster = await _get_roster_for_write(db, scope, roster_id)
    if not slots:
        return roster
    await validate_slots(db, roster.zone_id, slots)
    roster = await _write_slots(db, roster, slots, updated_by)
    logger.info(
        "ROSTER DAYS UPDATED roster=%s %s by=%s",
        roster.id, {d.value: v for d, v in slots.items()}, updated_by,
    )
    return roster


# -----------------------
# Delete
# -----------------------
async def remove_roster(
    db: AsyncSession,
    scope: ScopeDescriptor,
    roster_id: int,
    deleted_by: Optional[int] = None,
) -> None:
    roster = await _get_roster_for_write(db, scope, roster_id)
    # day slots are columns of the row, so they go with it
    await db.execute(delete(DutyRoster).where(DutyRoster.id == roster.id))
    await db.commit()
    logger.info("ROSTER REMOVED id=%s user=%s by=%s", roster_id, roster.user_id, deleted_by)


# -----------------------
# Lists
# -----------------------
def _scope_rosters(stmt, scope: ScopeDescriptor, zone_id: Optional[int], mehfil_id: Optional[int]):
    if zone_id is not None:
        scope.require_zone(zone_id)
        stmt = stmt.where(DutyRoster.zone_id == zone_id)
    if mehfil_id is not None:
        scope.require_mehfil(mehfil_id)
        stmt = stmt.where(DutyRoster.mehfil_directory_id == mehfil_id)

    if scope.is_mehfil_bound:
        return stmt.where(DutyRoster.mehfil_directory_id.in_(scope.allowed_mehfil_ids))
    zones = scope.zone_filter()
    if zones is not None:
        stmt = stmt.where(DutyRoster.zone_id.in_(zones))
    return stmt


def _scope_coordinators(stmt, scope: ScopeDescriptor, zone_id: Optional[int], mehfil_id: Optional[int]):
    if zone_id is not None:
        stmt = stmt.where(
            MehfilCoordinator.mehfil_directory_id.in_(
                select(MehfilDirectory.id).where(MehfilDirectory.zone_id == zone_id)
            )
        )
    if mehfil_id is not None:
        stmt = stmt.where(MehfilCoordinator.mehfil_directory_id == mehfil_id)
    mehfils = scope.mehfil_filter()
    if mehfils is not None:
        stmt = stmt.where(MehfilCoordinator.mehfil_directory_id.in_(mehfils))
    return stmt


def _user_search(stmt, q: Optional[str]):
    if not q:
        return stmt
    like = f"%{q.strip()}%"
    return stmt.where(
        or_(
            User.name.ilike(like),
            User.email.ilike(like),
            User.phone_number.ilike(like),
        )
    )


async def list_rosters_by_scope(
    db: AsyncSession,
    scope: ScopeDescriptor,
    zone_id: Optional[int] = None,
    mehfil_id: Optional[int] = None,
    q: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[DutyRoster], int]:
    base = _scope_rosters(select(DutyRoster).join(User, User.id == DutyRoster.user_id), scope, zone_id, mehfil_id)
    base = _user_search(base, q)

    total = int(await db.scalar(base.with_only_columns(func.count(DutyRoster.id)).order_by(None)) or 0)
    res = await db.execute(base.order_by(User.name, DutyRoster.id).limit(limit).offset(offset))
    return list(res.scalars().unique().all()), total


async def list_rosters_by_user(db: AsyncSession, scope: ScopeDescriptor, user_id: int) -> List[DutyRoster]:
    await require_user(db, user_id)
    stmt = _scope_rosters(select(DutyRoster).where(DutyRoster.user_id == user_id), scope, None, None)
    res = await db.execute(stmt.order_by(DutyRoster.zone_id, DutyRoster.mehfil_directory_id, DutyRoster.id))
    return list(res.scalars().unique().all())


async def list_consolidated(
    db: AsyncSession,
    scope: ScopeDescriptor,
    zone_id: Optional[int] = None,
    mehfil_id: Optional[int] = None,
    q: Optional[str] = None,
    user_type: Optional[str] = None,
    include_coordinators: bool = False,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Consolidated weekly view, paginated over distinct users.
    """
    user_sources = [
        _scope_rosters(select(DutyRoster.user_id.label("user_id")), scope, zone_id, mehfil_id)
    ]
    if include_coordinators:
        user_sources.append(
            _scope_coordinators(select(MehfilCoordinator.user_id.label("user_id")), scope, zone_id, mehfil_id)
        )
    in_scope = union(*user_sources).subquery() if len(user_sources) > 1 else user_sources[0].subquery()

    users_stmt = select(User.id).where(User.id.in_(select(in_scope.c.user_id)))
    users_stmt = _user_search(users_stmt, q)
    if user_type:
        users_stmt = users_stmt.where(User.user_type == user_type)

    total = int(await db.scalar(select(func.count()).select_from(users_stmt.subquery())) or 0)
    page_ids = list(
        (await db.execute(users_stmt.order_by(User.name, User.id).limit(limit).offset(offset))).scalars().all()
    )
    if not page_ids:
        return [], total

    rosters_stmt = _scope_rosters(
        select(DutyRoster).where(DutyRoster.user_id.in_(page_ids)), scope, zone_id, mehfil_id
    )
    rosters = list((await db.execute(rosters_stmt)).scalars().unique().all())

    coordinators: List[MehfilCoordinator] = []
    if include_coordinators:
        coord_stmt = _scope_coordinators(
            select(MehfilCoordinator).where(MehfilCoordinator.user_id.in_(page_ids)), scope, zone_id, mehfil_id
        )
        coordinators = list((await db.execute(coord_stmt)).scalars().unique().all())

    order = {uid: i for i, uid in enumerate(page_ids)}
    rosters.sort(key=lambda r: (order[r.user_id], r.id))
    coordinators.sort(key=lambda c: (order[c.user_id], c.id))

    duty_types = await get_duty_types_by_ids(db, duty_type_ids_of(rosters, coordinators))
    return consolidate(rosters, coordinators, duty_types), total


async def list_available_karkuns(
    db: AsyncSession,
    scope: ScopeDescriptor,
    zone_id: Optional[int],
    mehfil_id: Optional[int] = None,
    user_type: str = "karkun",
) -> List[User]:
    """
    Users of the zone (and mehfil, for karkuns) with the given type who are
    not yet on the roster for exactly this zone/mehfil.
    """
    zone_id, mehfil_id = await resolve_roster_scope(db, zone_id, mehfil_id)
    scope.require_roster_scope(zone_id, mehfil_id)
    scope.require_user_type(user_type)

    on_roster = select(DutyRoster.user_id).where(
        DutyRoster.zone_id.is_not_distinct_from(zone_id),
        DutyRoster.mehfil_directory_id.is_not_distinct_from(mehfil_id),
    )
    stmt = select(User).where(
        User.status == "active",
        User.user_type == user_type,
        User.zone_id == zone_id,
        User.id.not_in(on_roster),
    )
    if mehfil_id is not None and user_type == "karkun":
        stmt = stmt.where(User.mehfil_directory_id == mehfil_id)
    res = await db.execute(stmt.order_by(User.name, User.id))
    return list(res.scalars().all())
