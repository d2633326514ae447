from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.crud.duty_roster import (
    list_consolidated, list_available_karkuns, list_rosters_by_user, get_roster_in_scope,
    create_roster, update_roster_slots, assign_duty, clear_duty, remove_roster,
)
from src.duty_admin.models.user import User, USER_TYPES
from src.duty_admin.schemas.duty_roster import DutyRosterCreate, DutyRosterUpdate, DutyAssign, DutyRosterRead
from src.duty_admin.schemas.reference import UserBrief
from src.duty_admin.utils.auth import get_current_user
from src.duty_admin.utils.database import get_db
from src.duty_admin.utils.errors import ValidationFailed
from src.duty_admin.utils.pagination import PageParams, envelope, paginated, message
from src.duty_admin.utils.permissions import get_scope
from src.duty_admin.utils.scope import ScopeDescriptor

router = APIRouter(prefix="/duty-rosters-data", tags=["Duty Rosters"])


def _read(row) -> dict:
    return DutyRosterRead.model_validate(row).model_dump()


def _user_type(raw: Optional[str]) -> Optional[str]:
    if raw is None or raw in ("", "all"):
        return None
    if raw not in USER_TYPES:
        raise ValidationFailed(f"Invalid userTypeFilter {raw!r}; expected one of: {', '.join(USER_TYPES)}.")
    return raw


# -------- Reads --------
@router.get("")
async def consolidated_endpoint(
    q: Optional[str] = Query(None, alias="search"),
    zone_id: Optional[int] = Query(None, alias="zoneId"),
    mehfil_id: Optional[int] = Query(None, alias="mehfilDirectoryId"),
    user_type: Optional[str] = Query(None, alias="userTypeFilter"),
    include_coordinators: bool = Query(False, alias="includeCoordinators"),
    params: PageParams = Depends(),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    # fixed selectors win over whatever the client sent
    zone_id = scope.fixed_zone_id or zone_id
    mehfil_id = scope.fixed_mehfil_id or mehfil_id
    user_type = _user_type(user_type)

    rows, total = await list_consolidated(
        db, scope,
        zone_id=zone_id, mehfil_id=mehfil_id, q=q, user_type=user_type,
        include_coordinators=include_coordinators,
        limit=params.size, offset=params.offset,
    )
    # a zone without a mehfil is the zone-wide overview: browse only
    is_read_only = zone_id is not None and mehfil_id is None
    can_manage = not is_read_only and (user_type != "ehad-karkun" or scope.can_manage_ehad_karkun)
    return paginated(
        rows, total, params,
        isReadOnly=is_read_only,
        showTable=zone_id is not None or scope.is_global,
        canManage=can_manage,
    )


@router.get("/available-karkuns")
async def available_karkuns_endpoint(
    zone_id: Optional[int] = Query(None, alias="zoneId"),
    mehfil_id: Optional[int] = Query(None, alias="mehfilDirectoryId"),
    user_type: str = Query("karkun", alias="userTypeFilter"),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    zone_id = scope.fixed_zone_id or zone_id
    mehfil_id = scope.fixed_mehfil_id or mehfil_id
    if zone_id is None and mehfil_id is None:
        raise ValidationFailed("zoneId or mehfilDirectoryId is required.")
    user_type = _user_type(user_type) or "karkun"

    users = await list_available_karkuns(db, scope, zone_id, mehfil_id=mehfil_id, user_type=user_type)
    return envelope([UserBrief.model_validate(u).model_dump() for u in users])


@router.get("/karkun/{user_id}")
async def by_user_endpoint(
    user_id: int,
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_rosters_by_user(db, scope, user_id)
    return envelope([_read(r) for r in rows])


@router.get("/{roster_id}")
async def get_endpoint(
    roster_id: int,
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return envelope(_read(await get_roster_in_scope(db, scope, roster_id)))


# -------- Writes --------
@router.post("/add", status_code=201)
async def add_endpoint(
    payload: DutyRosterCreate,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await create_roster(db, scope, payload, created_by=current_user.id)
    return message("Added to duty roster", _read(row))


@router.put("/update/{roster_id}")
async def update_endpoint(
    roster_id: int,
    payload: DutyRosterUpdate,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await update_roster_slots(db, scope, roster_id, payload.provided_slots(), updated_by=current_user.id)
    return message("Duty roster updated", _read(row))


@router.post("/add-duty")
async def add_duty_endpoint(
    payload: DutyAssign,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await assign_duty(
        db, scope, payload.roster_id, payload.day, payload.duty_type_id, updated_by=current_user.id
    )
    return message("Duty assigned", _read(row))


@router.delete("/remove-duty/{roster_id}/{day}")
async def remove_duty_endpoint(
    roster_id: int,
    day: str,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await clear_duty(db, scope, roster_id, day, updated_by=current_user.id)
    return message("Duty removed", _read(row))


@router.delete("/{roster_id}")
async def delete_endpoint(
    roster_id: int,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    await remove_roster(db, scope, roster_id, deleted_by=current_user.id)
    return message("Removed from duty roster")
