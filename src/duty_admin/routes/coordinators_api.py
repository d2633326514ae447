from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.crud.coordinator import (
    list_coordinators, get_active_by_mehfil, get_coordinator_in_scope,
    assign_coordinator, update_coordinator, remove_coordinator,
)
from src.duty_admin.models.duty.coordinator_type import taxonomy_as_dict
from src.duty_admin.models.user import User
from src.duty_admin.schemas.coordinator import (
    CoordinatorAssign, CoordinatorCreate, CoordinatorUpdate, CoordinatorRead,
)
from src.duty_admin.utils.auth import get_current_user
from src.duty_admin.utils.database import get_db
from src.duty_admin.utils.pagination import PageParams, envelope, paginated, message
from src.duty_admin.utils.permissions import get_scope
from src.duty_admin.utils.scope import ScopeDescriptor

router = APIRouter(prefix="/mehfil-coordinators", tags=["Mehfil Coordinators"])


def _read(row) -> dict:
    return CoordinatorRead.model_validate(row).model_dump()


# -------- Reads --------
@router.get("")
async def list_endpoint(
    q: Optional[str] = Query(None, alias="search"),
    mehfil_id: Optional[int] = Query(None, alias="mehfilDirectoryId"),
    params: PageParams = Depends(),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await list_coordinators(
        db, scope, mehfil_id=mehfil_id, q=q, limit=params.size, offset=params.offset
    )
    return paginated([_read(r) for r in rows], total, params)


@router.get("/types")
async def types_endpoint(current_user: User = Depends(get_current_user)):
    return envelope(taxonomy_as_dict())


@router.get("/active/{mehfil_id}")
async def active_endpoint(
    mehfil_id: int,
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows = await get_active_by_mehfil(db, scope, mehfil_id)
    return envelope([_read(r) for r in rows])


@router.get("/{coordinator_id}")
async def get_endpoint(
    coordinator_id: int,
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return envelope(_read(await get_coordinator_in_scope(db, scope, coordinator_id)))


# -------- Writes --------
@router.post("/add", status_code=201)
async def add_endpoint(
    payload: CoordinatorCreate,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await assign_coordinator(
        db, scope,
        payload.mehfil_directory_id, payload.coordinator_type, payload.user_id,
        slots=payload.provided_slots(),
        updated_by=current_user.id,
    )
    return message("Coordinator added", _read(row))


@router.post("/assign")
async def assign_endpoint(
    payload: CoordinatorAssign,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await assign_coordinator(
        db, scope,
        payload.mehfil_directory_id, payload.coordinator_type, payload.user_id,
        updated_by=current_user.id,
    )
    if row is None:
        return message("Coordinator unassigned")
    return message("Coordinator assigned", _read(row))


@router.put("/update/{coordinator_id}")
async def update_endpoint(
    coordinator_id: int,
    payload: CoordinatorUpdate,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await update_coordinator(
        db, scope, coordinator_id,
        payload.provided_slots(),
        user_id=payload.user_id,
        updated_by=current_user.id,
    )
    return message("Coordinator updated", _read(row))


@router.delete("/{coordinator_id}")
async def delete_endpoint(
    coordinator_id: int,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    await remove_coordinator(db, scope, coordinator_id, deleted_by=current_user.id)
    return message("Coordinator removed")
