from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.crud.duty_type import (
    list_duty_types, list_active_duty_types, get_duty_type_in_scope,
    create_duty_type, update_duty_type, delete_duty_type,
)
from src.duty_admin.models.user import User
from src.duty_admin.schemas.duty_type import DutyTypeCreate, DutyTypeUpdate, DutyTypeRead
from src.duty_admin.utils.auth import get_current_user
from src.duty_admin.utils.database import get_db
from src.duty_admin.utils.pagination import PageParams, envelope, paginated, message
from src.duty_admin.utils.permissions import get_scope
from src.duty_admin.utils.scope import ScopeDescriptor

router = APIRouter(prefix="/duty-types-data", tags=["Duty Types"])


def _read(row) -> dict:
    return DutyTypeRead.model_validate(row).model_dump()


# -------- Reads --------
@router.get("")
async def list_endpoint(
    q: Optional[str] = Query(None, alias="search"),
    zone_id: Optional[int] = Query(None),
    params: PageParams = Depends(),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await list_duty_types(db, scope, zone_id=zone_id, q=q, limit=params.size, offset=params.offset)
    return paginated([_read(r) for r in rows], total, params)


@router.get("/active")
async def active_endpoint(
    zone_id: Optional[int] = Query(None),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_active_duty_types(db, scope, zone_id=zone_id)
    return envelope([_read(r) for r in rows])


@router.get("/{duty_type_id}")
async def get_endpoint(
    duty_type_id: int,
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return envelope(_read(await get_duty_type_in_scope(db, scope, duty_type_id)))


# -------- Writes --------
@router.post("/add", status_code=201)
async def add_endpoint(
    payload: DutyTypeCreate,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await create_duty_type(db, scope, payload, created_by=current_user.id)
    return message("Duty type created", _read(row))


@router.put("/update/{duty_type_id}")
async def update_endpoint(
    duty_type_id: int,
    payload: DutyTypeUpdate,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    row = await update_duty_type(db, scope, duty_type_id, payload, updated_by=current_user.id)
    return message("Duty type updated", _read(row))


@router.delete("/{duty_type_id}")
async def delete_endpoint(
    duty_type_id: int,
    current_user: User = Depends(get_current_user),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    await delete_duty_type(db, scope, duty_type_id, deleted_by=current_user.id)
    return message("Duty type deleted")
