from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.crud.reference import list_regions, list_zones, list_mehfils, list_users
from src.duty_admin.schemas.reference import RegionRead, ZoneRead, MehfilRead, UserBrief
from src.duty_admin.utils.database import get_db
from src.duty_admin.utils.pagination import PageParams, envelope, paginated
from src.duty_admin.utils.permissions import get_scope
from src.duty_admin.utils.scope import ScopeDescriptor

router = APIRouter(tags=["Reference"])


@router.get("/duty-scope")
async def scope_endpoint(scope: ScopeDescriptor = Depends(get_scope)):
    return envelope(scope.as_dict())


@router.get("/regions")
async def regions_endpoint(
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_regions(db, scope)
    return envelope([RegionRead.model_validate(r).model_dump() for r in rows])


@router.get("/zone")
async def zones_endpoint(
    region_id: Optional[int] = Query(None, alias="regionId"),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_zones(db, scope, region_id=region_id)
    return envelope([ZoneRead.model_validate(r).model_dump() for r in rows])


@router.get("/mehfil-directory")
async def mehfils_endpoint(
    zone_id: Optional[int] = Query(None, alias="zoneId"),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_mehfils(db, scope, zone_id=zone_id)
    return envelope([MehfilRead.model_validate(r).model_dump() for r in rows])


@router.get("/adminUsers")
async def users_endpoint(
    q: Optional[str] = Query(None, alias="search"),
    user_type: Optional[str] = Query(None, alias="userType"),
    zone_id: Optional[int] = Query(None, alias="zoneId"),
    mehfil_id: Optional[int] = Query(None, alias="mehfilDirectoryId"),
    params: PageParams = Depends(),
    scope: ScopeDescriptor = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await list_users(
        db, scope,
        q=q, user_type=user_type, zone_id=zone_id, mehfil_id=mehfil_id,
        limit=params.size, offset=params.offset,
    )
    return paginated([UserBrief.model_validate(u).model_dump() for u in rows], total, params)
