# src/duty_admin/schemas/reference.py
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel

class RegionRead(BaseModel):
    id: int
    name: str
    model_config = {"from_attributes": True}

class ZoneRead(BaseModel):
    id: int
    region_id: int
    title: str
    city: Optional[str] = None
    model_config = {"from_attributes": True}

class MehfilRead(BaseModel):
    id: int
    zone_id: int
    mehfil_number: str
    name: str
    address: Optional[str] = None
    model_config = {"from_attributes": True}

class UserBrief(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    user_type: str
    zone_id: Optional[int] = None
    mehfil_directory_id: Optional[int] = None
    model_config = {"from_attributes": True}

__all__ = ["RegionRead", "ZoneRead", "MehfilRead", "UserBrief"]
