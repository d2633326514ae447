# src/duty_admin/schemas/duty_roster.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from src.duty_admin.schemas.reference import UserBrief, MehfilRead
from src.duty_admin.schemas.weekly import WeeklySlotsIn

class DutyRosterCreate(WeeklySlotsIn):
    user_id: int
    zone_id: Optional[int] = None
    mehfil_directory_id: Optional[int] = None

class DutyRosterUpdate(WeeklySlotsIn):
    pass

class DutyAssign(BaseModel):
    # camelCase is what the portal sends; snake_case accepted too
    roster_id: int = Field(alias="rosterId")
    day: str
    duty_type_id: int = Field(alias="dutyTypeId")
    model_config = {"populate_by_name": True}

class DutyRosterRead(WeeklySlotsIn):
    id: int
    user_id: int
    zone_id: Optional[int] = None
    mehfil_directory_id: Optional[int] = None
    user: Optional[UserBrief] = None
    mehfil: Optional[MehfilRead] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

__all__ = ["DutyRosterCreate", "DutyRosterUpdate", "DutyAssign", "DutyRosterRead"]
