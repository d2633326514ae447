# src/duty_admin/schemas/coordinator.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, computed_field

from src.duty_admin.models.duty.coordinator_type import lookup_coordinator_type
from src.duty_admin.schemas.reference import UserBrief, MehfilRead
from src.duty_admin.schemas.weekly import WeeklySlotsIn

class CoordinatorAssign(BaseModel):
    mehfil_directory_id: int
    coordinator_type: str
    user_id: Optional[int] = None  # None = unassign the slot

class CoordinatorCreate(WeeklySlotsIn):
    mehfil_directory_id: int
    coordinator_type: str
    user_id: int

class CoordinatorUpdate(WeeklySlotsIn):
    user_id: Optional[int] = None

class CoordinatorRead(WeeklySlotsIn):
    id: int
    mehfil_directory_id: int
    user_id: int
    coordinator_type: str
    user: Optional[UserBrief] = None
    mehfil: Optional[MehfilRead] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

    @computed_field
    @property
    def coordinator_label(self) -> str:
        ct = lookup_coordinator_type(self.coordinator_type)
        return ct.label if ct else self.coordinator_type

    @computed_field
    @property
    def category(self) -> Optional[str]:
        ct = lookup_coordinator_type(self.coordinator_type)
        return ct.category.value if ct else None

__all__ = ["CoordinatorAssign", "CoordinatorCreate", "CoordinatorUpdate", "CoordinatorRead"]
