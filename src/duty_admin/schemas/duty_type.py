# src/duty_admin/schemas/duty_type.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from src.duty_admin.models.duty.duty_type import NAME_MAX_LENGTH, DESCRIPTION_MAX_LENGTH

def _strip(v):
    return v.strip() if isinstance(v, str) else v

# -------------------------------------------------------------------
# Requests
# -------------------------------------------------------------------
class DutyTypeCreate(BaseModel):
    zone_id: int
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    is_editable: bool = True
    is_hidden: bool = False

    @field_validator("name", "description", mode="before")
    @classmethod
    def _trim(cls, v):
        return _strip(v)

class DutyTypeUpdate(BaseModel):
    # every field optional; only fields sent are changed
    zone_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    is_editable: Optional[bool] = None
    is_hidden: Optional[bool] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def _trim(cls, v):
        return _strip(v)

# -------------------------------------------------------------------
# Responses
# -------------------------------------------------------------------
class DutyTypeRead(BaseModel):
    id: int
    zone_id: int
    name: str
    description: Optional[str] = None
    is_editable: bool
    is_hidden: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

__all__ = ["DutyTypeCreate", "DutyTypeUpdate", "DutyTypeRead"]
