# src/duty_admin/schemas/weekly.py
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel

from src.duty_admin.models.duty.weekly import Weekday, WeeklySlots

class WeeklySlotsIn(BaseModel):
    """
    Day slots as they travel on the wire. An absent field means "leave as is",
    an explicit null means "clear the day".
    """
    duty_type_id_monday: Optional[int] = None
    duty_type_id_tuesday: Optional[int] = None
    duty_type_id_wednesday: Optional[int] = None
    duty_type_id_thursday: Optional[int] = None
    duty_type_id_friday: Optional[int] = None
    duty_type_id_saturday: Optional[int] = None
    duty_type_id_sunday: Optional[int] = None

    def provided_slots(self) -> WeeklySlots:
        return {
            day: getattr(self, day.column)
            for day in Weekday
            if day.column in self.model_fields_set
        }

__all__ = ["WeeklySlotsIn"]
