# src/duty_admin/models/duty/weekly.py
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from sqlalchemy import Integer, ForeignKey
from sqlalchemy.orm import declared_attr, mapped_column


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

    @property
    def column(self) -> str:
        """Name of the persisted slot column (also the wire field name)."""
        return f"duty_type_id_{self.value}"


WeeklySlots = Dict[Weekday, Optional[int]]


def _slot_column(cls):
    return mapped_column(
        Integer, ForeignKey("duty_type.id", ondelete="RESTRICT"), nullable=True, index=True
    )


class WeeklySlotsMixin:
    """
    Seven nullable duty-type references, one per weekday.
    Code addresses them through Weekday; the column names only matter to the
    database and the JSON payloads.
    """

    duty_type_id_monday = declared_attr(_slot_column)
    duty_type_id_tuesday = declared_attr(_slot_column)
    duty_type_id_wednesday = declared_attr(_slot_column)
    duty_type_id_thursday = declared_attr(_slot_column)
    duty_type_id_friday = declared_attr(_slot_column)
    duty_type_id_saturday = declared_attr(_slot_column)
    duty_type_id_sunday = declared_attr(_slot_column)

    def get_slot(self, day: Weekday) -> Optional[int]:
        return getattr(self, day.column)

    def set_slot(self, day: Weekday, duty_type_id: Optional[int]) -> None:
        setattr(self, day.column, duty_type_id)

    def slots(self) -> WeeklySlots:
        return {day: self.get_slot(day) for day in Weekday}

    def assigned_duty_type_ids(self) -> set[int]:
        return {v for v in self.slots().values() if v is not None}
