# src/duty_admin/models/duty/__init__.py
from .weekly import Weekday, WeeklySlotsMixin
from .coordinator_type import CoordinatorCategory, CoordinatorType
from .duty_type import DutyType
from .duty_roster import DutyRoster
from .mehfil_coordinator import MehfilCoordinator

__all__ = [
    "Weekday",
    "WeeklySlotsMixin",
    "CoordinatorCategory",
    "CoordinatorType",
    "DutyType",
    "DutyRoster",
    "MehfilCoordinator",
]
