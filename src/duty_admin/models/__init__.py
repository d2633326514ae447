# src/duty_admin/models/__init__.py
from .org import Region, Zone, MehfilDirectory
from .user import User
from .duty import DutyType, DutyRoster, MehfilCoordinator

__all__ = ["Region", "Zone", "MehfilDirectory", "User", "DutyType", "DutyRoster", "MehfilCoordinator"]
