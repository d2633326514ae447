# src/duty_admin/models/org/__init__.py
from .region import Region
from .zone import Zone
from .mehfil_directory import MehfilDirectory

__all__ = ["Region", "Zone", "MehfilDirectory"]
