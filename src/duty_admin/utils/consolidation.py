# src/duty_admin/utils/consolidation.py
"""
Fold roster and coordinator rows into one weekly grid per user.

A roster row has a single slot per day, but a user can be on several rosters
(different mehfils) and hold coordinator roles, so each day of the
consolidated view is a list.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from src.duty_admin.models.duty.weekly import Weekday


def _user_dict(user: Any, user_id: int) -> Dict[str, Any]:
    if user is None:
        return {"id": user_id, "name": None}
    return {
        "id": user.id,
        "name": user.name,
        "email": getattr(user, "email", None),
        "phone_number": getattr(user, "phone_number", None),
        "user_type": getattr(user, "user_type", None),
    }


def _mehfil_dict(mehfil: Any) -> Optional[Dict[str, Any]]:
    if mehfil is None:
        return None
    return {
        "id": mehfil.id,
        "mehfil_number": mehfil.mehfil_number,
        "name": mehfil.name,
        "zone_id": mehfil.zone_id,
    }


def _duty_type_dict(duty_type: Any) -> Optional[Dict[str, Any]]:
    if duty_type is None:
        return None
    return {
        "id": duty_type.id,
        "name": duty_type.name,
        "zone_id": duty_type.zone_id,
        "is_hidden": duty_type.is_hidden,
    }


def empty_week() -> Dict[str, List[Dict[str, Any]]]:
    return {day.value: [] for day in Weekday}


def consolidate(
    rosters: Iterable[Any] = (),
    coordinators: Iterable[Any] = (),
    duty_types: Optional[Mapping[int, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    rosters / coordinators: rows exposing user_id, user, mehfil, id and slots().
    duty_types: id -> DutyType lookup; a missing id still yields an entry
    with duty_type None.

    Users come out in first-seen order; users with no assigned day are kept.
    """
    duty_types = duty_types or {}
    entries: Dict[int, Dict[str, Any]] = {}

    def _entry(row: Any) -> Dict[str, Any]:
        entry = entries.get(row.user_id)
        if entry is None:
            entry = {
                "user_id": row.user_id,
                "user": _user_dict(getattr(row, "user", None), row.user_id),
                "roster_id": None,
                "mehfil_directory_id": None,
                "roster_ids": [],
                "duties": empty_week(),
            }
            entries[row.user_id] = entry
        return entry

    def _fold(row: Any, source: str, extra: Dict[str, Any]) -> None:
        entry = _entry(row)
        for day, duty_type_id in row.slots().items():
            if duty_type_id is None:
                continue
            entry["duties"][day.value].append(
                {
                    "id": row.id,
                    "source": source,
                    "duty_type_id": duty_type_id,
                    "duty_type": _duty_type_dict(duty_types.get(duty_type_id)),
                    "mehfil": _mehfil_dict(getattr(row, "mehfil", None)),
                    **extra,
                }
            )

    for roster in rosters:
        entry = _entry(roster)
        entry["roster_ids"].append(roster.id)
        if entry["roster_id"] is None:
            entry["roster_id"] = roster.id
            entry["mehfil_directory_id"] = roster.mehfil_directory_id
        _fold(roster, "roster", {})

    for coordinator in coordinators:
        _fold(coordinator, "coordinator", {"coordinator_type": coordinator.coordinator_type})

    return list(entries.values())


def duty_type_ids_of(*row_groups: Iterable[Any]) -> set[int]:
    ids: set[int] = set()
    for rows in row_groups:
        for row in rows:
            ids |= row.assigned_duty_type_ids()
    return ids
