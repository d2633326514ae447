# src/duty_admin/utils/scope.py
"""
Administrative reach of the acting user.

resolve_scope() is a pure function: it looks only at the actor's role flags
and scope fields plus the zone/mehfil reference rows it is handed, and
returns a ScopeDescriptor. The descriptor is sent to the UI (selectors) and
re-checked by every write in crud/.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from src.duty_admin.utils.errors import ScopeMismatch

LEVEL_SUPER = "super"
LEVEL_REGION = "region"
LEVEL_ZONE = "zone"
LEVEL_MEHFIL = "mehfil"
LEVEL_NONE = "none"


@dataclass(frozen=True)
class ScopeDescriptor:
    level: str
    can_choose_region: bool
    can_choose_zone: bool
    can_choose_mehfil: bool
    allowed_region_ids: frozenset
    allowed_zone_ids: frozenset
    allowed_mehfil_ids: frozenset
    fixed_zone_id: Optional[int] = None
    fixed_mehfil_id: Optional[int] = None

    @property
    def is_global(self) -> bool:
        return self.level == LEVEL_SUPER

    @property
    def is_mehfil_bound(self) -> bool:
        return self.level == LEVEL_MEHFIL

    @property
    def can_manage_ehad_karkun(self) -> bool:
        return self.level in (LEVEL_SUPER, LEVEL_REGION, LEVEL_ZONE)

    @property
    def can_manage_zone(self) -> bool:
        """Zone-level catalog writes (duty types) need zone admin or above."""
        return self.level in (LEVEL_SUPER, LEVEL_REGION, LEVEL_ZONE)

    # ---------- checks ----------
    def allows_zone(self, zone_id: Optional[int]) -> bool:
        if self.is_global:
            return True
        return zone_id is not None and zone_id in self.allowed_zone_ids

    def allows_mehfil(self, mehfil_id: Optional[int]) -> bool:
        if self.is_global:
            return True
        return mehfil_id is not None and mehfil_id in self.allowed_mehfil_ids

    def require_zone(self, zone_id: Optional[int]) -> None:
        if not self.allows_zone(zone_id):
            raise ScopeMismatch(
                "You do not have access to this zone." if zone_id is not None
                else "Only super admins can manage records without a zone."
            )

    def require_zone_admin(self, zone_id: Optional[int]) -> None:
        self.require_zone(zone_id)
        if not self.can_manage_zone:
            raise ScopeMismatch("Only zone administrators and above can manage this zone's records.")

    def require_mehfil(self, mehfil_id: Optional[int]) -> None:
        if not self.allows_mehfil(mehfil_id):
            raise ScopeMismatch("You do not have access to this mehfil.")

    def require_roster_scope(self, zone_id: Optional[int], mehfil_id: Optional[int]) -> None:
        """
        A roster row lives at zone level (mehfil_id None) or mehfil level.
        Mehfil admins may only touch rows of their own mehfil.
        """
        self.require_zone(zone_id)
        if mehfil_id is not None:
            self.require_mehfil(mehfil_id)
        elif self.level == LEVEL_MEHFIL:
            raise ScopeMismatch("Mehfil administrators can only manage rosters of their own mehfil.")

    def require_user_type(self, user_type: Optional[str]) -> None:
        if user_type == "ehad-karkun" and not self.can_manage_ehad_karkun:
            raise ScopeMismatch("Only zone administrators and above can manage ehad karkun rosters.")

    # ---------- query helpers ----------
    def zone_filter(self) -> Optional[frozenset]:
        """None means unrestricted."""
        return None if self.is_global else self.allowed_zone_ids

    def mehfil_filter(self) -> Optional[frozenset]:
        return None if self.is_global else self.allowed_mehfil_ids

    def as_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "canChooseRegion": self.can_choose_region,
            "canChooseZone": self.can_choose_zone,
            "canChooseMehfil": self.can_choose_mehfil,
            "allowedRegionIds": sorted(self.allowed_region_ids),
            "allowedZoneIds": sorted(self.allowed_zone_ids),
            "allowedMehfilIds": sorted(self.allowed_mehfil_ids),
            "fixedZoneId": self.fixed_zone_id,
            "fixedMehfilId": self.fixed_mehfil_id,
            "canManageEhadKarkun": self.can_manage_ehad_karkun,
        }


def _empty() -> ScopeDescriptor:
    return ScopeDescriptor(
        level=LEVEL_NONE,
        can_choose_region=False,
        can_choose_zone=False,
        can_choose_mehfil=False,
        allowed_region_ids=frozenset(),
        allowed_zone_ids=frozenset(),
        allowed_mehfil_ids=frozenset(),
    )


def resolve_scope(actor: Any, zones: Iterable[Any], mehfils: Iterable[Any]) -> ScopeDescriptor:
    """
    actor: object with is_super_admin / is_all_region_admin / is_region_admin /
           is_zone_admin / is_mehfil_admin, region_ids, zone_id, mehfil_directory_id.
    zones: rows with .id and .region_id.
    mehfils: rows with .id and .zone_id.

    The widest flag wins when several are set.
    """
    zones = list(zones)
    mehfils = list(mehfils)
    zone_region = {z.id: z.region_id for z in zones}

    def _mehfils_of(zone_ids: frozenset) -> frozenset:
        return frozenset(m.id for m in mehfils if m.zone_id in zone_ids)

    if getattr(actor, "is_super_admin", False) or getattr(actor, "is_all_region_admin", False):
        return ScopeDescriptor(
            level=LEVEL_SUPER,
            can_choose_region=True,
            can_choose_zone=True,
            can_choose_mehfil=True,
            allowed_region_ids=frozenset(zone_region.values()),
            allowed_zone_ids=frozenset(zone_region),
            allowed_mehfil_ids=frozenset(m.id for m in mehfils),
        )

    if getattr(actor, "is_region_admin", False):
        region_ids = frozenset(getattr(actor, "region_ids", None) or ())
        if region_ids:
            zone_ids = frozenset(zid for zid, rid in zone_region.items() if rid in region_ids)
            return ScopeDescriptor(
                level=LEVEL_REGION,
                can_choose_region=len(region_ids) > 1,
                can_choose_zone=True,
                can_choose_mehfil=True,
                allowed_region_ids=region_ids,
                allowed_zone_ids=zone_ids,
                allowed_mehfil_ids=_mehfils_of(zone_ids),
            )

    zone_id = getattr(actor, "zone_id", None)
    if getattr(actor, "is_zone_admin", False) and zone_id in zone_region:
        zone_ids = frozenset({zone_id})
        return ScopeDescriptor(
            level=LEVEL_ZONE,
            can_choose_region=False,
            can_choose_zone=False,
            can_choose_mehfil=True,
            allowed_region_ids=frozenset({zone_region[zone_id]}),
            allowed_zone_ids=zone_ids,
            allowed_mehfil_ids=_mehfils_of(zone_ids),
            fixed_zone_id=zone_id,
        )

    mehfil_id = getattr(actor, "mehfil_directory_id", None)
    if getattr(actor, "is_mehfil_admin", False) and mehfil_id is not None:
        mehfil_zone = next((m.zone_id for m in mehfils if m.id == mehfil_id), None)
        if mehfil_zone is not None:
            return ScopeDescriptor(
                level=LEVEL_MEHFIL,
                can_choose_region=False,
                can_choose_zone=False,
                can_choose_mehfil=False,
                allowed_region_ids=frozenset({zone_region[mehfil_zone]}) if mehfil_zone in zone_region else frozenset(),
                allowed_zone_ids=frozenset({mehfil_zone}),
                allowed_mehfil_ids=frozenset({mehfil_id}),
                fixed_zone_id=mehfil_zone,
                fixed_mehfil_id=mehfil_id,
            )

    return _empty()
