from types import SimpleNamespace

import pytest

from src.duty_admin.utils.errors import ScopeMismatch
from src.duty_admin.utils.scope import (
    resolve_scope, LEVEL_SUPER, LEVEL_REGION, LEVEL_ZONE, LEVEL_MEHFIL, LEVEL_NONE,
)

ZONES = [
    SimpleNamespace(id=3, region_id=1),
    SimpleNamespace(id=5, region_id=1),
    SimpleNamespace(id=7, region_id=2),
]
MEHFILS = [
    SimpleNamespace(id=10, zone_id=3),
    SimpleNamespace(id=11, zone_id=3),
    SimpleNamespace(id=20, zone_id=5),
    SimpleNamespace(id=30, zone_id=7),
]


def actor(**kw):
    base = dict(
        is_super_admin=False, is_all_region_admin=False, is_region_admin=False,
        is_zone_admin=False, is_mehfil_admin=False,
        region_ids=frozenset(), zone_id=None, mehfil_directory_id=None,
    )
    base.update(kw)
    return SimpleNamespace(**base)


def test_super_admin_sees_everything():
    scope = resolve_scope(actor(is_super_admin=True), ZONES, MEHFILS)
    assert scope.level == LEVEL_SUPER
    assert scope.is_global
    assert scope.can_choose_region and scope.can_choose_zone and scope.can_choose_mehfil
    assert scope.allowed_zone_ids == {3, 5, 7}
    assert scope.zone_filter() is None
    scope.require_zone(None)


def test_all_region_admin_is_global():
    scope = resolve_scope(actor(is_all_region_admin=True), ZONES, MEHFILS)
    assert scope.level == LEVEL_SUPER


def test_region_admin_limited_to_own_regions():
    scope = resolve_scope(actor(is_region_admin=True, region_ids=frozenset({1})), ZONES, MEHFILS)
    assert scope.level == LEVEL_REGION
    assert not scope.can_choose_region
    assert scope.can_choose_zone
    assert scope.allowed_zone_ids == {3, 5}
    assert scope.allowed_mehfil_ids == {10, 11, 20}
    with pytest.raises(ScopeMismatch):
        scope.require_zone(7)


def test_region_admin_of_two_regions_can_choose_region():
    scope = resolve_scope(actor(is_region_admin=True, region_ids=frozenset({1, 2})), ZONES, MEHFILS)
    assert scope.can_choose_region
    assert scope.allowed_zone_ids == {3, 5, 7}


def test_zone_admin_zone_is_fixed():
    scope = resolve_scope(actor(is_zone_admin=True, zone_id=3), ZONES, MEHFILS)
    assert scope.level == LEVEL_ZONE
    assert scope.fixed_zone_id == 3
    assert not scope.can_choose_zone
    assert scope.can_choose_mehfil
    assert scope.allowed_mehfil_ids == {10, 11}
    assert scope.can_manage_ehad_karkun
    with pytest.raises(ScopeMismatch):
        scope.require_zone(5)


def test_mehfil_admin_zone_and_mehfil_fixed():
    scope = resolve_scope(actor(is_mehfil_admin=True, mehfil_directory_id=11), ZONES, MEHFILS)
    assert scope.level == LEVEL_MEHFIL
    assert scope.fixed_zone_id == 3
    assert scope.fixed_mehfil_id == 11
    assert not (scope.can_choose_region or scope.can_choose_zone or scope.can_choose_mehfil)
    assert not scope.can_manage_ehad_karkun
    assert not scope.can_manage_zone


def test_mehfil_admin_cannot_touch_zone_level_rosters():
    scope = resolve_scope(actor(is_mehfil_admin=True, mehfil_directory_id=10), ZONES, MEHFILS)
    scope.require_roster_scope(3, 10)
    with pytest.raises(ScopeMismatch):
        scope.require_roster_scope(3, None)
    with pytest.raises(ScopeMismatch):
        scope.require_roster_scope(3, 11)
    with pytest.raises(ScopeMismatch):
        scope.require_user_type("ehad-karkun")


def test_widest_flag_wins():
    scope = resolve_scope(
        actor(is_zone_admin=True, is_region_admin=True, region_ids=frozenset({2}), zone_id=3),
        ZONES, MEHFILS,
    )
    assert scope.level == LEVEL_REGION
    assert scope.allowed_zone_ids == {7}


def test_no_flags_means_empty_scope():
    scope = resolve_scope(actor(zone_id=3, mehfil_directory_id=10), ZONES, MEHFILS)
    assert scope.level == LEVEL_NONE
    assert scope.allowed_zone_ids == frozenset()
    with pytest.raises(ScopeMismatch):
        scope.require_zone(3)


def test_zone_admin_with_unknown_zone_gets_nothing():
    scope = resolve_scope(actor(is_zone_admin=True, zone_id=99), ZONES, MEHFILS)
    assert scope.level == LEVEL_NONE


def test_as_dict_uses_camel_case_keys():
    data = resolve_scope(actor(is_zone_admin=True, zone_id=3), ZONES, MEHFILS).as_dict()
    assert data["fixedZoneId"] == 3
    assert data["allowedMehfilIds"] == [10, 11]
    assert data["canChooseZone"] is False
    assert data["canManageEhadKarkun"] is True
