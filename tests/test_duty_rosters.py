import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from src.duty_admin.crud.duty_roster import (
    create_roster, assign_duty, clear_duty, update_roster_slots, remove_roster,
    list_rosters_by_scope, list_rosters_by_user, list_consolidated, list_available_karkuns,
    get_roster, parse_weekday, _write_slots,
)
from src.duty_admin.crud.duty_type import get_duty_types_by_ids
from src.duty_admin.models.duty import DutyRoster, Weekday
from src.duty_admin.schemas.duty_roster import DutyRosterCreate
from src.duty_admin.utils.database import Base
from src.duty_admin.utils.errors import Conflict, ScopeMismatch, ValidationFailed, NotFound
from src.duty_admin.utils.scope import resolve_scope

from conftest import (
    SUPER, ZONE_ADMIN, MEHFIL_ADMIN, KARKUN_A, KARKUN_B, EHAD_KARKUN, ZONE5_KARKUN, PLAIN,
    SECURITY, LANGAR, PARKING_HIDDEN, ZONE5_DUTY,
)


async def _roster(db, scope, user_id, **kw):
    return await create_roster(db, scope, DutyRosterCreate(user_id=user_id, **kw), created_by=SUPER)


async def test_create_derives_zone_from_mehfil(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    row = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    assert row.zone_id == 3
    assert row.mehfil_directory_id == 10
    assert row.slots() == {day: None for day in Weekday}
    assert row.user.name == "Ahmed"


async def test_create_with_mismatched_zone_and_mehfil(db, scope_of):
    scope = await scope_of(SUPER)
    with pytest.raises(ScopeMismatch):
        await _roster(db, scope, KARKUN_A, zone_id=5, mehfil_directory_id=10)


async def test_duplicate_roster_is_conflict(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    with pytest.raises(Conflict):
        await _roster(db, scope, KARKUN_A, zone_id=3, mehfil_directory_id=10)
    # zone-level roster of the same user is a different triple
    await _roster(db, scope, KARKUN_A, zone_id=3)


async def test_duplicate_zone_level_roster_is_conflict(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    await _roster(db, scope, EHAD_KARKUN, zone_id=3)
    with pytest.raises(Conflict):
        await _roster(db, scope, EHAD_KARKUN, zone_id=3)


async def test_create_with_initial_slots(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    payload = DutyRosterCreate(
        user_id=KARKUN_A, mehfil_directory_id=10,
        duty_type_id_monday=SECURITY, duty_type_id_thursday=LANGAR,
    )
    row = await create_roster(db, scope, payload)
    assert row.get_slot(Weekday.monday) == SECURITY
    assert row.get_slot(Weekday.thursday) == LANGAR
    assert row.get_slot(Weekday.friday) is None


async def test_create_with_bad_initial_slot_writes_nothing(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    payload = DutyRosterCreate(
        user_id=KARKUN_A, mehfil_directory_id=10,
        duty_type_id_monday=SECURITY, duty_type_id_tuesday=ZONE5_DUTY,
    )
    with pytest.raises(ScopeMismatch):
        await create_roster(db, scope, payload)
    assert (await db.execute(select(DutyRoster))).first() is None


async def test_assign_duty_from_other_zone_is_scope_mismatch(db, scope_of):
    scope = await scope_of(SUPER)
    roster = await _roster(db, scope, KARKUN_A, zone_id=3)
    with pytest.raises(ScopeMismatch):
        await assign_duty(db, scope, roster.id, "monday", ZONE5_DUTY)
    assert (await get_roster(db, roster.id)).get_slot(Weekday.monday) is None


async def test_assign_then_overwrite_monday(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)

    roster = await assign_duty(db, scope, roster.id, "monday", SECURITY)
    assert roster.get_slot(Weekday.monday) == SECURITY

    roster = await assign_duty(db, scope, roster.id, "Monday", LANGAR)
    assert roster.get_slot(Weekday.monday) == LANGAR
    assert roster.assigned_duty_type_ids() == {LANGAR}


async def test_hidden_duty_type_can_be_assigned(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    roster = await assign_duty(db, scope, roster.id, "sunday", PARKING_HIDDEN)
    assert roster.get_slot(Weekday.sunday) == PARKING_HIDDEN


async def test_assign_missing_duty_type_is_not_found(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    with pytest.raises(NotFound):
        await assign_duty(db, scope, roster.id, "monday", 999)


async def test_invalid_day_is_validation_failed(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    with pytest.raises(ValidationFailed):
        await assign_duty(db, scope, roster.id, "someday", SECURITY)
    with pytest.raises(ValidationFailed):
        parse_weekday(None)


async def test_clear_duty_is_idempotent(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await assign_duty(db, scope, roster.id, "friday", SECURITY)

    first = await clear_duty(db, scope, roster.id, "friday")
    assert first.get_slot(Weekday.friday) is None
    second = await clear_duty(db, scope, roster.id, "friday")
    assert second.slots() == first.slots()


async def test_update_slots_leaves_other_days(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await assign_duty(db, scope, roster.id, "monday", SECURITY)

    roster = await update_roster_slots(
        db, scope, roster.id, {Weekday.tuesday: LANGAR, Weekday.wednesday: SECURITY}
    )
    assert roster.get_slot(Weekday.monday) == SECURITY
    assert roster.get_slot(Weekday.tuesday) == LANGAR

    roster = await update_roster_slots(db, scope, roster.id, {Weekday.monday: None})
    assert roster.get_slot(Weekday.monday) is None
    assert roster.get_slot(Weekday.wednesday) == SECURITY


async def test_every_slot_belongs_to_roster_zone(db, scope_of):
    scope = await scope_of(SUPER)
    a = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    b = await _roster(db, scope, ZONE5_KARKUN, mehfil_directory_id=20)
    await assign_duty(db, scope, a.id, "monday", SECURITY)
    await assign_duty(db, scope, b.id, "monday", ZONE5_DUTY)
    for bad in ((a.id, ZONE5_DUTY), (b.id, SECURITY)):
        with pytest.raises(ScopeMismatch):
            await assign_duty(db, scope, bad[0], "tuesday", bad[1])

    rows = (await db.execute(select(DutyRoster))).scalars().unique().all()
    types = await get_duty_types_by_ids(db, {i for r in rows for i in r.assigned_duty_type_ids()})
    for r in rows:
        for duty_type_id in r.assigned_duty_type_ids():
            assert types[duty_type_id].zone_id == r.zone_id


async def test_remove_roster(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await assign_duty(db, scope, roster.id, "monday", SECURITY)
    await remove_roster(db, scope, roster.id)
    assert await get_roster(db, roster.id) is None
    with pytest.raises(NotFound):
        await remove_roster(db, scope, roster.id)


async def test_mehfil_admin_bound_to_own_mehfil(db, scope_of):
    zone_scope = await scope_of(ZONE_ADMIN)
    other = await _roster(db, zone_scope, PLAIN, mehfil_directory_id=11)

    scope = await scope_of(MEHFIL_ADMIN)
    own = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await assign_duty(db, scope, own.id, "monday", SECURITY)
    with pytest.raises(ScopeMismatch):
        await assign_duty(db, scope, other.id, "monday", SECURITY)
    with pytest.raises(ScopeMismatch):
        await _roster(db, scope, KARKUN_B, zone_id=3)

    rows, total = await list_rosters_by_scope(db, scope)
    assert total == 1
    assert [r.id for r in rows] == [own.id]


async def test_ehad_karkun_rosters_need_zone_admin(db, scope_of):
    with pytest.raises(ScopeMismatch):
        await _roster(db, await scope_of(MEHFIL_ADMIN), EHAD_KARKUN, mehfil_directory_id=10)
    row = await _roster(db, await scope_of(ZONE_ADMIN), EHAD_KARKUN, zone_id=3)
    assert row.zone_id == 3


async def test_list_by_scope_search_and_pagination(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    for user_id in (KARKUN_A, KARKUN_B, PLAIN):
        await _roster(db, scope, user_id, zone_id=3)

    rows, total = await list_rosters_by_scope(db, scope, limit=2, offset=0)
    assert total == 3
    assert [r.user.name for r in rows] == ["Ahmed", "Bilal"]

    rows, total = await list_rosters_by_scope(db, scope, q="ghul")
    assert total == 1
    assert rows[0].user_id == PLAIN


async def test_list_by_user(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await _roster(db, scope, KARKUN_A, zone_id=3)
    rows = await list_rosters_by_user(db, scope, KARKUN_A)
    assert len(rows) == 2
    with pytest.raises(NotFound):
        await list_rosters_by_user(db, scope, 999)


async def test_consolidated_lists_zero_day_users(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    a = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await _roster(db, scope, KARKUN_B, mehfil_directory_id=10)
    await assign_duty(db, scope, a.id, "monday", SECURITY)

    entries, total = await list_consolidated(db, scope, zone_id=3, mehfil_id=10)
    assert total == 2
    by_user = {e["user_id"]: e for e in entries}
    assert by_user[KARKUN_A]["duties"]["monday"][0]["duty_type"]["name"] == "Security"
    assert all(bucket == [] for bucket in by_user[KARKUN_B]["duties"].values())


async def test_consolidated_paginates_over_users(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await _roster(db, scope, KARKUN_A, zone_id=3)
    await _roster(db, scope, KARKUN_B, mehfil_directory_id=10)
    await _roster(db, scope, EHAD_KARKUN, zone_id=3)

    entries, total = await list_consolidated(db, scope, zone_id=3, limit=2, offset=0)
    assert total == 3
    assert [e["user_id"] for e in entries] == [KARKUN_A, KARKUN_B]
    assert len(entries[0]["roster_ids"]) == 2

    entries, total = await list_consolidated(db, scope, zone_id=3, user_type="ehad-karkun")
    assert total == 1
    assert entries[0]["user_id"] == EHAD_KARKUN


async def test_available_karkuns_excludes_rostered(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    users = await list_available_karkuns(db, scope, 3, mehfil_id=10)
    assert [u.id for u in users] == [KARKUN_B]

    users = await list_available_karkuns(db, scope, 3, user_type="ehad-karkun")
    assert [u.id for u in users] == [EHAD_KARKUN]


@pytest.mark.parametrize("zone_id", [3, None])
async def test_database_rejects_duplicate_rows_without_mehfil(db, zone_id):
    db.add_all([
        DutyRoster(user_id=EHAD_KARKUN, zone_id=zone_id),
        DutyRoster(user_id=EHAD_KARKUN, zone_id=zone_id),
    ])
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()


async def test_concurrent_zone_level_create_leaves_single_row(tmp_path, seed):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'roster_race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    async with Session() as session:
        await seed(session)

    scope = resolve_scope(
        SimpleNamespace(is_super_admin=True),
        [SimpleNamespace(id=3, region_id=1)],
        [SimpleNamespace(id=10, zone_id=3)],
    )
    payload = DutyRosterCreate(user_id=EHAD_KARKUN, zone_id=3)
    try:
        async with Session() as s1, Session() as s2:
            results = await asyncio.gather(
                create_roster(s1, scope, payload),
                create_roster(s2, scope, payload),
                return_exceptions=True,
            )
        conflicts = [r for r in results if isinstance(r, Conflict)]
        created = [r for r in results if isinstance(r, DutyRoster)]
        assert len(conflicts) == 1
        assert len(created) == 1

        async with Session() as session:
            count = await session.scalar(
                select(func.count()).select_from(DutyRoster).where(DutyRoster.user_id == EHAD_KARKUN)
            )
        assert count == 1
    finally:
        await engine.dispose()


async def test_slot_write_on_deleted_roster_is_not_found(db, scope_of):
    scope = await scope_of(ZONE_ADMIN)
    roster = await _roster(db, scope, KARKUN_A, mehfil_directory_id=10)
    await db.execute(
        delete(DutyRoster).where(DutyRoster.id == roster.id).execution_options(synchronize_session=False)
    )
    await db.commit()
    with pytest.raises(NotFound):
        await _write_slots(db, roster, {Weekday.monday: SECURITY}, ZONE_ADMIN)


# -------- HTTP --------
async def test_roster_endpoints(client, auth):
    headers = auth(ZONE_ADMIN)

    resp = await client.post(
        "/duty-rosters-data/add",
        json={"user_id": KARKUN_A, "mehfil_directory_id": 10, "duty_type_id_monday": SECURITY},
        headers=headers,
    )
    assert resp.status_code == 201
    roster = resp.json()["data"]
    assert roster["zone_id"] == 3
    assert roster["duty_type_id_monday"] == SECURITY

    resp = await client.post(
        "/duty-rosters-data/add-duty",
        json={"rosterId": roster["id"], "day": "wednesday", "dutyTypeId": LANGAR},
        headers=headers,
    )
    assert resp.json()["data"]["duty_type_id_wednesday"] == LANGAR

    resp = await client.put(
        f"/duty-rosters-data/update/{roster['id']}",
        json={"duty_type_id_monday": None},
        headers=headers,
    )
    data = resp.json()["data"]
    assert data["duty_type_id_monday"] is None
    assert data["duty_type_id_wednesday"] == LANGAR

    resp = await client.delete(f"/duty-rosters-data/remove-duty/{roster['id']}/wednesday", headers=headers)
    assert resp.json()["data"]["duty_type_id_wednesday"] is None

    resp = await client.get(f"/duty-rosters-data/karkun/{KARKUN_A}", headers=headers)
    assert [r["id"] for r in resp.json()["data"]] == [roster["id"]]

    resp = await client.delete(f"/duty-rosters-data/{roster['id']}", headers=headers)
    assert resp.status_code == 200
    resp = await client.get(f"/duty-rosters-data/{roster['id']}", headers=headers)
    assert resp.status_code == 404


async def test_add_duty_wrong_zone_over_http_is_403(client, auth):
    headers = auth(SUPER)
    resp = await client.post("/duty-rosters-data/add", json={"user_id": KARKUN_A, "zone_id": 3}, headers=headers)
    roster_id = resp.json()["data"]["id"]
    resp = await client.post(
        "/duty-rosters-data/add-duty",
        json={"roster_id": roster_id, "day": "monday", "duty_type_id": ZONE5_DUTY},
        headers=headers,
    )
    assert resp.status_code == 403
    assert resp.json()["error_type"] == "ScopeMismatch"


async def test_remove_duty_bad_day_is_422(client, auth):
    headers = auth(SUPER)
    resp = await client.post("/duty-rosters-data/add", json={"user_id": KARKUN_A, "zone_id": 3}, headers=headers)
    roster_id = resp.json()["data"]["id"]
    resp = await client.delete(f"/duty-rosters-data/remove-duty/{roster_id}/funday", headers=headers)
    assert resp.status_code == 422
    assert resp.json()["error_type"] == "ValidationFailed"


async def test_duplicate_add_over_http_is_409(client, auth):
    headers = auth(ZONE_ADMIN)
    payload = {"user_id": KARKUN_A, "mehfil_directory_id": 10}
    assert (await client.post("/duty-rosters-data/add", json=payload, headers=headers)).status_code == 201
    resp = await client.post("/duty-rosters-data/add", json=payload, headers=headers)
    assert resp.status_code == 409


async def test_consolidated_endpoint_flags(client, auth):
    headers = auth(ZONE_ADMIN)
    await client.post("/duty-rosters-data/add", json={"user_id": KARKUN_A, "mehfil_directory_id": 10}, headers=headers)

    resp = await client.get("/duty-rosters-data", params={"mehfilDirectoryId": 10}, headers=headers)
    body = resp.json()
    assert body["totalItems"] == 1
    assert body["isReadOnly"] is False
    assert body["showTable"] is True
    assert body["data"][0]["user"]["name"] == "Ahmed"

    resp = await client.get("/duty-rosters-data", headers=headers)
    assert resp.json()["isReadOnly"] is True

    resp = await client.get("/duty-rosters-data", params={"userTypeFilter": "nobody"}, headers=headers)
    assert resp.status_code == 422


async def test_available_karkuns_endpoint(client, auth):
    resp = await client.get(
        "/duty-rosters-data/available-karkuns",
        params={"mehfilDirectoryId": 10},
        headers=auth(MEHFIL_ADMIN),
    )
    assert {u["id"] for u in resp.json()["data"]} == {KARKUN_A, KARKUN_B}
