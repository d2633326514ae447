import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"

import httpx
import pytest

from src.duty_admin.app import app
from src.duty_admin.models import Region, Zone, MehfilDirectory, User, DutyType
from src.duty_admin.utils.database import AsyncSessionLocal, engine, create_all, drop_all
from src.duty_admin.utils.permissions import load_scope
from src.duty_admin.utils.security import create_access_token

# Users by role
SUPER = 1
REGION_ADMIN = 2
ZONE_ADMIN = 3
MEHFIL_ADMIN = 4
KARKUN_A = 5
KARKUN_B = 6
EHAD_KARKUN = 7
ZONE5_KARKUN = 8
PLAIN = 9

# Duty types
SECURITY = 1
LANGAR = 2
PARKING_HIDDEN = 3
LOCKED = 4
ZONE5_DUTY = 5


def _user(id, name, **kw):
    kw.setdefault("user_type", "karkun")
    return User(id=id, name=name, email=f"user{id}@example.org", extra_regions=[], **kw)


async def seed_reference(session):
    """Two regions, three zones, three mehfils, one user per role, five duty types."""
    session.add_all([Region(id=1, name="North"), Region(id=2, name="South")])
    await session.flush()
    session.add_all([
        Zone(id=3, region_id=1, title="Zone Three", city="Lahore"),
        Zone(id=5, region_id=1, title="Zone Five", city="Multan"),
        Zone(id=7, region_id=2, title="Zone Seven", city="Karachi"),
    ])
    await session.flush()
    session.add_all([
        MehfilDirectory(id=10, zone_id=3, mehfil_number="10", name="Mehfil Ten"),
        MehfilDirectory(id=11, zone_id=3, mehfil_number="2", name="Mehfil Two"),
        MehfilDirectory(id=20, zone_id=5, mehfil_number="1", name="Mehfil One"),
    ])
    await session.flush()
    session.add_all([
        _user(SUPER, "Super Admin", user_type="admin", is_super_admin=True),
        _user(REGION_ADMIN, "Region Admin", user_type="admin", is_region_admin=True, region_id=1),
        _user(ZONE_ADMIN, "Zone Admin", user_type="admin", is_zone_admin=True, region_id=1, zone_id=3),
        _user(MEHFIL_ADMIN, "Mehfil Admin", user_type="admin", is_mehfil_admin=True,
              region_id=1, zone_id=3, mehfil_directory_id=10),
        _user(KARKUN_A, "Ahmed", zone_id=3, mehfil_directory_id=10),
        _user(KARKUN_B, "Bilal", zone_id=3, mehfil_directory_id=10),
        _user(EHAD_KARKUN, "Ehsan", user_type="ehad-karkun", zone_id=3),
        _user(ZONE5_KARKUN, "Farhan", zone_id=5, mehfil_directory_id=20),
        _user(PLAIN, "Ghulam", zone_id=3, mehfil_directory_id=11),
    ])
    session.add_all([
        DutyType(id=SECURITY, zone_id=3, name="Security"),
        DutyType(id=LANGAR, zone_id=3, name="Langar"),
        DutyType(id=PARKING_HIDDEN, zone_id=3, name="Parking", is_hidden=True),
        DutyType(id=LOCKED, zone_id=3, name="Main Gate", is_editable=False),
        DutyType(id=ZONE5_DUTY, zone_id=5, name="Stage"),
    ])
    await session.commit()


@pytest.fixture
async def db():
    await create_all()
    async with AsyncSessionLocal() as session:
        await seed_reference(session)
    async with AsyncSessionLocal() as session:
        yield session
    await drop_all()
    await engine.dispose()


@pytest.fixture
def scope_of(db):
    async def _scope(user_id):
        user = await db.get(User, user_id)
        return await load_scope(db, user)
    return _scope


@pytest.fixture
def seed():
    return seed_reference


@pytest.fixture
async def client(db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth():
    def _headers(user_id):
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}
    return _headers
