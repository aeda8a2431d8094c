from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yardpass.config import settings
from yardpass.database import Base, get_db
from yardpass.models import Apartment, Building, Resident, User
from yardpass.models.user import ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.services.auth import create_user_token, get_password_hash, local_timestamp
from yardpass.services.quiet_hours import get_building_tz

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)
SERVICE_TOKEN = "test-service-token"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def local_time(*args) -> datetime:
    """Время по часам здания (settings.TIMEZONE)"""
    return get_building_tz().localize(datetime(*args))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db, username: str, role: str, building_id=None) -> User:
    user = User(
        username=username,
        password_hash=PASSWORD_HASH,
        role=role,
        building_id=building_id,
        is_active=1,
        created_at=local_timestamp(),
    )
    db.add(user)
    return user


@pytest.fixture
def seed(db):
    """Два здания: в каждом квартира с жителем, охранник и администратор"""
    main = Building(name="ЖК Северный", address="ул. Ленина, 1")
    other = Building(name="ЖК Южный", address="ул. Мира, 5")
    db.add_all([main, other])
    db.flush()

    apartment = Apartment(building_id=main.id, number="12", floor=3)
    other_apartment = Apartment(building_id=other.id, number="7", floor=1)
    db.add_all([apartment, other_apartment])
    db.flush()

    resident = Resident(apartment_id=apartment.id, telegram_id=1001, chat_id=1001, name="Иван")
    neighbour = Resident(apartment_id=apartment.id, telegram_id=1002, chat_id=None, name="Мария")
    other_resident = Resident(apartment_id=other_apartment.id, telegram_id=2001, chat_id=2001, name="Петр")
    db.add_all([resident, neighbour, other_resident])

    guard = _make_user(db, "guard", ROLE_GUARD, main.id)
    admin = _make_user(db, "admin", ROLE_ADMIN, main.id)
    other_admin = _make_user(db, "admin2", ROLE_ADMIN, other.id)
    superuser = _make_user(db, "root", ROLE_SUPERUSER)
    db.commit()

    return SimpleNamespace(
        building=main,
        other_building=other,
        apartment=apartment,
        other_apartment=other_apartment,
        resident=resident,
        neighbour=neighbour,
        other_resident=other_resident,
        guard=guard,
        admin=admin,
        other_admin=other_admin,
        superuser=superuser,
    )


@pytest.fixture
def client(db, monkeypatch):
    from yardpass.main import app
    from yardpass.api.deps import create_pass_limiter

    def override_get_db():
        yield db

    monkeypatch.setattr(settings, "SERVICE_TOKEN", SERVICE_TOKEN)
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "")
    create_pass_limiter.reset()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    create_pass_limiter.reset()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def service_headers() -> dict:
    return {"X-Service-Token": SERVICE_TOKEN}
