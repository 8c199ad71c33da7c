import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aquora.auth import repository as auth_repository
from aquora.auth.security import PasswordHasher, TokenCodec
from aquora.auth.service import AuthService
from aquora.core.config import Settings
from aquora.db.init_db import init_db
from aquora.main import create_app
from aquora.societies import repository as societies_repository

TEST_SECRET = "test-secret-0123456789abcdef0123456789"
PASSWORD = "correct-horse-9"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENV="test",
        DATABASE_URL="sqlite://",
        AUTH_ACCESS_TOKEN_SECRET=TEST_SECRET,
        AUTH_ACCESS_TOKEN_TTL="15m",
        AUTH_REFRESH_TOKEN_TTL_DAYS=30,
        BCRYPT_COST=8,
        CORS_ORIGINS=["http://localhost:3000"],
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def hasher(settings):
    return PasswordHasher(settings.BCRYPT_COST)


@pytest.fixture
def codec(settings):
    return TokenCodec(settings.AUTH_ACCESS_TOKEN_SECRET, settings.AUTH_ACCESS_TOKEN_TTL)


@pytest.fixture
def auth_service(db, settings, hasher, codec):
    return AuthService(db, settings, hasher, codec)


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def make_user(db, hasher):
    counter = {"n": 0}

    def _make(role="TREASURER", *, society_id=None, mobile_number=None, full_name=None, password=PASSWORD):
        counter["n"] += 1
        user = auth_repository.create_user(
            db,
            mobile_number=mobile_number or f"9477{counter['n']:07d}",
            full_name=full_name or f"User {counter['n']}",
            password_hash=hasher.hash(password),
            role=role,
            preferred_language="EN",
        )
        user.society_id = society_id
        db.commit()
        return user

    return _make


@pytest.fixture
def make_society(db):
    def _make(name="Kandy Water Society", *, is_active=True):
        society = societies_repository.create_society(
            db,
            name=name,
            water_board_reg_no="WB-001",
            billing_scheme_json={"plan": "basic"},
        )
        society.is_active = is_active
        db.commit()
        return society

    return _make


@pytest.fixture
def login(client):
    def _login(mobile_number, password=PASSWORD):
        resp = client.post(
            "/api/v1/auth/login",
            json={"mobileNumber": mobile_number, "password": password},
            headers={"X-Auth-Return-Refresh-Token": "true"},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _login


@pytest.fixture
def bearer(login):
    def _bearer(mobile_number, password=PASSWORD):
        return {"Authorization": f"Bearer {login(mobile_number, password)['accessToken']}"}

    return _bearer
