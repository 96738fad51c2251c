"""Shared fixtures: an in-memory database behind the FastAPI app."""

import os

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from client.agent import Agent
from database import Base, get_db
from main import app
from models.group import Group
from models.site import Site
from models.users import User, ROLE_ADMIN, ROLE_MEMBER
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "Secret1!"
# Hashed once; bcrypt is deliberately slow
PASSWORD_HASH = get_password_hash(PASSWORD)

# Monday of the week most tests schedule into
MONDAY = datetime(2024, 6, 3)

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    # The app and the test share one session so assertions see committed rows
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def site(db):
    site = Site(name="Downtown")
    site.groups = [Group(name="Bar"), Group(name="Kitchen")]
    db.add(site)
    db.commit()
    db.refresh(site)
    return site


@pytest.fixture
def other_site(db):
    site = Site(name="Uptown")
    site.groups = [Group(name="Floor")]
    db.add(site)
    db.commit()
    db.refresh(site)
    return site


@pytest.fixture
def make_user(db):
    def _make_user(email, *, role=ROLE_MEMBER, site=None, group=None, first_name=None, surname=None,
                   password_hash=PASSWORD_HASH):
        user = User(
            email=email,
            password_hash=password_hash,
            role=role,
            first_name=first_name,
            surname=surname,
            sites=[site] if site else [],
            groups=[group] if group else [],
            default_site_id=site.id if site else None,
            default_group_id=group.id if group else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user, site):
    return make_user("admin@inntrac.io", role=ROLE_ADMIN, site=site, group=site.groups[0],
                     first_name="Ada", surname="Admin")


@pytest.fixture
def member(make_user, site):
    return make_user("anna@inntrac.io", site=site, group=site.groups[1],
                     first_name="Anna", surname="Kowalska")


def token_for(user):
    return create_access_token({"sub": user.email, "role": user.role})


def headers_for(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def member_headers(member):
    return headers_for(member)


@pytest.fixture
def agent(client):
    return Agent(http=client)


@pytest.fixture
def admin_agent(client, admin):
    return Agent(http=client, token=token_for(admin))
