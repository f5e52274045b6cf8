import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from splitease.db import get_session, init_db
from splitease.main import app
from splitease.models.user import User
from splitease.routes.group import require_user


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    return engine


@pytest.fixture
def current_user():
    return {}


@pytest.fixture
def client(engine, current_user):
    def _session():
        with Session(engine) as s:
            yield s

    def _require_user():
        if not current_user:
            raise HTTPException(status_code=401, detail="Login required")
        return current_user

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[require_user] = _require_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(engine):
    def _make(name):
        with Session(engine) as s:
            u = User(name=name, email=f"{name.lower()}@example.com")
            s.add(u)
            s.commit()
            s.refresh(u)
            return {"id": u.id, "name": u.name, "email": u.email}
    return _make


@pytest.fixture
def login(current_user):
    def _login(user):
        current_user.clear()
        current_user.update(user)
    return _login


@pytest.fixture
def trio(client, make_user, login):
    """Alice (admin) with Bob and Carol in one group; Alice is logged in."""
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    login(alice)
    group = client.post("/groups", json={"name": "Trip"}).json()
    for u in (bob, carol):
        r = client.post(f"/groups/{group['id']}/members", json={"user_id": u["id"]})
        assert r.status_code == 201
    return alice, bob, carol, group
