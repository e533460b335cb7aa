"""Pytest configuration and fixtures."""

import os

# Must be set before edupeer modules read their configuration.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SESSION_SECRET", "test-secret")

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from edupeer.database import get_engine, get_sessionmaker
from edupeer.main import app
from edupeer.models import Base


@dataclass
class Actor:
    """A logged-in user together with the client carrying their cookie."""
    client: TestClient
    user: Dict[str, Any]

    @property
    def id(self) -> int:
        return self.user["id"]


def in_days(days: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@pytest.fixture(autouse=True)
def fresh_database():
    engine = get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_session():
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Anonymous test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user():
    """Factory registering a user, setting their skills and keeping them logged in."""
    clients = []

    def _make(username, teach=(), learn=(), fullname=None) -> Actor:
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)

        resp = test_client.post("/api/users/register", json={
            "username": username,
            "password": "secret-pass",
            "fullname": fullname or username.title(),
        })
        assert resp.status_code == 201, resp.text
        user = resp.json()

        if teach or learn:
            resp = test_client.post("/api/users/profile", json={
                "teachSkills": list(teach),
                "learnSkills": list(learn),
            })
            assert resp.status_code == 200, resp.text
            user = resp.json()

        return Actor(client=test_client, user=user)

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def exchange_pair(make_user):
    """Alice teaches Python and wants Spanish; Bob is the mirror image."""
    alice = make_user("alice", teach=["Python"], learn=["Spanish"])
    bob = make_user("bob", teach=["Spanish"], learn=["Python"])
    return alice, bob


@pytest.fixture
def pending_request(exchange_pair):
    alice, bob = exchange_pair
    resp = alice.client.post("/api/pairing-requests", json={
        "recipientId": bob.id,
        "teachSkills": ["Python"],
        "learnSkills": ["Spanish"],
        "message": "Swap Python for Spanish?",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def accepted_request(exchange_pair, pending_request):
    _, bob = exchange_pair
    resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "accepted"})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def scheduled_session(exchange_pair, accepted_request):
    alice, _ = exchange_pair
    resp = alice.client.post("/api/sessions", json={
        "requestId": accepted_request["id"],
        "scheduledDate": in_days(2),
        "duration": 60,
        "location": "online",
        "notes": "Bring questions",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
