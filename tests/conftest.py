# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from haircare.database import build_engine, init_db, open_session
from haircare.main import create_app
from haircare.models.profile import Profile
from haircare.realtime.live_sync import LiveSyncChannel


class FakeClock:
    """Strictly increasing clock: every call advances by one second."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def live_sync() -> LiveSyncChannel:
    return LiveSyncChannel()


@pytest.fixture
def session(engine, live_sync):
    with open_session(engine, live_sync) as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_profile(session):
    def _make(user_id: str = "user-1", **fields) -> Profile:
        fields.setdefault("email", f"{user_id}@example.com")
        profile = Profile(id=user_id, **fields)
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def client(engine, live_sync):
    app = create_app(engine=engine, live_sync=live_sync)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sign_in(client):
    """Sign in through the API and return Authorization headers."""

    def _sign_in(email: str = "ana@example.com") -> dict[str, str]:
        response = client.post("/auth/session", json={"email": email})
        assert response.status_code == 201, response.text
        # Rely on the explicit header only
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _sign_in
