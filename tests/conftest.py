import os

import pytest

os.environ.setdefault("ENVIRONMENT", "production")  # skip .env loading under test
os.environ.setdefault("CREDENTIAL_BACKEND", "memory")

from fastapi.testclient import TestClient

from fakes import HOUR_MS, NOW, FakeSession
from jukebox.api import deps
from jukebox.main import app
from jukebox.services.credential_store import MemoryCredentialStore
from jukebox.services.spotify_token_service import SpotifyTokenManager


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def store():
    return MemoryCredentialStore()


class FakeClock:
    def __init__(self, value=NOW):
        self.value = value

    def __call__(self):
        return self.value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(store, session, clock):
    return SpotifyTokenManager(
        store=store,
        client_id="client-id",
        client_secret="client-secret",
        session=session,
        clock=clock,
    )


@pytest.fixture
def host_record(store):
    """A host token that is still valid for an hour."""
    return store.save("access-1", "refresh-1", NOW + HOUR_MS)


@pytest.fixture
def client(manager, session):
    app.dependency_overrides[deps.get_token_manager] = lambda: manager
    app.dependency_overrides[deps.get_http_session] = lambda: session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
