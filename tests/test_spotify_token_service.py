import threading

import pytest
import requests

from fakes import HOUR_MS, NOW, FakeResponse
from jukebox.services.errors import ExchangeFailed, InternalConfigError
from jukebox.services.spotify_token_service import SpotifyTokenManager

MARGIN_MS = 300_000


class TestGetValidToken:
    def test_no_record_returns_none_without_network(self, manager, session):
        assert manager.get_valid_token() is None
        assert session.calls == []

    def test_fresh_token_is_returned_unchanged(self, manager, store, session):
        store.save("access-1", "refresh-1", NOW + MARGIN_MS + 1)

        assert manager.get_valid_token() == "access-1"
        assert session.calls == []

    def test_expiring_token_is_refreshed_once(self, manager, store, session):
        store.save("access-1", "refresh-1", NOW + MARGIN_MS)
        session.add("POST", "api/token", FakeResponse(200, {
            "access_token": "access-2",
            "expires_in": 3600,
            "refresh_token": "refresh-2",
        }))

        assert manager.get_valid_token() == "access-2"

        calls = session.calls_to("POST", "api/token")
        assert len(calls) == 1
        assert calls[0]["data"] == {"grant_type": "refresh_token", "refresh_token": "refresh-1"}
        assert calls[0]["auth"] == ("client-id", "client-secret")

        record = store.load()
        assert record.access_token == "access-2"
        assert record.refresh_token == "refresh-2"
        assert record.expires_at == NOW + HOUR_MS

    def test_refresh_without_new_refresh_token_keeps_old(self, manager, store, session):
        store.save("access-1", "refresh-1", NOW - 1)
        session.add("POST", "api/token", FakeResponse(200, {"access_token": "access-2", "expires_in": 1800}))

        assert manager.get_valid_token() == "access-2"
        record = store.load()
        assert record.refresh_token == "refresh-1"
        assert record.expires_at == NOW + 1800 * 1000

    def test_expired_without_refresh_token_returns_none(self, manager, store, session):
        store.save("access-1", None, NOW - 1)

        assert manager.get_valid_token() is None
        assert session.calls == []

    @pytest.mark.parametrize("outcome", [
        FakeResponse(400, {"error": "invalid_grant", "error_description": "Refresh token revoked"}),
        FakeResponse(500, text="<html>oops</html>"),
        FakeResponse(200, {"token_type": "Bearer"}),
        FakeResponse(200, []),
        FakeResponse(200, text='"oops"'),
        FakeResponse(200, text="null"),
        requests.ConnectionError("network down"),
        requests.Timeout("too slow"),
    ])
    def test_refresh_failures_return_none(self, manager, store, session, outcome):
        store.save("access-1", "refresh-1", NOW - 1)
        session.add("POST", "api/token", outcome)

        assert manager.get_valid_token() is None
        assert len(session.calls) == 1
        # The old record is left alone
        assert store.load().access_token == "access-1"

    def test_refresh_without_client_credentials_returns_none(self, store, session, clock):
        store.save("access-1", "refresh-1", NOW - 1)
        manager = SpotifyTokenManager(store=store, session=session, clock=clock)

        assert manager.get_valid_token() is None
        assert session.calls == []

    def test_concurrent_callers_share_one_refresh(self, manager, store, session):
        store.save("access-1", "refresh-1", NOW - 1)
        session.add("POST", "api/token", FakeResponse(200, {"access_token": "access-2", "expires_in": 3600}))

        results = []
        barrier = threading.Barrier(4)

        def worker():
            barrier.wait()
            results.append(manager.get_valid_token())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == ["access-2"] * 4
        assert len(session.calls_to("POST", "api/token")) == 1


class TestExchangeAuthorizationCode:
    def test_successful_exchange(self, manager, session):
        session.add("POST", "api/token", FakeResponse(200, {
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 3600,
        }))

        data = manager.exchange_authorization_code("the-code", "  http://localhost:5173/callback ")

        assert data["access_token"] == "access-1"
        assert session.calls[0]["data"] == {
            "grant_type": "authorization_code",
            "code": "the-code",
            "redirect_uri": "http://localhost:5173/callback",
        }

    def test_provider_error_description_is_kept(self, manager, session):
        session.add("POST", "api/token", FakeResponse(400, {
            "error": "invalid_grant",
            "error_description": "Invalid authorization code",
        }))

        with pytest.raises(ExchangeFailed) as exc:
            manager.exchange_authorization_code("bad", "http://localhost/callback")
        assert exc.value.message == "Invalid authorization code"

    def test_unparseable_error_uses_generic_message(self, manager, session):
        session.add("POST", "api/token", FakeResponse(502, text="Bad Gateway"))

        with pytest.raises(ExchangeFailed) as exc:
            manager.exchange_authorization_code("code", "http://localhost/callback")
        assert exc.value.message == "Token exchange failed"

    @pytest.mark.parametrize("outcome", [
        FakeResponse(200, []),
        FakeResponse(200, text='"oops"'),
        FakeResponse(200, text="not json"),
    ])
    def test_success_status_with_unusable_body(self, manager, session, outcome):
        session.add("POST", "api/token", outcome)

        with pytest.raises(ExchangeFailed) as exc:
            manager.exchange_authorization_code("code", "http://localhost/callback")
        assert exc.value.message == "Token exchange failed"

    def test_network_error(self, manager, session):
        session.add("POST", "api/token", requests.ConnectionError("boom"))

        with pytest.raises(ExchangeFailed):
            manager.exchange_authorization_code("code", "http://localhost/callback")

    def test_missing_client_credentials(self, store, session, clock):
        manager = SpotifyTokenManager(store=store, client_id="id", session=session, clock=clock)

        with pytest.raises(InternalConfigError):
            manager.exchange_authorization_code("code", "http://localhost/callback")
        assert session.calls == []


def test_store_token_response_defaults_expiry(manager, store):
    record = manager.store_token_response({"access_token": "access-1"})

    assert record.expires_at == NOW + HOUR_MS
    assert store.load() == record
