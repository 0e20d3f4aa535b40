# jukebox/services/spotify_token_service.py
import logging
import threading
import time
from typing import Callable, Dict, Optional

import requests

from jukebox.config import settings
from jukebox.models.token_model import CredentialRecord
from jukebox.services.credential_store import CredentialStore
from jukebox.services.errors import ExchangeFailed, InternalConfigError, TokenRefreshError

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


def now_ms() -> int:
    return int(time.time() * 1000)


def _error_description(r: requests.Response) -> Optional[str]:
    try:
        body = r.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return body.get("error_description") or body.get("error")


class SpotifyTokenManager:
    """
    Single source of truth for "is there a usable host token right now".

    - exchange_authorization_code(): code → token payload（由 API 層負責存）
    - get_valid_token(): 回傳可用的 access_token，快過期就先 refresh
    """

    def __init__(
        self,
        store: CredentialStore,
        client_id: str = "",
        client_secret: str = "",
        session: Optional[requests.Session] = None,
        token_url: str = settings.SPOTIFY_ACCOUNTS_URL,
        timeout: float = settings.SPOTIFY_REQUEST_TIMEOUT,
        refresh_margin_ms: int = settings.TOKEN_REFRESH_MARGIN_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session or requests.Session()
        self.token_url = token_url
        self.timeout = timeout
        self.refresh_margin_ms = refresh_margin_ms
        self.clock = clock
        self._refresh_lock = threading.Lock()

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def is_expiring(self, record: CredentialRecord) -> bool:
        return self.clock() >= record.expires_at - self.refresh_margin_ms

    def get_record(self) -> Optional[CredentialRecord]:
        return self.store.load()

    # --------------------------
    # Token endpoint
    # --------------------------
    def _post_token(self, payload: Dict[str, str]) -> requests.Response:
        return self.session.post(
            self.token_url,
            data=payload,
            auth=(self.client_id, self.client_secret),
            timeout=self.timeout,
        )

    def exchange_authorization_code(self, code: str, redirect_uri: str) -> Dict:
        if not self.has_client_credentials:
            raise InternalConfigError()

        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri.strip(),
        }
        try:
            r = self._post_token(payload)
        except requests.RequestException as e:
            logger.error("Token exchange request failed: %s", e)
            raise ExchangeFailed() from e

        if not r.ok:
            message = _error_description(r)
            logger.error("Token exchange rejected (%s): %s", r.status_code, message)
            raise ExchangeFailed(message)

        try:
            token_data = r.json()
        except ValueError as e:
            raise ExchangeFailed() from e

        if not isinstance(token_data, dict):
            raise ExchangeFailed()

        if not token_data.get("access_token"):
            raise ExchangeFailed("Token exchange returned no access token")
        return token_data

    def store_token_response(self, token_data: Dict) -> CredentialRecord:
        expires_in = token_data.get("expires_in") or DEFAULT_EXPIRES_IN
        expires_at = self.clock() + int(expires_in) * 1000
        record = self.store.save(
            token_data["access_token"],
            token_data.get("refresh_token"),
            expires_at,
        )
        logger.info("Host token stored, expires at %s", expires_at)
        return record

    def _refresh(self, refresh_token: str) -> CredentialRecord:
        if not self.has_client_credentials:
            raise TokenRefreshError("Spotify client credentials are not configured", reason="no_client_credentials")

        try:
            r = self._post_token({
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            })
        except requests.RequestException as e:
            raise TokenRefreshError(str(e), reason="network") from e

        if not r.ok:
            raise TokenRefreshError(
                _error_description(r) or f"HTTP {r.status_code}",
                reason="rejected",
            )

        try:
            new_token = r.json()
        except ValueError as e:
            raise TokenRefreshError("Refresh response is not JSON", reason="bad_response") from e

        if not isinstance(new_token, dict):
            raise TokenRefreshError("Refresh response is not an object", reason="bad_response")

        if not new_token.get("access_token"):
            raise TokenRefreshError("Refresh response has no access_token", reason="bad_response")

        # 沒回 refresh_token 時 store.save 會沿用舊的
        return self.store_token_response(new_token)

    # --------------------------
    # Public entry point
    # --------------------------
    def get_valid_token(self) -> Optional[str]:
        record = self.store.load()
        if record is None:
            return None

        if not self.is_expiring(record):
            return record.access_token

        if not record.refresh_token:
            logger.warning("Host token expired and no refresh token is stored, re-authorization required")
            return None

        with self._refresh_lock:
            # Another request may have refreshed while we waited
            current = self.store.load() or record
            if not self.is_expiring(current):
                return current.access_token

            logger.info("Host token expiring, refreshing")
            try:
                refreshed = self._refresh(current.refresh_token or record.refresh_token)
            except TokenRefreshError as e:
                logger.warning("Token refresh failed (%s): %s", e.reason, e.message)
                return None

        return refreshed.access_token
