# jukebox/services/spotify_player_service.py
import logging
from typing import Dict, List, Optional

import requests

from jukebox.config import settings
from jukebox.services.errors import (
    BadRequest,
    NoActiveDevice,
    NoActivePlayback,
    NotFound,
    UpstreamError,
)

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 50


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def _error_from_response(r: requests.Response, fallback: str) -> UpstreamError:
    """
    Spotify error bodies look like {"error": {"status": 404, "message": ..., "reason": ...}},
    the accounts service uses {"error": "...", "error_description": "..."}.
    """
    message = None
    reason = None
    try:
        body = r.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            message = err.get("message")
            reason = err.get("reason")
        elif isinstance(err, str):
            message = body.get("error_description") or err

    if reason == "NO_ACTIVE_DEVICE":
        return NoActiveDevice(message, status_code=r.status_code)
    return UpstreamError(message or fallback, status_code=r.status_code)


class SpotifyPlayerService:
    """
    One method per remote capability, all against the host's player.
    Every call needs an already-valid access token.
    """

    def __init__(
        self,
        access_token: str,
        session: Optional[requests.Session] = None,
        timeout: float = settings.SPOTIFY_REQUEST_TIMEOUT,
        base_url: str = settings.SPOTIFY_API_BASE,
    ):
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    # --------- Spotify API Wrapper ---------
    def _request(self, method: str, path: str, fallback: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self.access_token}"}

        try:
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("Spotify %s %s failed: %s", method, path, e)
            raise UpstreamError(fallback) from e

        if not 200 <= r.status_code < 300:
            logger.info("Spotify %s %s returned %s", method, path, r.status_code)
            raise _error_from_response(r, fallback)

        return r

    @staticmethod
    def _json(r: requests.Response, fallback: str):
        # 204 / 空 body 沒有 JSON
        if r.status_code == 204 or not r.content:
            return None
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError(fallback) from e
        if not isinstance(data, dict):
            raise UpstreamError(fallback)
        return data

    # --------- Search ---------
    def search(self, query: str, limit: int = settings.SEARCH_LIMIT) -> List[Dict]:
        r = self._request(
            "GET",
            "search",
            "Search failed",
            params={"q": query, "type": "track", "limit": limit},
        )
        data = self._json(r, "Search failed") or {}
        return (data.get("tracks") or {}).get("items") or []

    # --------- Queue ---------
    def add_to_queue(self, uri: Optional[str] = None, song_name: Optional[str] = None) -> str:
        track_uri = uri
        if not track_uri and song_name:
            results = self.search(song_name, limit=1)
            if not results:
                raise NotFound(f"Song not found: {song_name}")
            track_uri = results[0]["uri"]

        if not track_uri:
            raise BadRequest("Missing track URI or song name")

        self._request("POST", "me/player/queue", "Failed to add to queue", params={"uri": track_uri})
        return track_uri

    def get_queue(self) -> Dict:
        r = self._request("GET", "me/player/queue", "Failed to get queue")
        data = self._json(r, "Failed to get queue") or {}
        return {
            "currently_playing": data.get("currently_playing"),
            "queue": data.get("queue") or [],
        }

    # --------- Playback ---------
    def play(self) -> None:
        self._request("PUT", "me/player/play", NoActiveDevice.default_message)

    def play_uris(self, uris: List[str], position_ms: Optional[int] = None) -> None:
        body = {"uris": list(uris)}
        if position_ms is not None:
            body["position_ms"] = position_ms
        self._request("PUT", "me/player/play", "Failed to update queue", json=body)

    def pause(self) -> None:
        self._request("PUT", "me/player/pause", "Pause failed")

    def next_track(self) -> None:
        self._request("POST", "me/player/next", "Skip failed")

    def get_playback_state(self) -> Optional[Dict]:
        r = self._request("GET", "me/player", "Failed to get playback state")
        return self._json(r, "Failed to get playback state")

    def adjust_volume(self, delta: int) -> int:
        state = self.get_playback_state()
        if not state:
            raise NoActivePlayback()

        current = (state.get("device") or {}).get("volume_percent")
        if current is None:
            current = DEFAULT_VOLUME
        new_volume = _clamp(int(current) + int(delta))

        try:
            self._request(
                "PUT",
                "me/player/volume",
                "Volume change failed",
                params={"volume_percent": new_volume},
            )
        except UpstreamError as e:
            # The computed value is reported back even if Spotify did not apply it
            logger.warning("Set volume to %s failed: %s", new_volume, e.message)

        return new_volume

    # --------- Devices ---------
    def get_active_device(self) -> Optional[Dict]:
        r = self._request("GET", "me/player/devices", "Failed to get devices")
        data = self._json(r, "Failed to get devices") or {}
        devices = data.get("devices") or []

        for device in devices:
            if device.get("is_active"):
                return device
        return devices[0] if devices else None
