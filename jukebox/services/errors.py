# jukebox/services/errors.py
from typing import Optional


class JukeboxError(Exception):
    """
    Base error for everything the API turns into `{"error": message}`.
    Subclasses pin a default status code and a short user-facing message.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class Unauthenticated(JukeboxError):
    status_code = 401
    default_message = "Host not authenticated"


class BadRequest(JukeboxError):
    status_code = 400
    default_message = "Bad request"


class NotFound(JukeboxError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(JukeboxError):
    """Spotify answered with a non-success status, or could not be reached."""

    status_code = 500
    default_message = "Spotify request failed"


class NoActiveDevice(UpstreamError):
    status_code = 404
    default_message = "No active device. Open Spotify on a device first."


class NothingPlaying(JukeboxError):
    status_code = 400
    default_message = "Nothing is currently playing"


class NoActivePlayback(JukeboxError):
    status_code = 400
    default_message = "No active playback"


class QueueUpdateFailed(JukeboxError):
    status_code = 500
    default_message = "Failed to update queue"


class InternalConfigError(JukeboxError):
    status_code = 500
    default_message = "Server configuration error - missing Spotify credentials"


class ExchangeFailed(JukeboxError):
    status_code = 500
    default_message = "Token exchange failed"


class CredentialStoreError(JukeboxError):
    status_code = 500
    default_message = "Credential store unavailable"


class TokenRefreshError(JukeboxError):
    """
    Internal only: the token manager logs it and reports "no token".
    `reason` is a short machine-readable tag for log searches.
    """

    status_code = 401
    default_message = "Token refresh failed"

    def __init__(self, message: Optional[str] = None, reason: str = "refresh_failed"):
        super().__init__(message)
        self.reason = reason
