# jukebox/services/queue_reconciler.py
"""
Spotify has no "remove from queue" or "clear queue" endpoint, only
"play this list of tracks now". Both operations here read the current
state, work out the track order we want, and replay it. A new play
command drops Spotify's own upcoming queue as a side effect.
"""
import logging
from typing import Dict, List, Optional

from jukebox.services.errors import (
    InternalConfigError,
    NothingPlaying,
    QueueUpdateFailed,
    UpstreamError,
)
from jukebox.services.spotify_player_service import SpotifyPlayerService

logger = logging.getLogger(__name__)

CLEAR_PRESERVE_POSITION = "preserve_position"
CLEAR_RESTART = "restart"
CLEAR_MODES = (CLEAR_PRESERVE_POSITION, CLEAR_RESTART)


def plan_queue_after_delete(
    currently_playing: Optional[Dict],
    queue: List[Dict],
    target_uri: str,
) -> Optional[List[str]]:
    """
    Return the URIs to replay after removing `target_uri`, or None when
    nothing should be sent to Spotify.
    """
    remaining = [t["uri"] for t in queue if t.get("uri") != target_uri]

    # 刪的是正在播的那首 → 跳到下一首，其餘照原順序
    if currently_playing and currently_playing.get("uri") == target_uri:
        return remaining or None

    if not remaining:
        return None

    # Keep the current track first so it is not interrupted
    if currently_playing:
        return [currently_playing["uri"]] + remaining
    return remaining


class QueueReconciler:
    def __init__(self, player: SpotifyPlayerService, clear_mode: str = CLEAR_PRESERVE_POSITION):
        self.player = player
        self.clear_mode = (clear_mode or CLEAR_PRESERVE_POSITION).strip().lower()

    def _replay(self, uris: List[str], failure_message: str, position_ms: Optional[int] = None) -> None:
        try:
            self.player.play_uris(uris, position_ms=position_ms)
        except UpstreamError as e:
            logger.error("Queue replay of %d track(s) failed: %s", len(uris), e.message)
            raise QueueUpdateFailed(failure_message) from e

    def clear_queue(self) -> None:
        # 設定錯只擋 clear，delete 不受影響
        if self.clear_mode not in CLEAR_MODES:
            logger.error("Unknown CLEAR_QUEUE_MODE %r, expected one of %s", self.clear_mode, CLEAR_MODES)
            raise InternalConfigError(f"Server configuration error - unknown clear queue mode {self.clear_mode!r}")

        if self.clear_mode == CLEAR_RESTART:
            current = self.player.get_queue()["currently_playing"]
            if not current:
                raise NothingPlaying()
            self._replay([current["uri"]], "Failed to clear queue")
            return

        state = self.player.get_playback_state()
        if not state or not state.get("item"):
            raise NothingPlaying()

        self._replay(
            [state["item"]["uri"]],
            "Failed to clear queue",
            position_ms=state.get("progress_ms"),
        )

    def delete_from_queue(self, target_uri: str) -> bool:
        snapshot = self.player.get_queue()
        uris = plan_queue_after_delete(snapshot["currently_playing"], snapshot["queue"], target_uri)

        if uris is None:
            logger.info("Delete of %s needs no replay", target_uri)
            return False

        self._replay(uris, "Failed to update queue")
        return True
