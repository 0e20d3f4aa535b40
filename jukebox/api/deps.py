# jukebox/api/deps.py
from functools import lru_cache

import requests
from fastapi import Depends

from jukebox.config import settings
from jukebox.services.credential_store import CredentialStore, create_credential_store
from jukebox.services.errors import Unauthenticated
from jukebox.services.queue_reconciler import QueueReconciler
from jukebox.services.spotify_player_service import SpotifyPlayerService
from jukebox.services.spotify_token_service import SpotifyTokenManager


@lru_cache
def get_credential_store() -> CredentialStore:
    return create_credential_store(settings.CREDENTIAL_BACKEND)


@lru_cache
def get_http_session() -> requests.Session:
    return requests.Session()


@lru_cache
def get_token_manager() -> SpotifyTokenManager:
    return SpotifyTokenManager(
        store=get_credential_store(),
        client_id=settings.SPOTIFY_CLIENT_ID,
        client_secret=settings.SPOTIFY_CLIENT_SECRET,
        session=get_http_session(),
    )


def require_host_token(manager: SpotifyTokenManager = Depends(get_token_manager)) -> str:
    """
    所有控制播放的 route 都先經過這裡：
    沒 token / refresh 失敗 → 401 Host not authenticated
    """
    token = manager.get_valid_token()
    if not token:
        raise Unauthenticated()
    return token


def get_player_service(
    token: str = Depends(require_host_token),
    session: requests.Session = Depends(get_http_session),
) -> SpotifyPlayerService:
    return SpotifyPlayerService(token, session=session)


def get_queue_reconciler(player: SpotifyPlayerService = Depends(get_player_service)) -> QueueReconciler:
    return QueueReconciler(player, clear_mode=settings.CLEAR_QUEUE_MODE)
