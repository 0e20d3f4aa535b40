# jukebox/api/spotify_player_api.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from jukebox.api.deps import get_player_service, get_queue_reconciler
from jukebox.models.player_models import (
    DeleteFromQueueRequest,
    DeviceResponse,
    QueueAddRequest,
    QueueResponse,
    SuccessResponse,
    VolumeRequest,
    VolumeResponse,
)
from jukebox.services.errors import BadRequest
from jukebox.services.queue_reconciler import QueueReconciler
from jukebox.services.spotify_player_service import SpotifyPlayerService

logger = logging.getLogger(__name__)

router = APIRouter()


# === Search / Queue ===
@router.get("/search", summary="Search tracks")
def search(
    q: Optional[str] = Query(None, description="搜尋字串"),
    player: SpotifyPlayerService = Depends(get_player_service),
):
    if not q:
        raise BadRequest("Missing query")
    return player.search(q)


@router.post(
    "/queue",
    summary="Add a track to the host queue",
    description="給 uri 直接加；只給 songName 會先搜尋取第一首。",
    response_model=SuccessResponse,
)
def add_to_queue(
    payload: QueueAddRequest | None = None,
    player: SpotifyPlayerService = Depends(get_player_service),
):
    if payload is None or not (payload.uri or payload.songName):
        raise BadRequest("Missing track URI or song name")

    uri = player.add_to_queue(uri=payload.uri, song_name=payload.songName)
    logger.info("Queued %s", uri)
    return {"success": True, "message": "Song added to queue"}


@router.get("/get-queue", response_model=QueueResponse)
def get_queue(player: SpotifyPlayerService = Depends(get_player_service)):
    return player.get_queue()


@router.post("/clear-queue", response_model=SuccessResponse)
def clear_queue(reconciler: QueueReconciler = Depends(get_queue_reconciler)):
    reconciler.clear_queue()
    return {"success": True, "message": "Queue cleared"}


@router.post("/delete-from-queue", response_model=SuccessResponse)
def delete_from_queue(
    payload: DeleteFromQueueRequest | None = None,
    reconciler: QueueReconciler = Depends(get_queue_reconciler),
):
    if payload is None or not payload.trackUri:
        raise BadRequest("Missing track URI")

    reconciler.delete_from_queue(payload.trackUri)
    return {"success": True, "message": "Song deleted from queue"}


# === Playback ===
@router.post("/play", response_model=SuccessResponse, response_model_exclude_none=True)
def play(player: SpotifyPlayerService = Depends(get_player_service)):
    player.play()
    return {"success": True}


@router.post("/pause", response_model=SuccessResponse, response_model_exclude_none=True)
def pause(player: SpotifyPlayerService = Depends(get_player_service)):
    player.pause()
    return {"success": True}


@router.post("/next", response_model=SuccessResponse, response_model_exclude_none=True)
def next_track(player: SpotifyPlayerService = Depends(get_player_service)):
    player.next_track()
    return {"success": True}


@router.post("/volume", response_model=VolumeResponse)
def volume(
    payload: VolumeRequest | None = None,
    player: SpotifyPlayerService = Depends(get_player_service),
):
    if payload is None or payload.delta is None:
        raise BadRequest("Missing volume delta")
    return {"volume": player.adjust_volume(payload.delta)}


@router.get("/devices", response_model=DeviceResponse)
def devices(player: SpotifyPlayerService = Depends(get_player_service)):
    return {"device": player.get_active_device()}
