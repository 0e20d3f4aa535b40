# jukebox/models/player_models.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class QueueAddRequest(BaseModel):
    uri: Optional[str] = None
    songName: Optional[str] = None


class VolumeRequest(BaseModel):
    delta: Optional[int] = None


class DeleteFromQueueRequest(BaseModel):
    trackUri: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class VolumeResponse(BaseModel):
    volume: int


# Tracks and devices are passed through from Spotify as-is
class QueueResponse(BaseModel):
    currently_playing: Optional[Dict[str, Any]] = None
    queue: List[Dict[str, Any]] = []


class DeviceResponse(BaseModel):
    device: Optional[Dict[str, Any]] = None
