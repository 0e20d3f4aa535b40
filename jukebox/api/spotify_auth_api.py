# jukebox/api/spotify_auth_api.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from jukebox.config import settings
from jukebox.models.spotify_auth_models import (
    ClientIdResponse,
    StatusResponse,
    StoreTokensRequest,
    TokenExchangeRequest,
    TokenExchangeResponse,
)
from jukebox.models.player_models import SuccessResponse
from jukebox.services.errors import BadRequest, CredentialStoreError, InternalConfigError
from jukebox.services.spotify_token_service import SpotifyTokenManager
from jukebox.api.deps import get_token_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/client-id",
    summary="Spotify Client ID",
    description="前端組 Spotify 授權 URL 時需要的 client id。",
    response_model=ClientIdResponse,
)
def client_id():
    if not settings.SPOTIFY_CLIENT_ID:
        raise InternalConfigError("Spotify Client ID not configured")
    return {"clientId": settings.SPOTIFY_CLIENT_ID}


@router.post(
    "/token",
    summary="Exchange authorization code",
    description=(
        "Host 完成 Spotify 授權後，前端把 code + redirectUri 丟過來，"
        "後端換成 access_token / refresh_token 並存起來。"
    ),
    response_model=TokenExchangeResponse,
)
def exchange_token(
    payload: TokenExchangeRequest | None = None,
    manager: SpotifyTokenManager = Depends(get_token_manager),
):
    if payload is None or not payload.code or not payload.redirectUri:
        raise BadRequest("Missing code or redirectUri")

    logger.info("Received token exchange request, redirect URI %s", payload.redirectUri)

    # 1. code → token（失敗會丟 ExchangeFailed / InternalConfigError）
    token_data = manager.exchange_authorization_code(payload.code, payload.redirectUri)

    # 2. 存起來，expires_at = now + expires_in
    manager.store_token_response(token_data)

    return {
        "success": True,
        "message": "Server authenticated with Spotify successfully",
        "expires_in": token_data.get("expires_in"),
    }


@router.post(
    "/store-tokens",
    summary="Store host tokens directly",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
)
def store_tokens(
    payload: StoreTokensRequest | None = None,
    manager: SpotifyTokenManager = Depends(get_token_manager),
):
    if payload is None or not payload.access_token:
        raise BadRequest("Missing access token")

    manager.store_token_response(payload.model_dump())
    return {"success": True}


@router.get(
    "/status",
    summary="Host authentication status",
    response_model=StatusResponse,
)
def status(manager: SpotifyTokenManager = Depends(get_token_manager)):
    try:
        token = manager.get_valid_token()
        record = manager.get_record()
    except CredentialStoreError as e:
        logger.error("Status check failed: %s", e.message)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to check authentication status",
                "authenticated": False,
                "hasToken": False,
            },
        )

    return {
        "authenticated": bool(token),
        "hasToken": bool(record and record.access_token),
        "expiresAt": record.expires_at if record else None,
    }
