from typing import Optional

from pydantic import BaseModel


class ClientIdResponse(BaseModel):
    clientId: str


# POST /token
class TokenExchangeRequest(BaseModel):
    code: Optional[str] = None
    redirectUri: Optional[str] = None


class TokenExchangeResponse(BaseModel):
    success: bool
    message: str
    expires_in: Optional[int] = None


# POST /store-tokens（前端已經自己拿到 token 時直接存）
class StoreTokensRequest(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class StatusResponse(BaseModel):
    authenticated: bool
    hasToken: bool
    expiresAt: Optional[int] = None
