# jukebox/models/token_model.py
from pydantic import BaseModel

HOST_ID = "host"


class CredentialRecord(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: int   # ms since epoch
