# jukebox/services/credential_store.py
import json
import logging
import threading
from typing import Optional

import redis
from google.api_core import exceptions as gcp_exceptions
from pydantic import ValidationError

from jukebox.models.token_model import HOST_ID, CredentialRecord
from jukebox.services.errors import CredentialStoreError

logger = logging.getLogger(__name__)

FIRESTORE_COLLECTION = "spotify_tokens"
REDIS_KEY_PREFIX = "spotify_tokens"


class CredentialStore:
    """
    Holds the single host credential record.

    Subclasses only implement `_read` / `_write`; `save` handles the
    refresh-token inheritance so every backend gets it for free.
    """

    def _read(self) -> Optional[dict]:
        raise NotImplementedError

    def _write(self, data: dict) -> None:
        raise NotImplementedError

    def load(self) -> Optional[CredentialRecord]:
        data = self._read()
        if not data:
            return None
        try:
            return CredentialRecord.model_validate(data)
        except ValidationError as e:
            raise CredentialStoreError("Stored credential record is malformed") from e

    def save(self, access_token: str, refresh_token: Optional[str], expires_at: int) -> CredentialRecord:
        # Spotify 不一定會回 refresh_token，要沿用舊的
        if not refresh_token:
            existing = self.load()
            refresh_token = existing.refresh_token if existing else None

        record = CredentialRecord(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires_at),
        )
        self._write(record.model_dump())
        return record


class MemoryCredentialStore(CredentialStore):
    """Process-local store. Tokens are gone after a restart."""

    def __init__(self, initial: Optional[CredentialRecord] = None):
        self._lock = threading.Lock()
        self._data = initial.model_dump() if initial else None

    def _read(self):
        with self._lock:
            return dict(self._data) if self._data else None

    def _write(self, data):
        with self._lock:
            self._data = dict(data)


class FirestoreCredentialStore(CredentialStore):
    def __init__(self, db=None, collection: str = FIRESTORE_COLLECTION, host_id: str = HOST_ID):
        self._db = db
        self.collection = collection
        self.host_id = host_id

    def _doc(self):
        if self._db is None:
            from jukebox.services.firestore_client import get_db
            self._db = get_db()
        return self._db.collection(self.collection).document(self.host_id)

    def _read(self):
        try:
            doc = self._doc().get()
        except gcp_exceptions.GoogleAPIError as e:
            logger.error("Firestore read failed: %s", e)
            raise CredentialStoreError() from e
        return doc.to_dict() if doc.exists else None

    def _write(self, data):
        try:
            # set() without merge replaces the whole document
            self._doc().set(data)
        except gcp_exceptions.GoogleAPIError as e:
            logger.error("Firestore write failed: %s", e)
            raise CredentialStoreError() from e


class RedisCredentialStore(CredentialStore):
    def __init__(self, client=None, host_id: str = HOST_ID):
        self._client = client
        self.key = f"{REDIS_KEY_PREFIX}:{host_id}"

    @property
    def client(self):
        if self._client is None:
            from jukebox.services.redis_client import get_redis_client
            self._client = get_redis_client()
        return self._client

    def _read(self):
        try:
            raw = self.client.get(self.key)
        except redis.RedisError as e:
            logger.error("Redis read failed: %s", e)
            raise CredentialStoreError() from e
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CredentialStoreError("Stored credential record is malformed") from e

    def _write(self, data):
        try:
            self.client.set(self.key, json.dumps(data))
        except redis.RedisError as e:
            logger.error("Redis write failed: %s", e)
            raise CredentialStoreError() from e


BACKENDS = {
    "firestore": FirestoreCredentialStore,
    "redis": RedisCredentialStore,
    "memory": MemoryCredentialStore,
}


def create_credential_store(backend: str) -> CredentialStore:
    try:
        store_cls = BACKENDS[backend]
    except KeyError:
        raise ValueError(
            f"Unknown CREDENTIAL_BACKEND {backend!r}, expected one of {sorted(BACKENDS)}"
        ) from None
    logger.info("Using %s credential store", backend)
    return store_cls()
