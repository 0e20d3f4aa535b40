# jukebox/services/firestore_client.py
import base64
import json
import logging
from google.cloud import firestore
from google.oauth2 import service_account
from jukebox.config import settings
from jukebox.services.errors import CredentialStoreError

logger = logging.getLogger(__name__)

_cached_client = None

def get_db():
    """
    Lazy-load Firestore client using service account credentials
    stored in the environment variable GOOGLE_CLOUD_CREDENTIALS.
    This will work on Render and any non-GCP environment.
    """

    global _cached_client

    # Already initialized → return cached client
    if _cached_client is not None:
        return _cached_client

    raw = settings.GOOGLE_CLOUD_CREDENTIALS
    if not raw:
        raise CredentialStoreError("GOOGLE_CLOUD_CREDENTIALS is missing in environment variables")

    try:
        creds_json = json.loads(base64.b64decode(raw))
    except (ValueError, TypeError) as e:
        raise CredentialStoreError(f"Failed to decode GOOGLE_CLOUD_CREDENTIALS: {e}") from e

    try:
        creds = service_account.Credentials.from_service_account_info(creds_json)
    except (ValueError, KeyError) as e:
        raise CredentialStoreError(f"Failed to create service account credentials: {e}") from e

    _cached_client = firestore.Client(credentials=creds, project=creds.project_id)
    logger.info("Firestore client initialised for project %s", creds.project_id)

    return _cached_client
