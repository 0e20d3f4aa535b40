import os
from dotenv import load_dotenv

def load_env():
    if os.getenv("ENVIRONMENT") == "production":
        return

    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    env_path = os.path.join(base_dir, ".env")

    if os.path.exists(env_path):
        load_dotenv(env_path)

# Load env now
load_env()

# Spotify app credentials
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")

SPOTIFY_ACCOUNTS_URL = os.getenv("SPOTIFY_ACCOUNTS_URL", "https://accounts.spotify.com/api/token")
SPOTIFY_API_BASE = os.getenv("SPOTIFY_API_BASE", "https://api.spotify.com/v1")

# Seconds before a call to Spotify is abandoned
SPOTIFY_REQUEST_TIMEOUT = float(os.getenv("SPOTIFY_REQUEST_TIMEOUT", "10"))

# Refresh the host token this long (ms) before it actually expires
TOKEN_REFRESH_MARGIN_MS = int(os.getenv("TOKEN_REFRESH_MARGIN_MS", "300000"))

SEARCH_LIMIT = int(os.getenv("SEARCH_LIMIT", "20"))

# "preserve_position" keeps the current track where it is, "restart" replays it from 0
CLEAR_QUEUE_MODE = os.getenv("CLEAR_QUEUE_MODE", "preserve_position").strip().lower()

# Credential store: firestore | redis | memory
CREDENTIAL_BACKEND = os.getenv("CREDENTIAL_BACKEND", "firestore").lower()

# Redis
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")

# GCP Credentials (base64 service account JSON)
GOOGLE_CLOUD_CREDENTIALS = os.getenv("GOOGLE_CLOUD_CREDENTIALS")

# CORS
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
