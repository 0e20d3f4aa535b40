# jukebox/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jukebox.config import settings
from jukebox.services.errors import JukeboxError

# === Import Routers ===
from jukebox.api.spotify_auth_api import router as spotify_auth_router
from jukebox.api.spotify_player_api import router as spotify_player_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Party Jukebox Backend",
    description=(
        "Backend for: "
        "• Host Spotify OAuth (token exchange + silent refresh) "
        "• Guest search / queue "
        "• Host playback control"
    ),
    version="1.0.0"
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Error handlers: every failure is {"error": "..."} ===
@app.exception_handler(JukeboxError)
async def jukebox_error_handler(request: Request, exc: JukeboxError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


# === Host Spotify auth ===
app.include_router(spotify_auth_router, prefix="/api/spotify", tags=["Spotify Auth"])

# === Search / queue / playback ===
app.include_router(spotify_player_router, prefix="/api/spotify", tags=["Spotify Player"])


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Party Jukebox Backend running"
    }
