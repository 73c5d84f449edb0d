import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from prometheus_client import make_asgi_app

from api.websocket_routes import router as websocket_router, lobby
from api.websocket_manager import connection_manager
from api.logging_config import configure_logging
from api.monitoring import http_metrics_middleware

# Load environment variables
load_dotenv()

environment = os.getenv("ENVIRONMENT", "development")
logger = configure_logging(environment, os.getenv("LOG_LEVEL"))

# Local frontends used in development
DEV_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def cors_origins() -> List[str]:
    """Comma-separated CORS_ORIGINS, or the local dev frontends when unset."""
    configured = os.getenv("CORS_ORIGINS", "")
    origins = [origin.strip() for origin in configured.split(",") if origin.strip()]
    return origins or DEV_ORIGINS


def init_sentry():
    """Report errors to Sentry when SENTRY_DSN is set."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[FastApiIntegration()],
        traces_sample_rate=0.1 if environment == "production" else 1.0,
        environment=environment,
    )
    logger.info("sentry_initialized", environment=environment)


init_sentry()

app = FastAPI(title="Catan Game Server", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(http_metrics_middleware)

app.include_router(websocket_router, prefix="/api")

# Prometheus metrics endpoint
app.mount("/metrics", make_asgi_app())


@app.get("/")
async def root():
    return {"message": "Catan Game Server", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Liveness plus a snapshot of connections and games."""
    return {
        "status": "healthy",
        "environment": environment,
        "connections": connection_manager.get_connection_count(),
        "waiting": len(lobby.waiting),
        "games": len(lobby.rooms),
    }


@app.on_event("startup")
async def startup_event():
    logger.info("application_started", environment=environment)


@app.on_event("shutdown")
async def shutdown_event():
    """Close every open game so clients are told it ended."""
    for room in lobby.list_rooms():
        room.session.end()
        async with room.lock:
            await room.transport.flush()
    logger.info("application_shutdown", games_closed=len(lobby.rooms))
