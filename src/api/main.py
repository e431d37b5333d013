from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.api.deps import close_email_client, get_settings
from src.app_shell.config import configure_logging, prepare_database


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Load configuration and migrate on startup (fail-fast)
    settings = get_settings()
    configure_logging(settings.log_level)
    prepare_database(settings)

    yield

    close_email_client()


app = FastAPI(
    title="Email Newsletter API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import subscriptions  # noqa: E402

app.include_router(subscriptions.router, tags=["Subscriptions"])


@app.get("/health_check")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok"}
