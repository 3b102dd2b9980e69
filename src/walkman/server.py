"""
Token service.

Mints ephemeral realtime credentials with the server-held API key so the
client never sees it.

Run with:
    python -m walkman serve
"""

import logging
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from . import __version__
from .config import WalkmanConfig
from .token_broker import mint_session

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[WalkmanConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    config = config or WalkmanConfig.from_env()

    app = FastAPI(
        title="Walkman",
        description="Ephemeral credential service for realtime voice sessions",
        version=__version__,
    )

    @app.get("/token")
    async def token():
        """Create a realtime session and relay its credential."""
        try:
            return await mint_session(config, transport=transport)
        except Exception as e:
            logger.error(f"Token generation error: {e}")
            return JSONResponse(status_code=500, content={"error": "Failed to generate token"})

    @app.get("/health")
    async def health():
        """Health check."""
        return {"status": "ok", "service": "walkman-token"}

    return app
