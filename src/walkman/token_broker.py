"""
Ephemeral credential broker.

A realtime session is authorised with a short-lived bearer credential. The
broker either fetches one from a token service (``GET /token``) or, when it
holds the API key itself, mints one directly against the sessions endpoint.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ValidationError

from .config import WalkmanConfig
from .errors import CredentialError

logger = logging.getLogger(__name__)


class ClientSecret(BaseModel):
    value: str
    expires_at: Optional[int] = None


class EphemeralToken(BaseModel):
    """Shape of a realtime session-creation response we rely on."""
    client_secret: ClientSecret


async def mint_session(
    config: WalkmanConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Create a realtime session with the server-held API key.

    Returns the raw JSON body so a token service can relay it unchanged.
    Raises httpx errors as-is.
    """
    if not config.api_key:
        raise CredentialError("OPENAI_API_KEY is not set")

    async with httpx.AsyncClient(timeout=config.http_timeout, transport=transport) as client:
        response = await client.post(
            config.sessions_url,
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            json={"model": config.model, "voice": config.voice},
        )
        response.raise_for_status()
        return response.json()


class TokenBroker:
    def __init__(
        self,
        config: WalkmanConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    async def request_credential(self) -> str:
        """Return a bearer credential for one realtime session."""
        try:
            if self.config.token_url:
                payload = await self._fetch(self.config.token_url)
            else:
                payload = await mint_session(self.config, transport=self._transport)
            token = EphemeralToken.model_validate(payload)
        except CredentialError:
            raise
        except httpx.HTTPError as e:
            raise CredentialError(f"Token request failed: {e}") from e
        except (ValueError, ValidationError) as e:
            raise CredentialError(f"Token response could not be parsed: {e}") from e

        logger.debug(f"Obtained ephemeral credential (expires_at={token.client_secret.expires_at})")
        return token.client_secret.value

    async def _fetch(self, url: str) -> Any:
        async with httpx.AsyncClient(timeout=self.config.http_timeout, transport=self._transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
