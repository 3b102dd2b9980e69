import logging
from typing import Optional

import httpx

from .config import WalkmanConfig
from .errors import SignalingError

logger = logging.getLogger(__name__)


class SignalingClient:
    """Trades a local SDP offer for the realtime engine's SDP answer."""

    def __init__(
        self,
        config: WalkmanConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def _headers(self, credential: str) -> dict:
        return {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/sdp",
        }

    async def exchange(self, offer_sdp: str, credential: str) -> str:
        """POST the offer and return the raw answer SDP text."""
        try:
            async with httpx.AsyncClient(timeout=self.config.http_timeout, transport=self._transport) as client:
                response = await client.post(
                    self.config.realtime_url,
                    params={"model": self.config.model},
                    headers=self._headers(credential),
                    content=offer_sdp,
                )
        except httpx.HTTPError as e:
            raise SignalingError(f"Signaling request failed: {e}") from e

        if not response.is_success:
            raise SignalingError(
                f"Signaling rejected with HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        logger.debug(f"Received answer SDP ({len(response.text)} bytes)")
        return response.text
