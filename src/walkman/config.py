"""
Runtime configuration.

Values come from the process environment; a ``.env`` file in the working
directory is loaded first so the API key can live outside the shell.
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

from dotenv import find_dotenv, load_dotenv


DEFAULT_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_VOICE = "verse"
DEFAULT_REALTIME_URL = "https://api.openai.com/v1/realtime"
DEFAULT_SESSIONS_URL = "https://api.openai.com/v1/realtime/sessions"


def _default_mic_format() -> str:
    if sys.platform == "darwin":
        return "avfoundation"
    if sys.platform.startswith("win"):
        return "dshow"
    return "pulse"


@dataclass
class WalkmanConfig:
    """Walkman configuration."""
    # Credentials
    api_key: Optional[str] = None
    token_url: Optional[str] = None  # fetch from a token service instead of minting locally

    # Realtime engine
    model: str = DEFAULT_MODEL
    voice: str = DEFAULT_VOICE
    realtime_url: str = DEFAULT_REALTIME_URL
    sessions_url: str = DEFAULT_SESSIONS_URL

    # Connection settings
    data_channel_label: str = "oai-events"
    ice_servers: list = field(default_factory=lambda: [
        {"urls": ["stun:stun.l.google.com:19302"]}
    ])
    http_timeout: float = 30.0

    # Microphone
    mic_device: str = "default"
    mic_format: str = field(default_factory=_default_mic_format)

    # Tool calls
    suppression_delay: float = 0.5
    suppression_instructions: str = "Do not respond."

    # Token service
    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "WalkmanConfig":
        load_dotenv(find_dotenv(usecwd=True))
        defaults = cls()
        return cls(
            api_key=os.environ.get("OPENAI_API_KEY"),
            token_url=os.environ.get("WALKMAN_TOKEN_URL") or None,
            model=os.environ.get("WALKMAN_MODEL", defaults.model),
            voice=os.environ.get("WALKMAN_VOICE", defaults.voice),
            realtime_url=os.environ.get("WALKMAN_REALTIME_URL", defaults.realtime_url).rstrip("/"),
            sessions_url=os.environ.get("WALKMAN_SESSIONS_URL", defaults.sessions_url).rstrip("/"),
            mic_device=os.environ.get("WALKMAN_MIC_DEVICE", defaults.mic_device),
            mic_format=os.environ.get("WALKMAN_MIC_FORMAT", defaults.mic_format),
            suppression_delay=float(os.environ.get("WALKMAN_SUPPRESS_DELAY", defaults.suppression_delay)),
            port=int(os.environ.get("PORT", defaults.port)),
        )
