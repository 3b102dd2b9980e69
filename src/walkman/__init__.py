"""
Walkman - voice control for local audio playback.

A realtime speech session runs over WebRTC:
- an ephemeral credential authorises the signaling handshake
- JSON events flow both ways over a data channel
- tool calls from the engine seek, play and pause local audio
- playback ducks while the user is speaking
"""

__version__ = "0.1.0"

from .config import WalkmanConfig
from .errors import CredentialError, MediaAccessError, SignalingError, WalkmanError
from .event_bus import EventBus
from .playback import PlaybackController, PlaybackState
from .remote import VoiceRemote
from .session import SessionConnection, SessionState
from .tools import ToolCallOutput, ToolDefinition, ToolDispatcher

__all__ = [
    "WalkmanConfig",
    "WalkmanError",
    "CredentialError",
    "MediaAccessError",
    "SignalingError",
    "EventBus",
    "PlaybackController",
    "PlaybackState",
    "VoiceRemote",
    "SessionConnection",
    "SessionState",
    "ToolCallOutput",
    "ToolDefinition",
    "ToolDispatcher",
]
