import logging

from .config import WalkmanConfig
from .event_bus import AUDIO_STOPPED, SPEECH_STARTED, EventBus
from .playback import AudioTransport, PlaybackController
from .session import SessionConnection, SessionState
from .tools import ToolDispatcher, install_playback_tools

logger = logging.getLogger(__name__)


class VoiceRemote:
    """
    Voice control for one local audio transport.

    Wires the event bus, tool dispatcher and playback controller to a
    realtime session. Extra keyword arguments go to SessionConnection.
    """

    def __init__(self, config: WalkmanConfig, transport: AudioTransport, **session_options):
        self.config = config
        self.bus = EventBus()
        self.controller = PlaybackController(transport)
        self.dispatcher = ToolDispatcher(
            self.bus,
            suppression_delay=config.suppression_delay,
            suppression_instructions=config.suppression_instructions,
        )
        install_playback_tools(self.dispatcher, self.controller)

        self.bus.subscribe(SPEECH_STARTED, lambda event: self.controller.on_speech_started())
        self.bus.subscribe(AUDIO_STOPPED, lambda event: self.controller.on_speech_stopped())

        self.session = SessionConnection(config, self.bus, **session_options)
        self.session.add_state_listener(self._on_state_change)

    def _on_state_change(self, old: SessionState, new: SessionState) -> None:
        if new is SessionState.ACTIVE:
            self.controller.reset()
        else:
            # Local playback keeps going when the session ends.
            self.dispatcher.reset()

    async def start(self) -> None:
        await self.session.start_session()

    async def stop(self) -> None:
        await self.session.stop_session()

    def send_text(self, text: str) -> bool:
        return self.bus.send_text_message(text)
