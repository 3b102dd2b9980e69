"""
Realtime session connection.

Owns the WebRTC peer connection, the microphone track, the remote voice
track and the data channel for one realtime session, and drives the
connect/disconnect lifecycle. Uses aiortc for the WebRTC implementation.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from aiortc import RTCConfiguration, RTCIceServer, RTCPeerConnection, RTCSessionDescription
from aiortc.contrib.media import MediaPlayer

from .config import WalkmanConfig
from .errors import MediaAccessError
from .event_bus import EventBus
from .signaling import SignalingClient
from .token_broker import TokenBroker

if TYPE_CHECKING:
    from .audio import RemoteAudioPlayer

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


StateListener = Callable[[SessionState, SessionState], None]


def open_microphone(config: WalkmanConfig) -> MediaPlayer:
    """Open the capture device. Raises MediaAccessError if it is unavailable."""
    try:
        player = MediaPlayer(config.mic_device, format=config.mic_format)
    except Exception as e:
        raise MediaAccessError(f"Cannot open microphone {config.mic_device!r} ({config.mic_format}): {e}") from e
    if player.audio is None:
        raise MediaAccessError(f"Microphone {config.mic_device!r} has no audio stream")
    return player


class SessionConnection:
    """
    One realtime voice session at a time.

    Each start_session() takes a fresh session token; stop_session() advances
    it, so a start that is still in flight notices it went stale after its
    next await and releases what it created instead of publishing it.

    Usage:
        bus = EventBus()
        session = SessionConnection(config, bus)
        await session.start_session()
        ...
        await session.stop_session()
    """

    def __init__(
        self,
        config: WalkmanConfig,
        bus: EventBus,
        token_broker: Optional[TokenBroker] = None,
        signaling: Optional[SignalingClient] = None,
        remote_audio: Optional["RemoteAudioPlayer"] = None,
        microphone_factory: Callable = open_microphone,
        peer_connection_factory: Optional[Callable[[], RTCPeerConnection]] = None,
    ):
        self.config = config
        self.bus = bus
        self.token_broker = token_broker or TokenBroker(config)
        self.signaling = signaling or SignalingClient(config)
        self.remote_audio = remote_audio
        self.microphone_factory = microphone_factory
        self.peer_connection_factory = peer_connection_factory or self._default_peer_connection

        self.state = SessionState.IDLE
        self.pc: Optional[RTCPeerConnection] = None
        self.data_channel = None
        self.microphone = None

        self._token = 0
        self._listeners: List[StateListener] = []

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def add_state_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: SessionState) -> None:
        old, self.state = self.state, state
        if old is state:
            return
        logger.info(f"Session {old.value} -> {state.value}")
        for listener in list(self._listeners):
            listener(old, state)

    def _stale(self, token: int) -> bool:
        return token != self._token

    def _default_peer_connection(self) -> RTCPeerConnection:
        servers = [RTCIceServer(**server) for server in self.config.ice_servers]
        return RTCPeerConnection(configuration=RTCConfiguration(iceServers=servers))

    async def start_session(self) -> None:
        if self.state in (SessionState.CONNECTING, SessionState.ACTIVE):
            logger.warning(f"Session already {self.state.value}, ignoring start")
            return

        self._token += 1
        token = self._token
        self._set_state(SessionState.CONNECTING)

        try:
            await self._connect(token)
        except Exception as e:
            logger.error(f"Error starting session: {e}")
            if not self._stale(token):
                self._set_state(SessionState.IDLE)
            raise

    async def _connect(self, token: int) -> None:
        credential = await self.token_broker.request_credential()
        if self._stale(token):
            return

        microphone = self.microphone_factory(self.config)

        pc = self.peer_connection_factory()

        @pc.on("track")
        def on_track(track):
            logger.info(f"Received remote {track.kind} track")
            if track.kind == "audio" and self.remote_audio is not None and not self._stale(token):
                self.remote_audio.attach(track)

        @pc.on("connectionstatechange")
        async def on_connectionstatechange():
            logger.info(f"Peer connection state: {pc.connectionState}")
            if pc.connectionState == "failed" and not self._stale(token):
                await self.stop_session()

        pc.addTrack(microphone.audio)

        channel = pc.createDataChannel(self.config.data_channel_label)
        self._bind_channel(channel, token)

        offer = await pc.createOffer()
        await pc.setLocalDescription(offer)
        if self._stale(token):
            await self._discard(pc, microphone)
            return

        # The peer connection is left as-is if signaling fails.
        answer_sdp = await self.signaling.exchange(pc.localDescription.sdp, credential)
        if self._stale(token):
            await self._discard(pc, microphone)
            return

        await pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))
        if self._stale(token):
            await self._discard(pc, microphone)
            return

        self.pc = pc
        self.microphone = microphone
        logger.info("Signaling complete, waiting for data channel")

    def _bind_channel(self, channel, token: int) -> None:
        @channel.on("open")
        def on_open():
            if self._stale(token):
                return
            self.data_channel = channel
            self.bus.attach(channel)
            self.bus.reset_log()
            self._set_state(SessionState.ACTIVE)

        @channel.on("message")
        def on_message(message):
            if self._stale(token):
                return
            self.bus.on_message(message)

        @channel.on("close")
        def on_close():
            logger.info(f"Data channel {channel.label} closed")

    async def _discard(self, pc, microphone) -> None:
        logger.info("Discarding connection from a stopped session")
        await pc.close()
        _stop_microphone(microphone)

    async def stop_session(self) -> None:
        self._token += 1

        pc, self.pc = self.pc, None
        if pc is not None:
            await pc.close()

        microphone, self.microphone = self.microphone, None
        _stop_microphone(microphone)

        if self.remote_audio is not None:
            await self.remote_audio.stop()

        self.data_channel = None
        self.bus.detach()

        if self.state in (SessionState.CONNECTING, SessionState.ACTIVE):
            self._set_state(SessionState.CLOSED)


def _stop_microphone(microphone) -> None:
    if microphone is not None and microphone.audio is not None:
        microphone.audio.stop()
