"""
JSON event bus carried over the realtime data channel.

Outbound events are serialized and sent only while the channel is open.
Inbound messages are parsed, kept in a newest-first log and dispatched to
handlers subscribed to a small set of recognized event types.
"""

import json
import logging
from collections import defaultdict, deque
from typing import Any, Callable, Deque, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


SESSION_CREATED = "session.created"
RESPONSE_DONE = "response.done"
SPEECH_STARTED = "input_audio_buffer.speech_started"
AUDIO_STOPPED = "output_audio_buffer.audio_stopped"

INBOUND_EVENT_TYPES = frozenset({
    SESSION_CREATED,
    RESPONSE_DONE,
    SPEECH_STARTED,
    AUDIO_STOPPED,
})

Event = Dict[str, Any]
EventHandler = Callable[[Event], None]


class EventBus:
    """
    Bidirectional event transport for one session.

    Usage:
        bus = EventBus()
        bus.subscribe("session.created", on_created)

        bus.attach(data_channel)
        channel.on("message", bus.on_message)

        bus.send_client_event({"type": "response.create"})
    """

    def __init__(self) -> None:
        self._channel = None
        self._log: Deque[Event] = deque()
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def attach(self, channel) -> None:
        self._channel = channel

    def detach(self) -> None:
        self._channel = None

    @property
    def is_open(self) -> bool:
        return self._channel is not None and self._channel.readyState == "open"

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        if event_type not in INBOUND_EVENT_TYPES:
            raise ValueError(f"Unsupported event type: {event_type}")
        self._handlers[event_type].append(handler)

    def send_client_event(self, event: Event) -> bool:
        """Send an event if the channel is open. Returns True when transmitted."""
        if not self.is_open:
            logger.debug(f"Channel not open, dropping {event.get('type')}")
            return False
        self._channel.send(json.dumps(event))
        return True

    def send_text_message(self, text: str) -> bool:
        return self.send_client_event({"type": "text", "text": text})

    def on_message(self, raw: Union[str, bytes]) -> Optional[Event]:
        """Handle one inbound data-channel message."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            event = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping malformed event: {e}")
            return None
        if not isinstance(event, dict):
            logger.warning(f"Skipping non-object event: {raw[:80]}")
            return None

        self._log.appendleft(event)

        event_type = event.get("type")
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler for {event_type} failed")
        return event

    def reset_log(self) -> None:
        self._log.clear()

    @property
    def events(self) -> List[Event]:
        """Received events, newest first."""
        return list(self._log)
