"""
Tool registration and function-call dispatch.

The realtime engine is told about the local playback tools once per session.
When a response finishes with function calls, each call is routed to the
handler registered under its name, and a follow-up ``response.create`` asks
the engine not to narrate the tool call.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set, Tuple

from .event_bus import RESPONSE_DONE, SESSION_CREATED, Event, EventBus
from .playback import PlaybackController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """A function the remote engine may call, with a string-typed schema."""
    name: str
    description: str
    properties: Dict[str, Dict[str, str]] = field(default_factory=dict)
    required: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "strict": True,
                "properties": {name: dict(schema) for name, schema in self.properties.items()},
                "required": list(self.required),
            },
        }


@dataclass
class ToolCallOutput:
    call_id: Optional[str]
    name: str
    arguments: str


ToolHandler = Callable[[Dict[str, Any]], None]


ADJUST_PLAYBACK = ToolDefinition(
    name="adjust_playback",
    description="Rewind or fast-forward in a podcast a number of seconds.",
    properties={
        "RewindBool": {"type": "string", "description": "Rewind is true, fast forward is false"},
        "Seconds": {"type": "string", "description": "Number of Seconds"},
    },
    required=("RewindBool", "Seconds"),
)

PLAY_PAUSE = ToolDefinition(
    name="play_pause",
    description="Play or pause.",
    properties={
        "PauseBool": {"type": "string", "description": "Pause is true, play is false"},
    },
    required=("PauseBool",),
)


def parse_flag(value: Any) -> bool:
    """Tool arguments carry booleans as the exact string "true"; anything else is false."""
    return value == "true"


class ToolDispatcher:
    """
    Routes function calls from the realtime engine to local handlers.

    Usage:
        dispatcher = ToolDispatcher(bus)
        dispatcher.register(PLAY_PAUSE, lambda args: print(args))
    """

    def __init__(
        self,
        bus: EventBus,
        suppression_delay: float = 0.5,
        suppression_instructions: str = "Do not respond.",
    ):
        self.bus = bus
        self.suppression_delay = suppression_delay
        self.suppression_instructions = suppression_instructions

        self._tools: Dict[str, Tuple[ToolDefinition, ToolHandler]] = {}
        self._tools_sent = False
        self._pending: Set[asyncio.Task] = set()
        self.last_output: Optional[ToolCallOutput] = None

        bus.subscribe(SESSION_CREATED, self._on_session_created)
        bus.subscribe(RESPONSE_DONE, self._on_response_done)

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        self._tools[definition.name] = (definition, handler)

    @property
    def tool_names(self) -> Tuple[str, ...]:
        return tuple(self._tools)

    @property
    def tools_sent(self) -> bool:
        return self._tools_sent

    def session_update_event(self) -> Event:
        return {
            "type": "session.update",
            "session": {
                "tools": [definition.to_dict() for definition, _ in self._tools.values()],
                "tool_choice": "auto",
            },
        }

    def reset(self) -> None:
        """Forget per-session state and cancel pending suppression sends."""
        self._tools_sent = False
        self.last_output = None
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    def _on_session_created(self, event: Event) -> None:
        if self._tools_sent:
            return
        self.bus.send_client_event(self.session_update_event())
        self._tools_sent = True
        logger.info(f"Registered tools: {', '.join(self.tool_names)}")

    def _on_response_done(self, event: Event) -> None:
        response = event.get("response") or {}
        for output in response.get("output") or []:
            if output.get("type") == "function_call":
                self._dispatch(output)

    def _dispatch(self, output: Dict[str, Any]) -> None:
        name = output.get("name")
        entry = self._tools.get(name)
        if entry is None:
            logger.debug(f"Ignoring call to unknown tool {name!r}")
            return
        _, handler = entry

        raw_arguments = output.get("arguments") or "{}"
        try:
            arguments = json.loads(raw_arguments)
            handler(arguments)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Tool call {name} with arguments {raw_arguments!r} failed: {e}")
            return

        self.last_output = ToolCallOutput(
            call_id=output.get("call_id"),
            name=name,
            arguments=raw_arguments,
        )
        self._schedule_suppression()

    def _schedule_suppression(self) -> None:
        task = asyncio.get_running_loop().create_task(self._send_suppression())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_suppression(self) -> None:
        await asyncio.sleep(self.suppression_delay)
        self.bus.send_client_event({
            "type": "response.create",
            "response": {"instructions": self.suppression_instructions},
        })


def install_playback_tools(dispatcher: ToolDispatcher, controller: PlaybackController) -> None:
    """Register adjust_playback and play_pause against a playback controller."""

    def adjust_playback(arguments: Dict[str, Any]) -> None:
        controller.adjust_playback(
            rewind=parse_flag(arguments["RewindBool"]),
            seconds=float(arguments["Seconds"]),
        )

    def play_pause(arguments: Dict[str, Any]) -> None:
        controller.set_pause(parse_flag(arguments["PauseBool"]))

    dispatcher.register(ADJUST_PLAYBACK, adjust_playback)
    dispatcher.register(PLAY_PAUSE, play_pause)
