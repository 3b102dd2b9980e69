"""
Playback controller.

Small Playing/Paused state machine over a local audio transport. Tool calls
seek and toggle playback; speech activity from the realtime session ducks
playback while the user talks and restores it afterwards.

Playing/Paused is always read from the transport, which can stop on its own
(for example at the end of the file).
"""

import logging
import math
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


class AudioTransport(Protocol):
    """Local audio output the controller drives."""

    @property
    def playing(self) -> bool: ...

    @property
    def current_time(self) -> float: ...

    @current_time.setter
    def current_time(self, value: float) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...


@dataclass
class PlaybackState:
    ducked_from_playing: bool = False  # playback was running when speech began


class PlaybackController:
    def __init__(self, transport: AudioTransport):
        self.transport = transport
        self.state = PlaybackState()

    @property
    def playing(self) -> bool:
        return self.transport.playing

    def adjust_playback(self, rewind: bool, seconds: float) -> float:
        """
        Seek relative to the current position.

        Raises ValueError for a negative or non-finite offset. Returns the new
        position.
        """
        if not math.isfinite(seconds) or seconds < 0:
            raise ValueError(f"Seek offset must be a finite, non-negative number of seconds, got {seconds!r}")
        current = self.transport.current_time
        if rewind:
            position = max(current - seconds, 0)
        else:
            position = current + seconds
        self.transport.current_time = position
        logger.info(f"{'Rewind' if rewind else 'Forward'} {seconds:g}s: {current:.1f}s -> {position:.1f}s")
        return position

    def set_pause(self, pause: bool) -> None:
        # An explicit request wins over whatever speech ducking remembered.
        self.state.ducked_from_playing = False
        if pause:
            self.transport.pause()
        else:
            self.transport.play()

    def on_speech_started(self) -> None:
        # Overlapping speech segments overwrite the remembered state.
        playing = self.transport.playing
        self.state.ducked_from_playing = playing
        if playing:
            logger.debug("Speech started, ducking playback")
            self.transport.pause()

    def on_speech_stopped(self) -> None:
        if not self.state.ducked_from_playing:
            return
        self.state.ducked_from_playing = False
        logger.debug("Speech stopped, resuming playback")
        self.transport.play()

    def reset(self) -> None:
        """Forget ducking state from a previous session."""
        self.state.ducked_from_playing = False
