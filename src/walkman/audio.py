"""
Local audio I/O.

- FileTransport plays a decoded audio file and supports seeking
- RemoteAudioPlayer plays the realtime engine's voice track
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional, Union

import numpy as np
import sounddevice as sd
from aiortc.mediastreams import MediaStreamError

from .decode import load_audio

logger = logging.getLogger(__name__)


class FileTransport:
    """
    Audio transport backed by an in-memory decoded file.

    The sounddevice callback runs on the audio thread, so the frame cursor is
    guarded by a lock.
    """

    def __init__(
        self,
        path: Union[str, Path],
        sample_rate: int = 48000,
        channels: int = 2,
        device: Optional[Union[int, str]] = None,
    ):
        self.path = Path(path)
        self.sample_rate = sample_rate
        self.channels = channels

        self._samples = load_audio(self.path, sample_rate, channels)
        self._frame = 0
        self._lock = threading.Lock()
        self._stream = sd.OutputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype="float32",
            device=device,
            callback=self._callback,
        )
        logger.info(f"Loaded {self.path.name} ({self.duration:.1f}s)")

    @property
    def duration(self) -> float:
        return len(self._samples) / self.sample_rate

    @property
    def playing(self) -> bool:
        return self._stream.active

    @property
    def current_time(self) -> float:
        with self._lock:
            return self._frame / self.sample_rate

    @current_time.setter
    def current_time(self, value: float) -> None:
        frame = int(max(value, 0) * self.sample_rate)
        with self._lock:
            self._frame = min(frame, len(self._samples))

    def play(self) -> None:
        if self._stream.active:
            return
        if not self._stream.stopped:
            # Callback ran off the end of the file; stop before restarting.
            self._stream.stop()
        with self._lock:
            if self._frame >= len(self._samples):
                self._frame = 0
        self._stream.start()

    def pause(self) -> None:
        if not self._stream.stopped:
            self._stream.stop()

    def close(self) -> None:
        self._stream.close()

    def _callback(self, outdata: np.ndarray, frames: int, time, status) -> None:
        if status:
            logger.debug(f"Output status: {status}")
        with self._lock:
            chunk = self._samples[self._frame:self._frame + frames]
            self._frame += len(chunk)
        outdata[:len(chunk)] = chunk
        outdata[len(chunk):] = 0
        if len(chunk) < frames:
            raise sd.CallbackStop()


class RemoteAudioPlayer:
    """
    Plays the first remote audio track of a session.

    The playback task owns the output stream. Blocking writes run in the
    default executor; on stop the task waits for an in-flight write to finish
    before closing the stream.
    """

    def __init__(self, device: Optional[Union[int, str]] = None):
        self.device = device
        self.track = None
        self._task: Optional[asyncio.Task] = None
        self._stream: Optional[sd.OutputStream] = None
        self._write: Optional[asyncio.Future] = None

    def attach(self, track) -> bool:
        if self.track is not None:
            return False
        self.track = track
        self._task = asyncio.get_running_loop().create_task(self._run(track))
        return True

    async def _run(self, track) -> None:
        loop = asyncio.get_running_loop()
        logger.info("Remote audio playback started")
        try:
            while True:
                try:
                    frame = await track.recv()
                except MediaStreamError:
                    break

                channels = len(frame.layout.channels)
                audio_data = frame.to_ndarray()
                if audio_data.dtype == np.int16:
                    audio_data = audio_data.astype(np.float32) / 32768.0
                audio_data = audio_data.reshape(-1, channels)

                if self._stream is None:
                    self._stream = sd.OutputStream(
                        samplerate=frame.sample_rate,
                        channels=channels,
                        dtype="float32",
                        device=self.device,
                    )
                    self._stream.start()

                # The write outlives cancellation; finally waits for it.
                self._write = loop.run_in_executor(None, self._stream.write, audio_data)
                await asyncio.shield(self._write)
                self._write = None
        except Exception as e:
            logger.error(f"Remote audio playback error: {e}")
        finally:
            if self._write is not None:
                await asyncio.wait([self._write])
                self._write = None
            if self._stream is not None:
                self._stream.close()
                self._stream = None
            logger.info("Remote audio playback ended")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.track = None
