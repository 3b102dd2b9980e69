"""Audio file decoding with PyAV."""

from pathlib import Path
from typing import Union

import av
import numpy as np


def load_audio(
    path: Union[str, Path],
    sample_rate: int = 48000,
    channels: int = 2,
) -> np.ndarray:
    """
    Decode an audio file to float32 samples.

    Returns:
        Array of shape (frames, channels); empty if the file has no audio
    """
    layout = "mono" if channels == 1 else "stereo"
    resampler = av.AudioResampler(format="flt", layout=layout, rate=sample_rate)
    chunks: list[np.ndarray] = []

    with av.open(str(path)) as container:
        for frame in container.decode(audio=0):
            for out in resampler.resample(frame):
                chunks.append(out.to_ndarray().reshape(-1, channels))
        for out in resampler.resample(None):
            chunks.append(out.to_ndarray().reshape(-1, channels))

    if not chunks:
        return np.zeros((0, channels), dtype=np.float32)
    return np.concatenate(chunks, axis=0).astype(np.float32)
