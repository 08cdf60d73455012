"""Decode audio files into per-channel sample buffers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import soundfile as sf


@dataclass(frozen=True, slots=True)
class AudioDecodeError(ValueError):
    code: str
    message: str

    def __str__(self) -> str:
        return self.message

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


def read_audio(path: Path) -> tuple[np.ndarray, int]:
    if not path.exists() or not path.is_file():
        raise AudioDecodeError("file_not_found", f"Audio file not found: {path}")

    try:
        audio, sample_rate = sf.read(path, dtype="float32", always_2d=True)
    except RuntimeError as exc:
        raise AudioDecodeError("decode_failed", f"Unable to decode audio file {path}: {exc}") from exc
    return audio, int(sample_rate)


def write_audio(path: Path, audio: np.ndarray, sample_rate: int) -> None:
    sf.write(path, audio, samplerate=sample_rate, subtype="FLOAT")


def split_channels(audio: np.ndarray) -> list[np.ndarray]:
    """Split frame-major ``(frames, channels)`` or mono audio into channel buffers."""

    data = np.asarray(audio, dtype=np.float32)
    if data.ndim == 1:
        return [data]
    if data.ndim != 2:
        raise ValueError("Audio must be a 1D mono or 2D (frames, channels) array.")
    return [np.ascontiguousarray(data[:, idx]) for idx in range(data.shape[1])]


def read_channels(path: Path) -> tuple[list[np.ndarray], int]:
    audio, sample_rate = read_audio(path)
    return split_channels(audio), sample_rate
