"""Block-based, two-stage gated loudness integration (ITU-R BS.1770 / EBU R128).

Pipeline for one :meth:`LoudnessIntegrator.measure` call:

1. K-weight every channel with a fresh filter cascade.
2. Cut overlapping blocks (400 ms, 75% overlap by default).
3. Compute per-channel mean-square energy per block and the momentary
   loudness ``offset + 10*log10(sum_c w_c * ms_c + eps)``.
4. Absolute gate, then relative threshold from the absolute-gated blocks.
5. Integrated loudness from blocks above both gates.

Energies are always combined in the linear (power) domain.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from .filters import FilterDesign
from .k_weighting import K_WEIGHTING_STAGES, apply_weighting
from .utils.config import GatingConfig, MeterConfig, validate_channel_weights

LOGGER = logging.getLogger("lufs_meter.integrator")

MIN_BLOCKS = 1


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class BlockGeometry:
    """Index arithmetic for overlapping gating blocks."""

    block_size: int
    hop_size: int
    length: int
    num_blocks: int

    def bounds(self, index: int) -> tuple[int, int]:
        start = index * self.hop_size
        return start, min(start + self.block_size, self.length)

    @classmethod
    def for_length(cls, length: int, sample_rate: int, gating: GatingConfig) -> BlockGeometry:
        block_size = max(1, _round_half_up(gating.block_duration_s * sample_rate))
        hop_size = max(1, _round_half_up(block_size * gating.hop_ratio))
        num_blocks = max(MIN_BLOCKS, _round_half_up((length - block_size) / hop_size) + 1)
        return cls(block_size=block_size, hop_size=hop_size, length=length, num_blocks=num_blocks)


@dataclass(frozen=True, slots=True)
class MeasurementResult:
    """Loudness measurement of one set of channel buffers."""

    integrated_lufs: float
    block_loudness: np.ndarray
    relative_threshold: float
    max_loudness: float
    gated_block_count: int
    sample_rate: int
    channel_count: int

    @property
    def block_count(self) -> int:
        return int(self.block_loudness.size)

    @property
    def has_loud_blocks(self) -> bool:
        return self.gated_block_count > 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "integrated_lufs": self.integrated_lufs,
            "relative_threshold": self.relative_threshold,
            "max_loudness": self.max_loudness,
            "block_count": self.block_count,
            "gated_block_count": self.gated_block_count,
            "sample_rate": self.sample_rate,
            "channel_count": self.channel_count,
            "block_loudness": [float(value) for value in self.block_loudness],
        }


class LoudnessIntegrator:
    """Measure integrated and momentary loudness at a fixed sample rate."""

    def __init__(
        self,
        sample_rate: int,
        config: MeterConfig | None = None,
        *,
        channel_weights: Sequence[float] | None = None,
        weighting: Sequence[FilterDesign] = K_WEIGHTING_STAGES,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError("Sample rate must be a positive integer.")
        config = config or MeterConfig()
        self.sample_rate = int(sample_rate)
        self.gating = config.gating
        weights = channel_weights if channel_weights is not None else config.channel_weights
        self.channel_weights = None if weights is None else validate_channel_weights(weights)
        self.weighting = tuple(weighting)

    def block_geometry(self, length: int) -> BlockGeometry:
        return BlockGeometry.for_length(length, self.sample_rate, self.gating)

    def _weights_for(self, channel_count: int) -> np.ndarray:
        if self.channel_weights is None:
            return np.ones(channel_count, dtype=np.float64)
        if len(self.channel_weights) != channel_count:
            raise ValueError(
                f"Expected {channel_count} channel weights, got {len(self.channel_weights)}."
            )
        return np.asarray(self.channel_weights, dtype=np.float64)

    def _to_lufs(self, energy: float) -> float:
        return self.gating.loudness_offset_db + 10.0 * math.log10(energy)

    def measure(self, channels: Sequence[np.ndarray]) -> MeasurementResult:
        """Measure loudness of time-aligned channel buffers.

        Buffers of different lengths are truncated to the shortest one. Input
        shorter than one block still yields a single block.
        """

        if len(channels) == 0:
            raise ValueError("At least one channel buffer is required.")

        weights = self._weights_for(len(channels))
        filtered = [apply_weighting(channel, self.sample_rate, self.weighting) for channel in channels]
        geometry = self.block_geometry(min(channel.size for channel in filtered))

        energy = np.zeros((len(filtered), geometry.num_blocks), dtype=np.float64)
        for block_idx in range(geometry.num_blocks):
            start, end = geometry.bounds(block_idx)
            for channel_idx, channel in enumerate(filtered):
                block = channel[start:end]
                if block.size:
                    energy[channel_idx, block_idx] = float(np.mean(np.square(block)))

        block_energy = weights @ energy
        block_loudness = self.gating.loudness_offset_db + 10.0 * np.log10(
            block_energy + self.gating.epsilon
        )
        block_loudness.setflags(write=False)

        absolute_gate = self.gating.absolute_gate_lufs
        above_absolute = block_loudness >= absolute_gate
        if np.any(above_absolute):
            gated_means = energy[:, above_absolute].mean(axis=1)
            relative_threshold = self._to_lufs(float(weights @ gated_means)) + self.gating.relative_gate_db
        else:
            LOGGER.warning(
                "no_blocks_above_absolute_gate",
                extra={"absolute_gate_lufs": absolute_gate, "block_count": geometry.num_blocks},
            )
            relative_threshold = absolute_gate

        final_gate = (block_loudness > relative_threshold) & (block_loudness > absolute_gate)
        gated_block_count = int(np.count_nonzero(final_gate))
        if gated_block_count == 0:
            integrated_lufs = absolute_gate
        else:
            final_means = energy[:, final_gate].mean(axis=1)
            integrated_lufs = self._to_lufs(float(weights @ final_means))

        result = MeasurementResult(
            integrated_lufs=float(integrated_lufs),
            block_loudness=block_loudness,
            relative_threshold=float(relative_threshold),
            max_loudness=float(np.max(block_loudness)),
            gated_block_count=gated_block_count,
            sample_rate=self.sample_rate,
            channel_count=len(filtered),
        )
        LOGGER.debug(
            "loudness_measured",
            extra={
                "integrated_lufs": result.integrated_lufs,
                "relative_threshold": result.relative_threshold,
                "block_count": result.block_count,
                "gated_block_count": gated_block_count,
            },
        )
        return result


def measure_loudness(
    channels: Sequence[np.ndarray],
    sample_rate: int,
    config: MeterConfig | None = None,
) -> MeasurementResult:
    """Measure ``channels`` with a one-off :class:`LoudnessIntegrator`."""

    return LoudnessIntegrator(sample_rate, config).measure(channels)
