"""K-weighting cascade: a high-shelf stage followed by a high-pass stage."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .filters import BiquadFilter, FilterDesign, RateAdaptedDesign

# Head/ear response boost above ~1.5 kHz, designed at 48 kHz.
HIGH_SHELF_STAGE = RateAdaptedDesign(
    a=(1.0, -1.69065929318241, 0.73248077421585),
    b=(1.53512485958697, -2.69169618940638, 1.19839281085285),
)

# Sub-bass removal, designed at 48 kHz.
HIGH_PASS_STAGE = RateAdaptedDesign(
    a=(1.0, -1.99004745483398, 0.99007225036621),
    b=(1.0, -2.0, 1.0),
)

K_WEIGHTING_STAGES: tuple[FilterDesign, ...] = (HIGH_SHELF_STAGE, HIGH_PASS_STAGE)


def apply_weighting(
    samples: np.ndarray,
    sample_rate: int,
    stages: Sequence[FilterDesign] = K_WEIGHTING_STAGES,
) -> np.ndarray:
    """Run ``samples`` through freshly constructed filter stages, in order."""

    weighted = np.asarray(samples, dtype=np.float64).reshape(-1)
    for design in stages:
        weighted = BiquadFilter.from_design(design, sample_rate).process(weighted)
    return weighted
