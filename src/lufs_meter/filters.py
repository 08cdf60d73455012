"""Second-order (biquad) IIR filter stage and its coefficient designs.

Two interchangeable designs produce :class:`FilterCoefficients` for a given
sample rate:

* :class:`ParametricDesign` derives coefficients from cookbook formulas
  (high-pass or high-shelf) for any rate.
* :class:`RateAdaptedDesign` reuses coefficients designed at a reference rate
  (48 kHz) and re-warps the implied analog prototype to the requested rate.
  This is the canonical path used by the K-weighting cascade.

:class:`BiquadFilter` applies a set of coefficients to a sample array while
keeping the last three input and output samples as its private state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence

import numpy as np
from scipy import signal

REFERENCE_SAMPLE_RATE_HZ = 48_000


class FilterKind(str, Enum):
    """Supported parametric filter shapes."""

    HIGH_PASS = "high_pass"
    HIGH_SHELF = "high_shelf"


class InvalidFilterKindError(ValueError):
    """Raised when a parametric design is requested for an unknown filter kind."""


def parse_filter_kind(raw_value: FilterKind | str) -> FilterKind:
    """Parse a filter kind case-insensitively, accepting ``HIGH_PASS`` or ``high_pass``."""

    if isinstance(raw_value, FilterKind):
        return raw_value

    normalized = str(raw_value).strip().lower()
    for member in FilterKind:
        if member.value == normalized:
            return member

    allowed = ", ".join(member.value for member in FilterKind)
    raise InvalidFilterKindError(f"Unsupported filter kind {raw_value!r}. Allowed values: {allowed}.")


@dataclass(frozen=True, slots=True)
class FilterCoefficients:
    """Normalized biquad coefficients (``a[0] == 1``)."""

    a: tuple[float, float, float]
    b: tuple[float, float, float]

    def __post_init__(self) -> None:
        if len(self.a) != 3 or len(self.b) != 3:
            raise ValueError("Biquad coefficients must be 3-element sequences.")
        if not all(math.isfinite(value) for value in (*self.a, *self.b)):
            raise ValueError("Biquad coefficients must be finite.")
        if not math.isclose(self.a[0], 1.0, rel_tol=0.0, abs_tol=1e-12):
            raise ValueError("Biquad coefficients must be normalized so that a[0] == 1.")

    @classmethod
    def normalized(cls, a: Sequence[float], b: Sequence[float]) -> FilterCoefficients:
        """Build coefficients from an un-normalized denominator/numerator pair."""

        a0 = float(a[0])
        if a0 == 0.0:
            raise ValueError("Leading denominator coefficient must be non-zero.")
        return cls(
            a=(1.0, float(a[1]) / a0, float(a[2]) / a0),
            b=(float(b[0]) / a0, float(b[1]) / a0, float(b[2]) / a0),
        )

    def coefficients(self, rate: int) -> FilterCoefficients:
        # Fixed coefficients are rate-independent.
        return self


class FilterDesign(Protocol):
    """Anything that can produce biquad coefficients for a sample rate."""

    def coefficients(self, rate: int) -> FilterCoefficients:
        ...


def _check_rate(rate: float) -> None:
    if rate <= 0:
        raise ValueError("Sample rate must be a positive number.")


@dataclass(frozen=True, slots=True)
class ParametricDesign:
    """Cookbook biquad design from corner frequency, Q and shelf gain."""

    kind: FilterKind | str
    freq: float
    q: float
    gain_db: float = 0.0

    def coefficients(self, rate: int) -> FilterCoefficients:
        _check_rate(rate)
        kind = parse_filter_kind(self.kind)

        w0 = 2.0 * math.pi * self.freq / rate
        cos_w0 = math.cos(w0)
        alpha = math.sin(w0) / (2.0 * self.q)

        if kind is FilterKind.HIGH_PASS:
            b = ((1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0)
            a = (1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha)
            return FilterCoefficients.normalized(a, b)

        amp = 10.0 ** (self.gain_db / 40.0)
        shelf_alpha = 2.0 * math.sqrt(amp) * alpha
        b = (
            amp * ((amp + 1.0) + (amp - 1.0) * cos_w0 + shelf_alpha),
            -2.0 * amp * ((amp - 1.0) + (amp + 1.0) * cos_w0),
            amp * ((amp + 1.0) + (amp - 1.0) * cos_w0 - shelf_alpha),
        )
        a = (
            (amp + 1.0) - (amp - 1.0) * cos_w0 + shelf_alpha,
            2.0 * ((amp - 1.0) - (amp + 1.0) * cos_w0),
            (amp + 1.0) - (amp - 1.0) * cos_w0 - shelf_alpha,
        )
        return FilterCoefficients.normalized(a, b)


def convert_to_sample_rate(
    a: Sequence[float],
    b: Sequence[float],
    rate: int,
    reference_rate: int = REFERENCE_SAMPLE_RATE_HZ,
) -> FilterCoefficients:
    """Re-warp coefficients designed at ``reference_rate`` so they hold at ``rate``.

    The reference design is decomposed into its analog prototype: the
    pre-warped corner ``K``, quality factor ``Q`` and the high/band/low gains
    ``Vh``, ``Vb``, ``Vl``. The corner is then re-warped with
    ``K' = tan(atan(K) * reference_rate / rate)`` and the biquad rebuilt.
    """

    _check_rate(rate)
    a0, a1, a2 = (float(value) for value in a)
    b0, b1, b2 = (float(value) for value in b)
    if rate == reference_rate:
        return FilterCoefficients.normalized((a0, a1, a2), (b0, b1, b2))

    k_over_q = (2.0 - 2.0 * a2) / (a2 - a1 + 1.0)
    k = math.sqrt((a1 + a2 + 1.0) / (a2 - a1 + 1.0))
    q = k / k_over_q
    arctan_k = math.atan(k)
    v_band = (b0 - b2) / (1.0 - a2)
    v_high = (b0 - b1 + b2) / (a2 - a1 + 1.0)
    v_low = (b0 + b1 + b2) / (a1 + a2 + 1.0)

    new_k = math.tan(arctan_k * reference_rate / rate)
    common = 1.0 / (1.0 + new_k / q + new_k * new_k)
    return FilterCoefficients(
        a=(
            1.0,
            2.0 * (new_k * new_k - 1.0) * common,
            (1.0 - new_k / q + new_k * new_k) * common,
        ),
        b=(
            (v_high + v_band * new_k / q + v_low * new_k * new_k) * common,
            2.0 * (v_low * new_k * new_k - v_high) * common,
            (v_high - v_band * new_k / q + v_low * new_k * new_k) * common,
        ),
    )


@dataclass(frozen=True, slots=True)
class RateAdaptedDesign:
    """Known-good coefficients at a reference rate, re-warped on demand."""

    a: tuple[float, float, float]
    b: tuple[float, float, float]
    reference_rate: int = REFERENCE_SAMPLE_RATE_HZ

    def coefficients(self, rate: int) -> FilterCoefficients:
        return convert_to_sample_rate(self.a, self.b, rate, reference_rate=self.reference_rate)


class BiquadFilter:
    """Stateful direct-form biquad.

    ``x`` and ``y`` hold the three most recent input/output samples, newest
    first. They start at zero and persist across :meth:`process` calls on the
    same instance.
    """

    def __init__(self, coefficients: FilterCoefficients) -> None:
        self.coefficients = coefficients
        self.x = [0.0, 0.0, 0.0]
        self.y = [0.0, 0.0, 0.0]

    @classmethod
    def from_design(cls, design: FilterDesign, rate: int) -> BiquadFilter:
        return cls(design.coefficients(rate))

    @property
    def a(self) -> tuple[float, float, float]:
        return self.coefficients.a

    @property
    def b(self) -> tuple[float, float, float]:
        return self.coefficients.b

    def process(self, samples: np.ndarray | Sequence[float]) -> np.ndarray:
        """Filter ``samples`` and return an output array of the same length.

        Each output is ``b0*x0 + b1*x1 + b2*x2 - a1*y1 - a2*y2``. The recursion
        runs through :func:`scipy.signal.lfilter`, seeded from the stored
        history so that consecutive calls behave as one continuous pass.
        """

        data = np.asarray(samples, dtype=np.float64).reshape(-1)
        if data.size == 0:
            return np.zeros(0, dtype=np.float64)

        zi = signal.lfiltic(self.b, self.a, y=self.y[:2], x=self.x[:2])
        output, _ = signal.lfilter(self.b, self.a, data, zi=zi)

        self.x = _push_history(self.x, data)
        self.y = _push_history(self.y, output)
        return output


def _push_history(history: list[float], block: np.ndarray) -> list[float]:
    newest = [float(value) for value in block[::-1][:3]]
    return (newest + history)[:3]
