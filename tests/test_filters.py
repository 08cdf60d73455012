import math

import numpy as np
import pytest

from lufs_meter.filters import (
    BiquadFilter,
    FilterCoefficients,
    FilterKind,
    InvalidFilterKindError,
    ParametricDesign,
    RateAdaptedDesign,
    convert_to_sample_rate,
)
from lufs_meter.k_weighting import HIGH_PASS_STAGE, HIGH_SHELF_STAGE


def _dc_gain(coefficients: FilterCoefficients) -> float:
    return sum(coefficients.b) / sum(coefficients.a)


def _nyquist_gain(coefficients: FilterCoefficients) -> float:
    b0, b1, b2 = coefficients.b
    a0, a1, a2 = coefficients.a
    return (b0 - b1 + b2) / (a0 - a1 + a2)


def test_impulse_response_matches_recursive_definition() -> None:
    coefficients = HIGH_SHELF_STAGE.coefficients(48_000)
    b0, b1, b2 = coefficients.b
    _, a1, a2 = coefficients.a

    expected = [b0]
    expected.append(b1 - a1 * expected[0])
    expected.append(b2 - a1 * expected[1] - a2 * expected[0])
    expected.append(-a1 * expected[2] - a2 * expected[1])
    expected.append(-a1 * expected[3] - a2 * expected[2])

    impulse = np.zeros(16, dtype=np.float32)
    impulse[0] = 1.0
    output = BiquadFilter(coefficients).process(impulse)

    assert output.shape == impulse.shape
    assert np.allclose(output[:5], expected, rtol=0.0, atol=1e-12)


def test_process_keeps_history_across_calls() -> None:
    rng = np.random.default_rng(7)
    samples = rng.uniform(-1.0, 1.0, 257)
    coefficients = HIGH_PASS_STAGE.coefficients(44_100)

    whole = BiquadFilter(coefficients).process(samples)

    chunked_filter = BiquadFilter(coefficients)
    chunks = [chunked_filter.process(part) for part in (samples[:1], samples[1:100], samples[100:])]

    assert np.allclose(np.concatenate(chunks), whole, rtol=0.0, atol=1e-12)
    assert chunked_filter.x == [samples[-1], samples[-2], samples[-3]]
    assert chunked_filter.y[0] == pytest.approx(whole[-1])


def test_fresh_filter_starts_from_zero_state() -> None:
    coefficients = HIGH_SHELF_STAGE.coefficients(48_000)
    samples = np.linspace(-0.5, 0.5, 64)

    first = BiquadFilter(coefficients).process(samples)
    second = BiquadFilter(coefficients).process(samples)

    assert np.array_equal(first, second)


def test_process_empty_input_returns_empty_output() -> None:
    output = BiquadFilter(HIGH_PASS_STAGE.coefficients(48_000)).process(np.array([], dtype=np.float32))

    assert output.size == 0


def test_flat_coefficients_pass_signal_through() -> None:
    flat = FilterCoefficients(a=(1.0, 0.0, 0.0), b=(1.0, 0.0, 0.0))
    samples = np.array([0.25, -0.5, 0.75, 0.0], dtype=np.float32)

    assert np.allclose(BiquadFilter(flat).process(samples), samples)


def test_rate_adapted_design_is_identity_at_reference_rate() -> None:
    for stage in (HIGH_SHELF_STAGE, HIGH_PASS_STAGE):
        coefficients = stage.coefficients(48_000)
        assert np.allclose(coefficients.a, stage.a, rtol=0.0, atol=1e-15)
        assert np.allclose(coefficients.b, stage.b, rtol=0.0, atol=1e-15)


def test_rate_conversion_roundtrips_through_another_rate() -> None:
    at_44k = convert_to_sample_rate(HIGH_SHELF_STAGE.a, HIGH_SHELF_STAGE.b, 44_100)
    back = convert_to_sample_rate(at_44k.a, at_44k.b, 48_000, reference_rate=44_100)

    assert np.allclose(back.a, HIGH_SHELF_STAGE.a, rtol=0.0, atol=1e-9)
    assert np.allclose(back.b, HIGH_SHELF_STAGE.b, rtol=0.0, atol=1e-9)


@pytest.mark.parametrize("rate", [32_000, 44_100, 88_200, 96_000])
def test_rate_conversion_preserves_band_gains(rate: int) -> None:
    reference_shelf = HIGH_SHELF_STAGE.coefficients(48_000)
    shelf = HIGH_SHELF_STAGE.coefficients(rate)
    high_pass = HIGH_PASS_STAGE.coefficients(rate)

    assert _dc_gain(shelf) == pytest.approx(_dc_gain(reference_shelf), rel=1e-6)
    assert _nyquist_gain(shelf) == pytest.approx(_nyquist_gain(reference_shelf), rel=1e-6)
    assert _dc_gain(high_pass) == pytest.approx(0.0, abs=1e-9)
    assert all(math.isfinite(value) for value in (*shelf.a, *shelf.b, *high_pass.a, *high_pass.b))


def test_rate_conversion_does_not_mutate_inputs() -> None:
    a = [1.0, -1.69065929318241, 0.73248077421585]
    b = [1.53512485958697, -2.69169618940638, 1.19839281085285]

    convert_to_sample_rate(a, b, 44_100)

    assert a == [1.0, -1.69065929318241, 0.73248077421585]
    assert b == [1.53512485958697, -2.69169618940638, 1.19839281085285]


def test_parametric_high_pass_blocks_dc() -> None:
    coefficients = ParametricDesign(FilterKind.HIGH_PASS, freq=38.0, q=0.5).coefficients(48_000)

    assert coefficients.a[0] == 1.0
    assert _dc_gain(coefficients) == pytest.approx(0.0, abs=1e-12)
    assert _nyquist_gain(coefficients) == pytest.approx(1.0, rel=1e-9)


def test_parametric_high_shelf_boosts_high_frequencies() -> None:
    design = ParametricDesign("HIGH_SHELF", freq=1_500.0, q=0.707, gain_db=4.0)
    coefficients = design.coefficients(44_100)

    assert _dc_gain(coefficients) == pytest.approx(1.0, rel=1e-9)
    assert 20.0 * math.log10(_nyquist_gain(coefficients)) == pytest.approx(4.0, abs=1e-9)


def test_parametric_design_rejects_unknown_kind() -> None:
    design = ParametricDesign("band_pass", freq=1_000.0, q=1.0)

    with pytest.raises(InvalidFilterKindError):
        design.coefficients(48_000)


def test_non_positive_rate_is_rejected() -> None:
    with pytest.raises(ValueError):
        RateAdaptedDesign(a=HIGH_PASS_STAGE.a, b=HIGH_PASS_STAGE.b).coefficients(0)


def test_coefficients_must_be_normalized_and_finite() -> None:
    with pytest.raises(ValueError):
        FilterCoefficients(a=(2.0, 0.0, 0.0), b=(1.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        FilterCoefficients(a=(1.0, float("nan"), 0.0), b=(1.0, 0.0, 0.0))

    normalized = FilterCoefficients.normalized((2.0, 1.0, 0.5), (4.0, 2.0, 1.0))
    assert normalized.a == (1.0, 0.5, 0.25)
    assert normalized.b == (2.0, 1.0, 0.5)
