"""Public package exports for lufs-meter with lazy imports."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "BiquadFilter",
    "FilterCoefficients",
    "FilterDesign",
    "FilterKind",
    "InvalidFilterKindError",
    "ParametricDesign",
    "RateAdaptedDesign",
    "convert_to_sample_rate",
    "BlockGeometry",
    "LoudnessIntegrator",
    "MeasurementResult",
    "measure_loudness",
    "GatingConfig",
    "MeterConfig",
    "load_meter_config",
]

_EXPORT_MODULES: dict[str, str] = {
    "BiquadFilter": "lufs_meter.filters",
    "FilterCoefficients": "lufs_meter.filters",
    "FilterDesign": "lufs_meter.filters",
    "FilterKind": "lufs_meter.filters",
    "InvalidFilterKindError": "lufs_meter.filters",
    "ParametricDesign": "lufs_meter.filters",
    "RateAdaptedDesign": "lufs_meter.filters",
    "convert_to_sample_rate": "lufs_meter.filters",
    "BlockGeometry": "lufs_meter.integrator",
    "LoudnessIntegrator": "lufs_meter.integrator",
    "MeasurementResult": "lufs_meter.integrator",
    "measure_loudness": "lufs_meter.integrator",
    "GatingConfig": "lufs_meter.utils.config",
    "MeterConfig": "lufs_meter.utils.config",
    "load_meter_config": "lufs_meter.utils.config",
}


def __getattr__(name: str) -> Any:
    if name not in _EXPORT_MODULES:
        raise AttributeError(f"module 'lufs_meter' has no attribute {name!r}")

    module = import_module(_EXPORT_MODULES[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
