from __future__ import annotations

from pathlib import Path
from typing import Sequence

import json
import math

from pydantic import BaseModel, Field, field_validator


class GatingConfig(BaseModel):
    """Named constants of the BS.1770 block/gating algorithm."""

    block_duration_s: float = Field(0.4, gt=0.0)
    overlap: float = Field(0.75, ge=0.0, lt=1.0)
    absolute_gate_lufs: float = Field(-70.0)
    relative_gate_db: float = Field(-10.0, le=0.0)
    loudness_offset_db: float = Field(-0.691)
    epsilon: float = Field(2.220446049250313e-16, gt=0.0)

    @property
    def hop_ratio(self) -> float:
        return 1.0 - self.overlap


class MeterConfig(BaseModel):
    gating: GatingConfig = Field(default_factory=GatingConfig)
    channel_weights: list[float] | None = Field(None)

    @field_validator("channel_weights")
    @classmethod
    def _validate_channel_weights(cls, value: list[float] | None) -> list[float] | None:
        if value is None:
            return value
        return list(validate_channel_weights(value))


def validate_channel_weights(weights: Sequence[float]) -> tuple[float, ...]:
    """Return ``weights`` as floats, rejecting empty, negative or non-finite tables."""

    if not weights:
        raise ValueError("channel_weights must not be empty when provided.")
    values = tuple(float(weight) for weight in weights)
    if not all(math.isfinite(weight) and weight >= 0.0 for weight in values):
        raise ValueError("channel_weights must be finite and >= 0.0.")
    return values


def load_meter_config(path: Path) -> MeterConfig:
    data = _load_config_data(path)
    return MeterConfig.model_validate(data)


def _load_config_data(path: Path) -> dict:
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:
            raise ImportError("PyYAML is required to load YAML configs.") from exc

        with path.open("r", encoding="utf-8") as handle:
            try:
                return yaml.safe_load(handle) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML config {path}: {exc}") from exc

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
