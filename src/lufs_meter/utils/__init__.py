from .config import (
    GatingConfig,
    MeterConfig,
    load_meter_config,
)

__all__ = [
    "GatingConfig",
    "MeterConfig",
    "load_meter_config",
]
