from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class GardenConfig:
    """Tunable constants of the garden economy."""

    name: str = "Idle Garden"
    tick_interval: float = 1.0
    save_interval: float = 30.0

    starting_currency: int = 10
    starting_premium: int = 0
    base_plot_capacity: int = 9

    level_yield_bonus: float = 0.1
    prestige_threshold: int = 1_000_000
    prestige_bonus_per_point: float = 0.1

    offline_base_efficiency: float = 0.8
    max_offline_window: float = 24 * 3600.0
    min_offline_seconds: float = 30.0
    implausible_offline_factor: float = 2.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GardenConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def validate(self) -> list[str]:
        """Check for inconsistent settings. Returns list of error messages."""
        errors: list[str] = []
        if self.tick_interval <= 0:
            errors.append("tick_interval must be positive")
        if self.save_interval <= 0:
            errors.append("save_interval must be positive")
        if self.starting_currency < 0 or self.starting_premium < 0:
            errors.append("Starting balances must be non-negative")
        if self.base_plot_capacity < 1:
            errors.append("base_plot_capacity must be at least 1")
        if self.prestige_threshold <= 0:
            errors.append("prestige_threshold must be positive")
        if not 0.0 <= self.offline_base_efficiency <= 1.0:
            errors.append("offline_base_efficiency must be within [0, 1]")
        if self.max_offline_window <= 0:
            errors.append("max_offline_window must be positive")
        if self.min_offline_seconds < 0:
            errors.append("min_offline_seconds must be non-negative")
        if self.implausible_offline_factor < 1.0:
            errors.append("implausible_offline_factor must be at least 1.0")
        return errors


def load_config(path: str | Path) -> GardenConfig:
    """Read a JSON config file. Missing keys keep their defaults."""
    with open(str(path), encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    config = GardenConfig.from_dict(data)
    errors = config.validate()
    if errors:
        raise ValueError(
            "Invalid GardenConfig:\n" + "\n".join(f"  - {e}" for e in errors)
        )
    return config
