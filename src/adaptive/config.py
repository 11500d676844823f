# ABOUTME: Loads adaptive engine settings from YAML into typed configuration objects.
# ABOUTME: Mirrors the config-file layout used by the session loop, selector, and calibrator.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = Path("configs/adaptive_engine.yaml")


@dataclass(frozen=True)
class SessionConfig:
    """Settings for the per-answer session loop."""

    window_size: int = 10
    initial_difficulty: float = 3.0


@dataclass(frozen=True)
class SelectorConfig:
    seed: Optional[int] = None


@dataclass(frozen=True)
class CalibrationConfig:
    """Minimum sample sizes and fallbacks for item recalibration."""

    min_responses_difficulty: int = 5
    min_responses_discrimination: int = 10
    default_response_time_seconds: float = 15.0
    default_success_rate: float = 0.5


@dataclass(frozen=True)
class EngineConfig:
    run_name: str = "adaptive_engine_default"
    session: SessionConfig = field(default_factory=SessionConfig)
    selector: SelectorConfig = field(default_factory=SelectorConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)


def load_engine_config(config_path: Optional[Path] = None) -> EngineConfig:
    """
    Read an engine config YAML. Missing sections fall back to defaults.

    A missing file is an error when a path is given explicitly; with no path the
    repository default is used if present, otherwise built-in defaults apply.
    """

    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return EngineConfig()
        config_path = DEFAULT_CONFIG_PATH

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"Engine config at {config_path} must be a mapping, got {type(cfg).__name__}.")

    return EngineConfig(
        run_name=cfg.get("run_name", EngineConfig.run_name),
        session=SessionConfig(**(cfg.get("session") or {})),
        selector=SelectorConfig(**(cfg.get("selector") or {})),
        calibration=CalibrationConfig(**(cfg.get("calibration") or {})),
    )
