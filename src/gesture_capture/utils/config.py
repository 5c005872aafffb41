"""
Configuration loading.

Reads a YAML file, applies the selected capture-mode preset, validates
critical fields (warnings only) and builds typed config objects with
defaults for anything missing.
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from ..capture.camera import CameraConfig
from ..core.session import SessionConfig
from .visualization import VisualizerConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "config.yaml"

# Per-mode overrides. "sequence" is the 1-2-3 photo flow; "single" is the
# single-shot auto capture on pose 3 with a slower, steadier hold.
MODE_PRESETS = {
    "sequence": {
        "smoothing": {"hold_ms": 150},
        "sequence": {"steps": [1, 2, 3], "cooldown_ms": 1000},
    },
    "single": {
        "smoothing": {"hold_ms": 500},
        "sequence": {"steps": [3], "cooldown_ms": 2500},
    },
}

# Schema: sections and the expected types of their critical fields
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
    },
    "classifier": {
        "straight_cos": float,
        "tip_margin": float,
        "thumb_lateral_cos": float,
        "thumb_margin": float,
        "min_palm_width": float,
        "grace_ms": float,
    },
    "smoothing": {
        "sample_hz": float,
        "window": int,
        "hold_ms": float,
    },
    "hand_box": {
        "padding": float,
        "grace_ms": float,
    },
    "sequence": {
        "steps": list,
        "cooldown_ms": float,
        "wrong_pose_timeout_ms": float,
        "allow_manual_override": bool,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(data: dict) -> list:
    """Check critical fields against the schema; returns the warnings logged."""
    warnings = []
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            continue
        if not isinstance(section, dict):
            warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
            continue
        for field_name, expected_type in fields.items():
            if field_name not in section:
                continue
            value = section[field_name]
            # Allow int where float is expected
            if expected_type is float and isinstance(value, (int, float)) and not isinstance(value, bool):
                continue
            if not isinstance(value, expected_type):
                warnings.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )

    for w in warnings:
        logger.warning("Config validation: %s", w)
    if not warnings:
        logger.debug("Config validation passed")
    return warnings


def load_config(config_path: Optional[Union[str, Path]] = None) -> dict:
    """Load configuration from YAML file; missing file means defaults."""
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded config from %s", config_path)
    except FileNotFoundError:
        logger.warning("Config file not found: %s, using defaults", config_path)
        data = {}
    if not isinstance(data, dict):
        logger.warning("Config root should be a mapping, got %s; using defaults",
                       type(data).__name__)
        data = {}
    return data


@dataclass
class AppConfig:
    """Application configuration container."""
    mode: str = "sequence"
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: dict = field(default_factory=dict)  # HandDetectorConfig.from_dict input
    session: SessionConfig = field(default_factory=SessionConfig)
    visualization: VisualizerConfig = field(default_factory=VisualizerConfig)
    output_dir: str = "captures"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, config: dict, mode: Optional[str] = None) -> "AppConfig":
        """Build from a parsed config dict.

        Layering, lowest first: built-in mode preset, top-level sections
        of ``config``, then ``config["modes"][mode]``.
        """
        mode = mode or config.get("mode", "sequence")
        if mode not in MODE_PRESETS:
            raise ValueError(f"Unknown capture mode '{mode}', expected one of {sorted(MODE_PRESETS)}")

        base = {k: v for k, v in config.items() if k != "modes"}
        merged = _deep_merge(copy.deepcopy(MODE_PRESETS[mode]), base)
        merged = _deep_merge(merged, (config.get("modes") or {}).get(mode, {}))
        validate_config(merged)

        logging_cfg = merged.get("logging", {})
        return cls(
            mode=mode,
            camera=CameraConfig.from_dict(merged.get("camera", {})),
            detector=dict(merged.get("detector", {})),
            session=SessionConfig.from_dict(merged),
            visualization=VisualizerConfig.from_dict(merged.get("visualization", {})),
            output_dir=merged.get("output", {}).get("directory", "captures"),
            log_level=logging_cfg.get("level", "INFO"),
            log_file=logging_cfg.get("file"),
        )


def create_app_config(config_path: Optional[Union[str, Path]] = None,
                      mode: Optional[str] = None) -> AppConfig:
    """Load the YAML file and build the application config."""
    return AppConfig.from_dict(load_config(config_path), mode=mode)
