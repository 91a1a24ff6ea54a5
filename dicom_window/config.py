"""
config.py - Configuration loader for the DICOM windowing viewer.

Loads settings from config.yaml with built-in defaults so that window
defaults, clamps and folder paths are not hard-coded inside a module.
"""

import os
import yaml
from typing import Any

# Resolve the config file relative to the repo root, not the CWD.
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_CONFIG_PATH = os.path.join(_REPO_ROOT, "config.yaml")

_DEFAULTS: dict[str, Any] = {
    "paths": {
        "input_folder": "data/raw",
        "output_folder": "data/rendered",
        "reports_folder": "reports",
    },
    "windowing": {
        # Used when a grayscale image carries no Window Center / Width.
        "default_center": 1024.0,
        "default_width": 4096.0,
        # Effective widths below this are clamped (DICOM linear windows need >= 1).
        "min_width": 1.0,
    },
    "pipeline": {
        "max_files": None,
        "output_format": "png",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Overlay *override* on *base* section by section; neither input is modified."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str = _CONFIG_PATH) -> dict[str, Any]:
    """
    Read viewer settings from *config_path* on top of the built-in defaults.

    A missing or empty file yields the defaults unchanged, so the decoder
    always finds ``windowing.default_center``, ``default_width`` and
    ``min_width``.

    Parameters
    ----------
    config_path : str
        YAML file to read; the repo-root config.yaml unless given.

    Returns
    -------
    dict
        Settings keyed by section (paths, windowing, pipeline).
    """
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}
    else:
        user_config = {}

    return _deep_merge(_DEFAULTS, user_config)


# Read once at import: `from dicom_window.config import CONFIG`
CONFIG = load_config()
