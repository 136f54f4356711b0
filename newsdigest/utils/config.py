"""Configuration loading helpers."""
from __future__ import annotations

import pathlib
from typing import Any, Dict

import yaml


def load_config(path: str | pathlib.Path) -> Dict[str, Any]:
    """Load a YAML configuration file."""
    config_path = pathlib.Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return payload


def config_section(config: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Walk nested mapping keys, returning an empty dict for missing sections."""
    section: Any = config
    for key in keys:
        if not isinstance(section, dict):
            return {}
        section = section.get(key)
    return section if isinstance(section, dict) else {}
