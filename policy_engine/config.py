"""Engine configuration loaded from YAML or JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List

import yaml

from policy_engine.services.windows import check_timezone


@dataclass
class EngineConfig:
    database_url: str = "sqlite:///policy_engine.db"
    default_timezone: str = "UTC"
    log_level: str = "INFO"
    # Roles that may still edit periods classified as locked
    elevated_roles: List[str] = field(default_factory=lambda: ["admin"])
    # Roles that may create/update/deactivate policies and assignments
    admin_roles: List[str] = field(default_factory=lambda: ["admin"])


def _from_mapping(data: dict) -> EngineConfig:
    known = {f.name for f in fields(EngineConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

    cfg = EngineConfig(**data)
    cfg.elevated_roles = [str(r).lower() for r in cfg.elevated_roles]
    cfg.admin_roles = [str(r).lower() for r in cfg.admin_roles]
    cfg.log_level = str(cfg.log_level).upper()
    cfg.default_timezone = check_timezone(cfg.default_timezone)
    return cfg


def load_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load configuration from a YAML or JSON file.

    Args:
        path: Config file path. None returns the defaults.

    Returns:
        EngineConfig

    Raises:
        ValueError: If the file does not contain a mapping, has unknown keys
            or names an unknown default timezone
    """
    if path is None:
        return EngineConfig()

    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    if data is None:
        return EngineConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")
    return _from_mapping(data)
