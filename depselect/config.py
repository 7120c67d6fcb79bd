"""User configuration, read from ``~/.depselect/config.yaml``."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from depselect.models import SelectionFlags

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DEPSELECT_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.depselect/config.yaml")


@dataclass
class DepselectConfig:
    """Defaults applied before command-line flags."""

    manifest: Optional[str] = None
    log_level: str = "WARNING"
    defaults: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DepselectConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @property
    def flags(self) -> SelectionFlags:
        return SelectionFlags.from_mapping(self.defaults)

    def save(self, filepath: Optional[Path] = None) -> None:
        path = resolve_config_path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


def resolve_config_path(filepath: Optional[Path] = None) -> Path:
    if filepath is None:
        filepath = Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    return Path(filepath).expanduser()


def load_config(filepath: Optional[Path] = None) -> DepselectConfig:
    """Load the config file; a missing file yields the defaults."""
    path = resolve_config_path(filepath)
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return DepselectConfig()

    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if not data:
        return DepselectConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return DepselectConfig.from_dict(data)
