from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

RESOURCE_DIR = Path(__file__).parent / "resources"
SHELL_CONFIG_NAME = "shell-config.rc"


class ConfigError(RuntimeError):
    pass


def _default_user_config_dir() -> Path:
    return Path.home() / ".rcctl"


@dataclass
class ToolConfig:
    application_name: str = "rcctl CLI"
    env_prefix: str = "PLATFORM_"
    user_config_dir: Path = field(default_factory=_default_user_config_dir)
    resource_path: Path = RESOURCE_DIR / SHELL_CONFIG_NAME
    source_path: Optional[Path] = None

    @property
    def shell_config_destination(self) -> Path:
        """Where the managed shell-config.rc is deployed for this user."""
        return self.user_config_dir / SHELL_CONFIG_NAME

    def ensure_user_config_dir(self) -> Path:
        self.user_config_dir.mkdir(parents=True, exist_ok=True)
        return self.user_config_dir


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        # Expand ${VAR} style
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _as_path(value: Any) -> Path:
    return Path(str(value)).expanduser().absolute()


def resolve_config_path() -> Optional[Path]:
    """Find the config file, or None when the built-in defaults apply."""
    # Highest priority: explicit override
    override = os.environ.get("RCCTL_CONFIG")
    if override:
        p = Path(override).expanduser()
        if p.is_file():
            return p
        raise ConfigError(f"RCCTL_CONFIG path not found: {p}")

    # XDG base dirs
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
    candidates = [xdg_home / "rcctl" / "config.yaml"]

    xdg_dirs = os.environ.get("XDG_CONFIG_DIRS", "/etc/xdg")
    for d in xdg_dirs.split(":"):
        if d:
            candidates.append(Path(d) / "rcctl" / "config.yaml")

    for c in candidates:
        if c.is_file():
            return c

    return None


def load_config(path: Optional[Path] = None) -> ToolConfig:
    cfg_path = path or resolve_config_path()
    if cfg_path is None:
        return ToolConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except FileNotFoundError as e:
        raise ConfigError(str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top level of {cfg_path}")

    data = _expand_env(data)
    application: Dict[str, Any] = data.get("application") or {}
    service: Dict[str, Any] = data.get("service") or {}

    cfg = ToolConfig(source_path=cfg_path)
    if application.get("name"):
        cfg.application_name = str(application["name"])
    if service.get("env_prefix") is not None:
        cfg.env_prefix = str(service["env_prefix"])
    if data.get("user_config_dir"):
        cfg.user_config_dir = _as_path(data["user_config_dir"])
    if data.get("resource_path"):
        cfg.resource_path = _as_path(data["resource_path"])
    return cfg
