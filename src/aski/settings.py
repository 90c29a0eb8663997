# aski: YAML settings loader for ~/.aski/config.yaml, validated into AppConfig. A default file is written on first run.

from __future__ import annotations

import pathlib
import subprocess
import sys
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from . import config
from .errors import ConfigError
from .fs import write_text
from .models import AppConfig, Profile
from .prompts import get_prompt


def config_dir() -> pathlib.Path:
    return config.ASKI_HOME


def config_path() -> pathlib.Path:
    return config_dir() / "config.yaml"


def ensure_config(path: Optional[pathlib.Path] = None) -> pathlib.Path:
    """Write the bundled default config.yaml if none exists yet; return its path."""
    path = path or config_path()
    if not path.exists():
        write_text(path, get_prompt("default_config.yaml"))
    return path


def load_settings(path: pathlib.Path) -> Dict[str, Any]:
    """
    Read config.yaml into a plain dict.

    A missing or empty file yields {}; unparsable YAML or a non-mapping
    document raises ConfigError so the user sees what is wrong.
    """
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def load_config(path: Optional[pathlib.Path] = None) -> AppConfig:
    path = path or config_path()
    raw = load_settings(path)
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e


def select_profile(app_config: AppConfig, name: Optional[str] = None) -> Profile:
    """Return the named profile (or the current one); ConfigError lists what exists."""
    profile = app_config.profile(name)
    if profile is None:
        available = ", ".join(p.name for p in app_config.profiles) or "(none)"
        raise ConfigError(f"profile {name or app_config.current_profile!r} not found. Available: {available}")
    return profile


def set_current_profile(name: str, path: Optional[pathlib.Path] = None) -> None:
    """Persist current_profile in config.yaml after checking the profile exists."""
    path = path or config_path()
    app_config = load_config(path)
    select_profile(app_config, name)
    raw = load_settings(path)
    raw["current_profile"] = name
    write_text(path, yaml.safe_dump(raw, sort_keys=False, allow_unicode=True))


def open_config_dir() -> None:
    """Open the configuration directory in the platform file manager."""
    path = config_dir()
    path.mkdir(parents=True, exist_ok=True)
    if sys.platform.startswith("win"):
        cmd = ["explorer", str(path)]
    elif sys.platform == "darwin":
        cmd = ["open", str(path)]
    else:
        cmd = ["xdg-open", str(path)]
    try:
        subprocess.run(cmd, check=False)
    except OSError as e:
        raise ConfigError(f"could not open {path}: {e}") from e
