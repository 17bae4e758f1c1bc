"""
User- and machine-level defaults for new projects.

Both files are YAML with an optional ``defaults`` mapping::

    defaults:
      msystem: CLANG64
      mirror: https://mirror.example.org/msys2/
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import platformdirs
import yaml

from m2m.errors import M2MError
from m2m.parser import DEFAULT_MSYSTEM, ProjectFileError, normalize_msystem

__all__ = [
    "ConfigError",
    "InitDefaults",
    "get_machine_config_path",
    "get_user_config_path",
    "load_init_defaults",
    "parse_config_file",
]

APP_NAME = "m2m"
CONFIG_FILE = "config.yml"


class ConfigError(M2MError):
    """
    Raised when a defaults file is invalid.
    """

    pass


@dataclass(frozen=True)
class InitDefaults:
    msystem: str = DEFAULT_MSYSTEM
    mirror: Optional[str] = None


def get_machine_config_path() -> Path:
    """
    Path to the machine-level (system-wide) defaults file. It may not exist.
    """
    return Path(platformdirs.site_config_dir(APP_NAME)) / CONFIG_FILE


def get_user_config_path() -> Path:
    """
    Path to the user-level defaults file. It may not exist.
    """
    return Path(platformdirs.user_config_dir(APP_NAME)) / CONFIG_FILE


def parse_config_file(path: Path, base: InitDefaults = InitDefaults()) -> InitDefaults:
    """
    Layer the values from one defaults file over ``base``.

    A missing file, an empty file and a file without ``defaults`` all leave
    ``base`` unchanged.

    Raises:
        ConfigError: If the file can't be read, isn't valid YAML, or a value
            has the wrong type
    """
    if not path.exists():
        return base

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Error reading config file '{path}': {e}") from e

    if not content.strip():
        return base

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML in config file '{path}': {e}") from e

    if data is None:
        return base
    if not isinstance(data, dict):
        raise ConfigError(f"Error in config file '{path}': top level must be a mapping")

    defaults = data.get("defaults")
    if defaults is None:
        return base
    if not isinstance(defaults, dict):
        raise ConfigError(f"Error in config file '{path}': 'defaults' must be a mapping")

    result = base
    if "msystem" in defaults:
        try:
            result = replace(result, msystem=normalize_msystem(defaults["msystem"]))
        except ProjectFileError as e:
            raise ConfigError(f"Error in config file '{path}': {e}") from e

    if "mirror" in defaults:
        mirror = defaults["mirror"]
        if mirror is not None and not isinstance(mirror, str):
            raise ConfigError(f"Error in config file '{path}': Field 'mirror' must be a string")
        result = replace(result, mirror=mirror or None)

    return result


def load_init_defaults(
    machine_path: Optional[Path] = None,
    user_path: Optional[Path] = None,
) -> InitDefaults:
    """
    Built-in defaults, overridden by the machine file, overridden by the user file.
    """
    machine_path = machine_path or get_machine_config_path()
    user_path = user_path or get_user_config_path()

    defaults = parse_config_file(machine_path)
    return parse_config_file(user_path, defaults)
