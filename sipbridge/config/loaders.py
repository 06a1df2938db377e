"""
Configuration file loaders and path resolution.

This module handles:
- Path resolution (relative paths are anchored at the project root)
- Environment variable expansion, including Bash-style defaults
- YAML parsing
"""

import os
import re
from pathlib import Path

import yaml

# Project root directory (parent of sipbridge/)
_PROJ_DIR = Path(__file__).parent.parent.parent.resolve()

DEFAULT_CONFIG_PATH = "config/bridge.yaml"

# ${VAR}, ${VAR:-default}, ${VAR:=default}
_ENV_TOKEN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?:(:-|:=)([^}]*))?\}")


def resolve_config_path(path: str) -> str:
    """
    Resolve configuration file path to absolute path.

    If the provided path is not absolute, it is resolved relative to the project root.
    """
    if not os.path.isabs(path):
        return os.path.join(_PROJ_DIR, path)
    return path


def expand_env_tokens(text: str) -> str:
    """
    Replace environment tokens in ``text``.

    An unset variable without a default expands to an empty string; with a
    default, the default is used when the variable is unset or empty.
    """

    def _replace(match: "re.Match[str]") -> str:
        name, operator, default = match.group(1), match.group(2), match.group(3)
        value = os.getenv(name)
        if operator and not value:
            return default or ""
        return value or ""

    return _ENV_TOKEN.sub(_replace, text)


def load_yaml_with_env_expansion(path: str) -> dict:
    """
    Load YAML file with environment variable expansion.

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            config_str = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    try:
        config_data = yaml.safe_load(expand_env_tokens(config_str))
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error parsing YAML configuration: {e}")

    return config_data if config_data is not None else {}
