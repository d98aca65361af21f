"""
Configuration and logging for starterkit.

Configuration is read from ``~/.starterkitrc`` (JSON) or
``~/.starterkitrc.toml``, merged over the defaults and finally overridden by
``STARTERKIT_<SECTION>_<KEY>`` environment variables.
"""
import copy
import json
import logging
import os
from pathlib import Path

import toml
from rich.console import Console
from rich.logging import RichHandler

# Initialize Rich Console
console = Console()

logger = logging.getLogger("starterkit")

ENV_PREFIX = "STARTERKIT"
CONFIG_ENV_VAR = "STARTERKIT_CONFIG"


def setup_logging(level="INFO", fmt="%(message)s"):
    """Route log records through a RichHandler on the shared console."""
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def get_default_config():
    """Return the built-in configuration."""
    return {
        "starters": {
            "directory": "~/.starterkit/starters",
            "audit": False,
        },
        "generation": {
            "max_workers": None,
            "skip_hidden": True,
            "respect_ignore_files": True,
            "secret_length": 64,
        },
        "logging": {
            "level": "INFO",
            "format": "%(message)s",
        },
    }


def get_config_path():
    """
    Return the path of the active config file.

    ``STARTERKIT_CONFIG`` wins; otherwise ``~/.starterkitrc`` unless only the
    TOML variant exists.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()

    json_path = Path.home() / ".starterkitrc"
    toml_path = Path.home() / ".starterkitrc.toml"
    if not json_path.exists() and toml_path.exists():
        return toml_path
    return json_path


def merge_configs(base, override):
    """Deep-merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_config_file(path):
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix == ".toml":
            return toml.load(f)
        return json.load(f)


def _coerce_env_value(value):
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("null", "none", ""):
        return None
    try:
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(config, prefix=ENV_PREFIX, path=()):
    """Override leaf values that have a matching environment variable."""
    for key, value in config.items():
        key_path = path + (key,)
        if isinstance(value, dict):
            _apply_env_overrides(value, prefix, key_path)
            continue
        env_name = "_".join((prefix,) + key_path).upper()
        if env_name in os.environ:
            config[key] = _coerce_env_value(os.environ[env_name])
    return config


def load_config():
    """
    Load the merged configuration.

    A missing or unreadable config file falls back to the defaults.
    """
    config = get_default_config()
    config_path = get_config_path()

    if config_path.exists():
        try:
            user_config = _read_config_file(config_path)
        except (OSError, ValueError, toml.TomlDecodeError) as e:
            logger.warning(f"Could not read config file {config_path}: {e}")
        else:
            if isinstance(user_config, dict):
                config = merge_configs(config, user_config)
            else:
                logger.warning(f"Ignoring config file {config_path}: not a mapping")

    return _apply_env_overrides(config)


def save_config(config):
    """Write ``config`` as JSON to ``~/.starterkitrc``."""
    config_path = Path.home() / ".starterkitrc"
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
    logger.debug(f"Configuration saved to {config_path}")
    return config_path


def generate_config_example():
    """Write an example config next to the real one and print where it went."""
    example_path = Path.home() / ".starterkitrc.example"
    with open(example_path, "w", encoding="utf-8") as f:
        json.dump(get_default_config(), f, indent=2)
    console.print(f"An example configuration file has been saved to {example_path}")
    return example_path
