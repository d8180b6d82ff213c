"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (e.g., ~/.hwhelper/config.yaml).
"""

import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Optional, Dict

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".hwhelper"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "HWHELPER_"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


@dataclass(frozen=True)
class QueueSettings:
    """Construction-time settings of the AI request queue (milliseconds)."""
    min_time_between_requests_ms: int = 1000
    max_retries: int = 3
    retry_delay_ms: int = 2000
    request_timeout_s: Optional[float] = None # Caller-side wait limit, None = wait forever

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, force: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no .env found at or above the current directory).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.info("Configuration loading process completed.")


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ({'queue': {'max_retries': 3}} -> 'queue.max_retries')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def _coerce_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    elif value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        else:
            return int(value)
    except (ValueError, TypeError):
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (``queue.max_retries`` -> HWHELPER_QUEUE_MAX_RETRIES or QUEUE_MAX_RETRIES)
    3. YAML config / values stored with set_config
    4. Default value

    Args:
        key: The configuration key
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    for candidate in (f"{ENV_PREFIX}{env_key}", env_key):
        if candidate in os.environ:
            return _coerce_env_value(os.environ[candidate])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_openai_api_key() -> Optional[str]:
    """Convenience function to get the OpenAI API key."""
    # Checks ENV OPENAI_API_KEY first, then yaml openai.api_key
    key = get_config('OPENAI_API_KEY') or get_config('openai.api_key')
    return str(key) if key is not None else None


def get_default_model() -> Optional[str]:
    """Gets the configured OpenAI model, if any."""
    model = get_config('openai.model')
    return str(model) if model is not None else None


def _get_number(key: str, default: Any, cast: type) -> Any:
    value = get_config(key, default)
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"Config key '{key}' must be a number, got {value!r}")


def get_queue_settings() -> QueueSettings:
    """Reads the request queue settings (``queue.*`` keys).

    Raises:
        ValueError: If a value is not a number or is negative.
    """
    defaults = QueueSettings()
    settings = QueueSettings(
        min_time_between_requests_ms=_get_number('queue.min_time_between_requests_ms', defaults.min_time_between_requests_ms, int),
        max_retries=_get_number('queue.max_retries', defaults.max_retries, int),
        retry_delay_ms=_get_number('queue.retry_delay_ms', defaults.retry_delay_ms, int),
        request_timeout_s=_get_number('queue.request_timeout_s', defaults.request_timeout_s, float),
    )
    for name, value in settings.as_dict().items():
        if value is not None and value < 0:
            raise ValueError(f"Queue setting '{name}' must be >= 0, got {value}")
    logger.debug(f"Queue settings resolved: {settings}")
    return settings


def get_fallback_enabled() -> bool:
    """
    Check if the offline keyword-based explanation may stand in for the AI.

    Returns:
        True (default) if the CLI should fall back when no API key is set or the AI call fails
    """
    flag = get_config('explanation.fallback', True)
    logger.debug(f"Fallback setting checked: {flag}, type: {type(flag)}")

    if isinstance(flag, str):
        if flag.lower() == 'true':
            return True
        elif flag.lower() == 'false':
            return False
        else:
            logger.warning(f"Unexpected string value for explanation.fallback: '{flag}'. Defaulting to True.")
            return True

    if flag is None:
        return True

    return bool(flag)


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value by key for the running process.

    Args:
        key: Configuration key (e.g., 'logging.level')
        value: Value to set
    """
    _config[key] = value
    logger.debug(f"Config set: {key}={value}")


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
