# src/sri_injector/utils/config_loader.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from sri_injector.exceptions import ConfigurationError
from sri_injector.model import IntegrityOptions
from sri_injector.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

# Maps user-facing option names onto their dotted location in settings.json.
_OPTION_KEYS = {
    "algorithm": "integrity.algorithm",
    "charset": "integrity.charset",
    "show_progress": "integrity.show_progress",
    "timeout": "http.timeout",
    "concurrency": "http.concurrency",
}


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Loads the configuration from settings.json (the bundled one unless a path is given)."""
    try:
        path = Path(config_path) if config_path else PathUtils.get_settings_file()

        if not path.exists():
            logger.warning("Configuration file 'settings.json' not found at %s. Using empty config.", path)
            return {}

        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    except Exception as e:
        logger.error("Failed to load settings.json: %s", e, exc_info=True)
        return {}


CONFIG = load_config()


def get_nested_config(key_path: str, default: Optional[Any] = None, config: Optional[Dict[str, Any]] = None) -> Any:
    """
    Safely retrieves a nested value from a configuration dictionary (CONFIG by default).

    Uses a dot as a separator, e.g., 'http.timeout'.

    Args:
        key_path (str): The dotted path to the configuration value.
        default (Any, optional): The default value to return if the key is not found.
        config (dict, optional): The dictionary to search instead of CONFIG.

    Returns:
        Any: The configuration value or the provided default.
    """
    value = CONFIG if config is None else config

    for key in key_path.split('.'):
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default

    return value if value is not None else default


def build_options(
        user_options: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        **overrides: Any
) -> IntegrityOptions:
    """
    Merges settings.json defaults with user options into one immutable IntegrityOptions.

    Precedence: keyword overrides > user_options > settings.json > model defaults.

    Raises:
        ConfigurationError: On an unknown algorithm/charset or an invalid value.
    """
    source = CONFIG if config is None else config
    merged: Dict[str, Any] = {}

    for name, key_path in _OPTION_KEYS.items():
        value = get_nested_config(key_path, config=source)
        if value is not None:
            merged[name] = value

    for name, value in {**(user_options or {}), **overrides}.items():
        if name not in _OPTION_KEYS:
            logger.warning("Ignoring unknown integrity option '%s'.", name)
            continue
        if value is not None:
            merged[name] = value

    try:
        return IntegrityOptions(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid integrity options: {e}") from e
