# src/sri_injector/utils/configure_logging.py
import logging
import sys
from typing import Any, Dict, Optional

from tqdm import tqdm

from sri_injector.utils.config_loader import get_nested_config


class LogWithTqdm(logging.Handler):
    """
    A logging handler that writes through `tqdm.write()` so log lines
    do not tear the file progress bar.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level: Any, fallback: int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level if isinstance(level, int) else fallback


def configure_logger(general_level='INFO', module_specific_levels=None, silenced_loggers=None):
    """
    Configures the root logger and specific module loggers with a
    TQDM-friendly handler.

    Meant for hosts and scripts; the plugin itself never touches logging setup.
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    # Muzzle noisy loggers by setting their level high.
    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))


def configure_logger_from_settings(config: Optional[Dict[str, Any]] = None):
    """Applies the 'logging' section of settings.json."""
    configure_logger(
        general_level=get_nested_config("logging.level", "INFO", config=config),
        module_specific_levels=get_nested_config("logging.module_levels", {}, config=config),
        silenced_loggers=get_nested_config("logging.silenced_loggers", {}, config=config),
    )
