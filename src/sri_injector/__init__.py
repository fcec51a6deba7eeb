from sri_injector.exceptions import ConfigurationError, SriError
from sri_injector.model import IntegrityOptions, IntegrityReport
from sri_injector.plugin import SriPlugin
from sri_injector.services.digest_service import SUPPORTED_ALGORITHMS, compute_integrity
from sri_injector.utils.configure_logging import configure_logger, configure_logger_from_settings

__version__ = "0.1.0"


def sri(options=None, **overrides) -> SriPlugin:
    """Creates the SRI build plugin (shorthand for SriPlugin(...))."""
    return SriPlugin(options, **overrides)


__all__ = [
    "ConfigurationError",
    "IntegrityOptions",
    "IntegrityReport",
    "SUPPORTED_ALGORITHMS",
    "SriError",
    "SriPlugin",
    "compute_integrity",
    "configure_logger",
    "configure_logger_from_settings",
    "sri",
]
