# src/sri_injector/exceptions.py


class SriError(Exception):
    """Base class for all errors raised by the SRI injector."""


class ConfigurationError(SriError):
    """
    Raised for invalid options (unknown digest algorithm or charset).
    This is the only error that is fatal to a whole build invocation.
    """
