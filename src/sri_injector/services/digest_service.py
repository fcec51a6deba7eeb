# src/sri_injector/services/digest_service.py
import base64
import hashlib

from sri_injector.exceptions import ConfigurationError

SUPPORTED_ALGORITHMS = ("sha1", "sha256", "sha384", "sha512")
DEFAULT_ALGORITHM = "sha256"


def compute_integrity(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Computes Subresource Integrity metadata for a byte sequence.

    Args:
        data (bytes): The raw resource content.
        algorithm (str): One of SUPPORTED_ALGORITHMS.

    Returns:
        str: '<algorithm>-<base64 digest>', e.g. 'sha256-47DEQpj8...='.

    Raises:
        ConfigurationError: If the algorithm is not supported.
    """
    name = algorithm.lower()
    if name not in SUPPORTED_ALGORITHMS:
        raise ConfigurationError(f"Unsupported integrity algorithm '{algorithm}'")

    digest = hashlib.new(name, data).digest()
    return f"{name}-{base64.b64encode(digest).decode('ascii')}"
