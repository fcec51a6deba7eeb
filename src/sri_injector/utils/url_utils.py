# src/sri_injector/utils/url_utils.py
import logging
import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit, unquote

logger = logging.getLogger(__name__)

# 'scheme://...' or protocol-relative '//host/...'
_EXTERNAL_URL_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*:)?//")


class UrlUtils:
    """A collection of static methods for classifying and resolving resource references."""

    @staticmethod
    def is_external_url(reference: str) -> bool:
        """Checks if a reference points to a remote resource (absolute or protocol-relative URL)."""
        return bool(_EXTERNAL_URL_RE.match(reference.strip()))

    @staticmethod
    def to_fetchable_url(reference: str) -> str:
        """
        Turns an external reference into a URL an HTTP client can fetch.
        Protocol-relative references ('//cdn.example.com/x.js') are fetched over https.
        """
        reference = reference.strip()
        if reference.startswith("//"):
            return "https:" + reference
        return reference

    @staticmethod
    def to_local_path(output_dir: Path, reference: str) -> Optional[Path]:
        """
        Resolves a local reference against the output root.

        Query strings and fragments are dropped, percent-escapes decoded and a
        leading '/' means 'the output root', never the filesystem root.

        Returns:
            The resolved path, or None if the reference is empty or escapes the output root.
        """
        path_part = unquote(urlsplit(reference.strip()).path)
        relative = path_part.lstrip("/\\")
        if not relative:
            return None

        root = output_dir.resolve()
        candidate = (root / relative).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            logger.debug(f"Reference escapes the output root: {reference}")
            return None
        return candidate
