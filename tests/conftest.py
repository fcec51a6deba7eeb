# tests/conftest.py
import base64
import hashlib
from typing import Dict, Optional, Tuple

import pytest

from sri_injector.model import IntegrityOptions
from sri_injector.services.http_request_service import FetchResult


def expected_integrity(data: bytes, algorithm: str = "sha256") -> str:
    """Reference computation straight from hashlib, independent of the code under test."""
    return f"{algorithm}-{base64.b64encode(hashlib.new(algorithm, data).digest()).decode()}"


class FakeHttpService:
    """Stands in for HttpRequestService: canned (status, body) per URL, records every fetch."""

    def __init__(self, responses: Optional[Dict[str, Tuple[int, Optional[bytes]]]] = None):
        self.responses = responses or {}
        self.calls = []
        self.entered = 0

    async def __aenter__(self):
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch_bytes(self, url: str) -> FetchResult:
        self.calls.append(url)
        status, body = self.responses.get(url, (-1, None))
        error = None if body is not None else ("Cannot connect" if status < 0 else f"HTTP {status}")
        return FetchResult(url=url, status=status, content=body, error=error)


@pytest.fixture
def integrity_of():
    return expected_integrity


@pytest.fixture
def make_fake_http():
    return FakeHttpService


@pytest.fixture
def options():
    return IntegrityOptions()


@pytest.fixture
def fake_http():
    return FakeHttpService()


@pytest.fixture
def output_dir(tmp_path):
    """A small build output: one script, one stylesheet, one favicon."""
    root = tmp_path / "dist"
    (root / "assets").mkdir(parents=True)
    (root / "main.js").write_bytes(b"console.log(1);")
    (root / "assets" / "style.css").write_bytes(b"body{margin:0}")
    (root / "favicon.ico").write_bytes(b"\x00\x00\x01\x00")
    return root
