# src/sri_injector/services/http_request_service.py
import asyncio
import logging
import time
from typing import Optional

import aiohttp
from pydantic import BaseModel, Field

from sri_injector.model import IntegrityOptions
from sri_injector.services.user_agent_service import generate_default_user_agent

logger = logging.getLogger(__name__)


class FetchResult(BaseModel):
    """
    Outcome of one GET. Negative status codes mark failures without a response:
    -1 transport error/timeout, -2 unexpected error, -99 no session.
    """
    url: str
    status: int
    content: Optional[bytes] = None
    error: Optional[str] = None
    elapsed_time: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300 and self.content is not None


class HttpRequestService:
    """
    Central service for fetching external resources.
    Manages the aiohttp session, concurrency (semaphore) and error handling.
    """

    def __init__(self, options: IntegrityOptions, user_agent: Optional[str] = None):
        self.timeout = float(options.timeout)
        self.max_concurrency = int(options.concurrency)
        self.user_agent = user_agent or generate_default_user_agent()

        self.semaphore = asyncio.Semaphore(self.max_concurrency)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={
                    'Accept-Encoding': 'gzip, deflate',
                    'User-Agent': self.user_agent
                }
            )
            logger.debug("HttpRequestService: Session initialized.")

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("HttpRequestService: Session closed.")

    async def fetch_bytes(self, url: str) -> FetchResult:
        """
        Issues a single GET (redirects followed, no retry) and returns the raw body.
        Never raises; failures are encoded in the returned FetchResult.
        """
        start_time = time.perf_counter()

        if not self.session or self.session.closed:
            await self.initialize()
            if not self.session:
                return FetchResult(url=url, status=-99, error="Session not initialized")

        try:
            async with self.semaphore:
                async with self.session.get(url, allow_redirects=True) as response:
                    status = response.status
                    content = await response.read() if 200 <= status < 300 else None
                    result = FetchResult(url=url, status=status, content=content)
                    if content is None:
                        result.error = f"HTTP {status} {response.reason or ''}".strip()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            result = FetchResult(url=url, status=-1, error=str(e) or type(e).__name__)
        except Exception as e:
            logger.error(f"Internal fetch error for {url}: {e}", exc_info=True)
            result = FetchResult(url=url, status=-2, error=str(e))

        result.elapsed_time = round(time.perf_counter() - start_time, 4)
        return result
