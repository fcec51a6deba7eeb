# src/sri_injector/services/resource_resolver_service.py
import asyncio
import logging
from pathlib import Path
from typing import Union

from sri_injector.model import FailureReason, ResolvedResource
from sri_injector.services.http_request_service import HttpRequestService
from sri_injector.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)


class ResourceResolverService:
    """
    Obtains the bytes behind a `src`/`href` reference, from the output
    directory or over the network.

    Every call resolves independently; nothing is cached between elements or files.
    `resolve` never raises: failures come back as a ResolvedResource without content.
    """

    def __init__(self, output_dir: Union[str, Path], http_service: HttpRequestService):
        self.output_dir = Path(output_dir)
        self.http_service = http_service
        self.utils = UrlUtils()

    async def resolve(self, reference: str) -> ResolvedResource:
        if self.utils.is_external_url(reference):
            return await self._resolve_external(reference)
        return await self._resolve_local(reference)

    async def _resolve_external(self, reference: str) -> ResolvedResource:
        url = self.utils.to_fetchable_url(reference)
        result = await self.http_service.fetch_bytes(url)

        if not result.ok:
            logger.debug("Fetch failed for %s: status=%s error=%s", url, result.status, result.error)
            return ResolvedResource(
                reference=reference,
                location=url,
                reason=FailureReason.EXTERNAL_FETCH,
                error=f"Failed to fetch {url}: {result.error or f'status {result.status}'}",
            )

        return ResolvedResource(reference=reference, location=url, content=result.content)

    async def _resolve_local(self, reference: str) -> ResolvedResource:
        path = self.utils.to_local_path(self.output_dir, reference)
        if path is None:
            return ResolvedResource(
                reference=reference,
                reason=FailureReason.LOCAL_READ,
                error=f"Reference '{reference}' does not point to a file inside {self.output_dir}",
            )

        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, path.read_bytes)
        except OSError as e:
            return ResolvedResource(
                reference=reference,
                location=str(path),
                reason=FailureReason.LOCAL_READ,
                error=f"Error reading local asset file {path}: {e.strerror or e}",
            )

        return ResolvedResource(reference=reference, location=str(path), content=content)
