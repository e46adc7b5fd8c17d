import asyncio

import httpx
import structlog
from PIL import Image

from nextcdn.core.core import Service
from nextcdn.core.modules.preview.image import resize_image
from nextcdn.core.modules.preview.meta import extract_preview
from nextcdn.core.modules.preview.models import LinkPreview
from nextcdn.errors import UpstreamError, ValidationError

logger = structlog.get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (Linux x86_64; rv:140.0) Gecko/20100101 Firefox/140.0"


class PreviewService(Service):
    """Fetches remote pages and images on behalf of authenticated clients.

    Every fetch, body included, is bounded by a single overall deadline;
    httpx's own timeouts only bound each individual socket operation.
    """

    def __init__(self, timeout: float, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__()
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )

    async def on_stop(self) -> None:
        await self._client.aclose()

    async def _fetch(self, url: str) -> httpx.Response:
        async with asyncio.timeout(self._timeout):
            response = await self._client.get(url)
            response.raise_for_status()
        return response

    async def get_link_preview(self, url: str) -> LinkPreview:
        """Fetch url and extract its preview metadata.

        Raises:
            UpstreamError: If the page cannot be fetched in time
        """
        logger.info("link_preview_requested", url=url)
        try:
            response = await self._fetch(url)
        except (httpx.HTTPError, TimeoutError) as e:
            logger.warning("link_preview_failed", url=url, error=repr(e))
            raise UpstreamError("Failed to fetch preview") from e
        return extract_preview(str(response.url), response.text)

    async def get_resized_image(self, url: str, width: int | None, height: int | None) -> bytes:
        """Fetch the image at url and resize it to PNG.

        Raises:
            ValidationError: If neither width nor height is given
            UpstreamError: If the image cannot be fetched in time or decoded
        """
        if width is None and height is None:
            raise ValidationError("At least one dimension (width or height) must be specified")
        logger.info("image_resize_requested", url=url, width=width, height=height)
        try:
            response = await self._fetch(url)
        except (httpx.HTTPError, TimeoutError) as e:
            logger.warning("image_fetch_failed", url=url, error=repr(e))
            raise UpstreamError("Failed to fetch image") from e

        try:
            return await asyncio.to_thread(resize_image, response.content, width, height)
        except (OSError, Image.DecompressionBombError) as e:
            logger.warning("image_resize_failed", url=url, error=str(e))
            raise UpstreamError("Failed to resize image") from e
