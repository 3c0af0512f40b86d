"""Poster URL selection across providers.

Candidates are probed in order by opening a GET and reading the response
headers only. The first success status with an ``image/`` content type
wins; when nothing validates, the first candidate is returned unvalidated.
"""

import logging
from collections.abc import Iterable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0
"""Timeout of a single poster probe."""


class PosterResolver:
    """Picks the best poster URL among provider candidates.

    Attributes:
        timeout_seconds: Timeout applied to each probe.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._http = http_client

    async def resolve_best_poster_url(self, candidates: Iterable[str | None]) -> str | None:
        """Return the first candidate serving an image.

        Args:
            candidates: Poster URLs; blanks and duplicates are ignored.

        Returns:
            First validated URL, else the first candidate, else None.
        """
        unique = _distinct(candidates)
        if not unique:
            return None

        for url in unique:
            if await self.is_valid_image_url(url):
                return url

        logger.debug("No poster validated among %d candidates, using %s", len(unique), unique[0])
        return unique[0]

    async def is_valid_image_url(self, url: str) -> bool:
        """Check that ``url`` answers with a success status and an image type.

        Transport failures count as "not an image" and are never raised.
        """
        try:
            async with self._http.stream("GET", url, timeout=self.timeout_seconds) as response:
                content_type = response.headers.get("content-type", "")
                return response.is_success and content_type.lower().startswith("image/")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Poster probe failed for %s: %s", url, e)
            return False


def _distinct(candidates: Iterable[str | None]) -> list[str]:
    """Non-empty candidates in order, without duplicates."""
    seen: list[str] = []
    for url in candidates:
        if url and url.strip() and url not in seen:
            seen.append(url)
    return seen
