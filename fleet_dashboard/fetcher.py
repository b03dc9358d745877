import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from fleet_dashboard.config import DEFAULT_TIMEOUT
from fleet_dashboard.errors import FetchError, ParseError, TransportError
from fleet_dashboard.model import parse_document
from fleet_dashboard.snapshot import FleetSnapshot

logger = logging.getLogger(__name__)

CACHE_BUST_PARAM = "t"


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of exactly one fetch attempt: a snapshot or an error, never both.
    """

    snapshot: FleetSnapshot | None = None
    error: FetchError | None = None
    url: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.snapshot is not None


class SnapshotFetcher:
    """
    Retrieves the fleet snapshot document from a fixed URL.

    Each call appends a strictly increasing millisecond timestamp as the
    `t` query parameter so intermediary caches are bypassed. Calls may
    overlap; each runs to completion on its own.
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client
        self._clock = clock
        self._last_token = 0

    def cache_bust_token(self) -> int:
        token = max(int(self._clock() * 1000), self._last_token + 1)
        self._last_token = token
        return token

    def request_url(self) -> httpx.URL:
        """
        Target URL with the cache-busting token merged into any query string
        it already carries (e.g. a signed storage URL).
        """
        return httpx.URL(self.url).copy_merge_params(
            {CACHE_BUST_PARAM: str(self.cache_bust_token())}
        )

    async def _get(self, client: httpx.AsyncClient) -> httpx.Response:
        try:
            resp = await client.get(self.request_url(), timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request to {self.url} timed out after {self.timeout} seconds",
                self.url,
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"Error fetching snapshot from {self.url}: {exc}", self.url
            ) from exc

        if not resp.is_success:
            raise TransportError(
                f"Snapshot endpoint returned HTTP {resp.status_code} for {self.url}",
                self.url,
                status_code=resp.status_code,
            )
        return resp

    async def fetch_document(self) -> FleetSnapshot:
        """
        Raising variant of `fetch`: returns the snapshot or raises FetchError.
        """
        if self._client is not None:
            resp = await self._get(self._client)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await self._get(client)

        doc = parse_document(resp.content, self.url)
        try:
            return FleetSnapshot(doc)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ParseError(
                f"Snapshot has an unusable shape: {exc}", self.url
            ) from exc

    async def fetch(self) -> FetchResult:
        try:
            snapshot = await self.fetch_document()
        except FetchError as exc:
            logger.warning("Snapshot fetch failed: %s", exc.message)
            return FetchResult(error=exc, url=self.url)

        logger.debug(
            "Fetched snapshot with %d deployments and %d clusters",
            len(snapshot.deployments),
            len(snapshot.clusters),
        )
        return FetchResult(snapshot=snapshot, url=self.url)
