import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from fleet_dashboard import engine
from fleet_dashboard.config import DEFAULT_REFRESH_INTERVAL, DashboardConfig
from fleet_dashboard.fetcher import FetchResult, SnapshotFetcher
from fleet_dashboard.query import QueryState
from fleet_dashboard.rules.base_rule import VersionCategory, VersionRule
from fleet_dashboard.snapshot import Deployment, FleetSnapshot, PodStatus
from fleet_dashboard.store import SnapshotStore

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Wires fetcher, store and query state together.

    Refreshes run on demand through `refresh()` and on a fixed period once
    `start()` has been awaited. Filter changes only touch the query state;
    every read accessor derives its answer from the current snapshot.
    """

    def __init__(
        self,
        fetcher: SnapshotFetcher,
        store: SnapshotStore | None = None,
        query: QueryState | None = None,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        rules: list[VersionRule] | None = None,
        on_refresh: Callable[["Dashboard"], None] | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store if store is not None else SnapshotStore()
        self.query = query if query is not None else QueryState()
        self.refresh_interval = refresh_interval
        self.rules = rules if rules is not None else engine.get_default_rules()
        self.on_refresh = on_refresh
        self._task: asyncio.Task | None = None

    @classmethod
    def from_config(cls, config: DashboardConfig, **kwargs) -> "Dashboard":
        fetcher = SnapshotFetcher(config.url, timeout=config.timeout_seconds)
        return cls(
            fetcher, refresh_interval=config.refresh_interval_seconds, **kwargs
        )

    # ----------------------------
    # Commands
    # ----------------------------

    async def refresh(self) -> FetchResult:
        generation = self.store.begin_fetch()
        result = await self.fetcher.fetch()

        if result.ok:
            applied = self.store.apply_success(result.snapshot, generation)
            if applied:
                logger.info(
                    "Refreshed fleet snapshot (%d deployments)",
                    len(result.snapshot.deployments),
                )
        else:
            applied = self.store.apply_failure(result.error, generation)

        if applied and self.on_refresh is not None:
            self.on_refresh(self)
        return result

    def set_query(self, text: str | None) -> None:
        self.query.set_query(text)

    # ----------------------------
    # Lifecycle
    # ----------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _refresh_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_interval)
            try:
                await self.refresh()
            except Exception:
                logger.exception("Periodic refresh failed")

    async def start(self) -> None:
        if self.running:
            return
        await self.refresh()
        self._task = asyncio.create_task(self._refresh_periodically())
        logger.debug("Periodic refresh every %ss started", self.refresh_interval)

    async def stop(self) -> None:
        """
        Cancel the periodic refresh. Fetches already in flight from
        manual refreshes are not aborted.
        """
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def __aenter__(self) -> "Dashboard":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # ----------------------------
    # Read accessors
    # ----------------------------

    @property
    def snapshot(self) -> FleetSnapshot | None:
        return self.store.current

    @property
    def loading(self) -> bool:
        return self.store.loading

    @property
    def last_error(self) -> str | None:
        return self.store.last_error

    def filtered_deployments(self) -> list[Deployment]:
        return engine.filtered_deployments(self.snapshot, self.query.text)

    def quick_access_deployments(self) -> list[Deployment]:
        return engine.quick_access_deployments(self.snapshot, self.query.text)

    def sorted_version_distribution(self) -> list[tuple[str, int]]:
        if self.snapshot is None:
            return []
        return engine.sorted_version_distribution(self.snapshot.version_distribution)

    def version_category(self, version: str | None) -> VersionCategory:
        return engine.version_category(version, self.rules)

    def health_category(self, pod_status: PodStatus | None) -> engine.HealthCategory:
        return engine.health_category(pod_status)

    def view(self) -> dict[str, Any]:
        view = engine.build_view(self.snapshot, self.query.text, self.rules)
        view["loading"] = self.loading
        view["error"] = self.last_error
        return view
