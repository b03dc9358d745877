import logging

from fleet_dashboard.snapshot import FleetSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Holds the latest fleet snapshot, the last fetch error and a loading flag.

    - A failed fetch never clears `current`; stale data stays visible.
    - Every fetch gets a generation from `begin_fetch()`. A result older
      than the newest one already applied is dropped, so a slow early
      request cannot overwrite data from a later one.
    """

    def __init__(self):
        self.current: FleetSnapshot | None = None
        self.loading: bool = True
        self.last_error: str | None = None

        self._started = 0
        self._applied = 0

    @property
    def has_data(self) -> bool:
        return self.current is not None

    def begin_fetch(self) -> int:
        self.loading = True
        self._started += 1
        return self._started

    def _accept(self, generation: int | None) -> bool:
        if generation is None:
            return True
        if generation < self._applied:
            logger.debug(
                "Dropping result of fetch #%d, #%d already applied",
                generation,
                self._applied,
            )
            return False
        self._applied = generation
        return True

    def apply_success(
        self, snapshot: FleetSnapshot, generation: int | None = None
    ) -> bool:
        if not self._accept(generation):
            return False
        self.current = snapshot
        self.last_error = None
        self.loading = False
        return True

    def apply_failure(self, error, generation: int | None = None) -> bool:
        if not self._accept(generation):
            return False
        self.last_error = getattr(error, "message", None) or str(error)
        self.loading = False
        return True

    def __repr__(self) -> str:
        return (
            f"SnapshotStore(current={self.current!r}, loading={self.loading}, "
            f"last_error={self.last_error!r})"
        )
