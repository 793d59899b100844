"""
Rate snapshot provider.

Holds the current RateTable and refreshes it from the RateSource either on
demand or once it is older than the refresh interval. Every conversion
reads one snapshot, so a refresh never changes rates under a running
calculation.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from logistics_config.bridges import build_rate_table
from logistics_config.schema import SettingsSnapshot
from logistics_engines.conversion import CurrencyConverter
from logistics_kernel.domain.clock import Clock, SystemClock
from logistics_kernel.domain.values import RateTable
from logistics_kernel.logging_config import get_logger
from logistics_services.ports import RateSource

logger = get_logger("services.rate_provider")


class RateSnapshotProvider:
    """
    Caches one RateTable snapshot with an age limit.

    A failed refresh propagates the source's error and keeps the previous
    snapshot in place.
    """

    def __init__(
        self,
        source: RateSource,
        refresh_interval_seconds: int = 300,
        clock: Clock | None = None,
        initial: RateTable | None = None,
    ):
        self._source = source
        self._interval = timedelta(seconds=refresh_interval_seconds)
        self._clock = clock or SystemClock()
        self._snapshot = initial
        self._loaded_at: datetime | None = self._clock.now() if initial is not None else None

    @classmethod
    def from_settings(
        cls,
        source: RateSource,
        settings: SettingsSnapshot,
        clock: Clock | None = None,
    ) -> RateSnapshotProvider:
        """Seed with the configured rates until the first refresh."""
        return cls(
            source,
            refresh_interval_seconds=settings.rate_refresh_interval_seconds,
            clock=clock,
            initial=build_rate_table(settings),
        )

    @property
    def loaded_at(self) -> datetime | None:
        return self._loaded_at

    def is_stale(self) -> bool:
        if self._snapshot is None or self._loaded_at is None:
            return True
        return self._clock.now() - self._loaded_at >= self._interval

    def refresh(self) -> RateTable:
        """Reload the snapshot from the source unconditionally."""
        rows = self._source.fetch_rates()
        table = RateTable.from_rows(rows)
        self._snapshot = table
        self._loaded_at = self._clock.now()
        logger.info(
            "rate_snapshot_refreshed",
            extra={"currencies": list(table.codes), "loaded_at": self._loaded_at},
        )
        return table

    def snapshot(self) -> RateTable:
        """Current snapshot, refreshed first when stale."""
        if self.is_stale():
            return self.refresh()
        assert self._snapshot is not None
        return self._snapshot

    def converter(self) -> CurrencyConverter:
        return CurrencyConverter(self.snapshot())
