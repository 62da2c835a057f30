"""
Vendor List Cache — process-wide, read-mostly view of the IAB Global Vendor List.

Behavioral Contract:
- Readers get the current snapshot without blocking, even mid-refresh
- A refresh publishes a complete new snapshot with one reference swap;
  snapshots are never mutated in place
- Stale snapshots keep serving while a background refresh runs
- At most one refresh is in flight; a failed refresh is logged and the
  previous snapshot stays in place
- Requests start at most one refresh attempt per retry interval, whether
  or not the previous attempt succeeded
- Fetching the GVL over the network belongs to the injected fetcher
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional, Union

import structlog

from privacy_gate.models.vendor_list import VendorList, as_utc

logger = structlog.get_logger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(days=7)
DEFAULT_RETRY_INTERVAL = timedelta(hours=1)

VendorListFetcher = Callable[[], Union[VendorList, dict]]


class _CacheState(NamedTuple):
    snapshot: Optional[VendorList]
    loaded_at: Optional[datetime]


class VendorListCache:
    """Immutable vendor list snapshots behind a single swappable reference."""

    def __init__(
        self,
        fetcher: Optional[VendorListFetcher] = None,
        refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL,
        initial: Optional[VendorList] = None,
        loaded_at: Optional[datetime] = None,
        retry_interval: timedelta = DEFAULT_RETRY_INTERVAL,
    ):
        self._fetcher = fetcher
        self.refresh_interval = refresh_interval
        self.retry_interval = retry_interval
        if initial is not None and loaded_at is None:
            loaded_at = datetime.now(timezone.utc)
        self._state = _CacheState(
            snapshot=initial,
            loaded_at=loaded_at if initial is not None else None,
        )
        self._refresh_lock = threading.Lock()
        self._refresh_thread: Optional[threading.Thread] = None
        self._last_attempt_at: Optional[datetime] = None

    @property
    def snapshot(self) -> Optional[VendorList]:
        """The current snapshot, or None if no vendor list was ever loaded."""
        return self._state.snapshot

    @property
    def loaded_at(self) -> Optional[datetime]:
        return self._state.loaded_at

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_lock.locked()

    def current(self, current_time: Optional[datetime] = None) -> Optional[VendorList]:
        """
        Get the snapshot to validate consent against.

        A stale snapshot is still returned and a background refresh is
        started, unless one was already attempted within the retry interval.
        None means no vendor list is available and validation is skipped.
        """
        if current_time is None:
            current_time = datetime.now(timezone.utc)
        state = self._state
        if self._state_is_stale(state, current_time) and self._attempt_due(current_time):
            self._last_attempt_at = current_time
            self.refresh_in_background()
        return state.snapshot

    def is_stale(self, current_time: Optional[datetime] = None) -> bool:
        return self._state_is_stale(self._state, current_time)

    def _state_is_stale(self, state: _CacheState, current_time: Optional[datetime]) -> bool:
        if state.snapshot is None or state.loaded_at is None:
            return True
        if current_time is None:
            current_time = datetime.now(timezone.utc)
        return as_utc(current_time) - as_utc(state.loaded_at) > self.refresh_interval

    def _attempt_due(self, current_time: datetime) -> bool:
        last_attempt = self._last_attempt_at
        if last_attempt is None:
            return True
        return as_utc(current_time) - as_utc(last_attempt) >= self.retry_interval

    def is_valid_vendor(self, vendor_id: int) -> bool:
        snapshot = self._state.snapshot
        return snapshot is not None and snapshot.is_valid_vendor(vendor_id)

    def vendor_declares_purpose(self, vendor_id: int, purpose_id: int) -> bool:
        snapshot = self._state.snapshot
        return snapshot is not None and snapshot.vendor_declares_purpose(vendor_id, purpose_id)

    def publish(self, vendor_list: VendorList, loaded_at: Optional[datetime] = None) -> None:
        """Replace the current snapshot in a single reference swap."""
        if loaded_at is None:
            loaded_at = datetime.now(timezone.utc)
        self._state = _CacheState(snapshot=vendor_list, loaded_at=loaded_at)
        logger.info(
            "vendor_list_published",
            version=vendor_list.version,
            vendors=len(vendor_list.vendors),
        )

    def refresh(self) -> bool:
        """
        Fetch and publish a new snapshot. Returns True if one was published.

        Skipped if another refresh is already running. Fetch or parse failures
        are logged and leave the current snapshot in place.
        """
        if self._fetcher is None:
            logger.debug("vendor_list_fetcher_not_configured")
            return False

        if not self._refresh_lock.acquire(blocking=False):
            logger.debug("vendor_list_refresh_in_flight")
            return False

        try:
            logger.info("vendor_list_refresh_started")
            try:
                fetched = self._fetcher()
                if isinstance(fetched, VendorList):
                    vendor_list = fetched
                else:
                    vendor_list = VendorList.from_gvl(fetched)
            except Exception as e:
                # Fetch errors come from the network collaborator and are never fatal here
                previous = self._state.snapshot
                logger.warning(
                    "vendor_list_refresh_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    serving_version=previous.version if previous else None,
                )
                return False

            self.publish(vendor_list)
            return True
        finally:
            self._refresh_lock.release()

    def refresh_in_background(self) -> Optional[threading.Thread]:
        """Start a refresh on a daemon thread unless one is already running."""
        if self._fetcher is None or self._refresh_lock.locked():
            return None

        thread = threading.Thread(
            target=self.refresh, name="vendor-list-refresh", daemon=True
        )
        self._refresh_thread = thread
        thread.start()
        return thread

    def wait_for_refresh(self, timeout: Optional[float] = None) -> None:
        """Block until the most recent background refresh finishes."""
        thread = self._refresh_thread
        if thread is not None:
            thread.join(timeout)

    async def run_async(
        self,
        stop_event: Optional[asyncio.Event] = None,
        check_interval_seconds: float = 3600,
    ) -> None:
        """Periodically refresh the vendor list whenever it goes stale."""
        if stop_event is None:
            stop_event = asyncio.Event()

        while not stop_event.is_set():
            if self.is_stale():
                await asyncio.to_thread(self.refresh)
            try:
                await asyncio.wait_for(
                    stop_event.wait(),
                    timeout=check_interval_seconds,
                )
            except asyncio.TimeoutError:
                continue
