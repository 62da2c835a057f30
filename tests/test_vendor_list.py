"""Tests for Global Vendor List snapshots and the vendor list cache."""

import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from privacy_gate.errors import VendorListError
from privacy_gate.models import VendorInfo, VendorList
from privacy_gate.vendor_list import DEFAULT_REFRESH_INTERVAL, VendorListCache

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_vendor_list(version=1, last_updated=NOW, vendors=None) -> VendorList:
    if vendors is None:
        vendors = {
            45: VendorInfo(id=45, name="Equativ", purposes={1, 2, 3, 4, 7}),
        }
    return VendorList(vendors=vendors, last_updated=last_updated, version=version)


def _make_gvl_payload() -> dict:
    return {
        "gvlSpecificationVersion": 3,
        "vendorListVersion": 150,
        "lastUpdated": "2025-02-27T16:00:00Z",
        "vendors": {
            "45": {
                "id": 45,
                "name": "Equativ",
                "purposes": [1, 2, 3, 4, 7],
                "legIntPurposes": [],
                "features": [2],
                "specialFeatures": [],
            },
            "755": {
                "id": 755,
                "name": "Google Advertising Products",
                "purposes": [1, 3, 4],
                "legIntPurposes": [2, 7, 9],
                "features": [1, 2],
                "specialFeatures": [1],
            },
        },
    }


class TestVendorList:
    def setup_method(self):
        self.vendor_list = _make_vendor_list()

    def test_valid_vendor(self):
        assert self.vendor_list.is_valid_vendor(45) is True
        assert self.vendor_list.is_valid_vendor(999) is False

    def test_declared_purposes(self):
        for purpose_id in (1, 2, 3, 4, 7):
            assert self.vendor_list.vendor_declares_purpose(45, purpose_id) is True
        assert self.vendor_list.vendor_declares_purpose(45, 99) is False
        assert self.vendor_list.vendor_declares_purpose(999, 1) is False

    def test_get_vendor(self):
        assert self.vendor_list.get_vendor(45).name == "Equativ"
        assert self.vendor_list.get_vendor(999) is None

    def test_legitimate_interest_is_declared(self):
        vendor = VendorInfo(id=755, name="G", purposes={1}, legitimate_interests={2, 7})
        assert vendor.declared_purposes == frozenset({1, 2, 7})

    def test_is_stale(self):
        assert VendorList().is_stale(DEFAULT_REFRESH_INTERVAL) is True
        assert self.vendor_list.is_stale(timedelta(days=7), NOW + timedelta(days=1)) is False
        assert self.vendor_list.is_stale(timedelta(days=7), NOW + timedelta(days=8)) is True

    def test_is_stale_accepts_naive_times(self):
        naive = datetime(2025, 3, 10, 12, 0)
        assert self.vendor_list.is_stale(timedelta(days=7), naive) is True

    def test_snapshot_is_immutable(self):
        with pytest.raises(ValidationError):
            self.vendor_list.version = 2


class TestFromGvl:
    def test_parses_vendors_and_purposes(self):
        vendor_list = VendorList.from_gvl(_make_gvl_payload())

        assert vendor_list.version == 150
        assert vendor_list.last_updated == datetime(2025, 2, 27, 16, 0, tzinfo=timezone.utc)
        assert set(vendor_list.vendors) == {45, 755}

        google = vendor_list.get_vendor(755)
        assert google.purposes == frozenset({1, 3, 4})
        assert google.legitimate_interests == frozenset({2, 7, 9})
        assert google.special_features == frozenset({1})
        assert vendor_list.vendor_declares_purpose(755, 2) is True

    def test_missing_vendors_raises(self):
        with pytest.raises(VendorListError):
            VendorList.from_gvl({"vendorListVersion": 1})

    def test_non_object_payload_raises(self):
        with pytest.raises(VendorListError):
            VendorList.from_gvl(["not", "a", "gvl"])

    def test_bad_vendor_entry_raises(self):
        with pytest.raises(VendorListError):
            VendorList.from_gvl({"vendors": {"1": "not-an-object"}})
        with pytest.raises(VendorListError):
            VendorList.from_gvl({"vendors": {"0": {"id": 0, "name": "zero"}}})


class TestVendorListCache:
    def test_empty_cache_serves_nothing(self):
        cache = VendorListCache()
        assert cache.snapshot is None
        assert cache.current(NOW) is None
        assert cache.is_stale(NOW) is True
        assert cache.is_valid_vendor(45) is False
        assert cache.vendor_declares_purpose(45, 1) is False

    def test_publish_swaps_whole_snapshot(self):
        first = _make_vendor_list(version=1)
        cache = VendorListCache(initial=first)

        second = _make_vendor_list(
            version=2,
            vendors={99: VendorInfo(id=99, name="New", purposes={1})},
        )
        cache.publish(second, loaded_at=NOW)

        assert cache.snapshot is second
        assert cache.loaded_at == NOW
        assert cache.is_valid_vendor(99) is True
        assert cache.is_valid_vendor(45) is False
        # The replaced snapshot is untouched
        assert first.version == 1
        assert first.is_valid_vendor(45) is True

    def test_staleness_uses_load_time(self):
        cache = VendorListCache(refresh_interval=timedelta(days=7))
        cache.publish(_make_vendor_list(last_updated=NOW - timedelta(days=30)), loaded_at=NOW)
        assert cache.is_stale(NOW + timedelta(days=1)) is False
        assert cache.is_stale(NOW + timedelta(days=8)) is True

    def test_refresh_without_fetcher_is_a_no_op(self):
        cache = VendorListCache(initial=_make_vendor_list())
        assert cache.refresh() is False
        assert cache.refresh_in_background() is None
        assert cache.snapshot.version == 1

    def test_refresh_publishes_fetched_list(self):
        cache = VendorListCache(fetcher=lambda: _make_vendor_list(version=7))
        assert cache.refresh() is True
        assert cache.snapshot.version == 7
        assert cache.loaded_at is not None

    def test_refresh_parses_gvl_documents(self):
        cache = VendorListCache(fetcher=_make_gvl_payload)
        assert cache.refresh() is True
        assert cache.snapshot.version == 150
        assert cache.vendor_declares_purpose(755, 9) is True

    def test_failed_fetch_keeps_previous_snapshot(self):
        previous = _make_vendor_list(version=3)

        def failing_fetcher():
            raise ConnectionError("GVL endpoint unreachable")

        cache = VendorListCache(fetcher=failing_fetcher, initial=previous)
        assert cache.refresh() is False
        assert cache.snapshot is previous
        assert cache.refresh_in_progress is False

    def test_unparseable_payload_keeps_previous_snapshot(self):
        previous = _make_vendor_list(version=3)
        cache = VendorListCache(fetcher=lambda: {"vendors": None}, initial=previous)
        assert cache.refresh() is False
        assert cache.snapshot is previous

    def test_stale_snapshot_served_while_refreshing(self):
        old = _make_vendor_list(version=1)
        cache = VendorListCache(
            fetcher=lambda: _make_vendor_list(version=2),
            refresh_interval=timedelta(days=7),
        )
        cache.publish(old, loaded_at=NOW)

        served = cache.current(NOW + timedelta(days=10))
        assert served is old

        cache.wait_for_refresh(timeout=5)
        assert cache.snapshot.version == 2

    def test_failed_refresh_is_not_retried_on_every_request(self):
        calls = []

        def failing_fetcher():
            calls.append(1)
            raise ConnectionError("GVL endpoint unreachable")

        cache = VendorListCache(fetcher=failing_fetcher, retry_interval=timedelta(hours=1))
        cache.publish(_make_vendor_list(version=1), loaded_at=NOW)
        stale_time = NOW + timedelta(days=10)

        for _ in range(20):
            assert cache.current(stale_time).version == 1
            cache.wait_for_refresh(timeout=5)
        assert calls == [1]

        cache.current(stale_time + timedelta(minutes=59))
        cache.wait_for_refresh(timeout=5)
        assert calls == [1]

        cache.current(stale_time + timedelta(hours=1))
        cache.wait_for_refresh(timeout=5)
        assert calls == [1, 1]

    def test_unloaded_cache_retries_once_per_interval(self):
        calls = []

        def failing_fetcher():
            calls.append(1)
            raise ConnectionError("GVL endpoint unreachable")

        cache = VendorListCache(fetcher=failing_fetcher, retry_interval=timedelta(minutes=5))
        for _ in range(10):
            assert cache.current(NOW) is None
            cache.wait_for_refresh(timeout=5)
        assert calls == [1]

    def test_initial_snapshot_is_fresh_at_startup(self):
        payload = _make_gvl_payload()
        payload["lastUpdated"] = "2020-01-01T00:00:00Z"
        calls = []

        def fetcher():
            calls.append(1)
            return _make_vendor_list(version=2)

        cache = VendorListCache(fetcher=fetcher, initial=VendorList.from_gvl(payload))
        assert cache.is_stale() is False
        assert cache.current().version == 150
        cache.wait_for_refresh(timeout=5)
        assert calls == []

    def test_initial_snapshot_with_explicit_load_time(self):
        cache = VendorListCache(initial=_make_vendor_list(), loaded_at=NOW)
        assert cache.loaded_at == NOW
        assert cache.is_stale(NOW + timedelta(days=8)) is True

    def test_fresh_snapshot_does_not_refresh(self):
        calls = []

        def fetcher():
            calls.append(1)
            return _make_vendor_list(version=2)

        cache = VendorListCache(fetcher=fetcher)
        cache.publish(_make_vendor_list(version=1), loaded_at=NOW)
        assert cache.current(NOW + timedelta(hours=1)).version == 1
        cache.wait_for_refresh(timeout=5)
        assert calls == []

    def test_single_refresh_in_flight(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetcher():
            calls.append(1)
            started.set()
            release.wait(5)
            return _make_vendor_list(version=2)

        old = _make_vendor_list(version=1)
        cache = VendorListCache(fetcher=slow_fetcher)
        cache.publish(old, loaded_at=NOW)

        thread = cache.refresh_in_background()
        assert started.wait(5)
        assert cache.refresh_in_progress is True

        # Readers are not blocked and see the old snapshot
        assert cache.current(NOW + timedelta(days=30)) is old
        assert cache.refresh() is False
        assert cache.refresh_in_background() is None

        release.set()
        thread.join(5)
        assert cache.snapshot.version == 2
        assert cache.refresh_in_progress is False
        assert calls == [1]

    def test_run_async_refreshes_stale_cache(self):
        cache = VendorListCache(fetcher=lambda: _make_vendor_list(version=5))

        async def _run():
            stop_event = asyncio.Event()
            task = asyncio.create_task(
                cache.run_async(stop_event, check_interval_seconds=0.01)
            )
            await asyncio.sleep(0.1)
            stop_event.set()
            await asyncio.wait_for(task, timeout=5)

        asyncio.run(_run())
        assert cache.snapshot.version == 5
