"""
Tests for the single-flight DatasetCache.
"""

import asyncio

import pytest

from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.dataset_cache import CacheState, DatasetCache
from mmt_mock_engine.core.reference_resolver.exceptions import InvalidDatasetError, LoadError


class TestDatasetCache:
    """Test suite for DatasetCache."""

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def slow_loader(self, payload, calls):
        async def loader():
            calls.append(1)
            await asyncio.sleep(0.01)
            return payload
        return loader

    def test_initial_state(self, slow_loader):
        cache = DatasetCache(slow_loader)

        assert cache.state is CacheState.UNLOADED
        assert cache.snapshot is None
        assert cache.get_stats() == {
            "state": "unloaded",
            "load_attempts": 0,
            "loads_completed": 0,
            "last_error": None,
        }

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_load(self, slow_loader, calls):
        cache = DatasetCache(slow_loader)

        snapshots = await asyncio.gather(*(cache.ensure_loaded() for _ in range(10)))

        assert len(calls) == 1
        assert all(s is snapshots[0] for s in snapshots)
        assert cache.state is CacheState.LOADED

    @pytest.mark.asyncio
    async def test_loaded_snapshot_is_reused(self, slow_loader, calls):
        cache = DatasetCache(slow_loader)

        first = await cache.ensure_loaded()
        second = await cache.ensure_loaded()

        assert first is second
        assert len(calls) == 1
        assert cache.get_stats()["loads_completed"] == 1

    @pytest.mark.asyncio
    async def test_sync_loader_runs(self, payload, calls):
        def loader():
            calls.append(1)
            return payload

        snapshot = await DatasetCache(loader).ensure_loaded()

        assert isinstance(snapshot, DatasetSnapshot)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_loader_may_return_a_snapshot(self, snapshot):
        async def loader():
            return snapshot

        assert await DatasetCache(loader).ensure_loaded() is snapshot

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self, calls):
        async def loader():
            calls.append(1)
            await asyncio.sleep(0.01)
            raise RuntimeError("disk on fire")

        cache = DatasetCache(loader)
        results = await asyncio.gather(*(cache.ensure_loaded() for _ in range(3)), return_exceptions=True)

        assert len(calls) == 1
        assert all(isinstance(r, LoadError) for r in results)
        assert "disk on fire" in str(results[0])
        assert cache.state is CacheState.FAILED
        assert cache.snapshot is None
        assert cache.get_stats()["last_error"] is not None

    @pytest.mark.asyncio
    async def test_failed_load_is_retried(self, payload, calls):
        async def loader():
            calls.append(1)
            if len(calls) == 1:
                raise LoadError("temporarily unavailable")
            return payload

        cache = DatasetCache(loader)
        with pytest.raises(LoadError, match="temporarily unavailable"):
            await cache.ensure_loaded()

        snapshot = await cache.ensure_loaded()

        assert len(calls) == 2
        assert [g.id for g in snapshot.groups] == ["G1", "G2"]
        assert cache.state is CacheState.LOADED
        assert cache.last_error is None
        assert cache.get_stats()["load_attempts"] == 2

    @pytest.mark.asyncio
    async def test_malformed_payload_is_a_load_error(self):
        async def loader():
            return ["not", "a", "dataset"]

        cache = DatasetCache(loader)
        with pytest.raises(InvalidDatasetError):
            await cache.ensure_loaded()

        assert cache.state is CacheState.FAILED

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_load(self, payload):
        started = asyncio.Event()
        release = asyncio.Event()

        async def loader():
            started.set()
            await release.wait()
            return payload

        cache = DatasetCache(loader)
        waiter = asyncio.ensure_future(cache.ensure_loaded())
        await started.wait()
        waiter.cancel()

        other = asyncio.ensure_future(cache.ensure_loaded())
        release.set()
        snapshot = await other

        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert snapshot is cache.snapshot
        assert cache.state is CacheState.LOADED

    @pytest.mark.asyncio
    async def test_cancelled_load_returns_to_unloaded(self, payload):
        started = asyncio.Event()
        release = asyncio.Event()

        async def loader():
            started.set()
            await release.wait()
            return payload

        cache = DatasetCache(loader)
        waiter = asyncio.ensure_future(cache.ensure_loaded())
        await started.wait()
        cache._task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert cache.state is CacheState.UNLOADED
        cache.invalidate()

        release.set()
        snapshot = await cache.ensure_loaded()
        assert snapshot is cache.snapshot
        assert cache.state is CacheState.LOADED

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self, slow_loader, calls):
        cache = DatasetCache(slow_loader)
        first = await cache.ensure_loaded()

        cache.invalidate()
        assert cache.state is CacheState.UNLOADED

        second = await cache.ensure_loaded()
        assert len(calls) == 2
        assert first is not second

    @pytest.mark.asyncio
    async def test_invalidate_during_load_is_rejected(self, payload):
        started = asyncio.Event()
        release = asyncio.Event()

        async def loader():
            started.set()
            await release.wait()
            return payload

        cache = DatasetCache(loader)
        task = asyncio.ensure_future(cache.ensure_loaded())
        await started.wait()

        assert cache.state is CacheState.LOADING
        with pytest.raises(RuntimeError):
            cache.invalidate()

        release.set()
        await task
        assert cache.state is CacheState.LOADED

    @pytest.mark.asyncio
    async def test_independent_caches_do_not_share_state(self, slow_loader, calls):
        first = DatasetCache(slow_loader)
        second = DatasetCache(slow_loader)

        await first.ensure_loaded()

        assert second.state is CacheState.UNLOADED
        await second.ensure_loaded()
        assert len(calls) == 2
