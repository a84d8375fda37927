"""
Single-flight memoized loading of the mock dataset.

The cache is an explicit state holder, one per engine instance:

    UNLOADED -> LOADING -> LOADED
                        -> FAILED -> (next call) LOADING ...
                        -> UNLOADED (load task cancelled)

Concurrent callers during LOADING all await the same load task, so the
underlying loader runs at most once per attempt. A failed attempt raises
LoadError to every waiter of that attempt and leaves the cache retryable.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Dict, Optional

from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.dataset_loader import DatasetFactory
from mmt_mock_engine.core.reference_resolver.exceptions import LoadError

logger = logging.getLogger(__name__)


class CacheState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


def _is_async_callable(obj: Any) -> bool:
    return inspect.iscoroutinefunction(obj) or inspect.iscoroutinefunction(getattr(obj, "__call__", None))


class DatasetCache:
    """
    Memoizes the one-time asynchronous load of a DatasetSnapshot.

    Once loaded, every caller receives the same snapshot instance and the
    loader is never called again (until ``invalidate()``).
    """

    def __init__(self, loader: DatasetFactory):
        """
        Initialize the cache with a dataset factory.

        Args:
            loader: Callable returning the raw payload or a DatasetSnapshot.
                    May be async; plain callables run in a worker thread.
        """
        self.loader = loader
        self._state = CacheState.UNLOADED
        self._snapshot: Optional[DatasetSnapshot] = None
        self._error: Optional[LoadError] = None
        self._task: Optional["asyncio.Task[DatasetSnapshot]"] = None
        self._load_attempts = 0
        self._loads_completed = 0

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def snapshot(self) -> Optional[DatasetSnapshot]:
        """The loaded snapshot, or None before the first successful load."""
        return self._snapshot

    @property
    def last_error(self) -> Optional[LoadError]:
        return self._error

    async def ensure_loaded(self) -> DatasetSnapshot:
        """
        Return the dataset snapshot, loading it first if needed.

        Returns:
            The shared DatasetSnapshot instance

        Raises:
            LoadError: If the load attempt this call joined failed
        """
        if self._state is CacheState.LOADED and self._snapshot is not None:
            return self._snapshot

        if self._task is None:
            # UNLOADED or FAILED: start a new attempt
            self._load_attempts += 1
            self._state = CacheState.LOADING
            self._error = None
            logger.debug(f"Starting mock dataset load (attempt {self._load_attempts})")
            self._task = asyncio.ensure_future(self._load())

        # shield: a cancelled waiter must not cancel the shared load
        return await asyncio.shield(self._task)

    async def _load(self) -> DatasetSnapshot:
        try:
            if _is_async_callable(self.loader):
                payload = await self.loader()
            else:
                payload = await asyncio.to_thread(self.loader)
                if inspect.isawaitable(payload):
                    payload = await payload
            snapshot = payload if isinstance(payload, DatasetSnapshot) else DatasetSnapshot.from_dict(payload)
        except LoadError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = LoadError(f"Mock dataset loader failed: {e}")
            self._fail(error)
            raise error from e
        else:
            self._snapshot = snapshot
            self._state = CacheState.LOADED
            self._loads_completed += 1
            logger.info(f"✓ Mock dataset loaded: {snapshot!r}")
            return snapshot
        finally:
            self._task = None
            if self._state is CacheState.LOADING:
                # cancelled before completing or failing
                logger.warning("Mock dataset load was cancelled")
                self._state = CacheState.UNLOADED

    def _fail(self, error: LoadError) -> None:
        self._state = CacheState.FAILED
        self._error = error
        logger.error(f"Failed to load mock dataset: {error}")

    def invalidate(self) -> None:
        """
        Drop the loaded snapshot (or the recorded failure) so the next call reloads.

        Raises:
            RuntimeError: If a load is currently in flight
        """
        if self._state is CacheState.LOADING:
            raise RuntimeError("Can not invalidate the mock dataset cache while a load is in flight")
        if self._state is not CacheState.UNLOADED:
            logger.info("Invalidated mock dataset cache")
        self._state = CacheState.UNLOADED
        self._snapshot = None
        self._error = None

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with the current state and load counters
        """
        return {
            "state": self._state.value,
            "load_attempts": self._load_attempts,
            "loads_completed": self._loads_completed,
            "last_error": str(self._error) if self._error else None,
        }
