"""
Dataset loaders: the one-shot suppliers behind the DatasetCache.

A loader is any callable returning the raw dataset payload (or a ready
DatasetSnapshot). Async loaders are awaited directly; plain callables are
run in a worker thread by the cache. Every failure surfaces as LoadError.
"""

import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import requests

from mmt_mock_engine.core.reference_resolver.config import DEFAULT_DATASET_PATH, EngineConfig
from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.exceptions import LoadError

logger = logging.getLogger(__name__)

Payload = Union[Mapping[str, Any], DatasetSnapshot]
DatasetFactory = Callable[[], Union[Payload, Awaitable[Payload]]]


class JSONFileDatasetLoader:
    """Reads the dataset from a JSON file on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self) -> Mapping[str, Any]:
        logger.info(f"→ Loading mock dataset from {self.path}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise LoadError(f"Mock dataset file not found: {self.path}", source=str(self.path)) from e
        except json.JSONDecodeError as e:
            raise LoadError(f"Mock dataset file {self.path} is not valid JSON: {e}", source=str(self.path)) from e
        except OSError as e:
            raise LoadError(f"Error reading mock dataset file {self.path}: {e}", source=str(self.path)) from e

    def __repr__(self) -> str:
        return f"JSONFileDatasetLoader({str(self.path)!r})"


class HTTPDatasetLoader:
    """Fetches the dataset as a JSON document over HTTP."""

    def __init__(self, url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session

    def __call__(self) -> Mapping[str, Any]:
        logger.info(f"→ Fetching mock dataset from {self.url}")
        getter = self.session.get if self.session is not None else requests.get
        try:
            response = getter(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise LoadError(f"Failed to fetch mock dataset from {self.url}: {e}", source=self.url) from e
        try:
            return response.json()
        except ValueError as e:
            raise LoadError(f"Mock dataset at {self.url} is not valid JSON: {e}", source=self.url) from e

    def __repr__(self) -> str:
        return f"HTTPDatasetLoader({self.url!r})"


class StaticDatasetLoader:
    """Serves an in-memory payload; used for embedding and tests."""

    def __init__(self, payload: Payload):
        self.payload = payload

    async def __call__(self) -> Payload:
        return self.payload


def loader_from_config(config: EngineConfig) -> DatasetFactory:
    """
    Pick a loader for the configuration: URL first, then path, then the
    bundled sample dataset.
    """
    if config.dataset_url:
        return HTTPDatasetLoader(config.dataset_url, timeout=config.http_timeout)
    if config.dataset_path:
        return JSONFileDatasetLoader(config.dataset_path)
    return JSONFileDatasetLoader(DEFAULT_DATASET_PATH)
