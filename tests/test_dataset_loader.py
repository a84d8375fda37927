"""
Tests for the dataset loaders.
"""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from mmt_mock_engine.core.reference_resolver import config as config_module
from mmt_mock_engine.core.reference_resolver.config import DEFAULT_DATASET_PATH, EngineConfig
from mmt_mock_engine.core.reference_resolver.dataset_loader import (
    HTTPDatasetLoader,
    JSONFileDatasetLoader,
    StaticDatasetLoader,
    loader_from_config,
)
from mmt_mock_engine.core.reference_resolver.exceptions import LoadError


class TestJSONFileDatasetLoader:
    """Test suite for JSONFileDatasetLoader."""

    def test_reads_payload(self, tmp_path, payload):
        path = tmp_path / "dataset.json"
        path.write_text(json.dumps(payload), encoding="utf-8")

        assert JSONFileDatasetLoader(path)() == payload

    def test_missing_file(self, tmp_path):
        loader = JSONFileDatasetLoader(tmp_path / "missing.json")

        with pytest.raises(LoadError) as exc_info:
            loader()

        assert "not found" in str(exc_info.value)
        assert exc_info.value.source.endswith("missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")

        with pytest.raises(LoadError) as exc_info:
            JSONFileDatasetLoader(path)()

        assert "not valid JSON" in str(exc_info.value)

    def test_bundled_sample_dataset_loads(self):
        payload = JSONFileDatasetLoader(DEFAULT_DATASET_PATH)()

        assert {"groups", "archives", "documents", "opaques", "modules"} <= set(payload)

    def test_bundled_sample_dataset_ships_with_the_package(self):
        package_dir = Path(config_module.__file__).resolve().parent

        assert DEFAULT_DATASET_PATH.parent.parent == package_dir
        assert DEFAULT_DATASET_PATH.is_file()


class TestHTTPDatasetLoader:
    """Test suite for HTTPDatasetLoader with a mocked requests session."""

    @pytest.fixture
    def session(self, payload):
        session = Mock()
        session.get.return_value.json.return_value = payload
        return session

    def test_fetches_payload(self, session, payload):
        loader = HTTPDatasetLoader("https://example.org/mock.json", timeout=5.0, session=session)

        assert loader() == payload
        session.get.assert_called_once_with("https://example.org/mock.json", timeout=5.0)
        session.get.return_value.raise_for_status.assert_called_once()

    def test_request_error(self, session):
        session.get.side_effect = requests.ConnectionError("connection refused")
        loader = HTTPDatasetLoader("https://example.org/mock.json", session=session)

        with pytest.raises(LoadError) as exc_info:
            loader()

        assert "connection refused" in str(exc_info.value)
        assert exc_info.value.source == "https://example.org/mock.json"

    def test_http_error_status(self, session):
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        loader = HTTPDatasetLoader("https://example.org/mock.json", session=session)

        with pytest.raises(LoadError):
            loader()

    def test_invalid_json_body(self, session):
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        loader = HTTPDatasetLoader("https://example.org/mock.json", session=session)

        with pytest.raises(LoadError) as exc_info:
            loader()

        assert "not valid JSON" in str(exc_info.value)


class TestStaticDatasetLoader:

    @pytest.mark.asyncio
    async def test_returns_payload(self, payload):
        assert await StaticDatasetLoader(payload)() is payload


class TestLoaderFromConfig:
    """Test suite for loader selection."""

    def test_url_wins(self):
        loader = loader_from_config(EngineConfig(dataset_path=Path("x.json"), dataset_url="https://example.org/d.json", http_timeout=3.0))

        assert isinstance(loader, HTTPDatasetLoader)
        assert loader.url == "https://example.org/d.json"
        assert loader.timeout == 3.0

    def test_path(self):
        loader = loader_from_config(EngineConfig(dataset_path=Path("x.json")))

        assert isinstance(loader, JSONFileDatasetLoader)
        assert loader.path == Path("x.json")

    def test_default_is_bundled_sample(self):
        loader = loader_from_config(EngineConfig())

        assert isinstance(loader, JSONFileDatasetLoader)
        assert loader.path == DEFAULT_DATASET_PATH
