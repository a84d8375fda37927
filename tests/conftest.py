"""
Shared fixtures for the mock reference resolver tests.

The base library is small but exercises every kind:

    G1 "Algebra"  -> A1 (tags t1)  -> D1 -> O1, D2 (-> O2), T1, V1
    G2 "Logic"    -> A2 (tags t2)  -> D3 -> T0
"""

import pytest

from mmt_mock_engine.core.reference_resolver.config import EngineConfig
from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.diagnostics import Diagnostics
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext


def build_library_payload():
    """Return a fresh, internally consistent dataset payload."""
    return {
        "version": {"major": 1, "minor": 2, "build": "test"},
        "groups": [
            {
                "id": "G1",
                "name": "Algebra",
                "title": "Algebra",
                "teaser": "Groups, rings and fields",
                "description": "<p>Abstract algebra.</p>",
                "responsible": ["Emmy Noether"],
                "statistics": [{"key": "archive_count", "value": 1}],
            },
            {"id": "G2", "name": "Logic", "title": "Logic", "teaser": "Foundations"},
        ],
        "archives": [
            {
                "id": "A1",
                "name": "algebra",
                "parent": {"id": "G1"},
                "title": "Algebra Archive",
                "teaser": "Basic structures",
                "description": "<p>Monoids and groups.</p>",
                "responsible": ["Emmy Noether"],
                "tags": ["t1"],
                "modules": [],
            },
            {"id": "A2", "name": "logic", "parent": {"id": "G2"}, "tags": ["t2"], "modules": []},
        ],
        "documents": [
            {"id": "D1", "name": "Introduction", "parent": {"id": "A1"}, "modules": [{"id": "T1"}, {"id": "V1"}]},
            {"id": "D2", "name": "Monoids", "parent": {"id": "D1"}, "modules": []},
            {"id": "D3", "name": "Logical Frameworks", "parent": {"id": "A2"}, "modules": [{"id": "T0"}]},
        ],
        "opaques": [
            {"id": "O1", "name": "intro", "parent": {"id": "D1"}, "contentFormat": "html", "content": "<p>Welcome</p>"},
            {"id": "O2", "name": "monoid-text", "parent": {"id": "D2"}, "contentFormat": "text", "content": "A monoid is"},
        ],
        "modules": [
            {"kind": "theory", "id": "T0", "name": "LF", "parent": {"id": "D3"}, "presentation": "<div>LF</div>"},
            {
                "kind": "theory",
                "id": "T1",
                "name": "monoid",
                "parent": {"id": "D1"},
                "presentation": "<div>monoid</div>",
                "source": "theory monoid : LF",
                "meta": {"id": "T0"},
            },
            {
                "kind": "view",
                "id": "V1",
                "name": "monoid-in-LF",
                "parent": {"id": "D1"},
                "presentation": "<div>view</div>",
                "domain": {"id": "T1"},
                "codomain": {"id": "T0"},
            },
        ],
        "glossary": [
            {"id": "T1", "name": "monoid", "kwd": {"en": "monoid"}, "def": {"en": "A set with an associative operation."}},
        ],
    }


def make_context(payload, diagnostics=None, **config):
    """Build a ResolutionContext over ``payload`` with optional EngineConfig overrides."""
    return ResolutionContext(
        snapshot=DatasetSnapshot.from_dict(payload),
        config=EngineConfig(**config),
        diagnostics=diagnostics,
    )


@pytest.fixture
def payload():
    return build_library_payload()


@pytest.fixture
def snapshot(payload):
    return DatasetSnapshot.from_dict(payload)


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def context(snapshot, diagnostics):
    return ResolutionContext(snapshot=snapshot, diagnostics=diagnostics)


@pytest.fixture
def context_for():
    """Factory fixture: ``context_for(payload, diagnostics=None, **config)``."""
    return make_context
