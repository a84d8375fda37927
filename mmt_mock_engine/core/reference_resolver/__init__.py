"""
Mock reference resolver module.

This module resolves a flat, id-linked library dataset into fully populated,
typed object graphs on demand: groups, archives, documents, opaque content
blocks, theories, views and virtual tags.

The main entry point is the LazyMockClient class in mock_client.py.
"""

# Main query entry point
from mmt_mock_engine.core.reference_resolver.mock_client import LazyMockClient, MockClient

# Core components
from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.dataset_cache import CacheState, DatasetCache
from mmt_mock_engine.core.reference_resolver.dataset_loader import (
    HTTPDatasetLoader,
    JSONFileDatasetLoader,
    StaticDatasetLoader,
    loader_from_config,
)
from mmt_mock_engine.core.reference_resolver.dataset_validator import validate_dataset
from mmt_mock_engine.core.reference_resolver.entity_materializer import EntityMaterializer
from mmt_mock_engine.core.reference_resolver.kind_dispatcher import KindDispatcher, KindHandler
from mmt_mock_engine.core.reference_resolver.narrative_tree_builder import NarrativeTreeBuilder
from mmt_mock_engine.core.reference_resolver.reference_resolver import ReferenceResolver
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext

# Configuration, errors and diagnostics
from mmt_mock_engine.core.reference_resolver.config import EngineConfig, load_config
from mmt_mock_engine.core.reference_resolver.exceptions import (
    InvalidDatasetError,
    LoadError,
    MockEngineError,
    NotFoundError,
)
from mmt_mock_engine.core.reference_resolver.diagnostics import (
    DanglingReferenceWarning,
    Diagnostics,
    ResolutionWarning,
    StructuralInconsistencyWarning,
    UnknownKindWarning,
)

# Data models
from mmt_mock_engine.core.reference_resolver.models import (
    Archive,
    ArchiveRef,
    Document,
    DocumentRef,
    Group,
    GroupRef,
    Kind,
    NarrativeChildren,
    OpaqueElement,
    OpaqueElementRef,
    ParentProbeOrder,
    Tag,
    TagRef,
    Theory,
    TheoryRef,
    View,
    ViewRef,
    to_dict,
)

__all__ = [
    # Main query entry point
    'LazyMockClient',
    'MockClient',

    # Core components
    'DatasetSnapshot',
    'DatasetCache',
    'CacheState',
    'JSONFileDatasetLoader',
    'HTTPDatasetLoader',
    'StaticDatasetLoader',
    'loader_from_config',
    'validate_dataset',
    'EntityMaterializer',
    'KindDispatcher',
    'KindHandler',
    'NarrativeTreeBuilder',
    'ReferenceResolver',
    'ResolutionContext',

    # Configuration, errors and diagnostics
    'EngineConfig',
    'load_config',
    'MockEngineError',
    'LoadError',
    'InvalidDatasetError',
    'NotFoundError',
    'Diagnostics',
    'ResolutionWarning',
    'DanglingReferenceWarning',
    'UnknownKindWarning',
    'StructuralInconsistencyWarning',

    # Data models
    'Kind',
    'ParentProbeOrder',
    'GroupRef',
    'Group',
    'ArchiveRef',
    'Archive',
    'DocumentRef',
    'Document',
    'OpaqueElementRef',
    'OpaqueElement',
    'TheoryRef',
    'Theory',
    'ViewRef',
    'View',
    'TagRef',
    'Tag',
    'NarrativeChildren',
    'to_dict',
]
