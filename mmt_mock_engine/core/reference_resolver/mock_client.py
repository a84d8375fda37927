"""
Mock library client: the narrow async query interface used by view code.

Every query first awaits the DatasetCache (single-flight load), then resolves
synchronously against the immutable snapshot. Only LoadError and NotFoundError
for the requested top-level id escape; everything else degrades and is
reported through the optional ``diagnostics`` collector.
"""

import logging
from typing import Any, List, Optional, Tuple

from mmt_mock_engine.core.reference_resolver.config import EngineConfig
from mmt_mock_engine.core.reference_resolver.dataset_cache import DatasetCache
from mmt_mock_engine.core.reference_resolver.dataset_loader import DatasetFactory, loader_from_config
from mmt_mock_engine.core.reference_resolver.diagnostics import Diagnostics
from mmt_mock_engine.core.reference_resolver.exceptions import NotFoundError
from mmt_mock_engine.core.reference_resolver.kind_dispatcher import KindDispatcher
from mmt_mock_engine.core.reference_resolver.models import (
    Archive,
    Document,
    GlossaryEntryRecord,
    Group,
    GroupRef,
    Kind,
    Tag,
    VersionInfo,
)
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext

logger = logging.getLogger(__name__)

# probed in this order by resolve_by_identifier before modules and tags
_URI_PROBE_KINDS: Tuple[Kind, ...] = (Kind.GROUP, Kind.ARCHIVE, Kind.DOCUMENT, Kind.OPAQUE)
_URI_PROBED_COLLECTIONS = "groups, archives, documents, opaques, modules, tags"


class LazyMockClient:
    """
    Resolves library queries statically from a lazily loaded dataset.

    Each client owns its own DatasetCache, so independent clients (e.g. in
    tests) never share load state.
    """

    def __init__(
        self,
        dataset_factory: DatasetFactory,
        config: Optional[EngineConfig] = None,
        dispatcher: Optional[KindDispatcher] = None,
    ):
        """
        Args:
            dataset_factory: Loader called at most once per successful load
            config: Engine settings (tag sigil, parent probe order)
            dispatcher: Kind dispatcher (a default one is built if None)
        """
        self.config = config or EngineConfig()
        self.cache = DatasetCache(dataset_factory)
        self.dispatcher = dispatcher or KindDispatcher()

    @property
    def resolver(self):
        return self.dispatcher.resolver

    async def _context(self, diagnostics: Optional[Diagnostics]) -> ResolutionContext:
        snapshot = await self.cache.ensure_loaded()
        return ResolutionContext(snapshot=snapshot, config=self.config, diagnostics=diagnostics)

    async def _get(self, kind: Kind, id: str, diagnostics: Optional[Diagnostics]) -> Any:
        context = await self._context(diagnostics)
        handler = self.dispatcher.handler_for(kind)
        record = handler.lookup(id, context)
        if record is None:
            logger.info(f"{kind.value} {id} not found in dataset.{handler.collection}")
            raise NotFoundError(
                id,
                handler.collection,
                f"{kind.value.capitalize()} {id} does not exist in dataset.{handler.collection}",
            )
        return self.dispatcher.materialize(record, context)

    # --- Getters ---

    async def get_version(self) -> VersionInfo:
        """Get the version record shipped with the dataset."""
        snapshot = await self.cache.ensure_loaded()
        return snapshot.version

    async def list_groups(self, diagnostics: Optional[Diagnostics] = None) -> List[GroupRef]:
        """Retrieve shallow references to all groups, in dataset order."""
        context = await self._context(diagnostics)
        return [self.resolver.resolve_group_ref(g.id, context) for g in context.snapshot.groups]

    async def get_group(self, id: str, diagnostics: Optional[Diagnostics] = None) -> Group:
        return await self._get(Kind.GROUP, id, diagnostics)

    async def get_tag(self, id: str, diagnostics: Optional[Diagnostics] = None) -> Tag:
        """Get a tag; any id carrying the tag sigil names a (possibly empty) tag."""
        return await self._get(Kind.TAG, id, diagnostics)

    async def get_archive(self, id: str, diagnostics: Optional[Diagnostics] = None) -> Archive:
        return await self._get(Kind.ARCHIVE, id, diagnostics)

    async def get_document(self, id: str, diagnostics: Optional[Diagnostics] = None) -> Document:
        return await self._get(Kind.DOCUMENT, id, diagnostics)

    async def get_module(self, id: str, diagnostics: Optional[Diagnostics] = None) -> Any:
        """
        Get a theory or view by id.

        A module of unknown kind is returned unmodified (with a warning).
        """
        context = await self._context(diagnostics)
        record = context.snapshot.find_module(id)
        if record is None:
            raise NotFoundError(id, "modules", f"Module {id} does not exist in dataset.modules")
        return self.dispatcher.materialize(record, context)

    async def resolve_by_identifier(self, uri: str, diagnostics: Optional[Diagnostics] = None) -> Any:
        """
        Resolve any identifier to its materialized entity.

        Probes groups, archives, documents, opaques, then modules (dispatching
        on the module's own kind), then tags when the id carries the sigil.

        Raises:
            NotFoundError: If no collection holds ``uri``
        """
        context = await self._context(diagnostics)

        for kind in _URI_PROBE_KINDS:
            record = self.dispatcher.handler_for(kind).lookup(uri, context)
            if record is not None:
                return self.dispatcher.materialize(record, context)

        module = context.snapshot.find_module(uri)
        if module is not None:
            return self.dispatcher.materialize(module, context)

        tag = self.dispatcher.handler_for(Kind.TAG).lookup(uri, context)
        if tag is not None:
            return self.dispatcher.materialize(tag, context)

        raise NotFoundError(
            uri,
            _URI_PROBED_COLLECTIONS,
            f"Can not find {uri} in dataset.{{{_URI_PROBED_COLLECTIONS}}}",
        )

    async def get_glossary(self) -> List[GlossaryEntryRecord]:
        """Get all glossary entries."""
        snapshot = await self.cache.ensure_loaded()
        return list(snapshot.glossary)


class MockClient(LazyMockClient):
    """A LazyMockClient whose loader is chosen from the engine configuration."""

    def __init__(self, config: Optional[EngineConfig] = None):
        config = config or EngineConfig()
        super().__init__(loader_from_config(config), config=config)

    @classmethod
    def from_config(cls, config: EngineConfig) -> "MockClient":
        return cls(config)
