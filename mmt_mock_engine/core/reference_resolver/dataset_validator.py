"""
Whole-dataset consistency check.

Walks every record once and reports, as the same structured warnings the
engine emits at query time, every reference that would degrade: dangling
parents and modules, malformed tag names, unknown module kinds, and archives
whose narrative root is not exactly one document. Never raises.
"""

import logging
from typing import List, Optional

from mmt_mock_engine.core.reference_resolver.config import EngineConfig
from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.diagnostics import (
    Diagnostics,
    ResolutionWarning,
    StructuralInconsistencyWarning,
    UnknownKindWarning,
)
from mmt_mock_engine.core.reference_resolver.models import DocumentRef, TheoryRecord, UnknownRecord, ViewRecord
from mmt_mock_engine.core.reference_resolver.narrative_tree_builder import NarrativeTreeBuilder
from mmt_mock_engine.core.reference_resolver.reference_resolver import ReferenceResolver
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext

logger = logging.getLogger(__name__)


def validate_dataset(
    snapshot: DatasetSnapshot,
    config: Optional[EngineConfig] = None,
    resolver: Optional[ReferenceResolver] = None,
) -> List[ResolutionWarning]:
    """
    Check every cross-record reference in ``snapshot``.

    Args:
        snapshot: The dataset to check
        config: Settings (probe order and tag sigil) to check against
        resolver: Resolver to use (a fresh one if None)

    Returns:
        All warnings found, in collection order
    """
    diagnostics = Diagnostics()
    context = ResolutionContext(snapshot=snapshot, config=config or EngineConfig(), diagnostics=diagnostics)
    resolver = resolver or ReferenceResolver()
    builder = NarrativeTreeBuilder(resolver)

    for archive in snapshot.archives:
        resolver.resolve_group_ref(archive.parent.id, context)
        for tag in archive.tags:
            # tag names are stored bare; the sigil is added when the tag id is built
            if not tag or tag.startswith(context.config.tag_sigil):
                context.warn(StructuralInconsistencyWarning(
                    identifier=archive.id,
                    message=f"Archive {archive.id} has malformed tag name {tag!r}",
                ))
        children = builder.build_children(archive.id, archive.modules, context).as_list()
        if len(children) != 1 or not isinstance(children[0], DocumentRef):
            context.warn(StructuralInconsistencyWarning(
                identifier=archive.id,
                message=f"Archive {archive.id} should have exactly one root document, found {len(children)} children",
                child_count=len(children),
            ))

    for document in snapshot.documents:
        resolver.resolve_document_parent_ref(document.parent, context, parent_depth=0)
        for ref in document.modules:
            resolver.resolve_module_ref(ref, context)

    for opaque in snapshot.opaques:
        resolver.resolve_document_parent_ref(opaque.parent, context, parent_depth=0)

    for module in snapshot.modules:
        if isinstance(module, TheoryRecord) and module.meta is not None:
            resolver.resolve_theory_ref(module.meta.id, context)
        elif isinstance(module, ViewRecord):
            resolver.resolve_theory_ref(module.domain.id, context)
            resolver.resolve_theory_ref(module.codomain.id, context)
        elif isinstance(module, UnknownRecord):
            context.warn(UnknownKindWarning(
                identifier=module.id,
                kind_name=module.kind_name,
                message=f"Module {module.id} has unknown kind {module.kind_name}",
            ))

    logger.info(f"Validated mock dataset: {len(diagnostics)} warnings")
    return list(diagnostics.warnings)
