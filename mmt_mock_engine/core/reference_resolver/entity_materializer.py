"""
EntityMaterializer: Builds fully populated entities on top of shallow references.

Materialization resolves the whole parent chain, every kind-specific field,
and, for containers, the narrative children. It never raises on bad data:
dangling references degrade, and an archive without exactly one root
document falls back explicitly (first document child, else a placeholder)
with a StructuralInconsistencyWarning describing what was done.
"""

import logging
from typing import Callable, Dict, FrozenSet, Optional, Union

from mmt_mock_engine.core.reference_resolver.diagnostics import StructuralInconsistencyWarning
from mmt_mock_engine.core.reference_resolver.models import (
    Archive,
    Document,
    Entity,
    Group,
    Kind,
    NarrativeChildren,
    OpaqueElement,
    Tag,
    Theory,
    View,
)
from mmt_mock_engine.core.reference_resolver.narrative_tree_builder import NarrativeTreeBuilder
from mmt_mock_engine.core.reference_resolver.reference_resolver import ReferenceResolver
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext

logger = logging.getLogger(__name__)


class EntityMaterializer:
    """
    Turns an id of a known kind into its fully materialized entity.

    The materializer owns a NarrativeTreeBuilder wired back to itself so
    that container children are materialized recursively.
    """

    def __init__(self, resolver: Optional[ReferenceResolver] = None, builder: Optional[NarrativeTreeBuilder] = None):
        self.resolver = resolver or ReferenceResolver()
        self.builder = builder or NarrativeTreeBuilder(self.resolver)
        if self.builder.materializer is None:
            self.builder.materializer = self

        self._materializers: Dict[Kind, Callable[[str, ResolutionContext], Entity]] = {
            Kind.GROUP: self.materialize_group,
            Kind.TAG: self.materialize_tag,
            Kind.ARCHIVE: self.materialize_archive,
            Kind.DOCUMENT: self.materialize_document,
            Kind.OPAQUE: self.materialize_opaque,
            Kind.THEORY: self.materialize_theory,
            Kind.VIEW: self.materialize_view,
        }

    def materialize(self, kind: Union[Kind, str], id: str, context: ResolutionContext) -> Entity:
        """
        Fully resolve the entity ``id`` of the given kind.

        Raises:
            ValueError: If ``kind`` is not a known kind
        """
        return self._materializers[Kind(kind)](id, context)

    def materialize_group(self, id: str, context: ResolutionContext) -> Group:
        ref = self.resolver.resolve_group_ref(id, context)
        actual = context.snapshot.find_group(id)

        # no stored back-pointers: scan archives for this parent
        archives = [
            self.resolver.resolve_archive_ref(a.id, context)
            for a in context.snapshot.archives_of_group(id)
        ]

        if actual is None:
            return Group(id=ref.id, name=ref.name, dangling=True, archives=archives)

        return Group(
            id=ref.id,
            name=ref.name,
            title=ref.title,
            teaser=ref.teaser,
            description=actual.description,
            responsible=list(actual.responsible),
            archives=archives,
            statistics=list(actual.statistics),
        )

    def materialize_tag(self, id: str, context: ResolutionContext) -> Tag:
        ref = self.resolver.resolve_tag_ref(id, context)
        if ref.dangling:
            return Tag(id=ref.id, name=ref.name, dangling=True)

        archives = [
            self.resolver.resolve_archive_ref(a.id, context)
            for a in context.snapshot.archives_with_tag(ref.name)
        ]
        return Tag(id=ref.id, name=ref.name, archives=archives)

    def materialize_archive(self, id: str, context: ResolutionContext) -> Archive:
        ref = self.resolver.resolve_archive_ref(id, context, parent_depth=None)
        actual = context.snapshot.find_archive(id)
        if actual is None:
            return Archive(id=ref.id, name=ref.name, dangling=True)

        children = self.builder.build_children(
            id, actual.modules, context, materialize=True, _ancestors=frozenset({id})
        )
        narrative_root = self.select_narrative_root(id, children, context)
        tags = [self.resolver.resolve_tag_ref(context.tag_id(t), context) for t in actual.tags]

        return Archive(
            id=ref.id,
            name=ref.name,
            title=ref.title,
            teaser=ref.teaser,
            parent=ref.parent,
            tags=tags,
            description=actual.description,
            responsible=list(actual.responsible),
            narrative_root=narrative_root,
            statistics=list(actual.statistics),
        )

    def select_narrative_root(self, archive_id: str, children: NarrativeChildren, context: ResolutionContext) -> Document:
        """
        Reduce an archive's children to its single root document.

        Anything other than exactly one materialized document child is a data
        fault; the fallback is the first document child, else an empty
        placeholder document.
        """
        items = children.as_list()
        documents = [c for c in items if isinstance(c, Document)]

        if len(items) == 1 and documents:
            return documents[0]

        if documents:
            root, fallback = documents[0], "first-document"
        else:
            root, fallback = Document(id="", name="", placeholder=True), "placeholder"

        context.warn(StructuralInconsistencyWarning(
            identifier=archive_id,
            message=(
                f"Expected exactly one child of {archive_id}, found {len(items)}; "
                f"using {fallback} {root.id!r} as narrative root"
            ),
            child_count=len(items),
            fallback=fallback,
        ))
        return root

    def materialize_document(
        self,
        id: str,
        context: ResolutionContext,
        _ancestors: FrozenSet[str] = frozenset(),
    ) -> Document:
        ref = self.resolver.resolve_document_ref(id, context, parent_depth=None)
        actual = context.snapshot.find_document(id)
        if actual is None:
            return Document(id=ref.id, name=ref.name, dangling=True)

        decls = self.builder.build_children(
            id, actual.modules, context, materialize=True, _ancestors=_ancestors | {id}
        )
        logger.debug(f"Materialized document {id} with {len(decls)} narrative children")

        return Document(
            id=ref.id,
            name=ref.name,
            parent=ref.parent,
            decls=decls.as_list(),
            statistics=list(actual.statistics),
        )

    def materialize_opaque(self, id: str, context: ResolutionContext) -> OpaqueElement:
        ref = self.resolver.resolve_opaque_ref(id, context, parent_depth=None)
        actual = context.snapshot.find_opaque(id)
        if actual is None:
            return OpaqueElement(id=ref.id, name=ref.name, dangling=True)

        return OpaqueElement(
            id=ref.id,
            name=ref.name,
            parent=ref.parent,
            content=actual.content,
            content_format=actual.content_format,
        )

    def materialize_theory(self, id: str, context: ResolutionContext) -> Theory:
        ref = self.resolver.resolve_theory_ref(id, context)
        actual = context.snapshot.find_theory(id)
        if actual is None:
            return Theory(id=ref.id, name=ref.name, dangling=True)

        meta = self.resolver.resolve_theory_ref(actual.meta.id, context) if actual.meta else None

        return Theory(
            id=ref.id,
            name=ref.name,
            presentation=actual.presentation,
            source=actual.source,
            meta=meta,
        )

    def materialize_view(self, id: str, context: ResolutionContext) -> View:
        ref = self.resolver.resolve_view_ref(id, context)
        actual = context.snapshot.find_view(id)
        if actual is None:
            return View(id=ref.id, name=ref.name, dangling=True)

        return View(
            id=ref.id,
            name=ref.name,
            presentation=actual.presentation,
            source=actual.source,
            domain=self.resolver.resolve_theory_ref(actual.domain.id, context),
            codomain=self.resolver.resolve_theory_ref(actual.codomain.id, context),
        )
