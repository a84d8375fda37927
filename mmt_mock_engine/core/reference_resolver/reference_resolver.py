"""
ReferenceResolver: Builds shallow typed references from id-only pointers.

A shallow reference carries kind, id, display name and a few reference-safe
fields. By default it resolves its own parent one level deep and stops; the
EntityMaterializer asks for the full parent chain instead (``parent_depth=None``).
"""

from typing import Callable, Dict, FrozenSet, Optional, Type, TypeVar, Union

from mmt_mock_engine.core.reference_resolver.diagnostics import (
    DanglingReferenceWarning,
    StructuralInconsistencyWarning,
    UnknownKindWarning,
)
from mmt_mock_engine.core.reference_resolver.models import (
    ArchiveRef,
    DocumentParentRef,
    DocumentRef,
    GroupRef,
    Kind,
    MockReference,
    ModuleRef,
    OpaqueElementRef,
    ParentProbeOrder,
    ShallowReference,
    TagRef,
    TheoryRecord,
    TheoryRef,
    ViewRecord,
    ViewRef,
)
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext

R = TypeVar("R", bound=ShallowReference)

# how many parent levels to resolve; None means up to the root
ParentDepth = Optional[int]

_KINDS_WITH_PARENT = (Kind.ARCHIVE, Kind.DOCUMENT, Kind.OPAQUE)

_PROBE_ORDERS = {
    ParentProbeOrder.DOCUMENT_FIRST: (Kind.DOCUMENT, Kind.ARCHIVE),
    ParentProbeOrder.ARCHIVE_FIRST: (Kind.ARCHIVE, Kind.DOCUMENT),
}


def _child_depth(parent_depth: ParentDepth) -> ParentDepth:
    return None if parent_depth is None else parent_depth - 1


def _wants_parent(parent_depth: ParentDepth) -> bool:
    return parent_depth is None or parent_depth > 0


class ReferenceResolver:
    """
    Resolves id-only pointers into shallow references, one rule per kind.

    Missing records never raise: the resolver records a
    DanglingReferenceWarning and returns a degraded reference (requested id,
    empty name, ``dangling=True``, no parent).
    """

    def __init__(self):
        self._rules: Dict[Kind, Callable[..., ShallowReference]] = {
            Kind.GROUP: self.resolve_group_ref,
            Kind.ARCHIVE: self.resolve_archive_ref,
            Kind.DOCUMENT: self.resolve_document_ref,
            Kind.OPAQUE: self.resolve_opaque_ref,
            Kind.THEORY: self.resolve_theory_ref,
            Kind.VIEW: self.resolve_view_ref,
            Kind.TAG: self.resolve_tag_ref,
        }

    def resolve_ref(
        self,
        kind: Union[Kind, str],
        id: str,
        context: ResolutionContext,
        parent_depth: ParentDepth = 1,
    ) -> ShallowReference:
        """
        Resolve ``id`` as a shallow reference of the given kind.

        Args:
            kind: Kind of the referenced entity
            id: Identifier to look up
            context: Snapshot, settings and diagnostics for this query
            parent_depth: Parent levels to populate (1 for shallow, None for the full chain)

        Returns:
            The typed shallow reference, possibly degraded

        Raises:
            ValueError: If ``kind`` is not a known kind
        """
        kind = Kind(kind)
        rule = self._rules[kind]
        if kind in _KINDS_WITH_PARENT:
            return rule(id, context, parent_depth=parent_depth)
        return rule(id, context)

    # --- degraded output ---

    def _dangling(self, ref_type: Type[R], id: str, collection: str, context: ResolutionContext) -> R:
        context.warn(DanglingReferenceWarning(
            identifier=id,
            collection=collection,
            message=f"Can not find {id} in dataset.{collection}",
        ))
        return ref_type(id=id, name="", dangling=True)

    # --- per-kind rules ---

    def resolve_group_ref(self, id: str, context: ResolutionContext) -> GroupRef:
        actual = context.snapshot.find_group(id)
        if actual is None:
            return self._dangling(GroupRef, id, "groups", context)

        return GroupRef(
            id=actual.id,
            name=actual.name,
            title=actual.title,
            teaser=actual.teaser,
        )

    def resolve_archive_ref(
        self,
        id: str,
        context: ResolutionContext,
        parent_depth: ParentDepth = 1,
    ) -> ArchiveRef:
        actual = context.snapshot.find_archive(id)
        if actual is None:
            return self._dangling(ArchiveRef, id, "archives", context)

        parent = self.resolve_group_ref(actual.parent.id, context) if _wants_parent(parent_depth) else None

        return ArchiveRef(
            id=actual.id,
            name=actual.name,
            title=actual.title,
            teaser=actual.teaser,
            parent=parent,
        )

    def resolve_document_ref(
        self,
        id: str,
        context: ResolutionContext,
        parent_depth: ParentDepth = 1,
        _seen: FrozenSet[str] = frozenset(),
    ) -> DocumentRef:
        actual = context.snapshot.find_document(id)
        if actual is None:
            return self._dangling(DocumentRef, id, "documents", context)

        parent = None
        if _wants_parent(parent_depth):
            parent = self.resolve_document_parent_ref(
                actual.parent, context, parent_depth=_child_depth(parent_depth), _seen=_seen | {id}
            )

        return DocumentRef(id=actual.id, name=actual.name, parent=parent)

    def resolve_opaque_ref(
        self,
        id: str,
        context: ResolutionContext,
        parent_depth: ParentDepth = 1,
    ) -> OpaqueElementRef:
        actual = context.snapshot.find_opaque(id)
        if actual is None:
            return self._dangling(OpaqueElementRef, id, "opaques", context)

        parent = None
        if _wants_parent(parent_depth):
            parent = self.resolve_document_parent_ref(
                actual.parent, context, parent_depth=_child_depth(parent_depth)
            )

        return OpaqueElementRef(id=actual.id, name=actual.name, parent=parent)

    def container_kind(self, ref: MockReference, context: ResolutionContext) -> Kind:
        """
        Decide whether a container reference points at a document or an archive.

        An explicit ``kind`` on the reference wins. Otherwise the collections
        are probed in the configured order; the last one is the fallback.
        """
        if ref.kind in (Kind.DOCUMENT.value, Kind.ARCHIVE.value):
            return Kind(ref.kind)

        order = _PROBE_ORDERS[context.config.parent_probe_order]
        finders = {
            Kind.DOCUMENT: context.snapshot.find_document,
            Kind.ARCHIVE: context.snapshot.find_archive,
        }
        for kind in order:
            if finders[kind](ref.id) is not None:
                return kind
        return order[-1]

    def resolve_document_parent_ref(
        self,
        ref: MockReference,
        context: ResolutionContext,
        parent_depth: ParentDepth = 1,
        _seen: FrozenSet[str] = frozenset(),
    ) -> DocumentParentRef:
        """Resolve the container of a document or opaque block (a document or an archive)."""
        if ref.id in _seen:
            context.warn(StructuralInconsistencyWarning(
                identifier=ref.id,
                message=f"Containment cycle through {ref.id}, stopping the parent chain there",
                fallback="shallow-reference",
            ))
            parent_depth = 0

        if self.container_kind(ref, context) is Kind.DOCUMENT:
            return self.resolve_document_ref(ref.id, context, parent_depth=parent_depth, _seen=_seen)
        return self.resolve_archive_ref(ref.id, context, parent_depth=parent_depth)

    def resolve_theory_ref(self, id: str, context: ResolutionContext) -> TheoryRef:
        actual = context.snapshot.find_theory(id)
        if actual is None:
            return self._dangling(TheoryRef, id, "modules (as theory)", context)

        return TheoryRef(id=actual.id, name=actual.name)

    def resolve_view_ref(self, id: str, context: ResolutionContext) -> ViewRef:
        actual = context.snapshot.find_view(id)
        if actual is None:
            return self._dangling(ViewRef, id, "modules (as view)", context)

        return ViewRef(id=actual.id, name=actual.name)

    def resolve_tag_ref(self, id: str, context: ResolutionContext) -> TagRef:
        """Tags are virtual: the id is checked for the sigil, never looked up."""
        sigil = context.config.tag_sigil
        if not id.startswith(sigil):
            context.warn(DanglingReferenceWarning(
                identifier=id,
                collection="tags",
                message=f"Can not find {id} in dataset.tags (missing '{sigil}' prefix)",
            ))
            return TagRef(id=id, name=id, dangling=True)

        return TagRef(id=id, name=id[len(sigil):])

    def resolve_module_ref(self, ref: MockReference, context: ResolutionContext) -> Optional[ModuleRef]:
        """
        Resolve a declared module reference to a theory or view reference.

        Returns None (after recording a warning) when the module is missing
        or has an unknown kind, so callers can skip it.
        """
        actual = context.snapshot.find_module(ref.id)
        if actual is None:
            context.warn(DanglingReferenceWarning(
                identifier=ref.id,
                collection="modules",
                message=f"Can not find {ref.id} in dataset.modules",
            ))
            return None
        if isinstance(actual, TheoryRecord):
            return TheoryRef(id=actual.id, name=actual.name)
        if isinstance(actual, ViewRecord):
            return ViewRef(id=actual.id, name=actual.name)

        context.warn(UnknownKindWarning(
            identifier=actual.id,
            kind_name=str(actual.kind),
            message=f"Got module {actual.id} of unknown kind {actual.kind}, skipping it",
        ))
        return None
