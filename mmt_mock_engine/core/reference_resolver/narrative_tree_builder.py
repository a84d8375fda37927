"""
NarrativeTreeBuilder: gathers the heterogeneous children of a container.

Archives and documents have three kinds of narrative children, none of them
stored on the container itself except the declared modules:

- opaque content blocks whose parent id is the container
- documents whose parent id is the container
- theories and views listed in the container's own module list

They are merged as opaques, then documents, then modules. That order is
stable but it is not an authored reading order (see NarrativeChildren).
"""

from typing import TYPE_CHECKING, FrozenSet, Iterable, List, Optional

from mmt_mock_engine.core.reference_resolver.diagnostics import StructuralInconsistencyWarning
from mmt_mock_engine.core.reference_resolver.models import (
    MockReference,
    ModuleRef,
    NarrativeChildren,
    NarrativeElement,
)
from mmt_mock_engine.core.reference_resolver.reference_resolver import ReferenceResolver
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext

if TYPE_CHECKING:
    from mmt_mock_engine.core.reference_resolver.entity_materializer import EntityMaterializer


class NarrativeTreeBuilder:
    """Collects and merges narrative children from the flat dataset."""

    def __init__(self, resolver: ReferenceResolver, materializer: Optional["EntityMaterializer"] = None):
        """
        Args:
            resolver: Resolver used for shallow child references
            materializer: Needed only for ``materialize=True`` builds
        """
        self.resolver = resolver
        self.materializer = materializer

    def build_children(
        self,
        parent_id: str,
        declared_modules: Iterable[MockReference],
        context: ResolutionContext,
        materialize: bool = False,
        _ancestors: FrozenSet[str] = frozenset(),
    ) -> NarrativeChildren:
        """
        Collect the narrative children of ``parent_id``.

        Args:
            parent_id: Id of the archive or document
            declared_modules: The container's own module reference list
            context: Snapshot, settings and diagnostics for this query
            materialize: Fully materialize opaque and document children
                         (modules always stay shallow)

        Returns:
            NarrativeChildren, unordered beyond the opaque/document/module grouping
        """
        if materialize and self.materializer is None:
            raise RuntimeError("NarrativeTreeBuilder needs a materializer to build materialized children")

        snapshot = context.snapshot
        opaques: List[NarrativeElement] = []
        documents: List[NarrativeElement] = []

        for opaque in snapshot.opaques_of(parent_id):
            if materialize:
                opaques.append(self.materializer.materialize_opaque(opaque.id, context))
            else:
                opaques.append(self.resolver.resolve_opaque_ref(opaque.id, context))

        for document in snapshot.documents_of(parent_id):
            documents.append(self._document_child(document.id, context, materialize, _ancestors))

        modules: List[ModuleRef] = []
        for ref in declared_modules:
            module = self.resolver.resolve_module_ref(ref, context)
            if module is not None:
                modules.append(module)

        return NarrativeChildren(opaques=opaques, documents=documents, modules=modules)

    def _document_child(
        self,
        id: str,
        context: ResolutionContext,
        materialize: bool,
        ancestors: FrozenSet[str],
    ) -> NarrativeElement:
        if not materialize:
            return self.resolver.resolve_document_ref(id, context)

        if id in ancestors:
            context.warn(StructuralInconsistencyWarning(
                identifier=id,
                message=f"Document {id} contains itself, keeping it as a shallow reference",
                fallback="shallow-reference",
            ))
            return self.resolver.resolve_document_ref(id, context)

        return self.materializer.materialize_document(id, context, _ancestors=ancestors)
