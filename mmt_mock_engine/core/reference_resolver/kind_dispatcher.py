"""
KindDispatcher: routes records to their resolver/materializer pair.

Dispatch is a lookup table from Kind to KindHandler, so supporting a new kind
means registering a handler rather than adding branches. Records of an
unrecognized kind fail closed: a warning is recorded and the record is
returned unmodified so the caller can still render something.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from mmt_mock_engine.core.reference_resolver.diagnostics import UnknownKindWarning
from mmt_mock_engine.core.reference_resolver.entity_materializer import EntityMaterializer
from mmt_mock_engine.core.reference_resolver.models import Kind, ShallowReference, TagRecord, UnknownRecord
from mmt_mock_engine.core.reference_resolver.reference_resolver import ReferenceResolver
from mmt_mock_engine.core.reference_resolver.resolution_context import ResolutionContext


@dataclass(frozen=True)
class KindHandler:
    """Everything the engine needs to know about one kind."""
    kind: Kind
    collection: str
    lookup: Callable[[str, ResolutionContext], Optional[Any]]
    resolve_ref: Callable[[str, ResolutionContext], ShallowReference]
    materialize: Callable[[str, ResolutionContext], Any]


def _lookup_tag(id: str, context: ResolutionContext) -> Optional[TagRecord]:
    sigil = context.config.tag_sigil
    if not id.startswith(sigil):
        return None
    return TagRecord(id=id, name=id[len(sigil):])


def _kind_name(record: Any) -> str:
    kind = record.get("kind") if isinstance(record, Mapping) else getattr(record, "kind", None)
    if isinstance(kind, Kind):
        return kind.value
    return "" if kind is None else str(kind)


def _record_id(record: Any) -> str:
    if isinstance(record, Mapping):
        return str(record.get("id", ""))
    return str(getattr(record, "id", ""))


class KindDispatcher:
    """Maps kinds to handlers and dispatches records through them."""

    def __init__(
        self,
        resolver: Optional[ReferenceResolver] = None,
        materializer: Optional[EntityMaterializer] = None,
        handlers: Optional[Iterable[KindHandler]] = None,
    ):
        self.resolver = resolver or (materializer.resolver if materializer else ReferenceResolver())
        self.materializer = materializer or EntityMaterializer(self.resolver)
        self._handlers: Dict[Kind, KindHandler] = {}
        for handler in handlers if handlers is not None else self._default_handlers():
            self.register(handler)

    def _default_handlers(self) -> Iterable[KindHandler]:
        r, m = self.resolver, self.materializer
        return (
            KindHandler(Kind.GROUP, "groups", lambda id, c: c.snapshot.find_group(id),
                        r.resolve_group_ref, m.materialize_group),
            KindHandler(Kind.ARCHIVE, "archives", lambda id, c: c.snapshot.find_archive(id),
                        r.resolve_archive_ref, m.materialize_archive),
            KindHandler(Kind.DOCUMENT, "documents", lambda id, c: c.snapshot.find_document(id),
                        r.resolve_document_ref, m.materialize_document),
            KindHandler(Kind.OPAQUE, "opaques", lambda id, c: c.snapshot.find_opaque(id),
                        r.resolve_opaque_ref, m.materialize_opaque),
            KindHandler(Kind.THEORY, "modules", lambda id, c: c.snapshot.find_theory(id),
                        r.resolve_theory_ref, m.materialize_theory),
            KindHandler(Kind.VIEW, "modules", lambda id, c: c.snapshot.find_view(id),
                        r.resolve_view_ref, m.materialize_view),
            KindHandler(Kind.TAG, "tags", _lookup_tag,
                        r.resolve_tag_ref, m.materialize_tag),
        )

    def register(self, handler: KindHandler) -> None:
        self._handlers[handler.kind] = handler

    def handler_for(self, kind: Kind) -> Optional[KindHandler]:
        return self._handlers.get(kind)

    @property
    def kinds(self) -> Iterable[Kind]:
        return tuple(self._handlers)

    def classify(self, record: Any) -> Optional[Kind]:
        """Return the record's Kind, or None if its discriminator is unknown."""
        if isinstance(record, UnknownRecord):
            return None
        try:
            kind = Kind(_kind_name(record))
        except ValueError:
            return None
        return kind if kind in self._handlers else None

    def _unknown(self, record: Any, context: ResolutionContext) -> Any:
        kind_name = _kind_name(record)
        context.warn(UnknownKindWarning(
            identifier=_record_id(record),
            kind_name=kind_name,
            message=f"Got object of unknown kind {kind_name}, skipping cleanup",
        ))
        return record

    def materialize(self, record: Any, context: ResolutionContext) -> Any:
        """
        Fully materialize ``record`` with the handler for its kind.

        Returns:
            The materialized entity, or the record itself for unknown kinds
        """
        kind = self.classify(record)
        if kind is None:
            return self._unknown(record, context)
        return self._handlers[kind].materialize(_record_id(record), context)

    def resolve_ref(self, record: Any, context: ResolutionContext) -> Any:
        """Shallow counterpart of ``materialize``; same passthrough for unknown kinds."""
        kind = self.classify(record)
        if kind is None:
            return self._unknown(record, context)
        return self._handlers[kind].resolve_ref(_record_id(record), context)
