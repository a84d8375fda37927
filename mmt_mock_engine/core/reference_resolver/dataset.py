"""
Immutable in-memory snapshot of the mock dataset.

The loader hands over a single payload shaped as flat record collections
(groups, archives, documents, opaques, modules, plus a version record). This
module parses it into typed records and indexes each collection by id. The
snapshot is never mutated after construction, so any number of concurrent
queries may read it without locking.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from mmt_mock_engine.core.reference_resolver.exceptions import InvalidDatasetError
from mmt_mock_engine.core.reference_resolver.models import (
    ArchiveRecord,
    DocumentRecord,
    GlossaryEntryRecord,
    GroupRecord,
    Kind,
    MockReference,
    ModuleRecord,
    OpaqueRecord,
    Statistic,
    TheoryRecord,
    UnknownRecord,
    VersionInfo,
    ViewRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLLECTIONS = ("groups", "archives", "documents", "opaques", "modules", "glossary")


def _get(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key; the dataset mixes camelCase and snake_case."""
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _ref(raw: Any) -> Optional[MockReference]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return MockReference(id=raw)
    return MockReference(id=str(raw.get("id", "")), kind=raw.get("kind"))


def _refs(raw: Optional[Iterable[Any]]) -> List[MockReference]:
    return [r for r in (_ref(x) for x in (raw or [])) if r is not None]


def _statistics(raw: Optional[Iterable[Any]]) -> List[Statistic]:
    stats = []
    for s in raw or []:
        if isinstance(s, Mapping):
            stats.append(Statistic(key=str(s.get("key", "")), value=s.get("value")))
    return stats


def parse_group(raw: Mapping[str, Any]) -> GroupRecord:
    return GroupRecord(
        id=raw["id"],
        name=raw.get("name", ""),
        title=raw.get("title", ""),
        teaser=raw.get("teaser", ""),
        description=raw.get("description", ""),
        responsible=list(raw.get("responsible") or []),
        statistics=_statistics(raw.get("statistics")),
    )


def parse_archive(raw: Mapping[str, Any]) -> ArchiveRecord:
    return ArchiveRecord(
        id=raw["id"],
        name=raw.get("name", ""),
        parent=_ref(raw.get("parent")) or MockReference(""),
        title=raw.get("title", ""),
        teaser=raw.get("teaser", ""),
        description=raw.get("description", ""),
        responsible=list(raw.get("responsible") or []),
        statistics=_statistics(raw.get("statistics")),
        tags=[str(t) for t in raw.get("tags") or []],
        modules=_refs(raw.get("modules")),
    )


def parse_document(raw: Mapping[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=raw["id"],
        name=raw.get("name", ""),
        parent=_ref(raw.get("parent")) or MockReference(""),
        statistics=_statistics(raw.get("statistics")),
        modules=_refs(raw.get("modules")),
    )


def parse_opaque(raw: Mapping[str, Any]) -> OpaqueRecord:
    return OpaqueRecord(
        id=raw["id"],
        name=raw.get("name", ""),
        parent=_ref(raw.get("parent")) or MockReference(""),
        content_format=_get(raw, "contentFormat", "content_format", default=""),
        content=raw.get("content", ""),
    )


def parse_module(raw: Mapping[str, Any]) -> ModuleRecord:
    """
    Parse a module; kinds other than theory/view become UnknownRecord.

    A module's "parent" key is not read: theories and views are reached
    through the module lists of their containers.
    """
    kind = raw.get("kind", "")
    if kind == Kind.THEORY.value:
        return TheoryRecord(
            id=raw["id"],
            name=raw.get("name", ""),
            presentation=raw.get("presentation", ""),
            source=raw.get("source"),
            meta=_ref(raw.get("meta")),
        )
    if kind == Kind.VIEW.value:
        return ViewRecord(
            id=raw["id"],
            name=raw.get("name", ""),
            presentation=raw.get("presentation", ""),
            source=raw.get("source"),
            domain=_ref(raw.get("domain")) or MockReference(""),
            codomain=_ref(raw.get("codomain")) or MockReference(""),
        )
    return UnknownRecord(id=raw["id"], name=raw.get("name", ""), kind_name=str(kind), raw=dict(raw))


def parse_glossary_entry(raw: Mapping[str, Any]) -> GlossaryEntryRecord:
    return GlossaryEntryRecord(
        id=raw["id"],
        name=raw.get("name", ""),
        kwd=dict(raw.get("kwd") or {}),
        definition=dict(_get(raw, "def", "definition", default={}) or {}),
    )


def parse_version(raw: Any) -> VersionInfo:
    if not isinstance(raw, Mapping):
        return VersionInfo()
    known = {"major", "minor", "build"}
    return VersionInfo(
        major=int(raw.get("major", 0) or 0),
        minor=int(raw.get("minor", 0) or 0),
        build=None if raw.get("build") is None else str(raw.get("build")),
        extra={k: v for k, v in raw.items() if k not in known},
    )


def _index(records: Iterable[T]) -> Mapping[str, T]:
    """Index by id; the first record wins on duplicate ids, as a linear find would."""
    index: Dict[str, T] = {}
    for record in records:
        if record.id in index:  # type: ignore[attr-defined]
            logger.warning(f"Mock Dataset: duplicate id {record.id}, keeping the first record")  # type: ignore[attr-defined]
            continue
        index[record.id] = record  # type: ignore[attr-defined]
    return MappingProxyType(index)


class DatasetSnapshot:
    """A loaded, read-only mock dataset with id indexes per collection."""

    def __init__(
        self,
        version: Optional[VersionInfo] = None,
        groups: Iterable[GroupRecord] = (),
        archives: Iterable[ArchiveRecord] = (),
        documents: Iterable[DocumentRecord] = (),
        opaques: Iterable[OpaqueRecord] = (),
        modules: Iterable[ModuleRecord] = (),
        glossary: Iterable[GlossaryEntryRecord] = (),
    ):
        self.version = version or VersionInfo()
        self.glossary: Tuple[GlossaryEntryRecord, ...] = tuple(glossary)

        self._groups = _index(groups)
        self._archives = _index(archives)
        self._documents = _index(documents)
        self._opaques = _index(opaques)
        self._modules = _index(modules)

        # collections hold the indexed records only, so scans see each id once
        self.groups: Tuple[GroupRecord, ...] = tuple(self._groups.values())
        self.archives: Tuple[ArchiveRecord, ...] = tuple(self._archives.values())
        self.documents: Tuple[DocumentRecord, ...] = tuple(self._documents.values())
        self.opaques: Tuple[OpaqueRecord, ...] = tuple(self._opaques.values())
        self.modules: Tuple[ModuleRecord, ...] = tuple(self._modules.values())

    @classmethod
    def from_dict(cls, payload: Any) -> "DatasetSnapshot":
        """
        Parse a raw dataset payload.

        Missing collections are treated as empty. Records without an id are
        skipped with a warning; on a duplicate id only the first record is kept.

        Raises:
            InvalidDatasetError: If the payload is not a mapping or a collection is not a list
        """
        if not isinstance(payload, Mapping):
            raise InvalidDatasetError(f"Dataset payload must be a mapping, got {type(payload).__name__}")

        parsers: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "groups": parse_group,
            "archives": parse_archive,
            "documents": parse_document,
            "opaques": parse_opaque,
            "modules": parse_module,
            "glossary": parse_glossary_entry,
        }
        parsed: Dict[str, List[Any]] = {}
        for name in COLLECTIONS:
            raw_items = payload.get(name) or []
            if not isinstance(raw_items, list):
                raise InvalidDatasetError(f"Dataset collection '{name}' must be a list")
            items = []
            for raw in raw_items:
                if not isinstance(raw, Mapping) or "id" not in raw:
                    logger.warning(f"Mock Dataset: skipping record without id in dataset.{name}")
                    continue
                items.append(parsers[name](raw))
            parsed[name] = items

        snapshot = cls(version=parse_version(payload.get("version")), **parsed)
        logger.info(
            f"Parsed mock dataset: {len(snapshot.groups)} groups, {len(snapshot.archives)} archives, "
            f"{len(snapshot.documents)} documents, {len(snapshot.opaques)} opaques, "
            f"{len(snapshot.modules)} modules"
        )
        return snapshot

    # lookups by id

    def find_group(self, id: str) -> Optional[GroupRecord]:
        return self._groups.get(id)

    def find_archive(self, id: str) -> Optional[ArchiveRecord]:
        return self._archives.get(id)

    def find_document(self, id: str) -> Optional[DocumentRecord]:
        return self._documents.get(id)

    def find_opaque(self, id: str) -> Optional[OpaqueRecord]:
        return self._opaques.get(id)

    def find_module(self, id: str) -> Optional[ModuleRecord]:
        return self._modules.get(id)

    def find_theory(self, id: str) -> Optional[TheoryRecord]:
        module = self._modules.get(id)
        return module if isinstance(module, TheoryRecord) else None

    def find_view(self, id: str) -> Optional[ViewRecord]:
        module = self._modules.get(id)
        return module if isinstance(module, ViewRecord) else None

    # reverse scans (no stored back-pointers exist)

    def archives_of_group(self, group_id: str) -> List[ArchiveRecord]:
        return [a for a in self.archives if a.parent.id == group_id]

    def archives_with_tag(self, tag_name: str) -> List[ArchiveRecord]:
        return [a for a in self.archives if tag_name in a.tags]

    def documents_of(self, parent_id: str) -> List[DocumentRecord]:
        return [d for d in self.documents if d.parent.id == parent_id]

    def opaques_of(self, parent_id: str) -> List[OpaqueRecord]:
        return [o for o in self.opaques if o.parent.id == parent_id]

    def __repr__(self) -> str:
        return (
            f"DatasetSnapshot(groups={len(self.groups)}, archives={len(self.archives)}, "
            f"documents={len(self.documents)}, opaques={len(self.opaques)}, modules={len(self.modules)})"
        )
