"""
Data models for the mock reference resolver.

Three layers of types live here:

- Records: the flat, id-linked entities exactly as they sit in the dataset.
- Shallow references: cheap typed pointers (kind, id, name, one parent level).
- Materialized entities: references extended with every kind-specific field.

Materialized entities subclass their reference type, so an ``Archive`` can be
used wherever an ``ArchiveRef`` is expected.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union


# --- Enums ---

class Kind(Enum):
    """Kind discriminator selecting the resolver/materializer pair."""
    GROUP = "group"
    ARCHIVE = "archive"
    DOCUMENT = "document"
    OPAQUE = "opaque"
    THEORY = "theory"
    VIEW = "view"
    TAG = "tag"


class ParentProbeOrder(Enum):
    """
    Order in which the two container collections are probed when a container
    reference carries no explicit kind.

    The last collection in the order is the fallback: an id missing from both
    resolves as a dangling reference of that kind.
    """
    DOCUMENT_FIRST = "document_first"
    ARCHIVE_FIRST = "archive_first"


MODULE_KINDS = (Kind.THEORY, Kind.VIEW)
CONTAINER_KINDS = (Kind.DOCUMENT, Kind.ARCHIVE)


# --- Dataset records ---

@dataclass(frozen=True)
class MockReference:
    """A shallow id-only pointer between records, with an optional kind hint."""
    id: str
    kind: Optional[str] = None


@dataclass(frozen=True)
class Statistic:
    key: str
    value: Any


@dataclass(frozen=True)
class VersionInfo:
    """Version/info record shipped alongside the dataset."""
    major: int = 0
    minor: int = 0
    build: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GroupRecord:
    kind: ClassVar[Kind] = Kind.GROUP

    id: str
    name: str
    title: str = ""
    teaser: str = ""
    description: str = ""
    responsible: List[str] = field(default_factory=list)
    statistics: List[Statistic] = field(default_factory=list)


@dataclass(frozen=True)
class ArchiveRecord:
    kind: ClassVar[Kind] = Kind.ARCHIVE

    id: str
    name: str
    parent: MockReference
    title: str = ""
    teaser: str = ""
    description: str = ""
    responsible: List[str] = field(default_factory=list)
    statistics: List[Statistic] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)  # tag names, no sigil
    modules: List[MockReference] = field(default_factory=list)


@dataclass(frozen=True)
class DocumentRecord:
    kind: ClassVar[Kind] = Kind.DOCUMENT

    id: str
    name: str
    parent: MockReference
    statistics: List[Statistic] = field(default_factory=list)
    modules: List[MockReference] = field(default_factory=list)


@dataclass(frozen=True)
class OpaqueRecord:
    kind: ClassVar[Kind] = Kind.OPAQUE

    id: str
    name: str
    parent: MockReference
    content_format: str = ""
    content: str = ""


@dataclass(frozen=True)
class TheoryRecord:
    kind: ClassVar[Kind] = Kind.THEORY

    id: str
    name: str
    presentation: str = ""
    source: Optional[str] = None
    meta: Optional[MockReference] = None


@dataclass(frozen=True)
class ViewRecord:
    kind: ClassVar[Kind] = Kind.VIEW

    id: str
    name: str
    presentation: str = ""
    source: Optional[str] = None
    domain: MockReference = MockReference("")
    codomain: MockReference = MockReference("")


@dataclass(frozen=True)
class UnknownRecord:
    """A module record whose kind string is not recognized."""
    id: str
    name: str
    kind_name: str
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        return self.kind_name


@dataclass(frozen=True)
class TagRecord:
    """Virtual record synthesized from a sigil-prefixed id; never stored."""
    kind: ClassVar[Kind] = Kind.TAG

    id: str
    name: str


@dataclass(frozen=True)
class GlossaryEntryRecord:
    id: str
    name: str
    kwd: Dict[str, str] = field(default_factory=dict)
    definition: Dict[str, str] = field(default_factory=dict)


ModuleRecord = Union[TheoryRecord, ViewRecord, UnknownRecord]
Record = Union[
    GroupRecord, ArchiveRecord, DocumentRecord, OpaqueRecord,
    TheoryRecord, ViewRecord, UnknownRecord, TagRecord,
]


# --- Shallow references ---

@dataclass
class ShallowReference:
    """Base of every reference and entity handed to the view layer."""
    kind: ClassVar[Kind]

    id: str
    name: str
    ref: bool = True
    dangling: bool = False


@dataclass
class GroupRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.GROUP

    title: str = ""
    teaser: str = ""
    parent: None = None


@dataclass
class ArchiveRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.ARCHIVE

    title: str = ""
    teaser: str = ""
    parent: Optional[GroupRef] = None


@dataclass
class DocumentRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.DOCUMENT

    parent: Optional["DocumentParentRef"] = None


@dataclass
class OpaqueElementRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.OPAQUE

    parent: Optional["DocumentParentRef"] = None


@dataclass
class TheoryRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.THEORY

    parent: None = None


@dataclass
class ViewRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.VIEW

    parent: None = None


@dataclass
class TagRef(ShallowReference):
    kind: ClassVar[Kind] = Kind.TAG

    parent: None = None


DocumentParentRef = Union[DocumentRef, ArchiveRef]
ModuleRef = Union[TheoryRef, ViewRef]


# --- Materialized entities ---

@dataclass
class Group(GroupRef):
    ref: bool = False

    description: str = ""
    responsible: List[str] = field(default_factory=list)
    archives: List[ArchiveRef] = field(default_factory=list)
    statistics: List[Statistic] = field(default_factory=list)


@dataclass
class Tag(TagRef):
    ref: bool = False

    archives: List[ArchiveRef] = field(default_factory=list)


@dataclass
class Document(DocumentRef):
    ref: bool = False

    decls: List["NarrativeElement"] = field(default_factory=list)
    statistics: List[Statistic] = field(default_factory=list)
    # set on the empty shell used when an archive has no usable root
    placeholder: bool = False


@dataclass
class Archive(ArchiveRef):
    ref: bool = False

    tags: List[TagRef] = field(default_factory=list)
    description: str = ""
    responsible: List[str] = field(default_factory=list)
    narrative_root: Optional[Document] = None
    statistics: List[Statistic] = field(default_factory=list)


@dataclass
class OpaqueElement(OpaqueElementRef):
    ref: bool = False

    content: str = ""
    content_format: str = ""


@dataclass
class Theory(TheoryRef):
    ref: bool = False

    presentation: str = ""
    source: Optional[str] = None
    meta: Optional[TheoryRef] = None


@dataclass
class View(ViewRef):
    ref: bool = False

    presentation: str = ""
    source: Optional[str] = None
    domain: Optional[TheoryRef] = None
    codomain: Optional[TheoryRef] = None


NarrativeElement = Union[
    OpaqueElementRef, OpaqueElement, DocumentRef, Document, TheoryRef, ViewRef,
]
Module = Union[Theory, View]
Entity = Union[Group, Tag, Archive, Document, OpaqueElement, Theory, View]


@dataclass
class NarrativeChildren:
    """
    Children of a container, merged as opaques, then documents, then modules.

    The sequence is stable for a given snapshot but carries no authored
    reading order; ``is_ordered`` stays False until the dataset supplies one.
    """
    opaques: List[NarrativeElement] = field(default_factory=list)
    documents: List[NarrativeElement] = field(default_factory=list)
    modules: List[ModuleRef] = field(default_factory=list)
    is_ordered: bool = False

    def as_list(self) -> List[NarrativeElement]:
        return [*self.opaques, *self.documents, *self.modules]

    def __len__(self) -> int:
        return len(self.opaques) + len(self.documents) + len(self.modules)

    def __iter__(self):
        return iter(self.as_list())


def to_dict(obj: Any) -> Any:
    """
    Convert references, entities and records to plain JSON-ready values.

    Unlike ``dataclasses.asdict`` this includes the class-level ``kind``.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, NarrativeChildren):
        return [to_dict(c) for c in obj]
    if is_dataclass(obj) and not isinstance(obj, type):
        out: Dict[str, Any] = {}
        kind = getattr(obj, "kind", None)
        if kind is not None:
            out["kind"] = to_dict(kind)
        for f in fields(obj):
            out[f.name] = to_dict(getattr(obj, f.name))
        return out
    if isinstance(obj, (list, tuple)):
        return [to_dict(v) for v in obj]
    if isinstance(obj, dict):
        return {k: to_dict(v) for k, v in obj.items()}
    return obj
