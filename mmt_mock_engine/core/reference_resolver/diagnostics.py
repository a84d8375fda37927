"""
Structured warnings for degraded resolution.

The engine prefers partial rendering over failing a whole page, so dangling
references, unknown kinds and inconsistent archive roots are absorbed. Each
of those paths produces one of the warning values below, logs it, and appends
it to the caller's ``Diagnostics`` collector when one was passed in.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionWarning:
    """Base value for every degradation the engine records."""
    identifier: str
    message: str

    @property
    def category(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class DanglingReferenceWarning(ResolutionWarning):
    """A reference field points to an id missing from the collection searched."""
    collection: str = ""


@dataclass(frozen=True)
class UnknownKindWarning(ResolutionWarning):
    """A record's kind discriminator is not recognized; it was passed through."""
    kind_name: str = ""


@dataclass(frozen=True)
class StructuralInconsistencyWarning(ResolutionWarning):
    """
    The dataset violates a structural rule, e.g. an archive whose narrative
    root is not exactly one document, or a containment cycle.

    ``fallback`` names what the engine did instead: ``"first-document"``,
    ``"placeholder"`` or ``"shallow-reference"``.
    """
    child_count: Optional[int] = None
    fallback: str = ""


W = TypeVar("W", bound=ResolutionWarning)


@dataclass
class Diagnostics:
    """Per-query collector of resolution warnings."""
    warnings: List[ResolutionWarning] = field(default_factory=list)

    def add(self, warning: ResolutionWarning) -> None:
        self.warnings.append(warning)

    def of_type(self, warning_type: Type[W]) -> List[W]:
        return [w for w in self.warnings if isinstance(w, warning_type)]

    def clear(self) -> None:
        self.warnings.clear()

    def __len__(self) -> int:
        return len(self.warnings)

    def __iter__(self) -> Iterator[ResolutionWarning]:
        return iter(self.warnings)

    def __bool__(self) -> bool:
        return bool(self.warnings)


def report(warning: ResolutionWarning, diagnostics: Optional[Diagnostics] = None) -> ResolutionWarning:
    """Log ``warning`` and record it on ``diagnostics`` if given."""
    logger.warning(f"Mock Dataset: {warning.message}")
    if diagnostics is not None:
        diagnostics.add(warning)
    return warning
