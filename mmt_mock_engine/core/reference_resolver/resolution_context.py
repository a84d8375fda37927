"""
Per-query resolution context: the snapshot being read, the active settings,
and where degradation warnings go.
"""

from dataclasses import dataclass
from typing import Optional

from mmt_mock_engine.core.reference_resolver.config import EngineConfig
from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.diagnostics import Diagnostics, ResolutionWarning, report


@dataclass(frozen=True)
class ResolutionContext:
    snapshot: DatasetSnapshot
    config: EngineConfig = EngineConfig()
    diagnostics: Optional[Diagnostics] = None

    def warn(self, warning: ResolutionWarning) -> ResolutionWarning:
        return report(warning, self.diagnostics)

    def tag_id(self, tag_name: str) -> str:
        return f"{self.config.tag_sigil}{tag_name}"
