"""
Engine configuration, read from the environment.

Scripts call ``load_config()`` which loads ``.env.local`` then ``.env`` from
the project root (local overrides win because ``load_dotenv`` never
overwrites variables that are already set).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from mmt_mock_engine.core.reference_resolver.models import ParentProbeOrder

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
# package data, installed alongside this module
DEFAULT_DATASET_PATH = Path(__file__).resolve().parent / "data" / "mock_dataset.json"

DEFAULT_TAG_SIGIL = "@"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class EngineConfig:
    """Settings shared by the loaders and the resolution components."""
    dataset_path: Optional[Path] = None
    dataset_url: Optional[str] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    tag_sigil: str = DEFAULT_TAG_SIGIL
    parent_probe_order: ParentProbeOrder = ParentProbeOrder.DOCUMENT_FIRST


def _parse_probe_order(value: Optional[str]) -> ParentProbeOrder:
    if not value:
        return ParentProbeOrder.DOCUMENT_FIRST
    try:
        return ParentProbeOrder(value.strip().lower())
    except ValueError:
        logger.warning(f"Unknown MOCK_PARENT_PROBE_ORDER '{value}', using document_first")
        return ParentProbeOrder.DOCUMENT_FIRST


def _parse_timeout(value: Optional[str]) -> float:
    if not value:
        return DEFAULT_HTTP_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        logger.warning(f"Invalid MOCK_HTTP_TIMEOUT '{value}', using {DEFAULT_HTTP_TIMEOUT}")
        return DEFAULT_HTTP_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_HTTP_TIMEOUT


def config_from_env() -> EngineConfig:
    """Build an EngineConfig from the current process environment."""
    path = os.getenv("MOCK_DATASET_PATH")
    sigil = os.getenv("MOCK_TAG_SIGIL") or DEFAULT_TAG_SIGIL
    return EngineConfig(
        dataset_path=Path(path) if path else None,
        dataset_url=os.getenv("MOCK_DATASET_URL") or None,
        http_timeout=_parse_timeout(os.getenv("MOCK_HTTP_TIMEOUT")),
        tag_sigil=sigil,
        parent_probe_order=_parse_probe_order(os.getenv("MOCK_PARENT_PROBE_ORDER")),
    )


def load_config(project_root: Optional[Path] = None) -> EngineConfig:
    """
    Load environment files and return the resulting configuration.

    Args:
        project_root: Directory holding ``.env.local`` / ``.env`` (defaults to the repo root)

    Returns:
        EngineConfig built from the environment
    """
    root = project_root or PROJECT_ROOT
    load_dotenv(root / ".env.local")
    load_dotenv(root / ".env")
    return config_from_env()
