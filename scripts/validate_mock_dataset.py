"""
Validate a mock dataset file: every cross-record reference must resolve.

Usage:
  poetry run python scripts/validate_mock_dataset.py [--dataset mmt_mock_engine/core/reference_resolver/data/mock_dataset.json]

Prints one line per problem found (dangling parents and modules, unknown
module kinds, archives without exactly one root document) and exits with a
non-zero status if there was any.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from mmt_mock_engine.core.reference_resolver.config import config_from_env
from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot
from mmt_mock_engine.core.reference_resolver.dataset_loader import loader_from_config
from mmt_mock_engine.core.reference_resolver.dataset_validator import validate_dataset
from mmt_mock_engine.core.reference_resolver.exceptions import LoadError


def main() -> int:
    ap = argparse.ArgumentParser(description="Check a mock dataset for dangling or inconsistent references")
    ap.add_argument("--dataset", default=None, help="Path to a dataset JSON file (overrides MOCK_DATASET_PATH)")
    ap.add_argument("--url", default=None, help="URL of a dataset JSON document (overrides MOCK_DATASET_URL)")
    args = ap.parse_args()

    # warnings are printed below; keep the log quiet
    logging.basicConfig(level=logging.ERROR, format="%(levelname)s - %(message)s")

    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env.local")
    load_dotenv(project_root / ".env")

    config = config_from_env()
    if args.dataset:
        config = replace(config, dataset_path=Path(args.dataset), dataset_url=None)
    if args.url:
        config = replace(config, dataset_url=args.url)

    loader = loader_from_config(config)
    try:
        snapshot = DatasetSnapshot.from_dict(loader())
    except LoadError as e:
        print(f"❌ FAIL: {e}")
        return 2

    print(f"Loaded {snapshot!r}")
    warnings = validate_dataset(snapshot, config)
    if not warnings:
        print("✅ PASS: all references resolve")
        return 0

    print(f"❌ FAIL: {len(warnings)} problems")
    for warning in warnings:
        print(f"  - [{warning.category}] {warning.identifier}: {warning.message}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
