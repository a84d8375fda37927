"""
Query the mock library dataset from the command line.

Resolves one entity (or the group list) and prints it as JSON, followed by
any resolution warnings collected while building it.

Usage examples:
  poetry run python scripts/run_mock_client.py --list-groups
  poetry run python scripts/run_mock_client.py --archive smglom/sets
  poetry run python scripts/run_mock_client.py --uri "http://mathhub.info/smglom/sets?set"
  poetry run python scripts/run_mock_client.py --dataset mmt_mock_engine/core/reference_resolver/data/mock_dataset.json --tag @foundations
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from mmt_mock_engine.core.reference_resolver.config import config_from_env
from mmt_mock_engine.core.reference_resolver.diagnostics import Diagnostics
from mmt_mock_engine.core.reference_resolver.exceptions import LoadError, NotFoundError
from mmt_mock_engine.core.reference_resolver.mock_client import MockClient
from mmt_mock_engine.core.reference_resolver.models import to_dict


async def run_query(client: MockClient, args: argparse.Namespace, diagnostics: Diagnostics) -> Any:
    if args.list_groups:
        return await client.list_groups(diagnostics)
    if args.group:
        return await client.get_group(args.group, diagnostics)
    if args.archive:
        return await client.get_archive(args.archive, diagnostics)
    if args.document:
        return await client.get_document(args.document, diagnostics)
    if args.module:
        return await client.get_module(args.module, diagnostics)
    if args.tag:
        return await client.get_tag(args.tag, diagnostics)
    if args.uri:
        return await client.resolve_by_identifier(args.uri, diagnostics)
    if args.glossary:
        return await client.get_glossary()
    return await client.get_version()


def main() -> None:
    ap = argparse.ArgumentParser(description="Resolve an entity from the mock library dataset")
    ap.add_argument("--dataset", default=None, help="Path to a dataset JSON file (overrides MOCK_DATASET_PATH)")
    ap.add_argument("--url", default=None, help="URL of a dataset JSON document (overrides MOCK_DATASET_URL)")
    query = ap.add_mutually_exclusive_group()
    query.add_argument("--list-groups", action="store_true")
    query.add_argument("--group", default=None)
    query.add_argument("--archive", default=None)
    query.add_argument("--document", default=None)
    query.add_argument("--module", default=None)
    query.add_argument("--tag", default=None)
    query.add_argument("--uri", default=None, help="Any identifier; probes every collection")
    query.add_argument("--glossary", action="store_true")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Load environment variables (prefer local override if present)
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env.local")
    load_dotenv(project_root / ".env")

    config = config_from_env()
    if args.dataset:
        config = replace(config, dataset_path=Path(args.dataset), dataset_url=None)
    if args.url:
        config = replace(config, dataset_url=args.url)

    client = MockClient(config)
    diagnostics = Diagnostics()
    try:
        result = asyncio.run(run_query(client, args, diagnostics))
    except (LoadError, NotFoundError) as e:
        raise SystemExit(f"❌ {e}")

    print(json.dumps(to_dict(result), indent=2, ensure_ascii=False))
    if diagnostics:
        print(f"\n⚠️  {len(diagnostics)} resolution warnings:")
        for warning in diagnostics:
            print(f"  - [{warning.category}] {warning.message}")


if __name__ == "__main__":
    main()
