#!/usr/bin/env python3
"""
Build the agents.md catalog from a directory of markdown files.

This script:
1. Reads every markdown file under the input directory
2. Parses and validates its front matter
3. Reports every rejected document with all of its problems
4. Prints catalog statistics
5. Optionally runs one search against the loaded catalog

Usage:
    python Ingress/build_catalog.py --input examples
    python Ingress/build_catalog.py --input examples --tag react --tag typescript
    python Ingress/build_catalog.py --input examples --text vite --sort name --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from catalog import CatalogSettings, DirectorySource, InvalidFilterError, ValidationError
from catalog.service import CatalogService
from retrieval.filters import SORT_ORDERS


BASE_DIR = Path(__file__).resolve().parents[1]
EXAMPLES_DIR = BASE_DIR / "examples"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build and query the agents.md catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Validate and index all .md files
    python Ingress/build_catalog.py --input examples

    # Documents tagged with BOTH react and typescript
    python Ingress/build_catalog.py --tag react --tag typescript

    # Updated during 2024, sorted by name, as JSON
    python Ingress/build_catalog.py --date-from 2024-01-01 --date-to 2024-12-31 --sort name --json
        """
    )

    parser.add_argument(
        "--input",
        type=Path,
        default=EXAMPLES_DIR,
        help=f"Directory of markdown documents (default: {EXAMPLES_DIR})"
    )
    parser.add_argument(
        "--pattern",
        default=None,
        help="Glob for documents under --input (default: CATALOG_SOURCE_PATTERN or **/*.md)"
    )

    query = parser.add_argument_group("search")
    query.add_argument("--category", help="Exact category (case-insensitive)")
    query.add_argument("--tag", action="append", dest="tags", help="Required tag (repeatable)")
    query.add_argument("--author", help="Exact author (case-insensitive)")
    query.add_argument("--text", help="Words to find in name or description")
    query.add_argument("--date-from", help="Earliest lastUpdated (YYYY-MM-DD)")
    query.add_argument("--date-to", help="Latest lastUpdated (YYYY-MM-DD)")
    query.add_argument("--sort", choices=SORT_ORDERS, help="Result order (default: recency)")
    query.add_argument("--limit", type=int, help="Page size")
    query.add_argument("--offset", type=int, help="Results to skip")
    query.add_argument("--json", action="store_true", help="Print search results as JSON")

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show detailed output"
    )
    return parser


def filter_from_args(args: argparse.Namespace) -> dict:
    """Collect the search options given on the command line."""
    options = {
        "category": args.category,
        "tags": args.tags,
        "author": args.author,
        "text": args.text,
        "dateFrom": args.date_from,
        "dateTo": args.date_to,
        "sort": args.sort,
        "limit": args.limit,
        "offset": args.offset,
    }
    return {key: value for key, value in options.items() if value is not None}


def print_report(report, verbose: bool = False) -> None:
    for source_ref, error in report.failures.items():
        print(f"\n  ✗ {source_ref}")
        if isinstance(error, ValidationError):
            for violation in error.violations:
                print(f"      - {violation}")
        else:
            print(f"      - {error.message}")

    if verbose:
        for doc_id in report.ingested:
            print(f"  ✓ {doc_id}")


def print_stats(stats: dict) -> None:
    print(f"\n  Documents: {stats['total_documents']}")
    print(f"  By Category: {stats['by_category']}")
    print(f"  By Author: {stats['by_author']}")
    top_tags = sorted(stats["by_tag"].items(), key=lambda item: (-item[1], item[0]))[:10]
    print(f"  Top Tags: {dict(top_tags)}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = CatalogSettings.from_env()
    pattern = args.pattern or settings.source_pattern

    if not args.input.is_dir():
        print(f"\n✗ Error: Directory not found: {args.input}")
        return 1

    service = CatalogService(settings)
    report = service.ingest_source(DirectorySource(args.input, pattern))
    search_filter = filter_from_args(args)

    if args.json:
        try:
            result = service.search(search_filter)
        except InvalidFilterError as e:
            print(json.dumps({"error": e.to_dict()}, indent=2, ensure_ascii=False))
            return 1
        payload = result.to_dict()
        payload["rejected"] = sorted(report.failures)
        print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
        return 0 if report.ok else 1

    print("\n" + "=" * 70)
    print("agents.md Catalog")
    print("=" * 70)
    print(f"\nInput: {args.input} ({pattern})")
    print(f"  Ingested: {len(report.ingested)}")
    print(f"  Rejected: {len(report.failures)}")

    print_report(report, verbose=args.verbose)
    print_stats(service.stats())

    if search_filter:
        print("\n" + "=" * 70)
        print("SEARCH")
        print("=" * 70)
        try:
            result = service.search(search_filter)
        except InvalidFilterError as e:
            print("\n✗ Invalid filter:")
            for problem in e.problems:
                print(f"    - {problem}")
            return 1

        print(f"\n{result.total} match(es), showing {len(result.items)} from offset {result.offset}")
        for item in result.items:
            metadata = item.metadata
            print(f"  • {metadata.name} (id: {item.id})")
            print(f"      {metadata.category} | {metadata.last_updated.isoformat()} | {', '.join(metadata.tags)}")

    print("\n" + "=" * 70 + "\n")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
