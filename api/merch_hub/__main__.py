"""
Command line entry point for Merch Hub.

Usage:
    python -m merch_hub init-db
    python -m merch_hub import products exports/catalog.csv
    python -m merch_hub import online-sales exports/orders.csv --dry-run
    python -m merch_hub import venue-sales report.xlsx --tour-id 1 --show-id 4 --sheet "Sales"
    python -m merch_hub import venue-totals totals.csv --tour-id 1
    python -m merch_hub match TS-S ts-m-old
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from merch_hub.adapters.ambient_inks_products import AmbientInksProductImporter
from merch_hub.adapters.ambient_inks_sales import AmbientInksSalesImporter
from merch_hub.adapters.atvenue_sales import AtvenueSalesImporter
from merch_hub.adapters.atvenue_totals import AtvenueTotalsImporter
from merch_hub.database import close_db, create_tables, get_session_context, init_db
from merch_hub.logging_setup import setup_logging
from merch_hub.services.csv_parser import decode_bytes_auto, parse_csv
from merch_hub.services.excel_parser import parse_excel_sheet
from merch_hub.services.results import ImportResult
from merch_hub.services.sku_matcher import SkuMatcher
from merch_hub.settings import settings
from merch_hub.store import MemoryStore, SqlAlchemyStore, Store

logger = logging.getLogger(__name__)

IMPORT_KINDS = ("products", "online-sales", "venue-sales", "venue-totals")
TOUR_KINDS = ("venue-sales", "venue-totals")


def read_rows(path: Path, sheet: Optional[str] = None) -> List[Dict[str, str]]:
    """CSV or Excel file -> row dicts."""
    if path.suffix.lower() in (".xlsx", ".xlsm"):
        return parse_excel_sheet(path, sheet)
    return parse_csv(decode_bytes_auto(path.read_bytes()))


async def run_import(
    store: Store,
    kind: str,
    rows: List[Dict[str, str]],
    tour_id: Optional[int] = None,
    show_id: Optional[int] = None,
) -> ImportResult:
    if kind == "products":
        return await AmbientInksProductImporter(store).import_rows(rows)
    if kind == "online-sales":
        return await AmbientInksSalesImporter(store).import_rows(rows)
    if kind == "venue-sales":
        return await AtvenueSalesImporter(store).import_rows(rows, tour_id, show_id)
    if kind == "venue-totals":
        return await AtvenueTotalsImporter(store).import_rows(rows, tour_id)
    raise ValueError(f"Unknown import kind: {kind}")


def print_result(result: ImportResult) -> None:
    print(json.dumps(result.as_dict(), indent=2, default=str))


# ============================================================================
# Commands
# ============================================================================

async def cmd_init_db(args: argparse.Namespace) -> int:
    await init_db()
    try:
        await create_tables()
    finally:
        await close_db()
    print("Tables created")
    return 0


async def cmd_import(args: argparse.Namespace) -> int:
    path = Path(args.path)
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 2
    if args.kind in TOUR_KINDS and args.tour_id is None:
        print(f"--tour-id is required for {args.kind}", file=sys.stderr)
        return 2

    rows = read_rows(path, args.sheet)
    logger.info(f"Importing {args.kind} from {path} ({len(rows)} rows, dry_run={args.dry_run})")

    if args.dry_run:
        result = await run_import(MemoryStore(), args.kind, rows, args.tour_id, args.show_id)
    else:
        await init_db()
        try:
            async with get_session_context() as db:
                result = await run_import(SqlAlchemyStore(db), args.kind, rows, args.tour_id, args.show_id)
        finally:
            await close_db()

    print_result(result)
    return 0 if result.success else 1


async def cmd_match(args: argparse.Namespace) -> int:
    await init_db()
    try:
        async with get_session_context() as db:
            batch = await SkuMatcher(SqlAlchemyStore(db)).resolve_many(args.skus, args.source)
    finally:
        await close_db()

    for sku, m in batch.matches.items():
        target = m.variant_id if m.variant_id is not None else "-"
        print(f"{sku:<30} {m.confidence.value:<10} {target}")
    s = batch.statistics
    print(f"\n{s.total} SKUs: exact={s.exact} identifier={s.identifier} fuzzy={s.fuzzy} none={s.none} ({s.match_rate:.1f}%)")
    return 0


async def main(args: argparse.Namespace) -> int:
    if args.command == "init-db":
        return await cmd_init_db(args)
    elif args.command == "import":
        return await cmd_import(args)
    elif args.command == "match":
        return await cmd_match(args)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="merch_hub",
        description="Merch Hub import and SKU reconciliation tools",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create all tables")

    import_parser = subparsers.add_parser("import", help="Import a vendor export (CSV or .xlsx)")
    import_parser.add_argument("kind", choices=IMPORT_KINDS)
    import_parser.add_argument("path", help="Path to the export file")
    import_parser.add_argument("--tour-id", type=int, default=None, help="Tour for venue-sales / venue-totals")
    import_parser.add_argument("--show-id", type=int, default=None, help="Show for venue-sales (default: first show of the tour)")
    import_parser.add_argument("--sheet", default=None, help="Workbook sheet (default: first sheet)")
    import_parser.add_argument("--dry-run", action="store_true", help="Run against an in-memory store; nothing is written")

    match_parser = subparsers.add_parser("match", help="Resolve SKUs against the catalog")
    match_parser.add_argument("skus", nargs="+")
    match_parser.add_argument("--source", default=None)

    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1
    setup_logging(settings)
    return asyncio.run(main(args))


if __name__ == "__main__":
    sys.exit(cli())
