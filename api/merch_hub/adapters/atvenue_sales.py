# merch_hub/adapters/atvenue_sales.py
"""
AtVenue per-show sales report importer.

Paid and complimentary units of a row become separate tour_sales records and
separate `sale` / `comp` movements out of the show's tour inventory.
"""
from __future__ import annotations
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from merch_hub.db_models import InventoryStateType, TransactionType
from merch_hub.services.coercion import parse_integer, parse_numeric
from merch_hub.services.csv_parser import parse_csv
from merch_hub.services.inventory_ledger import InventoryLedger
from merch_hub.services.results import TourSalesImportResult
from merch_hub.services.sku_matcher import SkuMatcher
from merch_hub.store import Store

logger = logging.getLogger(__name__)

SOURCE = "atvenue"


def is_summary_row(row: Dict[str, str]) -> bool:
    """Report subtotal/total lines and rows without an item name."""
    name = row.get("Name") or ""
    return not name or "SUBTOTAL" in name or "TOTAL" in name


def _as_datetime(d: Any) -> datetime:
    if isinstance(d, datetime):
        return d
    return datetime.combine(d, time(), tzinfo=timezone.utc)


class AtvenueSalesImporter:
    """Imports one AtVenue sales report into a show of a tour."""

    def __init__(self, store: Store):
        self.store = store
        self.matcher = SkuMatcher(store)
        self.ledger = InventoryLedger(store)

    async def import_csv(self, text: str, tour_id: int, show_id: Optional[int] = None) -> TourSalesImportResult:
        return await self.import_rows(parse_csv(text), tour_id, show_id)

    async def import_rows(
        self,
        rows: List[Dict[str, str]],
        tour_id: int,
        show_id: Optional[int] = None,
    ) -> TourSalesImportResult:
        result = TourSalesImportResult(tour_id=tour_id)
        try:
            if not rows:
                result.errors.append("No data found in CSV file")
                return result

            data_rows = [r for r in rows if not is_summary_row(r)]
            logger.info(f"Processing {len(data_rows)} sales items for tour {tour_id}")

            tour = await self.store.select_one("tours", {"id": tour_id})
            if tour is None:
                result.errors.append(f"Tour not found: {tour_id}")
                return result

            show = await self._resolve_show(tour_id, show_id, result)
            if show is None:
                return result
            result.show_id = show["id"]

            for row in data_rows:
                try:
                    await self._import_item(show, row, result)
                except Exception as e:
                    msg = f"Error importing sales item {row.get('Name', '')}: {e}"
                    logger.exception(msg)
                    result.errors.append(msg)
        except Exception as e:
            logger.exception("AtVenue sales import failed")
            result.errors.append(f"Fatal error: {e}")

        logger.info(
            f"AtVenue sales import done: sales={result.sales_created} transactions={result.transactions_created} "
            f"errors={len(result.errors)} warnings={len(result.warnings)}"
        )
        return result

    async def _resolve_show(self, tour_id: int, show_id: Optional[int], result: TourSalesImportResult) -> Optional[dict]:
        if show_id is not None:
            show = await self.store.select_one("shows", {"id": show_id})
            if show is None:
                result.errors.append(f"Show not found: {show_id}")
            return show

        shows = await self.store.select("shows", {"tour_id": tour_id}, order_by="show_date", limit=1)
        if not shows:
            result.errors.append("No show ID provided and no shows found for tour")
            return None
        result.warnings.append(f"No show ID provided, using first show of tour: {shows[0]['id']}")
        return shows[0]

    async def _import_item(self, show: dict, row: Dict[str, str], result: TourSalesImportResult) -> None:
        sold = parse_integer(row.get("Sold")) or 0
        comp = parse_integer(row.get("Comp")) or 0
        if sold + comp == 0:
            return

        name = row.get("Name", "")
        sku = (row.get("SKU") or "").strip()
        variant_id = None
        if sku:
            match = await self.matcher.resolve(sku, SOURCE)
            variant_id = match.variant_id
            if variant_id is None:
                result.warnings.append(f"SKU not found: {sku} ({name})")
        else:
            result.warnings.append(f"No SKU for item: {name}")

        sale_date: date = show.get("show_date") or date.today()
        avg_price = parse_numeric(row.get("Avg. Price")) or 0
        item = {
            "name": name,
            "type": row.get("Type", ""),
            "size": row.get("Size", ""),
            "sex": row.get("Sex", ""),
        }

        if sold > 0:
            await self.store.insert("tour_sales", {
                "show_id": show["id"],
                "product_variant_id": variant_id,
                "quantity_sold": sold,
                "is_comp": False,
                "unit_price": avg_price,
                "gross_revenue": parse_numeric(row.get("Gross Rev")) or 0,
                "sale_date": sale_date,
                "source": SOURCE,
                "source_data": {
                    **item,
                    "unit_percent_of_total": row.get("Unit % of Total", ""),
                    "percent_of_total": row.get("% of Total", ""),
                },
            })
            result.sales_created += 1
            if variant_id is not None:
                await self._deduct(variant_id, sold, show, sale_date, TransactionType.sale, result)

        if comp > 0:
            await self.store.insert("tour_sales", {
                "show_id": show["id"],
                "product_variant_id": variant_id,
                "quantity_sold": comp,
                "is_comp": True,
                "unit_price": avg_price,
                "gross_revenue": 0,
                "sale_date": sale_date,
                "source": SOURCE,
                "source_data": item,
            })
            result.sales_created += 1
            if variant_id is not None:
                await self._deduct(variant_id, comp, show, sale_date, TransactionType.comp, result)

    async def _deduct(
        self,
        variant_id: int,
        quantity: int,
        show: dict,
        sale_date: date,
        transaction_type: TransactionType,
        result: TourSalesImportResult,
    ) -> None:
        tour_id = show.get("tour_id")
        try:
            await self.ledger.record_transaction(
                variant_id,
                transaction_type,
                -quantity,
                from_state=InventoryStateType.tour,
                tour_id=tour_id,
                show_id=show["id"],
                transaction_date=_as_datetime(sale_date),
                source=SOURCE,
                notes="Complimentary item" if transaction_type == TransactionType.comp else "Tour sale",
            )
        except Exception as e:
            result.warnings.append(f"Failed to create transaction for variant {variant_id}: {e}")
            return

        result.transactions_created += 1
        try:
            await self.ledger.apply_delta(variant_id, InventoryStateType.tour, -quantity, tour_id=tour_id)
        except Exception as e:
            result.warnings.append(f"Inventory state for variant {variant_id} not updated: {e}")
