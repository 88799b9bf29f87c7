# merch_hub/adapters/ambient_inks_sales.py
"""
Ambient Inks online sales importer.

One CSV row per order line. Each new line becomes a sales_orders row; lines
whose SKU resolves to a variant also record a `sale` movement out of the
warehouse and decrement the warehouse counter.
"""
from __future__ import annotations
import json
import logging
from typing import Dict, List

from merch_hub.db_models import InventoryStateType, TransactionType
from merch_hub.services.coercion import parse_date, parse_integer, parse_numeric
from merch_hub.services.csv_parser import parse_csv
from merch_hub.services.inventory_ledger import InventoryLedger
from merch_hub.services.results import SalesImportResult
from merch_hub.services.sku_matcher import SkuMatcher
from merch_hub.store import Store

logger = logging.getLogger(__name__)

SOURCE = "ambient_inks"

MONEY_COLUMNS = {
    "gross_sales": "Gross Sales",
    "discounts": "Discounts",
    "net_sales": "Net sales",
    "commission": "Commission",
    "deduction": "Deduction",
    "payout": "Payout",
}


class AmbientInksSalesImporter:
    """Imports the Ambient Inks order report."""

    def __init__(self, store: Store):
        self.store = store
        self.matcher = SkuMatcher(store)
        self.ledger = InventoryLedger(store)

    async def import_csv(self, text: str) -> SalesImportResult:
        return await self.import_rows(parse_csv(text))

    async def import_rows(self, rows: List[Dict[str, str]]) -> SalesImportResult:
        result = SalesImportResult()
        try:
            if not rows:
                result.errors.append("No data found in CSV file")
                return result

            logger.info(f"Processing {len(rows)} sales orders")
            for row in rows:
                try:
                    await self._import_order(row, result)
                except Exception as e:
                    msg = f"Error importing order {row.get('Order #', '')}: {e}"
                    logger.exception(msg)
                    result.errors.append(msg)
        except Exception as e:
            logger.exception("Sales import failed")
            result.errors.append(f"Fatal error: {e}")

        logger.info(
            f"Sales import done: orders={result.orders_created} transactions={result.transactions_created} "
            f"errors={len(result.errors)} warnings={len(result.warnings)}"
        )
        return result

    async def _import_order(self, row: Dict[str, str], result: SalesImportResult) -> None:
        order_number = parse_integer(row.get("Order #"))
        sku = (row.get("SKU") or "").strip() or None

        if not order_number:
            result.warnings.append(f"Order without order number: {json.dumps(row)}")
            return

        order_date = parse_date(row.get("Order Date"))
        if order_date is None:
            result.warnings.append(f"Order {order_number} has invalid date: {row.get('Order Date', '')}")
            return

        variant_id = None
        if sku:
            match = await self.matcher.resolve(sku, SOURCE)
            variant_id = match.variant_id
            if variant_id is None:
                result.warnings.append(f"SKU not found for order {order_number}: {sku}")

        existing = await self.store.select_one(
            "sales_orders",
            {"source": SOURCE, "order_number": order_number, "sku": sku},
        )
        if existing:
            logger.info(f"Order {order_number} ({sku}) already imported, skipping")
            return

        quantity = parse_integer(row.get("QTY")) or 0
        await self.store.insert("sales_orders", {
            "order_number": order_number,
            "order_date": order_date,
            "product_name": row.get("Name") or None,
            "product_variant_id": variant_id,
            "sku": sku,
            "quantity": quantity,
            **{field: parse_numeric(row.get(column)) or 0 for field, column in MONEY_COLUMNS.items()},
            "source": SOURCE,
        })
        result.orders_created += 1

        if variant_id is None or quantity <= 0:
            return

        try:
            await self.ledger.record_transaction(
                variant_id,
                TransactionType.sale,
                -quantity,
                from_state=InventoryStateType.warehouse,
                transaction_date=order_date,
                source=SOURCE,
                notes=f"Online sale - Order #{order_number}",
            )
        except Exception as e:
            result.warnings.append(f"Failed to create transaction for order {order_number}: {e}")
            return

        result.transactions_created += 1
        try:
            await self.ledger.apply_delta(variant_id, InventoryStateType.warehouse, -quantity)
        except Exception as e:
            result.warnings.append(f"Inventory state for order {order_number} not updated: {e}")
