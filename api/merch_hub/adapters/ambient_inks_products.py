# merch_hub/adapters/ambient_inks_products.py
"""
Ambient Inks product catalog importer.

Catalog CSV (one row per variant, grouped by `_id`) -> products, variants,
SKU identifiers, pricing and opening inventory counts.

Re-running the same file is idempotent for products, variants and identifiers;
pricing and inventory rows are upserted.
"""
from __future__ import annotations
import logging
import re
from datetime import date
from typing import Callable, Dict, List, Optional

from merch_hub.db_models import InventoryStateType, PriceType
from merch_hub.services.coercion import parse_boolean, parse_integer, parse_list, parse_numeric
from merch_hub.services.csv_parser import parse_csv
from merch_hub.services.inventory_ledger import InventoryLedger
from merch_hub.services.results import ProductImportResult
from merch_hub.services.sku_matcher import SkuMatcher
from merch_hub.store import Store

logger = logging.getLogger(__name__)

SOURCE = "ambient_inks"
IDENTIFIER_TYPE = "ambient_inks_sku"

TITLE_MIN_LEN = 3
TITLE_MAX_LEN = 200
HANDLE_MAX_LEN = 100

# Placeholder products the storefront keeps around for internal use
_GARBAGE_TITLE_RE = re.compile(r"^(Created_\d{4}|MB-Invisible|bis-hidden|music)$", re.IGNORECASE)
_MARKUP_CHARS = set("<>{}")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

INVENTORY_COLUMNS = {
    "Inventory Location: eCommerce Inventory": InventoryStateType.warehouse,
    "Inventory Location: Tour Inventory": InventoryStateType.tour,
}
PRICE_COLUMNS = {
    "Variant Price": PriceType.retail,
    "Variant Compare At Price": PriceType.compare_at,
}


# =============================================================================
# Title / handle cleaning
# =============================================================================

def title_problem(title: Optional[str]) -> Optional[str]:
    """Why a catalog title is unusable, or None when it is fine."""
    t = (title or "").strip()
    if not t:
        return "empty title"
    if any(ch in _MARKUP_CHARS for ch in t):
        return "title contains markup"
    if t.startswith("--"):
        return "title starts with '--'"
    if _GARBAGE_TITLE_RE.match(t):
        return "placeholder title"
    if not TITLE_MIN_LEN <= len(t) <= TITLE_MAX_LEN:
        return f"title length {len(t)} outside {TITLE_MIN_LEN}-{TITLE_MAX_LEN}"
    return None


def slugify(text: str) -> str:
    """'Tour Shirt (Black)' -> 'tour-shirt-black'"""
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug[:HANDLE_MAX_LEN].rstrip("-")


def clean_handle(handle: Optional[str], title: str, source_product_id: str) -> str:
    h = (handle or "").strip()
    if h and len(h) <= HANDLE_MAX_LEN and _SLUG_RE.match(h):
        return h
    return slugify(title) or f"product-{slugify(source_product_id) or 'unknown'}"


def variant_name(row: Dict[str, str]) -> str:
    parts = [row.get(f"Option{i} Value", "") for i in (1, 2, 3)]
    return " - ".join(p for p in parts if p) or "Default"


# =============================================================================
# Importer
# =============================================================================

class AmbientInksProductImporter:
    """Imports the Ambient Inks storefront catalog export."""

    def __init__(self, store: Store, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today
        self.matcher = SkuMatcher(store)
        self.ledger = InventoryLedger(store)

    async def import_csv(self, text: str) -> ProductImportResult:
        return await self.import_rows(parse_csv(text))

    async def import_rows(self, rows: List[Dict[str, str]]) -> ProductImportResult:
        result = ProductImportResult()
        try:
            if not rows:
                result.errors.append("No data found in CSV file")
                return result

            logger.info(f"Processing {len(rows)} catalog rows")
            groups: Dict[str, List[Dict[str, str]]] = {}
            for row in rows:
                product_id = (row.get("_id") or "").strip()
                if not product_id:
                    result.warnings.append(f"Row without product id skipped: {row.get('Title') or row.get('Variant SKU') or '?'}")
                    continue
                groups.setdefault(product_id, []).append(row)
            logger.info(f"Found {len(groups)} unique products")

            for product_id, variant_rows in groups.items():
                try:
                    await self._import_product(product_id, variant_rows, result)
                except Exception as e:
                    msg = f"Error importing product {product_id}: {e}"
                    logger.exception(msg)
                    result.errors.append(msg)
        except Exception as e:
            logger.exception("Catalog import failed")
            result.errors.append(f"Fatal error: {e}")

        logger.info(
            f"Catalog import done: products={result.products_created} variants={result.variants_created} "
            f"errors={len(result.errors)} warnings={len(result.warnings)}"
        )
        return result

    # -------------------------------------------------------------------------

    async def _import_product(self, product_id: str, variant_rows: List[Dict[str, str]], result: ProductImportResult) -> None:
        first = variant_rows[0]
        title = (first.get("Title") or "").strip()

        problem = title_problem(title)
        if problem:
            result.warnings.append(f"Skipping product {product_id} ({problem}): {title[:60]!r}")
            return

        existing = await self.store.select_one("products", {"source": SOURCE, "source_product_id": product_id})
        if existing:
            db_product_id = existing["id"]
            logger.info(f"Product {title} already exists, updating variants")
        else:
            created = await self.store.insert("products", {
                "source": SOURCE,
                "source_product_id": product_id,
                "handle": clean_handle(first.get("Handle"), title, product_id),
                "title": title,
                "description": first.get("Description") or None,
                "vendor": first.get("Vendor") or None,
                "product_type": first.get("Type") or None,
                "tags": parse_list(first.get("Tags")),
                "image_urls": parse_list(first.get("Image Src")),
                "published": parse_boolean(first.get("Published")),
            })
            db_product_id = created["id"]
            result.products_created += 1
            logger.info(f"Created product: {title}")

        for row in variant_rows:
            try:
                await self._import_variant(db_product_id, row, result)
            except Exception as e:
                msg = f"Error importing variant {row.get('Variant SKU', '')}: {e}"
                logger.error(msg)
                result.warnings.append(msg)

    async def _import_variant(self, product_id: int, row: Dict[str, str], result: ProductImportResult) -> None:
        sku = (row.get("Variant SKU") or "").strip()
        if not sku:
            result.warnings.append(f"Variant without SKU for product {row.get('Title', '')}")
            return

        existing = await self.store.select_one("product_variants", {"sku": sku})
        if existing:
            variant_id = existing["id"]
        else:
            created = await self.store.insert("product_variants", {
                "product_id": product_id,
                "sku": sku,
                "variant_name": variant_name(row),
                "option1_name": row.get("Option1 Name") or None,
                "option1_value": row.get("Option1 Value") or None,
                "option2_name": row.get("Option2 Name") or None,
                "option2_value": row.get("Option2 Value") or None,
                "option3_name": row.get("Option3 Name") or None,
                "option3_value": row.get("Option3 Value") or None,
                "weight": parse_numeric(row.get("Variant Weight")),
                "weight_unit": row.get("Variant Weight Unit") or None,
                "barcode": row.get("Variant Barcode") or None,
            })
            variant_id = created["id"]
            result.variants_created += 1

        await self.matcher.upsert_identifier(variant_id, IDENTIFIER_TYPE, sku, SOURCE)

        try:
            await self._import_pricing(variant_id, row)
        except Exception as e:
            result.warnings.append(f"Pricing for {sku} not saved: {e}")

        try:
            await self._import_inventory(variant_id, row)
        except Exception as e:
            result.warnings.append(f"Inventory for {sku} not saved: {e}")

    async def _import_pricing(self, variant_id: int, row: Dict[str, str]) -> None:
        effective_from = self.today()
        for column, price_type in PRICE_COLUMNS.items():
            amount = parse_numeric(row.get(column))
            if not amount or amount <= 0:
                continue
            # TODO: close the previous open period (effective_to) when the amount changes
            await self.store.upsert(
                "product_pricing",
                {
                    "product_variant_id": variant_id,
                    "price_type": price_type,
                    "amount": amount,
                    "currency": "USD",
                    "source": SOURCE,
                    "effective_from": effective_from,
                },
                on_conflict=("product_variant_id", "price_type", "source", "effective_from"),
            )

    async def _import_inventory(self, variant_id: int, row: Dict[str, str]) -> None:
        for column, state in INVENTORY_COLUMNS.items():
            qty = parse_integer(row.get(column)) or 0
            if qty:
                await self.ledger.set_quantity(variant_id, state, qty)
