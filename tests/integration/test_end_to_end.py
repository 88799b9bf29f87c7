"""
End-to-end import flow against SQLite through the SQLAlchemy store.

Catalog with TS-S (5) and TS-M (3) in the warehouse, then an online sale of
2 x TS-S, then an AtVenue night for the tour.
"""

from datetime import date

import pytest
from sqlalchemy import func, select

from merch_hub.adapters.ambient_inks_products import AmbientInksProductImporter
from merch_hub.adapters.ambient_inks_sales import AmbientInksSalesImporter
from merch_hub.adapters.atvenue_sales import AtvenueSalesImporter
from merch_hub.adapters.atvenue_totals import AtvenueTotalsImporter
from merch_hub.db_models import InventoryStateType, InventoryTransaction, Product, ProductVariant
from merch_hub.services.inventory_ledger import InventoryLedger
from merch_hub.services.sku_matcher import MatchConfidence, SkuMatcher
from merch_hub.store import StoreError

from tests.helpers import (
    order_row,
    orders_csv,
    venue_sale_row,
    venue_sales_csv,
    venue_total_row,
    venue_totals_csv,
)

WAREHOUSE = InventoryStateType.warehouse


async def _count(session, model):
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestCatalogThenSale:

    @pytest.mark.asyncio
    async def test_warehouse_quantity_after_sale(self, sql_store, db_session, tour_shirt_csv):
        catalog = await AmbientInksProductImporter(sql_store).import_csv(tour_shirt_csv)
        assert catalog.success, catalog.errors
        assert (catalog.products_created, catalog.variants_created) == (1, 2)

        ledger = InventoryLedger(sql_store)
        ts_s = await sql_store.select_one("product_variants", {"sku": "TS-S"})
        ts_m = await sql_store.select_one("product_variants", {"sku": "TS-M"})
        assert await ledger.current_quantity(ts_s["id"], WAREHOUSE) == 5
        assert await ledger.current_quantity(ts_m["id"], WAREHOUSE) == 3

        sales = await AmbientInksSalesImporter(sql_store).import_csv(orders_csv(order_row(sku="TS-S", qty="2")))
        assert sales.success, sales.errors
        assert (sales.orders_created, sales.transactions_created) == (1, 1)

        assert await ledger.current_quantity(ts_s["id"], WAREHOUSE) == 3
        assert await ledger.current_quantity(ts_m["id"], WAREHOUSE) == 3
        assert await _count(db_session, InventoryTransaction) == 1

    @pytest.mark.asyncio
    async def test_catalog_reimport_idempotent(self, sql_store, db_session, tour_shirt_csv):
        importer = AmbientInksProductImporter(sql_store)
        await importer.import_csv(tour_shirt_csv)
        second = await importer.import_csv(tour_shirt_csv)

        assert second.success, second.errors
        assert (second.products_created, second.variants_created) == (0, 0)
        assert await _count(db_session, Product) == 1
        assert await _count(db_session, ProductVariant) == 2

    @pytest.mark.asyncio
    async def test_matcher_tiers_on_sqlite(self, sql_store, tour_shirt_csv):
        await AmbientInksProductImporter(sql_store).import_csv(tour_shirt_csv)
        ts_s = await sql_store.select_one("product_variants", {"sku": "TS-S"})
        matcher = SkuMatcher(sql_store)
        await matcher.upsert_identifier(ts_s["id"], "legacy_sku", "TSHIRT-SMALL", "legacy")

        batch = await matcher.resolve_many(["TS-S", "TSHIRT-SMALL", " ts-m ", "ZZZ-999"])
        assert [m.confidence for m in batch.matches.values()] == [
            MatchConfidence.exact,
            MatchConfidence.identifier,
            MatchConfidence.fuzzy,
            MatchConfidence.none,
        ]


class TestRowIsolation:

    @pytest.mark.asyncio
    async def test_failed_write_does_not_poison_session(self, sql_store, tour_shirt_csv):
        await AmbientInksProductImporter(sql_store).import_csv(tour_shirt_csv)

        with pytest.raises(StoreError):
            await sql_store.insert("product_variants", {"product_id": 1, "sku": "TS-S", "variant_name": "Dup"})

        # session is still usable after the rolled-back savepoint
        created = await sql_store.insert("product_variants", {"product_id": 1, "sku": "TS-L", "variant_name": "L"})
        assert created["id"] is not None


class TestTourFlow:

    @pytest.mark.asyncio
    async def test_totals_then_venue_sales(self, sql_store, tour_shirt_csv):
        await AmbientInksProductImporter(sql_store).import_csv(tour_shirt_csv)
        tour = await sql_store.insert("tours", {"name": "Spring Tour"})

        totals = await AtvenueTotalsImporter(sql_store).import_csv(
            venue_totals_csv(
                venue_total_row(show_date="2024-04-02", venue="The Fillmore", location="San Francisco, CA"),
                venue_total_row(show_date="2024-04-01", venue="The Roxy"),
                venue_total_row(show_date="2024-04-05", venue="Future Hall", total="$0.00", fees="$0.00", net="$0.00"),
            ),
            tour_id=tour["id"],
        )
        assert totals.success, totals.errors
        assert (totals.shows_created, totals.totals_created) == (2, 2)

        ts_s = await sql_store.select_one("product_variants", {"sku": "TS-S"})
        ledger = InventoryLedger(sql_store)
        await ledger.set_quantity(ts_s["id"], InventoryStateType.tour, 10, tour_id=tour["id"])

        sales = await AtvenueSalesImporter(sql_store).import_csv(
            venue_sales_csv(venue_sale_row(sku="TS-S", sold="4", comp="1")),
            tour_id=tour["id"],
        )
        assert sales.success, sales.errors
        assert (sales.sales_created, sales.transactions_created) == (2, 2)

        roxy = await sql_store.select_one("shows", {"venue": "The Roxy"})
        assert sales.show_id == roxy["id"]
        assert roxy["show_date"] == date(2024, 4, 1)
        assert await ledger.current_quantity(ts_s["id"], InventoryStateType.tour, tour_id=tour["id"]) == 5
