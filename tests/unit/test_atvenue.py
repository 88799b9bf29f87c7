"""
Unit tests for the AtVenue sales and nightly totals importers.
"""

from datetime import date

import pytest
import pytest_asyncio

from merch_hub.adapters.ambient_inks_products import AmbientInksProductImporter
from merch_hub.adapters.atvenue_sales import AtvenueSalesImporter, is_summary_row
from merch_hub.adapters.atvenue_totals import AtvenueTotalsImporter, is_data_row, split_location
from merch_hub.db_models import InventoryStateType, TransactionType
from merch_hub.services.inventory_ledger import InventoryLedger
from merch_hub.store import MemoryStore, StoreError

from tests.helpers import (
    venue_sale_row,
    venue_sales_csv,
    venue_total_row,
    venue_totals_csv,
)

TOUR = InventoryStateType.tour


@pytest_asyncio.fixture
async def tour_store(memory_store, tour_shirt_csv):
    """Catalog, tour 1 with two shows (later one inserted first), 20 TS-S on tour 1."""
    await AmbientInksProductImporter(memory_store).import_csv(tour_shirt_csv)
    await memory_store.insert("tours", {"name": "Spring Tour"})
    await memory_store.insert("shows", {"tour_id": 1, "show_date": date(2024, 4, 2), "venue": "The Fillmore"})
    await memory_store.insert("shows", {"tour_id": 1, "show_date": date(2024, 4, 1), "venue": "The Roxy"})
    await InventoryLedger(memory_store).set_quantity(1, TOUR, 20, tour_id=1)
    return memory_store


class TestSummaryRows:

    @pytest.mark.parametrize("name", ["", "SUBTOTAL", "Apparel SUBTOTAL", "TOTAL"])
    def test_summary(self, name):
        assert is_summary_row({"Name": name})

    def test_item(self):
        assert not is_summary_row({"Name": "Tour Shirt"})


class TestAtvenueSales:

    @pytest.mark.asyncio
    async def test_paid_and_comp_rows(self, tour_store):
        result = await AtvenueSalesImporter(tour_store).import_csv(
            venue_sales_csv(venue_sale_row(sold="3", comp="1"), venue_sale_row(name="SUBTOTAL", sku="")),
            tour_id=1,
            show_id=1,
        )

        assert result.success
        assert result.tour_id == 1
        assert (result.sales_created, result.transactions_created) == (2, 2)

        sales = tour_store.rows("tour_sales")
        paid, comp = sales
        assert (paid["quantity_sold"], paid["is_comp"], paid["gross_revenue"]) == (3, False, 90.0)
        assert (comp["quantity_sold"], comp["is_comp"], comp["gross_revenue"]) == (1, True, 0)
        assert paid["sale_date"] == date(2024, 4, 2)
        assert paid["source_data"]["unit_percent_of_total"] == "10%"
        assert "percent_of_total" not in comp["source_data"]

        txns = tour_store.rows("inventory_transactions")
        assert [(t["transaction_type"], t["quantity"]) for t in txns] == [
            (TransactionType.sale, -3),
            (TransactionType.comp, -1),
        ]
        assert all(t["from_state"] == TOUR and t["show_id"] == 1 and t["tour_id"] == 1 for t in txns)
        assert txns[1]["notes"] == "Complimentary item"

        assert await InventoryLedger(tour_store).current_quantity(1, TOUR, tour_id=1) == 16

    @pytest.mark.asyncio
    async def test_state_update_failure_is_warning(self, tour_shirt_csv):
        class FrozenStatesStore(MemoryStore):
            async def update(self, collection, row_id, values):
                if collection == "inventory_states":
                    raise StoreError("state offline")
                return await super().update(collection, row_id, values)

        store = FrozenStatesStore()
        await AmbientInksProductImporter(store).import_csv(tour_shirt_csv)
        await store.insert("tours", {"name": "Spring Tour"})
        await store.insert("shows", {"tour_id": 1, "show_date": date(2024, 4, 1), "venue": "The Roxy"})
        await InventoryLedger(store).set_quantity(1, TOUR, 20, tour_id=1)

        result = await AtvenueSalesImporter(store).import_csv(
            venue_sales_csv(venue_sale_row(sold="3")), tour_id=1, show_id=1
        )

        assert result.success
        assert (result.sales_created, result.transactions_created) == (1, 1)
        assert result.warnings == ["Inventory state for variant 1 not updated: state offline"]
        assert await InventoryLedger(store).current_quantity(1, TOUR, tour_id=1) == 20

    @pytest.mark.asyncio
    async def test_defaults_to_earliest_show_with_warning(self, tour_store):
        result = await AtvenueSalesImporter(tour_store).import_csv(venue_sales_csv(venue_sale_row()), tour_id=1)

        assert result.show_id == 2
        assert result.warnings == ["No show ID provided, using first show of tour: 2"]
        assert tour_store.rows("tour_sales")[0]["sale_date"] == date(2024, 4, 1)

    @pytest.mark.asyncio
    async def test_unknown_tour(self, tour_store):
        result = await AtvenueSalesImporter(tour_store).import_csv(venue_sales_csv(venue_sale_row()), tour_id=99)
        assert result.errors == ["Tour not found: 99"]
        assert tour_store.rows("tour_sales") == []

    @pytest.mark.asyncio
    async def test_unknown_show(self, tour_store):
        result = await AtvenueSalesImporter(tour_store).import_csv(venue_sales_csv(venue_sale_row()), tour_id=1, show_id=42)
        assert result.errors == ["Show not found: 42"]

    @pytest.mark.asyncio
    async def test_tour_without_shows(self, tour_store):
        await tour_store.insert("tours", {"name": "Empty Tour"})
        result = await AtvenueSalesImporter(tour_store).import_csv(venue_sales_csv(venue_sale_row()), tour_id=2)
        assert result.errors == ["No show ID provided and no shows found for tour"]

    @pytest.mark.asyncio
    async def test_zero_rows_skipped_silently(self, tour_store):
        result = await AtvenueSalesImporter(tour_store).import_csv(
            venue_sales_csv(venue_sale_row(sold="0", comp="0")), tour_id=1, show_id=1
        )
        assert result.sales_created == 0
        assert result.warnings == []

    @pytest.mark.asyncio
    async def test_unmatched_and_missing_sku_still_record_sales(self, tour_store):
        result = await AtvenueSalesImporter(tour_store).import_csv(
            venue_sales_csv(venue_sale_row(sku="ZZ-1", name="Poster"), venue_sale_row(sku="", name="Sticker")),
            tour_id=1,
            show_id=1,
        )
        assert result.sales_created == 2
        assert result.transactions_created == 0
        assert result.warnings == ["SKU not found: ZZ-1 (Poster)", "No SKU for item: Sticker"]
        assert all(s["product_variant_id"] is None for s in tour_store.rows("tour_sales"))

    @pytest.mark.asyncio
    async def test_untracked_tour_state_not_created(self, tour_store):
        """TS-M has no tour counter, so the sale records a movement but no state row."""
        await AtvenueSalesImporter(tour_store).import_csv(
            venue_sales_csv(venue_sale_row(sku="TS-M")), tour_id=1, show_id=1
        )
        assert await InventoryLedger(tour_store).current_quantity(2, TOUR, tour_id=1) == 0
        assert len(tour_store.rows("inventory_transactions")) == 1


class TestLocationAndRows:

    def test_split_location(self):
        assert split_location("Los Angeles, CA") == ("Los Angeles", "CA")
        assert split_location("Washington, D.C., USA") == ("Washington", "D.C., USA")
        assert split_location("Reykjavik") == ("Reykjavik", None)
        assert split_location("") == (None, None)

    def test_data_rows(self):
        assert is_data_row({"Date": "2024-04-01", "Venue": "The Roxy"})
        assert not is_data_row({"Date": "", "Venue": "The Roxy"})
        assert not is_data_row({"Date": "2024-04-01", "Venue": "Tour Total"})
        assert not is_data_row({"Date": "Date", "Venue": "Venue"})


class TestAtvenueTotals:

    @pytest_asyncio.fixture
    async def store(self, memory_store):
        await memory_store.insert("tours", {"name": "Spring Tour"})
        return memory_store

    @pytest.mark.asyncio
    async def test_creates_show_and_total(self, store):
        result = await AtvenueTotalsImporter(store).import_csv(venue_totals_csv(venue_total_row()), tour_id=1)

        assert result.success
        assert (result.shows_created, result.totals_created) == (1, 1)
        show = store.rows("shows")[0]
        assert (show["venue"], show["city"], show["state"], show["show_date"]) == (
            "The Roxy", "Los Angeles", "CA", date(2024, 4, 1),
        )
        total = store.rows("venue_night_totals")[0]
        assert (total["total_receipts"], total["total_fees"], total["net_receipts"]) == (1500.0, 150.0, 1350.0)

    @pytest.mark.asyncio
    async def test_zero_revenue_night_skipped(self, store):
        result = await AtvenueTotalsImporter(store).import_csv(
            venue_totals_csv(venue_total_row(total="$0.00", fees="$0.00", net="$0.00")), tour_id=1
        )
        assert result.success
        assert (result.shows_created, result.totals_created) == (0, 0)
        assert result.warnings == []
        assert store.rows("shows") == []

    @pytest.mark.asyncio
    async def test_reimport_is_noop(self, store):
        csv_text = venue_totals_csv(venue_total_row())
        await AtvenueTotalsImporter(store).import_csv(csv_text, tour_id=1)
        second = await AtvenueTotalsImporter(store).import_csv(csv_text, tour_id=1)

        assert (second.shows_created, second.totals_created) == (0, 0)
        assert len(store.rows("venue_night_totals")) == 1

    @pytest.mark.asyncio
    async def test_existing_show_reused(self, store):
        await store.insert("shows", {"tour_id": 1, "show_date": date(2024, 4, 1), "venue": "The Roxy"})
        result = await AtvenueTotalsImporter(store).import_csv(venue_totals_csv(venue_total_row()), tour_id=1)
        assert (result.shows_created, result.totals_created) == (0, 1)

    @pytest.mark.asyncio
    async def test_filters_total_and_header_rows_and_warns_on_bad_date(self, store):
        csv_text = venue_totals_csv(
            venue_total_row(),
            venue_total_row(venue="Tour Total"),
            'Date,Venue,"City, St",Total Receipts,Total Fees,Net Receipts',
            venue_total_row(show_date="TBD", venue="Mystery Hall"),
        )
        result = await AtvenueTotalsImporter(store).import_csv(csv_text, tour_id=1)

        assert result.totals_created == 1
        assert result.warnings == ["Invalid date for venue Mystery Hall: TBD"]

    @pytest.mark.asyncio
    async def test_unknown_tour(self, memory_store):
        result = await AtvenueTotalsImporter(memory_store).import_csv(venue_totals_csv(venue_total_row()), tour_id=5)
        assert result.errors == ["Tour not found: 5"]
