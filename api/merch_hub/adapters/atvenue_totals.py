# merch_hub/adapters/atvenue_totals.py
"""
AtVenue tour totals importer: one row per venue night.

Shows are found or created by (tour, venue, date); each show gets at most one
venue_night_totals row per date.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Optional, Tuple

from merch_hub.services.coercion import parse_date, parse_numeric
from merch_hub.services.csv_parser import parse_csv
from merch_hub.services.results import VenueTotalsImportResult
from merch_hub.store import Store

logger = logging.getLogger(__name__)

SOURCE = "atvenue"
LOCATION_COLUMN = "City, St"


def split_location(value: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """'Austin, TX' -> ('Austin', 'TX'); split on the first comma only."""
    city, _, state = (value or "").partition(",")
    return city.strip() or None, state.strip() or None


def is_data_row(row: Dict[str, str]) -> bool:
    d = row.get("Date") or ""
    venue = row.get("Venue") or ""
    # totals lines and header lines repeated mid-report
    return bool(d and venue) and "total" not in venue.lower() and "date" not in d.lower()


class AtvenueTotalsImporter:
    """Imports nightly receipts for a tour."""

    def __init__(self, store: Store):
        self.store = store

    async def import_csv(self, text: str, tour_id: int) -> VenueTotalsImportResult:
        return await self.import_rows(parse_csv(text), tour_id)

    async def import_rows(self, rows: List[Dict[str, str]], tour_id: int) -> VenueTotalsImportResult:
        result = VenueTotalsImportResult()
        try:
            if not rows:
                result.errors.append("No data found in CSV file")
                return result

            data_rows = [r for r in rows if is_data_row(r)]
            logger.info(f"Processing {len(data_rows)} venue night totals for tour {tour_id}")

            tour = await self.store.select_one("tours", {"id": tour_id})
            if tour is None:
                result.errors.append(f"Tour not found: {tour_id}")
                return result

            for row in data_rows:
                try:
                    await self._import_night(tour_id, row, result)
                except Exception as e:
                    msg = f"Error importing venue night {row.get('Venue', '')}: {e}"
                    logger.exception(msg)
                    result.errors.append(msg)
        except Exception as e:
            logger.exception("AtVenue totals import failed")
            result.errors.append(f"Fatal error: {e}")

        logger.info(
            f"AtVenue totals import done: totals={result.totals_created} shows={result.shows_created} "
            f"errors={len(result.errors)} warnings={len(result.warnings)}"
        )
        return result

    async def _import_night(self, tour_id: int, row: Dict[str, str], result: VenueTotalsImportResult) -> None:
        venue = row["Venue"]
        parsed = parse_date(row.get("Date"))
        if parsed is None:
            result.warnings.append(f"Invalid date for venue {venue}: {row.get('Date', '')}")
            return
        show_date = parsed.date()

        total_receipts = parse_numeric(row.get("Total Receipts")) or 0
        total_fees = parse_numeric(row.get("Total Fees")) or 0
        net_receipts = parse_numeric(row.get("Net Receipts")) or 0

        # $0.00 nights are future or cancelled dates
        if total_receipts == 0 and net_receipts == 0:
            logger.info(f"Skipping zero-revenue show: {venue} on {show_date}")
            return

        show = await self.store.select_one("shows", {"tour_id": tour_id, "venue": venue, "show_date": show_date})
        if show is None:
            city, state = split_location(row.get(LOCATION_COLUMN))
            show = await self.store.insert("shows", {
                "tour_id": tour_id,
                "show_date": show_date,
                "venue": venue,
                "city": city,
                "state": state,
            })
            result.shows_created += 1
            logger.info(f"Created show: {venue} on {show_date}")

        existing = await self.store.select_one("venue_night_totals", {"show_id": show["id"], "sale_date": show_date})
        if existing:
            logger.info(f"Venue night total already exists for show {show['id']}, skipping")
            return

        await self.store.insert("venue_night_totals", {
            "show_id": show["id"],
            "total_receipts": total_receipts,
            "total_fees": total_fees,
            "net_receipts": net_receipts,
            "sale_date": show_date,
            "source": SOURCE,
        })
        result.totals_created += 1
