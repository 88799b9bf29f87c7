# merch_hub/services/results.py
"""Result records returned by every importer."""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class ImportResult:
    """Errors fail the run; warnings are informational."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        return data


@dataclass
class ProductImportResult(ImportResult):
    products_created: int = 0
    variants_created: int = 0


@dataclass
class SalesImportResult(ImportResult):
    orders_created: int = 0
    transactions_created: int = 0


@dataclass
class TourSalesImportResult(ImportResult):
    sales_created: int = 0
    transactions_created: int = 0
    tour_id: Optional[int] = None
    show_id: Optional[int] = None


@dataclass
class VenueTotalsImportResult(ImportResult):
    totals_created: int = 0
    shows_created: int = 0
