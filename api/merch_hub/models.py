from typing import Optional, Dict, List
from pydantic import BaseModel, Field


class ImportResultOut(BaseModel):
    success: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ProductImportOut(ImportResultOut):
    products_created: int = 0
    variants_created: int = 0


class SalesImportOut(ImportResultOut):
    orders_created: int = 0
    transactions_created: int = 0


class TourSalesImportOut(ImportResultOut):
    sales_created: int = 0
    transactions_created: int = 0
    tour_id: Optional[int] = None
    show_id: Optional[int] = None


class VenueTotalsImportOut(ImportResultOut):
    totals_created: int = 0
    shows_created: int = 0


class SkuMatchIn(BaseModel):
    skus: List[str]
    source: Optional[str] = None


class SkuMatchOut(BaseModel):
    variant_id: Optional[int] = None
    sku: str
    confidence: str
    source: str


class MatchStatisticsOut(BaseModel):
    total: int = 0
    exact: int = 0
    identifier: int = 0
    fuzzy: int = 0
    none: int = 0
    match_rate: float = 0.0


class BatchMatchOut(BaseModel):
    matches: Dict[str, SkuMatchOut] = Field(default_factory=dict)
    statistics: MatchStatisticsOut
