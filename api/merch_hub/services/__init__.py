# merch_hub/services/__init__.py
"""
Import pipeline services: parsing, coercion, SKU matching and the inventory ledger.
"""
from merch_hub.services.inventory_ledger import InventoryLedger
from merch_hub.services.sku_matcher import SkuMatcher, SkuMatch, MatchConfidence

__all__ = [
    "InventoryLedger",
    "SkuMatcher",
    "SkuMatch",
    "MatchConfidence",
]
