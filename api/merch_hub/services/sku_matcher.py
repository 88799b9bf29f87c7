# merch_hub/services/sku_matcher.py
"""
SKU Matcher - resolves vendor SKUs to canonical product variants.

Tiers (first hit wins):
1. exact       - product_variants.sku equals the input
2. identifier  - any product_identifiers.identifier_value equals the input
3. fuzzy       - trimmed, case-insensitive equality against every variant SKU
4. none        - unresolved; callers record a warning and carry on
"""
from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from merch_hub.store import Store

logger = logging.getLogger(__name__)

VARIANTS = "product_variants"
IDENTIFIERS = "product_identifiers"
UNKNOWN_SOURCE = "unknown"


class MatchConfidence(str, enum.Enum):
    exact = "exact"
    identifier = "identifier"
    fuzzy = "fuzzy"
    none = "none"


@dataclass
class SkuMatch:
    variant_id: Optional[int]
    sku: str
    confidence: MatchConfidence
    source: str

    @property
    def matched(self) -> bool:
        return self.variant_id is not None


@dataclass
class MatchStatistics:
    total: int = 0
    exact: int = 0
    identifier: int = 0
    fuzzy: int = 0
    none: int = 0
    match_rate: float = 0.0


@dataclass
class BatchMatch:
    matches: Dict[str, SkuMatch] = field(default_factory=dict)
    statistics: MatchStatistics = field(default_factory=MatchStatistics)


def match_statistics(matches: Dict[str, SkuMatch]) -> MatchStatistics:
    """Count matches per tier; match_rate is the resolved percentage."""
    stats = MatchStatistics(total=len(matches))
    for match in matches.values():
        setattr(stats, match.confidence.value, getattr(stats, match.confidence.value) + 1)
    if stats.total:
        stats.match_rate = (stats.exact + stats.identifier + stats.fuzzy) / stats.total * 100
    return stats


class SkuMatcher:
    """Service for cross-source SKU identity."""

    def __init__(self, store: Store):
        self.store = store

    async def resolve(self, sku: Optional[str], source: Optional[str] = None) -> SkuMatch:
        src = source or UNKNOWN_SOURCE
        if not sku or not sku.strip():
            return SkuMatch(variant_id=None, sku="", confidence=MatchConfidence.none, source=src)

        exact = await self.store.select_one(VARIANTS, {"sku": sku})
        if exact:
            return SkuMatch(variant_id=exact["id"], sku=exact["sku"], confidence=MatchConfidence.exact, source=src)

        alias = await self.store.select_one(IDENTIFIERS, {"identifier_value": sku})
        if alias:
            return SkuMatch(
                variant_id=alias["product_variant_id"], sku=sku,
                confidence=MatchConfidence.identifier, source=src,
            )

        normalized = sku.strip().upper()
        for variant in await self.store.select(VARIANTS, order_by="id"):
            if (variant.get("sku") or "").strip().upper() == normalized:
                return SkuMatch(variant_id=variant["id"], sku=variant["sku"], confidence=MatchConfidence.fuzzy, source=src)

        logger.debug(f"No variant for SKU {sku!r} (source={src})")
        return SkuMatch(variant_id=None, sku=sku, confidence=MatchConfidence.none, source=src)

    async def resolve_many(self, skus: Iterable[Optional[str]], source: Optional[str] = None) -> BatchMatch:
        unique = list(dict.fromkeys(s for s in skus if s and s.strip()))
        matches: Dict[str, SkuMatch] = {}
        for sku in unique:
            matches[sku] = await self.resolve(sku, source)
        stats = match_statistics(matches)
        logger.info(
            f"Matched {stats.total - stats.none}/{stats.total} SKUs "
            f"({stats.match_rate:.1f}%): exact={stats.exact} identifier={stats.identifier} fuzzy={stats.fuzzy}"
        )
        return BatchMatch(matches=matches, statistics=stats)

    async def upsert_identifier(
        self,
        variant_id: int,
        identifier_type: str,
        identifier_value: str,
        source: str,
    ) -> dict:
        """Map an alias onto a variant; (identifier_type, identifier_value) is the conflict key."""
        value = (identifier_value or "").strip()
        if not value:
            raise ValueError("Identifier value cannot be empty")
        return await self.store.upsert(
            IDENTIFIERS,
            {
                "product_variant_id": variant_id,
                "identifier_type": identifier_type,
                "identifier_value": value,
                "source": source,
            },
            on_conflict=("identifier_type", "identifier_value"),
        )
