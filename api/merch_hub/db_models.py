# merch_hub/db_models.py
"""
SQLAlchemy ORM Models for Merch Hub.

Catalog (products, variants, identifiers, pricing), inventory ledger
(states + transactions) and sales (online orders, tour sales, venue nights).
"""
from __future__ import annotations
from datetime import datetime, date, timezone
from typing import Optional, List
import enum

from sqlalchemy import (
    String, Integer, BigInteger, Boolean, Text, Date, DateTime,
    Numeric, ForeignKey, Index, CheckConstraint, UniqueConstraint,
    Enum as SQLEnum, JSON,
)
from sqlalchemy.orm import (
    Mapped, mapped_column, relationship
)
from sqlalchemy.dialects.postgresql import JSONB

from merch_hub.database import Base

# BIGSERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid alias) on SQLite
ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")
JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")
MONEY = Numeric(12, 2, asdecimal=False)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# ENUMS
# ============================================================================

class InventoryStateType(str, enum.Enum):
    warehouse = "warehouse"
    transfer = "transfer"
    tour_start = "tour_start"
    venue = "venue"
    tour = "tour"


class TransactionType(str, enum.Enum):
    sale = "sale"
    transfer = "transfer"
    adjustment = "adjustment"
    comp = "comp"
    shipment = "shipment"


class PriceType(str, enum.Enum):
    retail = "retail"
    wholesale = "wholesale"
    tour = "tour"
    compare_at = "compare_at"


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )


# ============================================================================
# 1. TOURS
# ============================================================================

class Tour(TimestampMixin, Base):
    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist: Mapped[Optional[str]] = mapped_column(String(255))
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[Optional[str]] = mapped_column(String(50))
    master_tour_id: Mapped[Optional[str]] = mapped_column(String(100))

    # Relationships
    shows: Mapped[List["Show"]] = relationship(back_populates="tour")


# ============================================================================
# 2. SHOWS
# ============================================================================

class Show(TimestampMixin, Base):
    __tablename__ = "shows"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    tour_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("tours.id", ondelete="SET NULL"))
    show_date: Mapped[date] = mapped_column(Date, nullable=False)
    venue: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(255))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    capacity: Mapped[Optional[int]] = mapped_column(Integer)
    master_tour_id: Mapped[Optional[str]] = mapped_column(String(100))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    tour: Mapped[Optional["Tour"]] = relationship(back_populates="shows")

    __table_args__ = (
        Index("idx_shows_tour_date", "tour_id", "show_date"),
        Index("idx_shows_tour_venue_date", "tour_id", "venue", "show_date"),
    )


# ============================================================================
# 3. PRODUCTS
# ============================================================================

class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    source_product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    handle: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    vendor: Mapped[Optional[str]] = mapped_column(String(255))
    product_type: Mapped[Optional[str]] = mapped_column(String(255))
    tags: Mapped[list] = mapped_column(JSON_TYPE, default=list, nullable=False)
    image_urls: Mapped[list] = mapped_column(JSON_TYPE, default=list, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    variants: Mapped[List["ProductVariant"]] = relationship(back_populates="product")

    __table_args__ = (
        UniqueConstraint("source", "source_product_id", name="uq_products_source_id"),
        CheckConstraint("length(title) BETWEEN 3 AND 200", name="chk_products_title_length"),
        Index("idx_products_handle", "handle"),
    )


# ============================================================================
# 4. PRODUCT VARIANTS (SKU is the business key)
# ============================================================================

class ProductVariant(TimestampMixin, Base):
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    product_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    variant_name: Mapped[str] = mapped_column(String(255), default="Default", nullable=False)
    option1_name: Mapped[Optional[str]] = mapped_column(String(100))
    option1_value: Mapped[Optional[str]] = mapped_column(String(100))
    option2_name: Mapped[Optional[str]] = mapped_column(String(100))
    option2_value: Mapped[Optional[str]] = mapped_column(String(100))
    option3_name: Mapped[Optional[str]] = mapped_column(String(100))
    option3_value: Mapped[Optional[str]] = mapped_column(String(100))
    weight: Mapped[Optional[float]] = mapped_column(Numeric(10, 3, asdecimal=False))
    weight_unit: Mapped[Optional[str]] = mapped_column(String(10))
    barcode: Mapped[Optional[str]] = mapped_column(String(100))

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="variants")
    identifiers: Mapped[List["ProductIdentifier"]] = relationship(
        back_populates="variant",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_product_variants_product", "product_id"),
    )


# ============================================================================
# 5. PRODUCT IDENTIFIERS (cross-source SKU aliases)
# ============================================================================

class ProductIdentifier(Base):
    __tablename__ = "product_identifiers"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    product_variant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False
    )
    # "<source>_sku" style, open-ended per source
    identifier_type: Mapped[str] = mapped_column(String(50), nullable=False)
    identifier_value: Mapped[str] = mapped_column(String(100), nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    variant: Mapped["ProductVariant"] = relationship(back_populates="identifiers")

    __table_args__ = (
        UniqueConstraint("identifier_type", "identifier_value", name="uq_product_identifiers_type_value"),
        # Fast lookup by value (matcher tier 2 ignores the type)
        Index("idx_product_identifiers_value", "identifier_value"),
        Index("idx_product_identifiers_variant", "product_variant_id"),
    )


# ============================================================================
# 6. PRODUCT PRICING
# ============================================================================

class ProductPricing(TimestampMixin, Base):
    __tablename__ = "product_pricing"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    product_variant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False
    )
    price_type: Mapped[PriceType] = mapped_column(SQLEnum(PriceType, name="price_type"), nullable=False)
    amount: Mapped[float] = mapped_column(MONEY, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[Optional[date]] = mapped_column(Date)

    __table_args__ = (
        UniqueConstraint(
            "product_variant_id", "price_type", "source", "effective_from",
            name="uq_product_pricing_period",
        ),
        CheckConstraint("amount >= 0", name="chk_pricing_amount_non_negative"),
    )


# ============================================================================
# 7. INVENTORY STATES (current quantity per variant/state/tour)
# ============================================================================

class InventoryState(TimestampMixin, Base):
    __tablename__ = "inventory_states"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    product_variant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False
    )
    state: Mapped[InventoryStateType] = mapped_column(
        SQLEnum(InventoryStateType, name="inventory_state_type"),
        nullable=False
    )
    tour_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("tours.id", ondelete="CASCADE"))
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_counted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        # NULL tour_id rows are kept unique by the store's explicit upsert check
        UniqueConstraint("product_variant_id", "state", "tour_id", name="uq_inventory_states_key"),
        CheckConstraint("quantity >= 0", name="chk_inventory_quantity_non_negative"),
        Index("idx_inventory_states_variant", "product_variant_id"),
    )


# ============================================================================
# 8. INVENTORY TRANSACTIONS (IMMUTABLE LEDGER)
# ============================================================================

class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    product_variant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=False
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType, name="transaction_type"),
        nullable=False
    )
    from_state: Mapped[Optional[InventoryStateType]] = mapped_column(
        SQLEnum(InventoryStateType, name="inventory_state_type")
    )
    to_state: Mapped[Optional[InventoryStateType]] = mapped_column(
        SQLEnum(InventoryStateType, name="inventory_state_type")
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    tour_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("tours.id", ondelete="SET NULL"))
    show_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("shows.id", ondelete="SET NULL"))
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity != 0", name="chk_transaction_quantity_not_zero"),
        Index("idx_transactions_variant", "product_variant_id"),
        Index("idx_transactions_show", "show_id"),
        Index("idx_transactions_date", "transaction_date"),
    )


# ============================================================================
# 9. SALES ORDERS (online / direct-to-consumer lines)
# ============================================================================

class SalesOrder(Base):
    __tablename__ = "sales_orders"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    order_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(500))
    product_variant_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("product_variants.id", ondelete="SET NULL")
    )
    sku: Mapped[Optional[str]] = mapped_column(String(100))
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    gross_sales: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    discounts: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    net_sales: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    commission: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    deduction: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    payout: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_sales_orders_lookup", "source", "order_number", "sku"),
        Index("idx_sales_orders_date", "order_date"),
    )


# ============================================================================
# 10. TOUR SALES (venue point-of-sale lines; comps are separate rows)
# ============================================================================

class TourSale(Base):
    __tablename__ = "tour_sales"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    show_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("shows.id", ondelete="CASCADE"), nullable=False)
    product_variant_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("product_variants.id", ondelete="SET NULL")
    )
    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False)
    is_comp: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unit_price: Mapped[Optional[float]] = mapped_column(MONEY)
    gross_revenue: Mapped[Optional[float]] = mapped_column(MONEY)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    source_data: Mapped[Optional[dict]] = mapped_column(JSON_TYPE)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_tour_sales_show", "show_id"),
        Index("idx_tour_sales_variant", "product_variant_id"),
    )


# ============================================================================
# 11. VENUE NIGHT TOTALS
# ============================================================================

class VenueNightTotal(Base):
    __tablename__ = "venue_night_totals"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    show_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("shows.id", ondelete="CASCADE"), nullable=False)
    total_receipts: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    total_fees: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    net_receipts: Mapped[float] = mapped_column(MONEY, default=0, nullable=False)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("show_id", "sale_date", name="uq_venue_night_totals_show_date"),
    )
