# merch_hub/services/inventory_ledger.py
"""
Inventory State Ledger.

Two views of stock:
- inventory_transactions: append-only movements (signed quantity)
- inventory_states: current quantity per (variant, state, tour_id), never < 0

Writes are sequential and independent; a transaction and the state change it
describes are not committed atomically.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from merch_hub.db_models import InventoryStateType, TransactionType, utcnow
from merch_hub.store import Store

logger = logging.getLogger(__name__)

TRANSACTIONS = "inventory_transactions"
STATES = "inventory_states"


class InventoryLedger:
    """Service for stock movements and current-state counters."""

    def __init__(self, store: Store):
        self.store = store

    # =========================================================================
    # Transactions
    # =========================================================================

    async def record_transaction(
        self,
        variant_id: int,
        transaction_type: TransactionType,
        quantity: int,
        *,
        from_state: Optional[InventoryStateType] = None,
        to_state: Optional[InventoryStateType] = None,
        tour_id: Optional[int] = None,
        show_id: Optional[int] = None,
        transaction_date: Optional[datetime] = None,
        source: str,
        notes: Optional[str] = None,
    ) -> dict:
        if quantity == 0:
            raise ValueError("Transaction quantity cannot be zero")
        return await self.store.insert(TRANSACTIONS, {
            "product_variant_id": variant_id,
            "transaction_type": transaction_type,
            "from_state": from_state,
            "to_state": to_state,
            "quantity": quantity,
            "tour_id": tour_id,
            "show_id": show_id,
            "transaction_date": transaction_date or utcnow(),
            "source": source,
            "notes": notes,
        })

    # =========================================================================
    # Current state
    # =========================================================================

    def _key(self, variant_id: int, state: InventoryStateType, tour_id: Optional[int]) -> dict:
        return {"product_variant_id": variant_id, "state": InventoryStateType(state), "tour_id": tour_id}

    async def current_quantity(
        self,
        variant_id: int,
        state: InventoryStateType,
        tour_id: Optional[int] = None,
    ) -> int:
        row = await self.store.select_one(STATES, self._key(variant_id, state, tour_id))
        return int(row["quantity"]) if row else 0

    async def apply_delta(
        self,
        variant_id: int,
        state: InventoryStateType,
        delta: int,
        tour_id: Optional[int] = None,
    ) -> Optional[dict]:
        """
        Adjust a state counter by `delta`, flooring at zero.

        A missing row is only created for a positive delta; decrementing an
        untracked state is a no-op and returns None.
        """
        state = InventoryStateType(state)
        key = self._key(variant_id, state, tour_id)
        row = await self.store.select_one(STATES, key)
        if row is None:
            if delta <= 0:
                logger.debug(f"No {state.value} state for variant {variant_id} (tour={tour_id}); delta {delta} ignored")
                return None
            return await self.store.insert(STATES, {**key, "quantity": delta})

        new_qty = max(0, int(row["quantity"]) + delta)
        if int(row["quantity"]) + delta < 0:
            logger.warning(
                f"Variant {variant_id} {state.value} stock would go negative "
                f"({row['quantity']} {delta:+d}); floored at 0"
            )
        return await self.store.update(STATES, row["id"], {"quantity": new_qty, "updated_at": utcnow()})

    async def set_quantity(
        self,
        variant_id: int,
        state: InventoryStateType,
        quantity: int,
        tour_id: Optional[int] = None,
    ) -> dict:
        """Record a counted quantity (clamped to >= 0)."""
        now = utcnow()
        values = {
            **self._key(variant_id, state, tour_id),
            "quantity": max(0, int(quantity)),
            "last_counted_at": now,
            "updated_at": now,
        }
        return await self.store.upsert(STATES, values, on_conflict=("product_variant_id", "state", "tour_id"))
