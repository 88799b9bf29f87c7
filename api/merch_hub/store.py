# merch_hub/store.py
"""
Persistence port used by the importers, the SKU matcher and the inventory ledger.

Collections are addressed by table name and rows travel as plain dicts, so the
same importer code runs against PostgreSQL (SqlAlchemyStore) or an in-memory
fake (MemoryStore, used by tests and --dry-run imports).

Upsert is always "find by composite key, then update or insert"; there is no
reliance on native ON CONFLICT support.
"""
from __future__ import annotations
import copy
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol, Sequence, Type, runtime_checkable

from sqlalchemy import select, inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from merch_hub.database import Base
from merch_hub import db_models  # noqa: F401  (registers mappers)

Row = Dict[str, Any]


class StoreError(RuntimeError):
    """A read or write against the store failed."""


@runtime_checkable
class Store(Protocol):
    async def select(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]: ...

    async def select_one(self, collection: str, where: Optional[Dict[str, Any]] = None, *, order_by: Optional[str] = None) -> Optional[Row]: ...

    async def insert(self, collection: str, values: Dict[str, Any]) -> Row: ...

    async def update(self, collection: str, row_id: Any, values: Dict[str, Any]) -> Row: ...

    async def upsert(self, collection: str, values: Dict[str, Any], on_conflict: Sequence[str]) -> Row: ...


class BaseStore:
    """Shared select_one/upsert built on the primitive operations."""

    async def select(self, collection, where=None, *, order_by=None, descending=False, limit=None) -> List[Row]:
        raise NotImplementedError

    async def insert(self, collection: str, values: Dict[str, Any]) -> Row:
        raise NotImplementedError

    async def update(self, collection: str, row_id: Any, values: Dict[str, Any]) -> Row:
        raise NotImplementedError

    async def select_one(self, collection: str, where: Optional[Dict[str, Any]] = None, *, order_by: Optional[str] = "id") -> Optional[Row]:
        rows = await self.select(collection, where, order_by=order_by, limit=1)
        return rows[0] if rows else None

    async def upsert(self, collection: str, values: Dict[str, Any], on_conflict: Sequence[str]) -> Row:
        missing = [c for c in on_conflict if c not in values]
        if missing:
            raise ValueError(f"upsert into {collection}: conflict columns missing from values: {missing}")
        key = {c: values[c] for c in on_conflict}
        existing = await self.select_one(collection, key)
        if existing is None:
            return await self.insert(collection, values)
        changes = {k: v for k, v in values.items() if k not in key}
        if not changes:
            return existing
        return await self.update(collection, existing["id"], changes)


# ============================================================================
# SQLAlchemy (async session)
# ============================================================================

def _models_by_table() -> Dict[str, Type[Base]]:
    return {m.class_.__tablename__: m.class_ for m in Base.registry.mappers}


def _to_dict(obj: Any) -> Row:
    mapper = sa_inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


class SqlAlchemyStore(BaseStore):
    """
    Store over an AsyncSession.

    Every write runs inside a SAVEPOINT so a failed insert/update only rolls
    back itself and the session stays usable for the next row. Committing is
    left to the session owner (get_session / get_session_context).
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._models = _models_by_table()

    def _model(self, collection: str) -> Type[Base]:
        try:
            return self._models[collection]
        except KeyError:
            raise StoreError(f"Unknown collection: {collection}") from None

    async def select(self, collection, where=None, *, order_by=None, descending=False, limit=None) -> List[Row]:
        model = self._model(collection)
        stmt = select(model)
        for column, value in (where or {}).items():
            col = getattr(model, column)
            stmt = stmt.where(col.is_(None) if value is None else col == value)
        if order_by:
            col = getattr(model, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"select from {collection} failed: {e}") from e
        return [_to_dict(obj) for obj in result.scalars()]

    async def insert(self, collection: str, values: Dict[str, Any]) -> Row:
        model = self._model(collection)
        try:
            async with self.session.begin_nested():
                obj = model(**values)
                self.session.add(obj)
                await self.session.flush()
                await self.session.refresh(obj)
                return _to_dict(obj)
        except SQLAlchemyError as e:
            raise StoreError(f"insert into {collection} failed: {e}") from e

    async def update(self, collection: str, row_id: Any, values: Dict[str, Any]) -> Row:
        model = self._model(collection)
        try:
            async with self.session.begin_nested():
                obj = await self.session.get(model, row_id)
                if obj is None:
                    raise StoreError(f"update {collection}: row {row_id} not found")
                for key, value in values.items():
                    setattr(obj, key, value)
                await self.session.flush()
                await self.session.refresh(obj)
                return _to_dict(obj)
        except SQLAlchemyError as e:
            raise StoreError(f"update {collection} #{row_id} failed: {e}") from e


# ============================================================================
# In-memory
# ============================================================================

# Mirrors the UniqueConstraints in db_models
UNIQUE_KEYS: Dict[str, List[tuple]] = {
    "products": [("source", "source_product_id")],
    "product_variants": [("sku",)],
    "product_identifiers": [("identifier_type", "identifier_value")],
    "product_pricing": [("product_variant_id", "price_type", "source", "effective_from")],
    "inventory_states": [("product_variant_id", "state", "tour_id")],
    "venue_night_totals": [("show_id", "sale_date")],
}


def _sort_key(value: Any):
    return (value is None, value)


class MemoryStore(BaseStore):
    """Dict-backed store; rows are deep-copied in and out like a real database."""

    def __init__(self, unique_keys: Optional[Dict[str, List[tuple]]] = None):
        self.tables: Dict[str, List[Row]] = defaultdict(list)
        self._next_id: Dict[str, int] = defaultdict(int)
        self.unique_keys = UNIQUE_KEYS if unique_keys is None else unique_keys

    def rows(self, collection: str) -> List[Row]:
        """Direct (copied) view of a collection, for assertions and reports."""
        return copy.deepcopy(self.tables[collection])

    def _check_unique(self, collection: str, row: Row, ignore_id: Any = None) -> None:
        for key in self.unique_keys.get(collection, []):
            # NULLs never collide, as in SQL
            if any(row.get(c) is None for c in key):
                continue
            for other in self.tables[collection]:
                if other["id"] == ignore_id:
                    continue
                if all(other.get(c) == row.get(c) for c in key):
                    raise StoreError(f"duplicate key in {collection}: {dict((c, row.get(c)) for c in key)}")

    async def select(self, collection, where=None, *, order_by=None, descending=False, limit=None) -> List[Row]:
        rows = [
            r for r in self.tables[collection]
            if all(r.get(k) == v if v is not None else r.get(k) is None for k, v in (where or {}).items())
        ]
        if order_by:
            rows = sorted(rows, key=lambda r: _sort_key(r.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, collection: str, values: Dict[str, Any]) -> Row:
        self._next_id[collection] += 1
        row = dict(copy.deepcopy(values))
        row["id"] = self._next_id[collection]
        self._check_unique(collection, row)
        self.tables[collection].append(row)
        return copy.deepcopy(row)

    async def update(self, collection: str, row_id: Any, values: Dict[str, Any]) -> Row:
        for i, row in enumerate(self.tables[collection]):
            if row["id"] == row_id:
                updated = {**row, **copy.deepcopy(values)}
                self._check_unique(collection, updated, ignore_id=row_id)
                self.tables[collection][i] = updated
                return copy.deepcopy(updated)
        raise StoreError(f"update {collection}: row {row_id} not found")
