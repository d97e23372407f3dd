# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/restopos/services/inventory_service.py

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Product, InventoryTransaction, TRANSACTION_TYPES
from ..validation import NotFoundError, ValidationError
from restopos.time_utils import utcnow
from .concurrency import unit_of_work
"""
Inventory Invariants (authoritative)

Stock model:
- Product.stock_quantity is a stored counter; InventoryTransaction is the
  append-only ledger explaining every counted movement.
- Every counter change made here is a relative UPDATE
  (stock_quantity = stock_quantity + :delta), never read-modify-write,
  so concurrent sales and adjustments cannot lose an update.
- A ledger row and its counter update are always written in the same DB
  transaction: either both exist or neither does.

Business rules:
- sale and waste deltas are negative, purchase deltas positive,
  adjustment deltas any non-zero value.
- Stock may go negative. No floor is enforced.
- "sale" entries are only created by order_service.create_order.
- Low stock: is_active AND track_inventory AND stock_quantity <= low_stock_threshold.
"""


LEDGER_DEFAULT_LIMIT = 100


def validate_delta_sign(tx_type: str, quantity_delta: int) -> None:
    if tx_type not in TRANSACTION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(TRANSACTION_TYPES)}")
    if quantity_delta == 0:
        raise ValidationError("quantity_delta must be non-zero")
    if tx_type in ("sale", "waste") and quantity_delta > 0:
        raise ValidationError(f"quantity_delta must be negative for {tx_type}")
    if tx_type == "purchase" and quantity_delta < 0:
        raise ValidationError("quantity_delta must be positive for purchase")


def apply_stock_delta(product_id: int, quantity_delta: int) -> None:
    """Relative counter update. Does not commit."""
    db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(
            stock_quantity=Product.stock_quantity + quantity_delta,
            updated_at=utcnow(),
        )
    )


def append_transaction(
    *,
    product_id: int,
    tx_type: str,
    quantity_delta: int,
    unit_cost_cents: int | None = None,
    total_cost_cents: int | None = None,
    reference: str | None = None,
    order_id: int | None = None,
    user_id: int | None = None,
) -> InventoryTransaction:
    """
    Append one ledger row. Does not touch stock and does not commit.

    Callers pair it with apply_stock_delta inside one unit of work.
    """
    tx = InventoryTransaction(
        product_id=product_id,
        type=tx_type,
        quantity_delta=quantity_delta,
        unit_cost_cents=unit_cost_cents,
        total_cost_cents=total_cost_cents,
        reference=reference,
        order_id=order_id,
        created_by_user_id=user_id,
        created_at=utcnow(),
    )
    db.session.add(tx)
    db.session.flush()  # ensures tx.id is assigned without committing
    return tx


def create_inventory_transaction(
    *,
    product_id: int,
    tx_type: str,
    quantity_delta: int,
    unit_cost_cents: int | None = None,
    total_cost_cents: int | None = None,
    reference: str | None = None,
    user_id: int | None = None,
) -> InventoryTransaction:
    """
    Record a manual stock movement (purchase, adjustment, waste).

    Ledger append and stock update commit together or not at all.
    Sales are rejected: they only enter the ledger through order creation.
    """
    if tx_type == "sale":
        raise ValidationError("sale entries are created by orders, not manually")
    validate_delta_sign(tx_type, quantity_delta)

    if total_cost_cents is None and unit_cost_cents is not None:
        total_cost_cents = unit_cost_cents * abs(quantity_delta)

    with unit_of_work():
        product = db.session.query(Product).filter_by(id=product_id).first()
        if product is None:
            raise NotFoundError("Product not found")

        tx = append_transaction(
            product_id=product.id,
            tx_type=tx_type,
            quantity_delta=quantity_delta,
            unit_cost_cents=unit_cost_cents,
            total_cost_cents=total_cost_cents,
            reference=reference,
            user_id=user_id,
        )
        apply_stock_delta(product.id, quantity_delta)

    return tx


def list_inventory_transactions(
    product_id: int | None = None,
    limit: int | None = LEDGER_DEFAULT_LIMIT,
) -> list[InventoryTransaction]:
    """
    Ledger entries, newest first.

    Filtered by product: full history. Unfiltered: the latest `limit` rows.
    """
    query = db.session.query(InventoryTransaction)
    if product_id is not None:
        query = query.filter(InventoryTransaction.product_id == product_id)
    query = query.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
    if product_id is None and limit:
        query = query.limit(limit)
    return query.all()


def get_low_stock_products() -> list[Product]:
    """Active, tracked products at or below their threshold. Untracked products never qualify."""
    return (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.track_inventory.is_(True),
            Product.stock_quantity <= Product.low_stock_threshold,
        )
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )


def count_low_stock_products() -> int:
    return (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.track_inventory.is_(True),
            Product.stock_quantity <= Product.low_stock_threshold,
        )
        .count()
    )
