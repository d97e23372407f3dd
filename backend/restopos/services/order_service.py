"""
Order Service - order creation, status changes and order reads

WHY: Creating an order is the only path that turns a sale into stock
depletion. Header, lines, stock decrements and "sale" ledger entries are
written in ONE unit of work: a failure anywhere leaves no order, no lines
and no stock/ledger drift.

After creation an order only changes status and payment_status.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Order, OrderItem, Product, ORDER_STATUSES, PAYMENT_STATUSES
from ..schemas import OrderHeader, OrderItemRequest
from ..validation import NotFoundError, ValidationError
from restopos.time_utils import local_date, utcnow
from . import inventory_service
from .concurrency import unit_of_work
from .document_service import next_order_number
from .restaurant_service import business_timezone


ORDER_LIST_DEFAULT_LIMIT = 50


def _validate_items(items: Sequence[OrderItemRequest]) -> None:
    if not items:
        raise ValidationError("Order must contain at least one item")
    for i, item in enumerate(items):
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError(f"items[{i}].quantity must be > 0")


def _load_products(items: Sequence[OrderItemRequest]) -> dict[int, Product]:
    product_ids = {item.product_id for item in items}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    }
    missing = sorted(product_ids - products.keys())
    if missing:
        raise ValidationError(
            "Product not found: " + ", ".join(str(pid) for pid in missing),
        )
    return products


def create_order(
    order: OrderHeader,
    items: Sequence[OrderItemRequest],
    *,
    user_id: int | None = None,
) -> Order:
    """
    Persist an order with its lines and stock effects atomically.

    For each line whose product tracks inventory:
    - stock_quantity -= quantity (relative UPDATE)
    - one "sale" ledger entry with quantity_delta = -quantity and
      reference "Order #<order_number>"

    Totals are taken as given; the request schema checks them.

    Raises:
        ValidationError: empty items, quantity <= 0, unknown product
        PersistenceError: store failure (everything rolled back)
    """
    _validate_items(items)

    with unit_of_work():
        products = _load_products(items)

        now = utcnow()
        order_number = next_order_number(local_date(now, business_timezone()))

        new_order = Order(
            order_number=order_number,
            type=order.type,
            table_number=order.table_number,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            notes=order.notes,
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
            total_cents=order.total_cents,
            payment_status=order.payment_status,
            status="pending",
            created_by_user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        db.session.add(new_order)
        db.session.flush()  # assigns new_order.id for lines and ledger rows

        reference = f"Order #{order_number}"
        for position, item in enumerate(items, start=1):
            db.session.add(
                OrderItem(
                    order_id=new_order.id,
                    product_id=item.product_id,
                    position=position,
                    quantity=item.quantity,
                    unit_price_cents=item.unit_price_cents,
                    total_price_cents=item.total_price_cents,
                )
            )

            product = products[item.product_id]
            if not product.track_inventory:
                continue

            inventory_service.apply_stock_delta(product.id, -item.quantity)
            inventory_service.append_transaction(
                product_id=product.id,
                tx_type="sale",
                quantity_delta=-item.quantity,
                unit_cost_cents=product.cost_cents,
                total_cost_cents=product.cost_cents * item.quantity if product.cost_cents is not None else None,
                reference=reference,
                order_id=new_order.id,
                user_id=user_id,
            )

    return new_order


def get_order(order_id: int) -> Order:
    order = (
        db.session.query(Order)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
        .filter_by(id=order_id)
        .first()
    )
    if order is None:
        raise NotFoundError("Order not found")
    return order


def update_order_status(order_id: int, status: str) -> Order:
    """
    Overwrite the order status.

    Permissive by design decision: any status may follow any other,
    including backward moves (served -> pending) and repeated writes.
    """
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

    with unit_of_work():
        order = db.session.query(Order).filter_by(id=order_id).first()
        if order is None:
            raise NotFoundError("Order not found")
        order.status = status
        order.updated_at = utcnow()

    return order


def update_payment_status(order_id: int, payment_status: str) -> Order:
    if payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")

    with unit_of_work():
        order = db.session.query(Order).filter_by(id=order_id).first()
        if order is None:
            raise NotFoundError("Order not found")
        order.payment_status = payment_status
        order.updated_at = utcnow()

    return order


def list_orders(
    *,
    limit: int = ORDER_LIST_DEFAULT_LIMIT,
    status: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Order]:
    """Orders newest first with lines and products loaded. start/end are inclusive."""
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

    query = db.session.query(Order).options(
        selectinload(Order.items).selectinload(OrderItem.product)
    )
    if status is not None:
        query = query.filter(Order.status == status)
    if start is not None:
        query = query.filter(Order.created_at >= start)
    if end is not None:
        query = query.filter(Order.created_at <= end)

    return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()


def list_recent_orders(limit: int = 10) -> list[Order]:
    return list_orders(limit=limit)


def delete_order(order_id: int) -> None:
    """
    Remove an order and its lines in one unit.

    Ledger entries stay: the ledger is append-only and the stock those
    sales consumed is not returned.
    """
    with unit_of_work():
        order = db.session.query(Order).filter_by(id=order_id).first()
        if order is None:
            raise NotFoundError("Order not found")
        db.session.delete(order)
