# Overview: Service-layer operations for reporting; dashboard analytics over persisted orders.

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func

from restopos.extensions import db
from restopos.models import Order, OrderItem, Product
from restopos.services.inventory_service import count_low_stock_products
from restopos.services.restaurant_service import business_timezone
from restopos.time_utils import local_date, local_day_bounds, utcnow, to_utc_z
from restopos.validation import ValidationError


TOP_PRODUCTS_DEFAULT_LIMIT = 5
TOP_PRODUCTS_MAX_LIMIT = 100


def _average_cents(total_cents: int, count: int) -> int:
    """Nearest-cent average, half-up. 0 when there is nothing to average."""
    if count <= 0:
        return 0
    return (2 * total_cents + count) // (2 * count)


def get_daily_stats(day: date | None = None) -> dict:
    """
    Revenue, order count and average order value for one business day.

    Only orders with payment_status == "paid" count. The day is cut at
    local midnight in the business timezone.
    """
    tz = business_timezone()
    if day is None:
        day = local_date(utcnow(), tz)
    start_dt, end_dt = local_day_bounds(day, tz)

    total_cents, order_count = db.session.query(
        func.coalesce(func.sum(Order.total_cents), 0),
        func.count(Order.id),
    ).filter(
        Order.created_at >= start_dt,
        Order.created_at < end_dt,
        Order.payment_status == "paid",
    ).one()

    total_cents = int(total_cents or 0)
    order_count = int(order_count or 0)

    return {
        "date": day.isoformat(),
        "total_revenue_cents": total_cents,
        "total_orders": order_count,
        "average_order_value_cents": _average_cents(total_cents, order_count),
    }


def get_top_products(
    limit: int = TOP_PRODUCTS_DEFAULT_LIMIT,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[dict]:
    """
    Best sellers by summed line quantity.

    Range rules:
    - start and end: start <= created_at <= end
    - start only: the business day containing start
    - end only: created_at <= end
    - neither: all time

    Ties on quantity are broken by product id ascending.
    """
    if limit < 1 or limit > TOP_PRODUCTS_MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {TOP_PRODUCTS_MAX_LIMIT}")
    if start is not None and end is not None and start > end:
        raise ValidationError("start must be before end")

    sold_quantity = func.sum(OrderItem.quantity).label("sold_quantity")
    revenue_cents = func.sum(OrderItem.total_price_cents).label("revenue_cents")

    query = (
        db.session.query(Product, sold_quantity, revenue_cents)
        .join(OrderItem, OrderItem.product_id == Product.id)
        .join(Order, Order.id == OrderItem.order_id)
    )

    if start is not None and end is not None:
        query = query.filter(Order.created_at >= start, Order.created_at <= end)
    elif start is not None:
        tz = business_timezone()
        day_start, day_end = local_day_bounds(local_date(start, tz), tz)
        query = query.filter(Order.created_at >= day_start, Order.created_at < day_end)
    elif end is not None:
        query = query.filter(Order.created_at <= end)

    rows = (
        query.group_by(Product.id)
        .order_by(sold_quantity.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "product": product.to_dict(),
            "sold_quantity": int(qty or 0),
            "revenue_cents": int(revenue or 0),
        }
        for product, qty, revenue in rows
    ]


def get_dashboard_stats(day: date | None = None) -> dict:
    stats = get_daily_stats(day)
    stats["low_stock_count"] = count_low_stock_products()
    stats["generated_at"] = to_utc_z(utcnow())
    return stats
