"""
Request schemas for the order and inventory endpoints.

Each schema is a frozen dataclass built with from_json(), which coerces
and validates the raw JSON body before anything reaches a service.
Failures raise ValidationError with a message safe to show the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .models import ORDER_TYPES, ORDER_STATUSES, PAYMENT_STATUSES, TRANSACTION_TYPES
from .validation import ValidationError, check_cents, coerce_int


def _require_dict(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{name} must be an object")
    return value


def _to_text(value: Any, key: str, max_length: int) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return text


def _choice(value: Any, key: str, allowed: tuple[str, ...], default: str | None = None) -> str:
    if value is None and default is not None:
        return default
    if not isinstance(value, str) or value not in allowed:
        raise ValidationError(f"{key} must be one of: {', '.join(allowed)}")
    return value


def _cents(data: dict, key: str, *, required: bool = True) -> int | None:
    if data.get(key) is None:
        if required:
            raise ValidationError(f"{key} is required")
        return None
    value = coerce_int(key, data[key])
    check_cents(key, value)
    return value


@dataclass(frozen=True)
class OrderItemRequest:
    product_id: int
    quantity: int
    unit_price_cents: int
    total_price_cents: int

    @classmethod
    def from_json(cls, data: Any, index: int) -> "OrderItemRequest":
        data = _require_dict(data, f"items[{index}]")
        if data.get("product_id") is None:
            raise ValidationError(f"items[{index}].product_id is required")
        if data.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")

        product_id = coerce_int("product_id", data["product_id"])
        quantity = coerce_int("quantity", data["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")

        unit_price = _cents(data, "unit_price_cents")
        total_price = _cents(data, "total_price_cents", required=False)
        if total_price is None:
            total_price = unit_price * quantity
        elif total_price != unit_price * quantity:
            raise ValidationError(
                f"items[{index}].total_price_cents must equal quantity * unit_price_cents"
            )

        return cls(
            product_id=product_id,
            quantity=quantity,
            unit_price_cents=unit_price,
            total_price_cents=total_price,
        )


@dataclass(frozen=True)
class OrderHeader:
    type: str
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    payment_status: str = "pending"
    table_number: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    notes: str | None = None

    @classmethod
    def from_json(cls, data: Any) -> "OrderHeader":
        data = _require_dict(data, "order")
        order_type = _choice(data.get("type"), "type", ORDER_TYPES)

        # Party fields only apply to the order types that use them
        table_number = _to_text(data.get("table_number"), "table_number", 16)
        customer_name = _to_text(data.get("customer_name"), "customer_name", 255)
        customer_phone = _to_text(data.get("customer_phone"), "customer_phone", 32)

        return cls(
            type=order_type,
            subtotal_cents=_cents(data, "subtotal_cents"),
            tax_cents=_cents(data, "tax_cents", required=False) or 0,
            total_cents=_cents(data, "total_cents"),
            payment_status=_choice(data.get("payment_status"), "payment_status", PAYMENT_STATUSES, "pending"),
            table_number=table_number if order_type == "dine-in" else None,
            customer_name=customer_name if order_type != "dine-in" else None,
            customer_phone=customer_phone if order_type == "delivery" else None,
            notes=_to_text(data.get("notes"), "notes", 2000),
        )


@dataclass(frozen=True)
class CreateOrderRequest:
    """Body of POST /api/orders: {"order": {...}, "items": [...]}."""
    order: OrderHeader
    items: tuple[OrderItemRequest, ...]

    @classmethod
    def from_json(cls, payload: Any) -> "CreateOrderRequest":
        payload = _require_dict(payload, "Request body")
        header = OrderHeader.from_json(payload.get("order"))

        raw_items = payload.get("items")
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")
        if not raw_items:
            raise ValidationError("Order must contain at least one item")
        items = tuple(OrderItemRequest.from_json(item, i) for i, item in enumerate(raw_items))

        line_sum = sum(item.total_price_cents for item in items)
        if header.subtotal_cents != line_sum:
            raise ValidationError(
                f"subtotal_cents ({header.subtotal_cents}) must equal the sum of item totals ({line_sum})"
            )
        if header.total_cents != header.subtotal_cents + header.tax_cents:
            raise ValidationError("total_cents must equal subtotal_cents + tax_cents")

        return cls(order=header, items=items)


@dataclass(frozen=True)
class StatusUpdateRequest:
    status: str

    @classmethod
    def from_json(cls, payload: Any) -> "StatusUpdateRequest":
        payload = _require_dict(payload, "Request body")
        return cls(status=_choice(payload.get("status"), "status", ORDER_STATUSES))


@dataclass(frozen=True)
class PaymentStatusUpdateRequest:
    payment_status: str

    @classmethod
    def from_json(cls, payload: Any) -> "PaymentStatusUpdateRequest":
        payload = _require_dict(payload, "Request body")
        return cls(
            payment_status=_choice(payload.get("payment_status"), "payment_status", PAYMENT_STATUSES)
        )


@dataclass(frozen=True)
class InventoryTransactionRequest:
    product_id: int
    type: str
    quantity_delta: int
    unit_cost_cents: int | None = None
    total_cost_cents: int | None = None
    reference: str | None = None

    @classmethod
    def from_json(cls, payload: Any) -> "InventoryTransactionRequest":
        payload = _require_dict(payload, "Request body")
        for key in ("product_id", "type", "quantity_delta"):
            if payload.get(key) is None:
                raise ValidationError(f"{key} is required")

        return cls(
            product_id=coerce_int("product_id", payload["product_id"]),
            type=_choice(payload["type"], "type", TRANSACTION_TYPES),
            quantity_delta=coerce_int("quantity_delta", payload["quantity_delta"]),
            unit_cost_cents=_cents(payload, "unit_cost_cents", required=False),
            total_cost_cents=_cents(payload, "total_cost_cents", required=False),
            reference=_to_text(payload.get("reference"), "reference", 255),
        )
