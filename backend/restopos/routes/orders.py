# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

# backend/restopos/routes/orders.py
"""
Order API routes

Bodies are parsed into request schemas (restopos.schemas) before any
service call, so services only ever see well-formed input.

Time semantics:
- start / end accept ISO-8601 datetimes with Z/offsets; normalized to UTC-naive.
- Both bounds are inclusive.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..schemas import CreateOrderRequest, StatusUpdateRequest, PaymentStatusUpdateRequest
from ..services import order_service
from ..validation import ValidationError, NotFoundError, PersistenceError
from ..decorators import require_auth, require_role
from restopos.time_utils import parse_iso_datetime


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Create an order with its items.

    Body: {"order": {type, subtotal_cents, tax_cents, total_cents, ...},
           "items": [{product_id, quantity, unit_price_cents, total_price_cents}]}

    Stock decrements and sale ledger entries are written in the same unit.
    """
    try:
        req = CreateOrderRequest.from_json(request.get_json(silent=True))
        order = order_service.create_order(req.order, req.items, user_id=g.current_user.id)
        current_app.logger.info(
            "Order %s created (%s) by user %s with %d items",
            order.id, order.order_number, g.current_user.id, len(req.items),
        )
        return jsonify({"order": order.to_dict(include_items=True)}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError:
        current_app.logger.exception("Failed to persist order")
        return jsonify({"error": "Failed to save order"}), 500
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params:
    - limit: int (default 50, max 500)
    - status: pending | preparing | ready | served | cancelled
    - start, end: ISO-8601 datetimes (inclusive)
    """
    limit = request.args.get("limit", default=order_service.ORDER_LIST_DEFAULT_LIMIT, type=int)
    limit = max(1, min(limit, 500))

    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    try:
        orders = order_service.list_orders(
            limit=limit,
            status=request.args.get("status") or None,
            start=start,
            end=end,
        )
        return jsonify({
            "items": [o.to_dict(include_items=True) for o in orders],
            "count": len(orders),
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
        return jsonify({"order": order.to_dict(include_items=True)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/status")
@require_auth
def update_order_status_route(order_id: int):
    """
    Set the order status. Any status may follow any other.
    """
    try:
        req = StatusUpdateRequest.from_json(request.get_json(silent=True))
        order = order_service.update_order_status(order_id, req.status)
        current_app.logger.info("Order %s status set to %s", order.id, order.status)
        return jsonify({"order": order.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to persist order status")
        return jsonify({"error": "Failed to update order"}), 500
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/payment-status")
@require_auth
def update_payment_status_route(order_id: int):
    try:
        req = PaymentStatusUpdateRequest.from_json(request.get_json(silent=True))
        order = order_service.update_payment_status(order_id, req.payment_status)
        current_app.logger.info("Order %s payment status set to %s", order.id, order.payment_status)
        return jsonify({"order": order.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to persist payment status")
        return jsonify({"error": "Failed to update order"}), 500
    except Exception:
        current_app.logger.exception("Failed to update payment status")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_role("admin", "manager")
def delete_order_route(order_id: int):
    """
    Delete an order and its items. Ledger entries and stock are left as they are.

    Available to: admin, manager
    """
    try:
        order_service.delete_order(order_id)
        current_app.logger.info("Order %s deleted by user %s", order_id, g.current_user.id)
        return jsonify({"ok": True}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Failed to delete order"}), 500
