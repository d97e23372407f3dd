# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

# backend/restopos/routes/inventory.py
"""
Inventory ledger routes.

The ledger is append-only: there is no update or delete route.
Manual entries (purchase, adjustment, waste) move stock in the same
transaction as the ledger row. Sale entries come only from orders.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..schemas import InventoryTransactionRequest
from ..services import inventory_service
from ..validation import ValidationError, NotFoundError, PersistenceError, coerce_int
from ..decorators import require_auth, require_role


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/transactions")
@require_auth
def list_transactions_route():
    """
    Query params:
    - product_id: int (optional). Filtered: full history. Unfiltered: latest 100.
    """
    raw_product_id = request.args.get("product_id")
    try:
        product_id = coerce_int("product_id", raw_product_id) if raw_product_id else None
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    txs = inventory_service.list_inventory_transactions(product_id=product_id)
    return jsonify({"items": [t.to_dict() for t in txs], "count": len(txs)}), 200


@inventory_bp.post("/transactions")
@require_auth
@require_role("admin", "manager")
def create_transaction_route():
    """
    Record a purchase, adjustment or waste.

    Body: {product_id, type, quantity_delta, unit_cost_cents?, total_cost_cents?, reference?}
    """
    try:
        req = InventoryTransactionRequest.from_json(request.get_json(silent=True))
        tx = inventory_service.create_inventory_transaction(
            product_id=req.product_id,
            tx_type=req.type,
            quantity_delta=req.quantity_delta,
            unit_cost_cents=req.unit_cost_cents,
            total_cost_cents=req.total_cost_cents,
            reference=req.reference,
            user_id=g.current_user.id,
        )
        current_app.logger.info(
            "Inventory transaction %s (%s %+d) for product %s",
            tx.id, tx.type, tx.quantity_delta, tx.product_id,
        )
        return jsonify({"transaction": tx.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to persist inventory transaction")
        return jsonify({"error": "Failed to save inventory transaction"}), 500
    except Exception:
        current_app.logger.exception("Failed to create inventory transaction")
        return jsonify({"error": "Internal server error"}), 500
