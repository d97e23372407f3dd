# Overview: Flask API routes for dashboard analytics; parses input and returns JSON responses.

"""
Dashboard API routes

Time semantics:
- date is a business-day date (YYYY-MM-DD) in the restaurant timezone.
- start / end are ISO-8601 datetimes; backend normalizes to UTC-naive.
- Revenue figures count paid orders only.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import reporting_service, order_service
from ..validation import ValidationError
from ..decorators import require_auth
from restopos.time_utils import parse_iso_date, parse_iso_datetime


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    """
    Query params:
    - date: YYYY-MM-DD (optional, defaults to today in the business timezone)

    Returns total_revenue_cents, total_orders, average_order_value_cents, low_stock_count.
    """
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    try:
        return jsonify(reporting_service.get_dashboard_stats(day)), 200
    except Exception:
        current_app.logger.exception("Failed to compute dashboard stats")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/top-products")
@require_auth
def top_products_route():
    """
    Query params:
    - limit: int (default 5, max 100)
    - start, end: ISO-8601 datetimes. start alone selects that business day.
    """
    limit = request.args.get("limit", default=reporting_service.TOP_PRODUCTS_DEFAULT_LIMIT, type=int)

    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    try:
        items = reporting_service.get_top_products(limit=limit, start=start, end=end)
        return jsonify({"items": items, "count": len(items)}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute top products")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/recent-orders")
@require_auth
def recent_orders_route():
    limit = request.args.get("limit", default=10, type=int)
    limit = max(1, min(limit, 50))
    try:
        orders = order_service.list_recent_orders(limit=limit)
        return jsonify({"items": [o.to_dict(include_items=True) for o in orders]}), 200
    except Exception:
        current_app.logger.exception("Failed to load recent orders")
        return jsonify({"error": "Internal server error"}), 500
