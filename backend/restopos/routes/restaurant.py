# Overview: Flask API routes for the restaurant profile; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..services import restaurant_service
from ..models import Restaurant
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_restaurant,
    ValidationError,
)
from ..decorators import require_auth, require_role

RESTAURANT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address", "phone", "email", "currency", "tax_rate_bps", "timezone"},
    required_on_create=set(),
)

restaurant_bp = Blueprint("restaurant", __name__, url_prefix="/api/restaurant")


@restaurant_bp.get("")
@require_auth
def get_restaurant_route():
    restaurant = restaurant_service.get_restaurant()
    if restaurant is None:
        return jsonify({"error": "Restaurant not configured"}), 404
    return jsonify({"restaurant": restaurant.to_dict()}), 200


@restaurant_bp.put("")
@require_auth
@require_role("admin", "manager")
def update_restaurant_route():
    """Update the restaurant profile, creating it on first save (name required then)."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Restaurant, payload=payload, policy=RESTAURANT_POLICY, partial=True)
        enforce_rules_restaurant(patch)
        restaurant = restaurant_service.upsert_restaurant(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"restaurant": restaurant.to_dict()}), 200
