# Overview: Service-layer operations for the restaurant profile and business timezone.

from __future__ import annotations

from datetime import tzinfo

from flask import current_app

from ..extensions import db
from ..models import Restaurant
from ..validation import ValidationError
from restopos.time_utils import resolve_timezone


def get_restaurant() -> Restaurant | None:
    return db.session.query(Restaurant).order_by(Restaurant.id.asc()).first()


def upsert_restaurant(patch: dict) -> Restaurant:
    """Update the single restaurant row, creating it on first save."""
    restaurant = get_restaurant()
    if restaurant is None:
        if not patch.get("name"):
            raise ValidationError("name is required")
        restaurant = Restaurant(**patch)
        db.session.add(restaurant)
    else:
        for key, value in patch.items():
            setattr(restaurant, key, value)

    db.session.commit()
    return restaurant


def business_timezone() -> tzinfo:
    """
    Timezone used to cut business days (dashboard stats, order numbers).

    Restaurant.timezone when set, else the POS_TIMEZONE config value.
    """
    restaurant = get_restaurant()
    if restaurant is not None and restaurant.timezone:
        return resolve_timezone(restaurant.timezone)
    return resolve_timezone(current_app.config.get("POS_TIMEZONE"))
