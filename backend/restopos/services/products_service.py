# backend/restopos/services/products_service.py
"""
Products Service

Catalog CRUD for products. Stock is NOT adjusted here through the ledger:
a stock_quantity in a create/update patch is a direct edit, the same as
setting the counter by hand in the product form. Sales go through
order_service and counted movements through inventory_service.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, NotFoundError, ValidationError


PRODUCT_MUTABLE_FIELDS = {
    "sku",
    "name",
    "description",
    "category_id",
    "price_cents",
    "cost_cents",
    "track_inventory",
    "stock_quantity",
    "low_stock_threshold",
    "is_active",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_category(category_id: int | None) -> None:
    if category_id is None:
        return
    exists = db.session.query(Category.id).filter_by(id=category_id, is_active=True).first()
    if not exists:
        raise ValidationError("Category not found")


def _check_sku_unique(sku: str | None, product_id: int | None = None) -> None:
    if not sku:
        return
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first():
        raise ConflictError("SKU already exists.")


def list_products(
    *,
    category_id: int | None = None,
    include_inactive: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing ordered by name, with optional pagination.

    Returns a dict with 'items', 'count' and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)
    if not include_inactive:
        base_query = base_query.filter(Product.is_active.is_(True))
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If SKU already exists
        ValidationError: If category_id does not reference an active category
    """
    _check_category(patch.get("category_id"))
    _check_sku_unique(patch.get("sku"))

    p = Product()
    apply_product_patch(p, patch)
    db.session.add(p)
    db.session.commit()
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    p = get_product(product_id)

    if "category_id" in patch:
        _check_category(patch["category_id"])
    if "sku" in patch:
        _check_sku_unique(patch["sku"], product_id=p.id)

    apply_product_patch(p, patch)
    db.session.commit()
    return p


def delete_product(*, product_id: int) -> Product:
    """Soft-delete only: preserve IDs and historical order lines."""
    p = get_product(product_id)
    if p.is_active:
        p.is_active = False
        db.session.commit()
    return p
