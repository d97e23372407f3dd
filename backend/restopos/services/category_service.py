# Overview: Service-layer operations for product categories.

from __future__ import annotations

from ..extensions import db
from ..models import Category
from ..validation import ConflictError, NotFoundError


def list_categories() -> list[Category]:
    return (
        db.session.query(Category)
        .filter(Category.is_active.is_(True))
        .order_by(Category.name.asc())
        .all()
    )


def get_category(category_id: int) -> Category:
    category = db.session.query(Category).filter_by(id=category_id).first()
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _check_name_unique(name: str | None, category_id: int | None = None) -> None:
    if not name:
        return
    query = db.session.query(Category.id).filter(
        Category.name == name,
        Category.is_active.is_(True),
    )
    if category_id is not None:
        query = query.filter(Category.id != category_id)
    if query.first():
        raise ConflictError("A category with this name already exists.")


def create_category(*, patch: dict) -> Category:
    _check_name_unique(patch.get("name"))
    category = Category(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(*, category_id: int, patch: dict) -> Category:
    category = get_category(category_id)
    if "name" in patch:
        _check_name_unique(patch["name"], category_id=category.id)
    for key, value in patch.items():
        setattr(category, key, value)
    db.session.commit()
    return category


def delete_category(*, category_id: int) -> Category:
    """Soft delete; products keep their category_id."""
    category = get_category(category_id)
    category.is_active = False
    db.session.commit()
    return category
