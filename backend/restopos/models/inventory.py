from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


TRANSACTION_TYPES = ("sale", "purchase", "adjustment", "waste")


class InventoryTransaction(db.Model):
    """
    Append-only stock ledger.

    IMMUTABLE: Rows are never updated or deleted. There is no service
    function or route that modifies an existing entry.

    SIGN CONVENTION (quantity_delta):
    - sale, waste: negative
    - purchase: positive
    - adjustment: any non-zero value

    For a tracked product, stock_quantity after creation moves by exactly
    the sum of its ledger deltas, because both writes happen in one DB
    transaction (order_service.create_order, inventory_service.create_inventory_transaction).
    """
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        db.Index("ix_invtx_product_created", "product_id", "created_at"),
        db.Index("ix_invtx_type_created", "type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False, index=True)
    quantity_delta = db.Column(db.Integer, nullable=False)

    unit_cost_cents = db.Column(db.Integer, nullable=True)
    total_cost_cents = db.Column(db.Integer, nullable=True)

    # Free text, e.g. "Order #ORD-20260115-0007" or "Supplier invoice 1182"
    reference = db.Column(db.String(255), nullable=True)

    # Set for sale entries; no FK so ledger rows survive order deletion
    order_id = db.Column(db.Integer, nullable=True, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("inventory_transactions", lazy=True))

    def __repr__(self) -> str:
        return f"<InventoryTransaction id={self.id} product_id={self.product_id} type={self.type} delta={self.quantity_delta}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "type": self.type,
            "quantity_delta": self.quantity_delta,
            "unit_cost_cents": self.unit_cost_cents,
            "total_cost_cents": self.total_cost_cents,
            "reference": self.reference,
            "order_id": self.order_id,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
