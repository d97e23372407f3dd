from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


class Restaurant(db.Model):
    """
    Restaurant profile (single row).

    WHY: Receipt header data, tax rate and the business timezone used to
    cut dashboard days all come from here instead of deployment config.
    """
    __tablename__ = "restaurants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    currency = db.Column(db.String(3), nullable=False, default="USD")
    # 1000 bps = 10.00%
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    timezone = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Restaurant id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "currency": self.currency,
            "tax_rate_bps": self.tax_rate_bps,
            "timezone": self.timezone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
