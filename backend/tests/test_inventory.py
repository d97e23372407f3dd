"""
Inventory ledger and low-stock tests.

Verifies:
- Manual entries write ledger row and stock delta together
- Sign rules per transaction type; sale entries only come from orders
- Low-stock filter ignores untracked and inactive products
"""

import pytest
from sqlalchemy.exc import OperationalError

from restopos.extensions import db
from restopos.models import InventoryTransaction, Product
from restopos.services import inventory_service
from restopos.validation import ValidationError, NotFoundError, PersistenceError


# =============================================================================
# LEDGER APPENDS
# =============================================================================


class TestCreateInventoryTransaction:
    def test_purchase_increases_stock(self, db_session, burger, admin_user):
        tx = inventory_service.create_inventory_transaction(
            product_id=burger.id,
            tx_type="purchase",
            quantity_delta=20,
            unit_cost_cents=380,
            reference="Supplier invoice 1182",
            user_id=admin_user.id,
        )

        db.session.expire_all()
        assert db.session.get(Product, burger.id).stock_quantity == 30
        assert tx.total_cost_cents == 380 * 20
        assert tx.created_by_user_id == admin_user.id

    def test_waste_and_adjustment(self, db_session, burger):
        inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="waste", quantity_delta=-2)
        inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="adjustment", quantity_delta=-1)
        inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="adjustment", quantity_delta=4)

        db.session.expire_all()
        assert db.session.get(Product, burger.id).stock_quantity == 11

    def test_adjustment_below_zero_is_allowed(self, db_session, burger):
        inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="adjustment", quantity_delta=-15)

        db.session.expire_all()
        assert db.session.get(Product, burger.id).stock_quantity == -5

    @pytest.mark.parametrize(
        "tx_type,delta",
        [
            ("purchase", -3),
            ("waste", 3),
            ("adjustment", 0),
            ("theft", -1),
        ],
    )
    def test_sign_rules(self, db_session, burger, tx_type, delta):
        with pytest.raises(ValidationError):
            inventory_service.create_inventory_transaction(
                product_id=burger.id, tx_type=tx_type, quantity_delta=delta
            )
        assert db.session.query(InventoryTransaction).count() == 0

    def test_manual_sale_rejected(self, db_session, burger):
        with pytest.raises(ValidationError):
            inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="sale", quantity_delta=-1)

    def test_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.create_inventory_transaction(product_id=424242, tx_type="purchase", quantity_delta=1)
        assert db.session.query(InventoryTransaction).count() == 0

    def test_stock_update_failure_discards_ledger_row(self, db_session, monkeypatch, burger):
        def broken_delta(product_id, quantity_delta):
            raise OperationalError("UPDATE products", {}, Exception("disk full"))

        monkeypatch.setattr(inventory_service, "apply_stock_delta", broken_delta)

        with pytest.raises(PersistenceError):
            inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="purchase", quantity_delta=5)

        db.session.expire_all()
        assert db.session.query(InventoryTransaction).count() == 0
        assert db.session.get(Product, burger.id).stock_quantity == 10


class TestListInventoryTransactions:
    def test_newest_first_and_filtered(self, db_session, burger, fries):
        first = inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="purchase", quantity_delta=1)
        other = inventory_service.create_inventory_transaction(product_id=fries.id, tx_type="purchase", quantity_delta=1)
        last = inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="waste", quantity_delta=-1)

        assert [t.id for t in inventory_service.list_inventory_transactions()] == [last.id, other.id, first.id]
        assert [t.id for t in inventory_service.list_inventory_transactions(product_id=burger.id)] == [last.id, first.id]

    def test_unfiltered_list_is_capped(self, db_session, burger):
        for _ in range(3):
            inventory_service.create_inventory_transaction(product_id=burger.id, tx_type="purchase", quantity_delta=1)
        assert len(inventory_service.list_inventory_transactions(limit=2)) == 2


# =============================================================================
# LOW STOCK
# =============================================================================


class TestLowStock:
    def test_threshold_is_inclusive(self, db_session, burger):
        burger.stock_quantity = 5
        db.session.commit()
        assert [p.id for p in inventory_service.get_low_stock_products()] == [burger.id]

    def test_untracked_products_never_low(self, db_session, coffee):
        # stock 0 <= threshold 5, but tracking is off
        assert inventory_service.get_low_stock_products() == []
        assert inventory_service.count_low_stock_products() == 0

    def test_inactive_products_excluded(self, db_session, burger):
        burger.stock_quantity = 0
        burger.is_active = False
        db.session.commit()
        assert inventory_service.get_low_stock_products() == []

    def test_negative_stock_is_low(self, db_session, burger, fries):
        burger.stock_quantity = -3
        db.session.commit()
        assert inventory_service.count_low_stock_products() == 1
