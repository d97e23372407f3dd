"""
Concurrent sale safety.

Two orders for the last unit of a product, created from two threads
against a file-backed SQLite database, must both succeed and leave the
counter at -1: no lost update, no floor.
"""

import threading
from types import SimpleNamespace

import pytest

from restopos import create_app
from restopos.extensions import db
from restopos.models import Product, InventoryTransaction, Order
from restopos.schemas import CreateOrderRequest
from restopos.services import order_service

from conftest import TEST_CONFIG, order_payload


@pytest.fixture
def file_app(tmp_path):
    config = dict(TEST_CONFIG)
    config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{tmp_path / 'concurrency.sqlite3'}"
    app = create_app(config)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _run_in_threads(target, count):
    barrier = threading.Barrier(count)
    results, errors = [], []

    def worker():
        barrier.wait()
        try:
            results.append(target())
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results, errors


class TestConcurrentSales:
    def test_two_sales_of_last_unit(self, file_app):
        with file_app.app_context():
            product = Product(name="Last Slice", price_cents=500, track_inventory=True, stock_quantity=1, low_stock_threshold=0)
            db.session.add(product)
            db.session.commit()
            product_id = product.id
            db.session.remove()

        line = SimpleNamespace(id=product_id, price_cents=500)

        def sell_one():
            with file_app.app_context():
                req = CreateOrderRequest.from_json(order_payload((line, 1), order_type="takeout"))
                order = order_service.create_order(req.order, req.items)
                number = order.order_number
                db.session.remove()
                return number

        numbers, errors = _run_in_threads(sell_one, 2)

        assert errors == []
        assert len(set(numbers)) == 2

        with file_app.app_context():
            assert db.session.get(Product, product_id).stock_quantity == -1
            deltas = [
                t.quantity_delta
                for t in db.session.query(InventoryTransaction).filter_by(product_id=product_id, type="sale")
            ]
            assert deltas == [-1, -1]
            assert db.session.query(Order).count() == 2
