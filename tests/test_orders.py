import pytest

from tpv.errors import StorageError
from tpv.models import Order, OrderItem, Product
from tpv.services import OrderService, ProductService


def _item_key(item):
    return (item.product_id, item.name, item.price, item.quantity, item.category)


def test_coffee_order_scenario(db, coffee, coffee_order):
    ProductService(db).upsert(coffee)
    orders = OrderService(db)
    orders.upsert(coffee_order)

    stored = orders.list()
    assert len(stored) == 1
    assert stored[0].total == 5.0
    assert len(stored[0].items) == 1
    assert stored[0].items[0].quantity == 2

    orders.delete(10)
    assert orders.list() == []
    assert orders.list_items(10) == []


def test_order_defaults_are_persisted(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)
    stored = orders.list()[0]
    assert stored.payment_method == "cash"
    assert stored.status == "inProgress"
    assert stored.ticket_path is None


def test_upsert_replaces_item_set(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)

    replacement = Order(
        id=10,
        date=coffee_order.date,
        total=7.0,
        items=[
            OrderItem(product_id=2, name="Croissant", price=1.5, quantity=2, category="Food"),
            OrderItem(product_id=3, name="Juice", price=4.0, quantity=1),
        ],
    )
    orders.upsert(replacement)

    stored = orders.list()
    assert len(stored) == 1
    assert sorted(map(_item_key, stored[0].items)) == sorted(map(_item_key, replacement.items))


def test_upsert_with_empty_items_clears_items(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)
    coffee_order.items = []
    orders.upsert(coffee_order)
    assert orders.list_items(10) == []


def test_duplicate_items_are_kept_as_multiset(db):
    orders = OrderService(db)
    item = OrderItem(product_id=1, name="Coffee", price=2.5, quantity=1)
    orders.upsert(Order(id=1, date="2026-01-05", total=5.0, items=[item, item]))
    assert len(orders.list_items(1)) == 2


def test_failed_item_insert_keeps_previous_state(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)

    broken = Order(
        id=10,
        date="2026-02-01",
        total=99.0,
        items=[
            OrderItem(product_id=5, name="Tea", price=2.0),
            OrderItem(product_id=6, name=None, price=1.0),
        ],
    )
    with pytest.raises(StorageError):
        orders.upsert(broken)

    stored = orders.list()
    assert len(stored) == 1
    assert stored[0].total == 5.0
    assert stored[0].date == coffee_order.date
    assert [_item_key(i) for i in stored[0].items] == [_item_key(coffee_order.items[0])]


def test_update_replaces_header_and_items(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)

    coffee_order.status = "completed"
    coffee_order.total_paid = 10.0
    coffee_order.change = 5.0
    coffee_order.items = [OrderItem(product_id=1, name="Coffee", price=2.5, quantity=3)]
    orders.update(coffee_order)

    stored = orders.list()[0]
    assert stored.status == "completed"
    assert stored.change == 5.0
    assert [i.quantity for i in stored.items] == [3]


def test_update_missing_order_inserts_nothing(db, coffee_order):
    orders = OrderService(db)
    orders.update(coffee_order)
    assert orders.list() == []
    assert orders.list_items(coffee_order.id) == []


def test_delete_missing_order_is_noop(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)
    orders.delete(12345)
    assert len(orders.list()) == 1


def test_item_snapshot_is_independent_of_product(db, coffee, coffee_order):
    products = ProductService(db)
    products.upsert(coffee)
    OrderService(db).upsert(coffee_order)

    products.upsert(Product(id=1, name="Coffee", price=3.9, category="Drinks"))
    item = OrderService(db).list_items(10)[0]
    assert item.price == 2.5

    products.delete(1)
    assert len(OrderService(db).list_items(10)) == 1


def test_items_of_different_orders_do_not_mix(db, coffee_order):
    orders = OrderService(db)
    orders.upsert(coffee_order)
    orders.upsert(Order(id=11, date="2026-01-06", total=1.5,
                        items=[OrderItem(product_id=2, name="Croissant", price=1.5)]))
    orders.delete(11)
    assert len(orders.list_items(10)) == 1


def test_concurrent_writers_never_leave_half_replaced_items(db):
    import threading

    orders = OrderService(db)
    errors = []

    def writer(quantity):
        try:
            for _ in range(25):
                items = [OrderItem(product_id=n, name=f"P{n}", price=1.0, quantity=quantity) for n in range(4)]
                orders.upsert(Order(id=1, date="2026-01-05", total=4.0 * quantity, items=items))
        except Exception as e:  # pragma: no cover - reportado abaixo
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(q,)) for q in (1, 2, 3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    stored = orders.list()[0]
    assert len(stored.items) == 4
    assert len({i.quantity for i in stored.items}) == 1
    assert stored.total == 4.0 * stored.items[0].quantity
