from tpv import commands
from tpv.commands import AppState, init_app


def test_commands_before_init_report_not_initialized():
    state = AppState()
    assert commands.init_database(state) == (True, "Database initialized")
    assert commands.get_products(state) == (False, "Database not initialized")
    assert commands.create_order(state, {"id": 1, "date": "x", "total": 1}) == (False, "Database not initialized")
    assert commands.get_license_status(state) == (False, "Database not initialized")
    assert commands.verify_database(state) == (False, "Database not initialized")


def test_init_app_uses_given_path(tmp_path):
    state = init_app(str(tmp_path / "app.db"))
    try:
        assert commands.init_database(state) == (True, "Database already initialized")
        assert (tmp_path / "app.db").exists()
    finally:
        state.db.close()


def test_order_commands_round_trip(db):
    state = AppState(db)
    assert commands.create_product(state, {"id": 1, "name": "Coffee", "price": 2.5, "category": "Drinks"}) == (True, None)
    ok, _ = commands.create_order(state, {
        "id": 10, "date": "2026-01-05", "total": 5.0,
        "items": [{"productId": 1, "name": "Coffee", "price": 2.5, "quantity": 2}],
    })
    assert ok

    ok, orders = commands.get_orders(state)
    assert ok
    assert orders[0]["total"] == 5.0
    assert orders[0]["items"][0]["quantity"] == 2

    assert commands.delete_order(state, 10) == (True, None)
    assert commands.get_orders(state) == (True, [])


def test_invalid_payload_is_reported_as_message(db):
    ok, message = commands.create_product(AppState(db), {"id": 1, "name": "Coffee"})
    assert ok is False
    assert "price" in message


def test_export_import_and_clear_commands(db):
    state = AppState(db)
    commands.create_category(state, {"id": 1, "name": "Drinks"})
    commands.create_user(state, {"id": 1, "name": "Ana", "pin": "1234", "pinnedProductIds": [1]})

    ok, snapshot = commands.export_data(state)
    assert ok
    assert snapshot["users"][0]["pinnedProductIds"] == [1]

    assert commands.clear_all_data(state) == (True, None)
    assert commands.get_categories(state) == (True, [])

    assert commands.import_data(state, snapshot) == (True, None)
    assert commands.get_categories(state)[1][0]["name"] == "Drinks"


def test_activate_license_command(db, license_server):
    state = AppState(db)
    license_server.response = {"valid": False, "expires_at": None, "user_email": "",
                               "license_type": "", "error": "not found"}
    ok, status = commands.activate_license(state, "BADKEY", "a@b.com")
    assert ok
    assert status["isActivated"] is False
    assert status["errorMessage"] == "not found"

    ok, status = commands.get_license_status(state)
    assert ok
    assert status["isActivated"] is False
    assert commands.clear_license(state) == (True, None)


def test_backup_command(db, tmp_path):
    ok, path = commands.backup_database(AppState(db), str(tmp_path / "bk"))
    assert ok
    assert path.endswith(".db")


def test_non_object_payloads_are_reported_as_message(db):
    state = AppState(db)
    ok, message = commands.create_product(state, None)
    assert ok is False
    assert "Produto" in message

    ok, _ = commands.create_table(state, ["Mesa 1"])
    assert ok is False

    ok, _ = commands.import_data(state, {
        "products": [], "categories": [],
        "orders": [{"id": 1, "date": "2026-01-05", "total": 1.0, "items": ["x"]}],
    })
    assert ok is False
    assert commands.get_orders(state) == (True, [])


def test_order_items_are_returned_with_product_id_as_id(db):
    state = AppState(db)
    ok, _ = commands.create_order(state, {
        "id": 11, "date": "2026-01-05", "total": 3.0,
        "items": [{"id": 7, "name": "Tea", "price": 1.5, "quantity": 2}],
    })
    assert ok

    item = commands.get_orders(state)[1][0]["items"][0]
    assert item["id"] == 7
    assert "productId" not in item

    ok, snapshot = commands.export_data(state)
    assert ok
    assert snapshot["orders"][0]["items"][0]["id"] == 7
