# tests/test_cli.py
import cli
from storeadmin.models import Category, Product


def test_reload_after_add_lists_the_new_product(logged_in, monkeypatch, capsys):
    def add(session, product):
        return session.client.create_product(session.context(), {"name": "Lamp", "basePrice": 20})

    monkeypatch.setattr(cli, "run_product_form", add)
    cli.products_screen(logged_in, "add")
    assert "Lamp" in capsys.readouterr().out
    assert logged_in.is_authenticated


def test_session_expiring_before_product_reload_logs_out(logged_in, api, token_store, monkeypatch):
    def add_then_expire(session, product):
        api.post("/reset")  # drops every issued token server side
        return Product(name="Lamp")

    monkeypatch.setattr(cli, "run_product_form", add_then_expire)
    cli.products_screen(logged_in, "add")
    assert (logged_in.user, logged_in.token, token_store.load()) == (None, None, None)
    assert cli.status_message == "Error: session expired, please log in again"


def test_session_expiring_before_category_reload_logs_out(logged_in, api, token_store, monkeypatch):
    def add_then_expire(session, category):
        api.post("/reset")
        return Category(name="Lighting")

    monkeypatch.setattr(cli, "run_category_form", add_then_expire)
    cli.categories_screen(logged_in, "add")
    assert (logged_in.user, logged_in.token, token_store.load()) == (None, None, None)
