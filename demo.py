#!/usr/bin/env python
import tempfile
import threading
import time
from pathlib import Path

import requests
import uvicorn
from rich import print

from storeadmin import AdminClient, AuthSession, TokenStore
from storeadmin import rates, views
from storeadmin.forms import CategoryForm, ProductForm, submit_category, submit_product

HOST, PORT = "127.0.0.1", 8085
BASE_URL = f"http://{HOST}:{PORT}"


def start_stub_api():
    # Spins up the in-memory stand-in API in a background thread
    def _run():
        uvicorn.run("stubapi.main:app", host=HOST, port=PORT, log_level="error")
    t = threading.Thread(target=_run, daemon=True)
    t.start()
    for _ in range(50):
        try:
            requests.post(f"{BASE_URL}/reset", timeout=1)
            return
        except requests.exceptions.ConnectionError:
            time.sleep(0.1)
    raise SystemExit("stub API did not start")


def main():
    start_stub_api()
    token_file = Path(tempfile.mkdtemp()) / "token.json"
    session = AuthSession(AdminClient(base_url=BASE_URL), TokenStore(token_file))

    # -----------------------------
    # Login
    # -----------------------------
    print("Logging in...")
    print(session.login("admin", "admin123"))
    ctx = session.context()

    # -----------------------------
    # Categories
    # -----------------------------
    print("\nCreating a category...")
    _, category = submit_category(session.client, ctx, CategoryForm(name="Furniture", icon="🪑"))
    print(category)

    # -----------------------------
    # Products
    # -----------------------------
    print("\nCreating a product...")
    form = ProductForm(name="Desk", category=category.name, description="Oak desk", base_price="100")
    form = form.add_image_url("https://example.com/desk.jpg").add_image_url("https://example.com/desk-side.jpg")
    form = form.reorder_images(1, 0)
    form, product = submit_product(session.client, ctx, form)
    print(product)

    print("\nListing products...")
    view = views.products_view(session.client, ctx)
    for p in view.load().items:
        print(p.name, views.base_price_label(p), views.thumbnail_label(p), views.stock_label(p))

    print("\nPrice in INR:", rates.format_price(rates.display_price(product, "INR"), "INR"))

    # -----------------------------
    # Settings
    # -----------------------------
    print("\nSaving global exchange rates...")
    print(rates.save_global_rates(session.client, ctx, rates.update_rate(rates.default_rates(), "INR", "83")))

    # -----------------------------
    # Dashboard + cleanup
    # -----------------------------
    print("\nDashboard:", views.load_dashboard_stats(session.client, ctx))
    print("\nDeleting product...")
    view.delete(product.id, confirm=lambda: True)
    print("Products left:", len(view.items))

    session.logout()
    print("\nLogged out, authenticated =", session.is_authenticated)


if __name__ == "__main__":
    main()
