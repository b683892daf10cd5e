# tests/test_views.py
import pytest
import requests

from storeadmin import AdminClient, RequestContext
from storeadmin import views
from storeadmin.errors import AuthError, DeleteFailed
from storeadmin.forms import ProductForm, submit_product
from tests.conftest import BASE_URL, CannedSession


def test_create_list_delete_product_end_to_end(logged_in):
    ctx = logged_in.context()
    view = views.products_view(logged_in.client, ctx)
    assert view.load().is_empty

    form = ProductForm(name="Desk", category="Office", description="oak", base_price="100")
    form, saved = submit_product(logged_in.client, ctx, form)
    assert saved is not None
    state = view.after_save()

    assert state.status == views.LOADED
    [row] = state.items
    assert views.thumbnail_label(row) == "No image"
    assert views.image_count_label(row) == "0 images"
    assert views.base_price_label(row) == "$100"
    assert views.stock_label(row) == "In Stock"
    assert views.featured_label(row) == "-"
    assert row.exchange_rates["INR"] == 82.5

    assert view.delete(row.id, confirm=lambda: True) is True
    assert view.state.items == ()
    assert logged_in.client.list_products(ctx) == []


def test_delete_declined_sends_nothing(logged_in, recorder):
    ctx = logged_in.context()
    _, saved = submit_product(logged_in.client, ctx, ProductForm(name="Desk", base_price="1"))
    view = views.products_view(logged_in.client, ctx)
    view.load()
    before = len(recorder.calls)
    assert view.delete(saved.id, confirm=lambda: False) is False
    assert len(recorder.calls) == before
    assert len(view.items) == 1


def test_delete_failure_leaves_list_unchanged(logged_in):
    ctx = logged_in.context()
    logged_in.client.create_category(ctx, {"name": "Toys"})
    view = views.categories_view(logged_in.client, ctx)
    state = view.load()
    with pytest.raises(DeleteFailed, match="Error deleting category"):
        view.delete("missing-id", confirm=lambda: True)
    assert view.state is state


class _Broken:
    def request(self, method, url, **kwargs):
        raise requests.exceptions.ConnectionError("down")


def test_failed_fetch_is_a_distinct_error_state():
    client = AdminClient(base_url=BASE_URL, session=_Broken())
    view = views.categories_view(client, RequestContext(token="t"))
    state = view.load()
    assert state.status == views.ERROR
    assert state.items == ()
    assert state.error == "Could not load categories"
    assert not state.is_empty


def test_malformed_record_is_a_distinct_error_state():
    canned = CannedSession(json={"products": [{"_id": "1", "basePrice": -1}]})
    view = views.products_view(AdminClient(base_url=BASE_URL, session=canned), RequestContext(token="t"))
    state = view.load()
    assert state.status == views.ERROR
    assert state.error == "Could not load products"
    assert state.items == ()


def test_auth_failure_on_fetch_is_raised(session):
    view = views.products_view(session.client, session.context())
    with pytest.raises(AuthError):
        view.load()
    assert view.state.status == views.IDLE


def test_dashboard_stats(logged_in):
    ctx = logged_in.context()
    logged_in.client.create_product(ctx, {"name": "A", "basePrice": 1, "inStock": True})
    logged_in.client.create_product(ctx, {"name": "B", "basePrice": 1, "inStock": False})
    logged_in.client.create_category(ctx, {"name": "C"})
    stats = views.load_dashboard_stats(logged_in.client, ctx)
    assert stats.total_products == 2
    assert stats.total_categories == 1
    assert stats.in_stock == 1 and stats.out_of_stock == 1


def test_dashboard_stats_degrade_to_zero():
    client = AdminClient(base_url=BASE_URL, session=_Broken())
    stats = views.load_dashboard_stats(client, RequestContext(token="t"))
    assert stats.total_products == 0 and stats.total_categories == 0


def test_product_row_labels_with_images():
    from storeadmin.models import Product
    p = Product(name="x", base_price=19.5, images=["u1", "u2"], in_stock=False, featured=True)
    assert views.thumbnail_label(p) == "u1"
    assert views.image_count_label(p) == "2 image(s)"
    assert views.base_price_label(p) == "$19.5"
    assert views.stock_label(p) == "Out of Stock"
    assert views.featured_label(p) == "⭐"
