# tests/test_client.py
import asyncio

import httpx
import pytest

from stubapi.main import app
from storeadmin import AdminClient, AsyncAdminClient, AuthError, RequestContext
from storeadmin.errors import ApiError
from tests.conftest import ADMIN, BASE_URL, CannedSession


def _auth_headers(calls):
    return [c["headers"].get("Authorization") for c in calls]


def test_requests_carry_bearer_token_only_while_logged_in(logged_in, recorder):
    login_call = recorder.calls[0]
    assert "Authorization" not in login_call["headers"]

    logged_in.client.list_categories(logged_in.context())
    assert recorder.calls[-1]["headers"]["Authorization"] == f"Bearer {logged_in.token}"

    logged_in.logout()
    before = len(recorder.calls)
    with pytest.raises(AuthError):
        logged_in.client.list_products(logged_in.context())
    assert _auth_headers(recorder.calls[before:]) == [None]


def test_product_list_is_cache_busted(logged_in, recorder):
    logged_in.client.list_products(logged_in.context())
    call = recorder.calls[-1]
    assert "_t" in call["params"]
    assert call["headers"]["Cache-Control"] == "no-cache"
    assert call["headers"]["Pragma"] == "no-cache"

    logged_in.client.list_categories(logged_in.context())
    assert recorder.calls[-1]["params"] is None


def test_create_sends_idempotency_key_and_replays(logged_in, recorder):
    ctx = logged_in.context()
    payload = {"name": "Lamp", "basePrice": 20}
    first = logged_in.client.create_product(ctx, payload, idempotency_key="k1")
    again = logged_in.client.create_product(ctx, payload, idempotency_key="k1")
    assert recorder.calls[-1]["headers"]["Idempotency-Key"] == "k1"
    assert first.id == again.id
    assert len(logged_in.client.list_products(ctx)) == 1


def test_error_message_is_taken_from_body(logged_in):
    with pytest.raises(ApiError) as info:
        logged_in.client.update_product(logged_in.context(), "nope", {"name": "x", "basePrice": 1})
    assert info.value.status_code == 404
    assert info.value.message == "Product not found"


def test_contexts_are_independent(logged_in, api):
    other = api.post("/auth/login", json={"username": ADMIN[0], "password": ADMIN[1]}).json()["token"]
    assert logged_in.client.me(RequestContext(token=other)).username == "admin"
    with pytest.raises(AuthError):
        logged_in.client.me(RequestContext(token="bogus"))
    # the session's own context is untouched by the calls above
    assert logged_in.client.me(logged_in.context()).username == "admin"


def test_async_client_loads_dashboard_stats(logged_in):
    ctx = logged_in.context()
    logged_in.client.create_category(ctx, {"name": "Lighting"})
    logged_in.client.create_product(ctx, {"name": "Lamp", "basePrice": 20, "inStock": True})
    logged_in.client.create_product(ctx, {"name": "Bulb", "basePrice": 2, "inStock": False})

    client = AsyncAdminClient(base_url=BASE_URL, transport=httpx.ASGITransport(app=app))
    stats = asyncio.run(client.load_dashboard_stats(ctx))
    assert (stats.total_products, stats.total_categories, stats.in_stock, stats.out_of_stock) == (2, 1, 1, 1)

    me = asyncio.run(client.me(ctx))
    assert me.username == "admin"


def test_async_dashboard_stats_degrade_to_zero_on_server_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "boom"}))
    client = AsyncAdminClient(base_url=BASE_URL, transport=transport)
    stats = asyncio.run(client.load_dashboard_stats(RequestContext(token="t")))
    assert (stats.total_products, stats.total_categories, stats.in_stock, stats.out_of_stock) == (0, 0, 0, 0)


def test_async_dashboard_stats_degrade_to_zero_when_unreachable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = AsyncAdminClient(base_url=BASE_URL, transport=httpx.MockTransport(refuse))
    stats = asyncio.run(client.load_dashboard_stats(RequestContext(token="t")))
    assert stats.total_products == 0 and stats.total_categories == 0


def test_async_dashboard_stats_still_raise_auth_errors(api):
    client = AsyncAdminClient(base_url=BASE_URL, transport=httpx.ASGITransport(app=app))
    with pytest.raises(AuthError):
        asyncio.run(client.load_dashboard_stats(RequestContext(token="bogus")))


def test_non_json_success_body_is_an_api_error():
    client = AdminClient(base_url=BASE_URL, session=CannedSession(content=b"<html>oops</html>"))
    with pytest.raises(ApiError) as exc:
        client.list_categories(RequestContext(token="t"))
    assert exc.value.status_code == 200


def test_malformed_record_is_an_api_error():
    canned = CannedSession(json={"categories": [{"_id": "c1", "name": ["not", "a", "string"]}]})
    client = AdminClient(base_url=BASE_URL, session=canned)
    with pytest.raises(ApiError) as exc:
        client.list_categories(RequestContext(token="t"))
    assert exc.value.status_code is None
    assert exc.value.user_message("Could not load categories") == "Could not load categories"
