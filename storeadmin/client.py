# storeadmin/client.py
import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Tuple

import httpx
import requests
from pydantic import ValidationError as SchemaError

from .config import DEFAULT_API_URL, Settings
from .errors import ApiError, AuthError
from .models import Product, Category, User, DashboardStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Per-call credentials. Every request builds its headers from one of these."""

    token: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


# ---------------------------
# Helpers shared by the sync and async clients
# ---------------------------
def _build_headers(ctx: Optional[RequestContext], extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if ctx is not None:
        headers.update(ctx.headers())
    if extra:
        headers.update(extra)
    return headers


def _no_cache() -> Tuple[Dict[str, Any], Dict[str, str]]:
    params = {"_t": int(time.time() * 1000)}
    headers = {"Cache-Control": "no-cache", "Pragma": "no-cache"}
    return params, headers


def _error_message(resp: Any) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message") or body.get("detail")
    if message is None:
        return None
    return message if isinstance(message, str) else str(message)


def _raise_for_status(resp: Any) -> None:
    if resp.status_code < 400:
        return
    message = _error_message(resp)
    if resp.status_code == 401:
        raise AuthError(resp.status_code, message)
    raise ApiError(resp.status_code, message)


def _decode(resp: Any) -> Any:
    _raise_for_status(resp)
    if resp.status_code == 204 or not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as e:
        logger.warning("response body is not JSON (status %s)", resp.status_code)
        raise ApiError(resp.status_code, None) from e


def make_idempotency_key(provided: Optional[str] = None) -> str:
    return provided if provided else uuid.uuid4().hex


def _parse(model: type, data: Any) -> Any:
    # a malformed record fails the call like any other bad response
    try:
        return model.model_validate(data)
    except SchemaError as e:
        raise ApiError(None, str(e)) from e


def _records(data: Any, key: str) -> List[Any]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ApiError(None, f"expected an object carrying {key!r}")
    return data.get(key) or []


def _products(data: Any) -> List[Product]:
    return [_parse(Product, p) for p in _records(data, "products")]


def _categories(data: Any) -> List[Category]:
    return [_parse(Category, c) for c in _records(data, "categories")]


def _user(data: Any) -> User:
    if not isinstance(data, dict) or not data.get("user"):
        raise ApiError(None, "response carried no user")
    return _parse(User, data["user"])


# ---------------------------
# Sync client
# ---------------------------
class AdminClient:
    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 10, session: Optional[Any] = None):
        self.base_url = base_url.rstrip("/")
        # anything with a requests-compatible request() works, e.g. fastapi's TestClient
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[Any] = None) -> "AdminClient":
        return cls(base_url=settings.api_url, timeout=settings.timeout, session=session)

    def _request(self, method: str, path: str, ctx: Optional[RequestContext] = None,
                 params: Optional[Dict[str, Any]] = None, json: Any = None,
                 headers: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            r = self.session.request(method, url, params=params, json=json,
                                     headers=_build_headers(ctx, headers), timeout=self.timeout)
        except (requests.exceptions.RequestException, httpx.HTTPError) as e:
            raise ApiError(None, str(e)) from e
        return _decode(r)

    def _get_list(self, path: str, ctx: RequestContext, fresh: bool) -> Any:
        if fresh:
            params, headers = _no_cache()
            return self._request("GET", path, ctx, params=params, headers=headers)
        return self._request("GET", path, ctx)

    # Auth
    def login(self, username: str, password: str) -> Tuple[str, User]:
        data = self._request("POST", "/auth/login", None, json={"username": username, "password": password})
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise ApiError(None, "login response carried no token")
        return token, _user(data)

    def me(self, ctx: RequestContext) -> User:
        return _user(self._request("GET", "/auth/me", ctx))

    # Products
    def list_products(self, ctx: RequestContext, fresh: bool = True) -> List[Product]:
        return _products(self._get_list("/products", ctx, fresh))

    def create_product(self, ctx: RequestContext, payload: Dict[str, Any],
                       idempotency_key: Optional[str] = None) -> Product:
        headers = {"Idempotency-Key": make_idempotency_key(idempotency_key)}
        return _parse(Product, self._request("POST", "/products", ctx, json=payload, headers=headers))

    def update_product(self, ctx: RequestContext, product_id: str, payload: Dict[str, Any]) -> Product:
        return _parse(Product, self._request("PUT", f"/products/{product_id}", ctx, json=payload))

    def delete_product(self, ctx: RequestContext, product_id: str) -> None:
        self._request("DELETE", f"/products/{product_id}", ctx)

    # Categories
    def list_categories(self, ctx: RequestContext, fresh: bool = False) -> List[Category]:
        return _categories(self._get_list("/categories", ctx, fresh))

    def create_category(self, ctx: RequestContext, payload: Dict[str, Any],
                        idempotency_key: Optional[str] = None) -> Category:
        headers = {"Idempotency-Key": make_idempotency_key(idempotency_key)}
        return _parse(Category, self._request("POST", "/categories", ctx, json=payload, headers=headers))

    def update_category(self, ctx: RequestContext, category_id: str, payload: Dict[str, Any]) -> Category:
        return _parse(Category, self._request("PUT", f"/categories/{category_id}", ctx, json=payload))

    def delete_category(self, ctx: RequestContext, category_id: str) -> None:
        self._request("DELETE", f"/categories/{category_id}", ctx)

    # Settings
    def save_exchange_rates(self, ctx: RequestContext, rates: Dict[str, float]) -> Any:
        return self._request("POST", "/settings/exchange-rates", ctx, json={"rates": rates})


# ---------------------------
# Async client (read side)
# ---------------------------
class AsyncAdminClient:
    """Read endpoints over httpx. Cancelling the awaiting task cancels the request."""

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 10,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _get(self, path: str, ctx: RequestContext, fresh: bool = False) -> Any:
        params: Dict[str, Any] = {}
        extra: Dict[str, str] = {}
        if fresh:
            params, extra = _no_cache()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.get(f"{self.base_url}{path}", params=params, headers=_build_headers(ctx, extra))
            except httpx.HTTPError as e:
                raise ApiError(None, str(e)) from e
            return _decode(r)

    async def me(self, ctx: RequestContext) -> User:
        return _user(await self._get("/auth/me", ctx))

    async def list_products(self, ctx: RequestContext, fresh: bool = True) -> List[Product]:
        return _products(await self._get("/products", ctx, fresh))

    async def list_categories(self, ctx: RequestContext, fresh: bool = False) -> List[Category]:
        return _categories(await self._get("/categories", ctx, fresh))

    async def load_dashboard_stats(self, ctx: RequestContext) -> DashboardStats:
        """Counts degrade to zero on a failed read; an expired session still raises."""
        try:
            products, categories = await asyncio.gather(
                self.list_products(ctx, fresh=False),
                self.list_categories(ctx),
            )
        except AuthError:
            raise
        except ApiError as e:
            logger.error("Error loading stats: %s", e)
            return DashboardStats()
        return DashboardStats.from_collections(products, categories)
