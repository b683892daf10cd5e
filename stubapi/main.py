# stubapi/main.py
import uuid
from typing import Optional, Dict, Any

from fastapi import FastAPI, HTTPException, Header, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import (
    LoginIn, ProductIn, CategoryIn, ExchangeRatesIn,
    _make_product_dict, _make_category_dict, _bearer_token,
)
from .database import USERS, TOKENS, PRODUCTS, CATEGORIES, SETTINGS, IDEMPOTENCY, reset_all

app = FastAPI(title="store admin stub API (in-memory)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# The admin client reads {"message": ...} from error bodies
@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    return JSONResponse(status_code=422, content={"message": f"{field}: {first.get('msg', 'invalid')}"})


def _user_dict(username: str) -> Dict[str, str]:
    return {"username": username, "role": USERS[username]["role"]}


def require_admin(authorization: Optional[str] = Header(None)) -> str:
    token = _bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")
    username = TOKENS.get(token)
    if username is None or username not in USERS:
        raise HTTPException(status_code=401, detail="Invalid token")
    return username


def _replay(idempotency_key: Optional[str]) -> Optional[Dict[str, Any]]:
    if not idempotency_key:
        return None
    return IDEMPOTENCY.get(idempotency_key)


# ---------------------------
# Auth
# ---------------------------
@app.post("/auth/login")
async def login(payload: LoginIn):
    account = USERS.get(payload.username)
    if account is None or account["password"] != payload.password:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = uuid.uuid4().hex
    TOKENS[token] = payload.username
    return {"token": token, "user": _user_dict(payload.username)}


@app.get("/auth/me")
async def me(username: str = Depends(require_admin)):
    return {"user": _user_dict(username)}


# ---------------------------
# Products
# ---------------------------
@app.get("/products")
async def list_products(username: str = Depends(require_admin)):
    return {"products": list(PRODUCTS.values())}


@app.post("/products", status_code=201)
async def create_product(payload: ProductIn, username: str = Depends(require_admin),
                         idempotency_key: Optional[str] = Header(None)):
    prev = _replay(idempotency_key)
    if prev is not None:
        return prev
    pid = uuid.uuid4().hex
    PRODUCTS[pid] = _make_product_dict(pid, payload)
    if idempotency_key:
        IDEMPOTENCY[idempotency_key] = PRODUCTS[pid]
    return PRODUCTS[pid]


@app.put("/products/{product_id}")
async def update_product(product_id: str, payload: ProductIn, username: str = Depends(require_admin)):
    if product_id not in PRODUCTS:
        raise HTTPException(status_code=404, detail="Product not found")
    PRODUCTS[product_id] = _make_product_dict(product_id, payload)
    return PRODUCTS[product_id]


@app.delete("/products/{product_id}", status_code=204)
async def delete_product(product_id: str, username: str = Depends(require_admin)):
    if PRODUCTS.pop(product_id, None) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return Response(status_code=204)


# ---------------------------
# Categories
# ---------------------------
@app.get("/categories")
async def list_categories(username: str = Depends(require_admin)):
    return {"categories": list(CATEGORIES.values())}


@app.post("/categories", status_code=201)
async def create_category(payload: CategoryIn, username: str = Depends(require_admin),
                          idempotency_key: Optional[str] = Header(None)):
    prev = _replay(idempotency_key)
    if prev is not None:
        return prev
    if any(c["name"] == payload.name for c in CATEGORIES.values()):
        raise HTTPException(status_code=409, detail="Category already exists")
    cid = uuid.uuid4().hex
    CATEGORIES[cid] = _make_category_dict(cid, payload)
    if idempotency_key:
        IDEMPOTENCY[idempotency_key] = CATEGORIES[cid]
    return CATEGORIES[cid]


@app.put("/categories/{category_id}")
async def update_category(category_id: str, payload: CategoryIn, username: str = Depends(require_admin)):
    if category_id not in CATEGORIES:
        raise HTTPException(status_code=404, detail="Category not found")
    CATEGORIES[category_id] = _make_category_dict(category_id, payload)
    return CATEGORIES[category_id]


@app.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: str, username: str = Depends(require_admin)):
    if CATEGORIES.pop(category_id, None) is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return Response(status_code=204)


# ---------------------------
# Settings
# ---------------------------
@app.post("/settings/exchange-rates")
async def save_exchange_rates(payload: ExchangeRatesIn, username: str = Depends(require_admin)):
    SETTINGS["exchangeRates"] = dict(payload.rates)
    return {"message": "Exchange rates updated", "rates": SETTINGS["exchangeRates"]}


# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/reset")
async def reset():
    reset_all()
    return {"status": "reset"}
