from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, List

from storeadmin.models import DEFAULT_RATES


class _CamelIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginIn(BaseModel):
    username: str
    password: str


class ProductIn(_CamelIn):
    name: str = Field(min_length=1)
    description: str = ""
    category: str = ""
    base_price: float = Field(ge=0)
    exchange_rates: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_RATES))
    images: List[str] = Field(default_factory=list)
    image: str = ""
    in_stock: bool = True
    featured: bool = False


class CategoryIn(_CamelIn):
    name: str = Field(min_length=1)
    icon: str = "📦"
    description: str = ""


class ExchangeRatesIn(BaseModel):
    rates: Dict[str, float]


def _make_product_dict(product_id: str, p: ProductIn) -> Dict[str, Any]:
    return {"_id": product_id, **p.model_dump(by_alias=True)}


def _make_category_dict(category_id: str, c: CategoryIn) -> Dict[str, Any]:
    return {"_id": category_id, **c.model_dump(by_alias=True)}


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()
