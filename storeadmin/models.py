# storeadmin/models.py
from typing import Optional, Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CURRENCY_CODES = ("USD", "GBP", "EUR", "INR", "AED", "AUD", "CAD", "JPY", "CNY", "SAR")

DEFAULT_RATES: Dict[str, float] = {
    "USD": 1,
    "GBP": 0.79,
    "EUR": 0.92,
    "INR": 82.5,
    "AED": 3.67,
    "AUD": 1.52,
    "CAD": 1.35,
    "JPY": 148,
    "CNY": 7.24,
    "SAR": 3.75,
}


class _WireModel(BaseModel):
    # the API speaks camelCase and identifies records by "_id"
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Product(_WireModel):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    description: str = ""
    category: str = ""
    base_price: float = Field(default=0, ge=0)
    exchange_rates: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_RATES))
    images: List[str] = Field(default_factory=list)
    image: str = ""
    in_stock: bool = True
    featured: bool = False

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


class Category(_WireModel):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    icon: str = "📦"
    description: str = ""


class User(_WireModel):
    username: str
    role: str = "admin"


class DashboardStats(BaseModel):
    total_products: int = 0
    total_categories: int = 0
    in_stock: int = 0
    out_of_stock: int = 0

    @classmethod
    def from_collections(cls, products: List[Product], categories: List[Category]) -> "DashboardStats":
        in_stock = sum(1 for p in products if p.in_stock)
        return cls(
            total_products=len(products),
            total_categories=len(categories),
            in_stock=in_stock,
            out_of_stock=len(products) - in_stock,
        )
