# storeadmin/forms.py
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from . import images as image_list
from . import rates
from .client import AdminClient, RequestContext, make_idempotency_key
from .errors import ApiError
from .models import Category, Product

logger = logging.getLogger(__name__)


class _Form(BaseModel):
    model_config = ConfigDict(frozen=True)

    # fixed when the form opens so a repeated create carries the same key
    idempotency_key: str = Field(default_factory=lambda: make_idempotency_key())
    error: Optional[str] = None
    saving: bool = False

    def with_field(self, name: str, value: Any):
        if name not in type(self).model_fields or name in ("idempotency_key", "saving"):
            raise AttributeError(f"{type(self).__name__} has no editable field {name!r}")
        return self.model_copy(update={name: value})

    def with_error(self, message: Optional[str]):
        return self.model_copy(update={"error": message, "saving": False})


# ---------------------------
# Product form
# ---------------------------
class ProductForm(_Form):
    product_id: Optional[str] = None
    name: str = ""
    description: str = ""
    category: str = ""
    base_price: str = ""
    exchange_rates: Dict[str, float] = Field(default_factory=rates.default_rates)
    images: Tuple[str, ...] = ()
    in_stock: bool = True
    featured: bool = False

    @classmethod
    def for_product(cls, product: Optional[Product] = None) -> "ProductForm":
        if product is None:
            return cls()
        return cls(
            product_id=product.id,
            name=product.name,
            description=product.description,
            category=product.category,
            base_price=_price_text(product.base_price),
            exchange_rates=dict(product.exchange_rates) or rates.default_rates(),
            images=tuple(product.images),
            in_stock=product.in_stock,
            featured=product.featured,
        )

    @property
    def is_new(self) -> bool:
        return self.product_id is None

    def with_rate(self, code: str, raw: Any) -> "ProductForm":
        return self.model_copy(update={"exchange_rates": rates.update_rate(self.exchange_rates, code, raw)})

    def _with_images(self, updated: Tuple[str, ...]) -> "ProductForm":
        return self.model_copy(update={"images": updated, "error": None})

    def add_image_url(self, raw: str) -> "ProductForm":
        return self._with_images(image_list.add_url(self.images, raw))

    def add_image_files(self, paths: Sequence) -> "ProductForm":
        return self._with_images(image_list.ingest_files(self.images, paths))

    def replace_image(self, index: int, path) -> "ProductForm":
        return self._with_images(image_list.replace_at(self.images, index, path))

    def remove_image(self, index: int) -> "ProductForm":
        return self._with_images(image_list.remove_at(self.images, index))

    def reorder_images(self, source: int, target: int) -> "ProductForm":
        return self._with_images(image_list.reorder(self.images, source, target))

    def payload(self) -> Dict[str, Any]:
        normalized = image_list.normalize(self.images)
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "basePrice": rates.coerce_number(self.base_price, "basePrice"),
            "exchangeRates": dict(self.exchange_rates),
            "images": list(normalized),
            "image": image_list.primary_image(normalized),
            "inStock": self.in_stock,
            "featured": self.featured,
        }


def _price_text(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def submit_product(client: AdminClient, ctx: RequestContext,
                   form: ProductForm) -> Tuple[ProductForm, Optional[Product]]:
    """One POST or PUT. On failure the returned form carries the message and stays open."""
    if form.saving:
        return form, None
    form = form.model_copy(update={"saving": True, "error": None})
    try:
        if form.is_new:
            saved = client.create_product(ctx, form.payload(), idempotency_key=form.idempotency_key)
        else:
            saved = client.update_product(ctx, form.product_id, form.payload())
    except ApiError as e:
        logger.error("Error saving product: %s", e)
        return form.with_error(e.user_message("Error saving product")), None
    return form.model_copy(update={"saving": False}), saved


# ---------------------------
# Category form
# ---------------------------
class CategoryForm(_Form):
    category_id: Optional[str] = None
    name: str = ""
    icon: str = "📦"
    description: str = ""

    @classmethod
    def for_category(cls, category: Optional[Category] = None) -> "CategoryForm":
        if category is None:
            return cls()
        return cls(category_id=category.id, name=category.name, icon=category.icon,
                   description=category.description)

    @property
    def is_new(self) -> bool:
        return self.category_id is None

    def payload(self) -> Dict[str, Any]:
        return {"name": self.name, "icon": self.icon, "description": self.description}


def submit_category(client: AdminClient, ctx: RequestContext,
                    form: CategoryForm) -> Tuple[CategoryForm, Optional[Category]]:
    if form.saving:
        return form, None
    form = form.model_copy(update={"saving": True, "error": None})
    try:
        if form.is_new:
            saved = client.create_category(ctx, form.payload(), idempotency_key=form.idempotency_key)
        else:
            saved = client.update_category(ctx, form.category_id, form.payload())
    except ApiError as e:
        logger.error("Error saving category: %s", e)
        return form.with_error(e.user_message("Error saving category")), None
    return form.model_copy(update={"saving": False}), saved
