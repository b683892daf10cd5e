# storeadmin/views.py
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from .client import AdminClient, RequestContext
from .errors import ApiError, AuthError, DeleteFailed
from .models import Category, DashboardStats, Product

logger = logging.getLogger(__name__)

T = TypeVar("T")

IDLE, LOADING, LOADED, ERROR = "idle", "loading", "loaded", "error"


@dataclass(frozen=True)
class ListState(Generic[T]):
    items: Tuple[T, ...] = ()
    status: str = IDLE
    error: Optional[str] = None
    last_fetched_at: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.status == LOADED and not self.items


class CollectionView(Generic[T]):
    """
    One remote collection. Every write is followed by a full reload;
    nothing is updated optimistically.
    """

    def __init__(self, label: str, plural: str, fetch: Callable[[], List[T]], delete: Callable[[str], None]):
        self.label = label
        self.plural = plural
        self._fetch = fetch
        self._delete = delete
        self.state: ListState[T] = ListState()

    @property
    def items(self) -> Tuple[T, ...]:
        return self.state.items

    def load(self) -> ListState[T]:
        self.state = replace(self.state, status=LOADING)
        try:
            items = self._fetch()
        except AuthError:
            self.state = replace(self.state, status=IDLE)
            raise
        except ApiError as e:
            logger.error("Error loading %s: %s", self.plural, e)
            self.state = ListState(status=ERROR, error=e.user_message(f"Could not load {self.plural}"),
                                   last_fetched_at=self.state.last_fetched_at)
            return self.state
        self.state = ListState(items=tuple(items), status=LOADED, last_fetched_at=time.time())
        return self.state

    def after_save(self) -> ListState[T]:
        return self.load()

    def delete(self, record_id: str, confirm: Callable[[], bool]) -> bool:
        """Returns False when the operator declines. Raises DeleteFailed and keeps the list as is."""
        if not confirm():
            return False
        try:
            self._delete(record_id)
        except ApiError as e:
            logger.error("Error deleting %s %s: %s", self.label, record_id, e)
            raise DeleteFailed(f"Error deleting {self.label}") from e
        self.load()
        return True


def products_view(client: AdminClient, ctx: RequestContext) -> CollectionView[Product]:
    return CollectionView(
        "product", "products",
        fetch=lambda: client.list_products(ctx, fresh=True),
        delete=lambda pid: client.delete_product(ctx, pid),
    )


def categories_view(client: AdminClient, ctx: RequestContext) -> CollectionView[Category]:
    return CollectionView(
        "category", "categories",
        fetch=lambda: client.list_categories(ctx),
        delete=lambda cid: client.delete_category(ctx, cid),
    )


def load_dashboard_stats(client: AdminClient, ctx: RequestContext) -> DashboardStats:
    try:
        products = client.list_products(ctx, fresh=False)
        categories = client.list_categories(ctx)
    except AuthError:
        raise
    except ApiError as e:
        logger.error("Error loading stats: %s", e)
        return DashboardStats()
    return DashboardStats.from_collections(products, categories)


# ---------------------------
# Row labels for the products table
# ---------------------------
def thumbnail_label(product: Product) -> str:
    return product.primary_image or "No image"


def image_count_label(product: Product) -> str:
    return f"{len(product.images)} image(s)" if product.images else "0 images"


def stock_label(product: Product) -> str:
    return "In Stock" if product.in_stock else "Out of Stock"


def featured_label(product: Product) -> str:
    return "⭐" if product.featured else "-"


def base_price_label(product: Product) -> str:
    price = product.base_price
    return f"${int(price)}" if float(price).is_integer() else f"${price}"
