# storeadmin/rates.py
import logging
import math
from typing import Any, Dict, Mapping, NamedTuple, Optional

from .client import AdminClient, RequestContext
from .errors import ValidationError
from .models import CURRENCY_CODES, DEFAULT_RATES, Product

logger = logging.getLogger(__name__)


class Currency(NamedTuple):
    code: str
    name: str
    symbol: str


CURRENCIES = (
    Currency("USD", "US Dollar", "$"),
    Currency("GBP", "British Pound", "£"),
    Currency("EUR", "Euro", "€"),
    Currency("INR", "Indian Rupee", "₹"),
    Currency("AED", "UAE Dirham", "د.إ"),
    Currency("AUD", "Australian Dollar", "A$"),
    Currency("CAD", "Canadian Dollar", "C$"),
    Currency("JPY", "Japanese Yen", "¥"),
    Currency("CNY", "Chinese Yuan", "¥"),
    Currency("SAR", "Saudi Riyal", "ر.س"),
)

SYMBOLS = {c.code: c.symbol for c in CURRENCIES}


def default_rates() -> Dict[str, float]:
    return dict(DEFAULT_RATES)


def display_price(product: Product, code: str) -> Optional[float]:
    """basePrice converted for display, or None when the product has no rate for code."""
    rate = product.exchange_rates.get(code)
    if rate is None:
        return None
    return product.base_price * rate


def format_price(amount: Optional[float], code: str) -> str:
    if amount is None:
        return "n/a"
    return f"{SYMBOLS.get(code, code + ' ')}{amount:,.2f}"


def coerce_number(raw: Any, field: str) -> float:
    # parse failure becomes 0, same as the web panel did, but never silently
    if isinstance(raw, bool):
        raw = int(raw)
    try:
        if isinstance(raw, str) and "_" in raw:
            raise ValueError(raw)
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("%s: could not parse %r as a number, using 0", field, raw)
        return 0.0
    if not math.isfinite(value):
        logger.warning("%s: %r is not a finite number, using 0", field, raw)
        return 0.0
    return value


def coerce_rate(raw: Any, code: str) -> float:
    return coerce_number(raw, f"exchange rate {code}")


def update_rate(table: Mapping[str, float], code: str, raw: Any) -> Dict[str, float]:
    updated = dict(table)
    updated[code] = coerce_rate(raw, code)
    return updated


def complete_table(table: Mapping[str, float]) -> Dict[str, float]:
    unknown = sorted(set(table) - set(CURRENCY_CODES))
    if unknown:
        raise ValidationError(f"unknown currency codes: {', '.join(unknown)}")
    return {code: table.get(code, DEFAULT_RATES[code]) for code in CURRENCY_CODES}


def save_global_rates(client: AdminClient, ctx: RequestContext, table: Mapping[str, float]) -> Dict[str, float]:
    """Replace the store-wide table. The whole table goes up in one request, never a single key."""
    rates = complete_table(table)
    client.save_exchange_rates(ctx, rates)
    return rates
