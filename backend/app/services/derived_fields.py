"""Derived-field calculations.

Pure functions over already-fetched values: no I/O and no session access.
Money is computed in ``Decimal`` and only quantized for presentation.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from app.models.enums import CustomerTier, OrderStatus, PriceCategory, StockStatus, UrgencyLevel

CENT = Decimal("0.01")
DAYS_PER_SERVICE_YEAR = 365.25
LOW_STOCK_LEVEL = 10
POPULAR_CATEGORY_SIZE = 10


# --- Numbers and dates ---

def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def money(value) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (as returned by some drivers) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def subtract_years(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28.

    Going back past year 1 gives ``date.min``.
    """
    if day.year - years < date.min.year:
        return date.min
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


# --- Employees ---

def age(birth_date: date | datetime | None, today: date | datetime) -> int | None:
    """Whole calendar years since ``birth_date``."""
    if birth_date is None:
        return None
    born = _as_date(birth_date)
    now = _as_date(today)
    years = now.year - born.year
    if (now.month, now.day) < (born.month, born.day):
        years -= 1
    return years


def years_of_service(hire_date: date | datetime | None, today: date | datetime) -> int | None:
    """Completed 365.25-day years since ``hire_date``."""
    if hire_date is None:
        return None
    days = (_as_date(today) - _as_date(hire_date)).days
    return math.floor(days / DAYS_PER_SERVICE_YEAR)


def full_name(first_name: str | None, last_name: str | None) -> str:
    return " ".join(part for part in (first_name, last_name) if part)


def full_address(*parts: str | None) -> str | None:
    present = [p for p in parts if p]
    return ", ".join(present) if present else None


# --- Inventory ---

def stock_status(
    discontinued: bool,
    units_in_stock: int | None,
    reorder_level: int | None = None,
) -> StockStatus:
    """The single stock ladder used by every endpoint."""
    if discontinued:
        return StockStatus.DISCONTINUED
    units = units_in_stock or 0
    if units <= 0:
        return StockStatus.OUT_OF_STOCK
    if reorder_level is not None and units <= reorder_level:
        return StockStatus.REORDER_REQUIRED
    if units < LOW_STOCK_LEVEL:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def stock_value(unit_price, units_in_stock: int | None) -> Decimal:
    return to_decimal(unit_price) * (units_in_stock or 0)


def available_stock(units_in_stock: int | None, units_on_order: int | None) -> int:
    return (units_in_stock or 0) + (units_on_order or 0)


def is_low_stock(units_in_stock: int | None) -> bool:
    return 0 < (units_in_stock or 0) < LOW_STOCK_LEVEL


def needs_reorder(units_in_stock: int | None, reorder_level: int | None) -> bool:
    return (units_in_stock or 0) <= (reorder_level or 0)


def price_category(unit_price) -> PriceCategory | None:
    if unit_price is None:
        return None
    price = to_decimal(unit_price)
    if price < 20:
        return PriceCategory.BUDGET
    if price < 50:
        return PriceCategory.STANDARD
    if price < 100:
        return PriceCategory.PREMIUM
    return PriceCategory.LUXURY


def health_score(
    discontinued: bool,
    units_in_stock: int | None,
    unit_price,
    category_id: int | None,
    supplier_id: int | None,
) -> int:
    """0-100 catalog health; discontinued products always score 0."""
    if discontinued:
        return 0
    score = 100
    units = units_in_stock or 0
    if units == 0:
        score -= 50
    elif units < LOW_STOCK_LEVEL:
        score -= 25
    if unit_price is None or to_decimal(unit_price) <= 0:
        score -= 20
    if category_id is None:
        score -= 15
    if supplier_id is None:
        score -= 10
    return max(score, 0)


def urgency_level(units_in_stock: int | None, threshold: int) -> UrgencyLevel:
    units = units_in_stock or 0
    if units <= 5:
        return UrgencyLevel.CRITICAL
    if units <= threshold / 2:
        return UrgencyLevel.HIGH
    return UrgencyLevel.MEDIUM


def recommended_order_quantity(
    units_in_stock: int | None, reorder_level: int | None, threshold: int
) -> int:
    target = (reorder_level or threshold) * 2
    return max(target - (units_in_stock or 0), threshold)


# --- Orders ---

def line_total(unit_price, quantity: int, discount) -> Decimal:
    """unitPrice * quantity * (1 - discount), exact."""
    return to_decimal(unit_price) * quantity * (1 - to_decimal(discount))


def line_subtotal(unit_price, quantity: int) -> Decimal:
    return to_decimal(unit_price) * quantity


def discount_amount(unit_price, quantity: int, discount) -> Decimal:
    return to_decimal(unit_price) * quantity * to_decimal(discount)


def order_subtotal(details: Iterable) -> Decimal:
    """Sum of line totals for objects exposing unit_price/quantity/discount."""
    return sum(
        (line_total(d.unit_price, d.quantity, d.discount) for d in details),
        Decimal(0),
    )


def order_total(details: Iterable, freight) -> Decimal:
    return order_subtotal(details) + to_decimal(freight)


def order_status(
    order_date: datetime | None,
    shipped_date: datetime | None,
) -> OrderStatus:
    """Lifecycle state; overdue is reported separately by ``is_overdue``."""
    if shipped_date is not None:
        return OrderStatus.SHIPPED
    if order_date is None:
        return OrderStatus.PENDING
    return OrderStatus.PROCESSING


def is_overdue(
    required_date: datetime | None,
    shipped_date: datetime | None,
    now: datetime,
) -> bool:
    if shipped_date is not None or required_date is None:
        return False
    return as_utc(required_date) < as_utc(now)


def days_to_ship(
    required_date: datetime | None,
    shipped_date: datetime | None,
    now: datetime,
) -> int | None:
    """Days left before the required date; negative once it has passed."""
    if shipped_date is not None:
        return 0
    if required_date is None:
        return None
    remaining = as_utc(required_date) - as_utc(now)
    return math.ceil(remaining.total_seconds() / 86400)


# --- Customers and categories ---

def customer_tier(order_count: int, total_spent) -> CustomerTier:
    spent = to_decimal(total_spent)
    if order_count >= 20 and spent >= 10000:
        return CustomerTier.PLATINUM
    if order_count >= 10 and spent >= 5000:
        return CustomerTier.GOLD
    if order_count >= 5 and spent >= 1000:
        return CustomerTier.SILVER
    return CustomerTier.BRONZE


def is_popular_category(product_count: int) -> bool:
    return product_count >= POPULAR_CATEGORY_SIZE
