"""Enum types for values derived from Northwind records."""

import enum


# --- Inventory ---

class StockStatus(str, enum.Enum):
    DISCONTINUED = "Discontinued"
    OUT_OF_STOCK = "Out of Stock"
    REORDER_REQUIRED = "Reorder Required"
    LOW_STOCK = "Low Stock"
    IN_STOCK = "In Stock"


class PriceCategory(str, enum.Enum):
    BUDGET = "Budget"
    STANDARD = "Standard"
    PREMIUM = "Premium"
    LUXURY = "Luxury"


class PriceBand(str, enum.Enum):
    """Query-string values accepted by the ``priceRange`` filter."""

    BUDGET = "budget"
    STANDARD = "standard"
    PREMIUM = "premium"
    LUXURY = "luxury"


class UrgencyLevel(str, enum.Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"


# --- Sales ---

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OVERDUE = "overdue"


class CustomerTier(str, enum.Enum):
    PLATINUM = "Platinum"
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"
