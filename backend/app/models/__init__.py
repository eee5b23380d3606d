"""All Northwind database models.

Import all models here so SQLAlchemy can resolve string relationships.
"""

from app.database import Base  # noqa: F401

# Catalog
from app.models.catalog import Category, Product, Supplier  # noqa: F401

# Sales
from app.models.sales import Customer, OrderDetail, SalesOrder, Shipper  # noqa: F401

# Staff
from app.models.staff import Employee, Region, Territory, employee_territory  # noqa: F401

# Auth
from app.models.user import User  # noqa: F401
