"""Category, supplier, and product request/response schemas."""

from decimal import Decimal

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import MAX_ID, CamelModel, Money


# --- Category ---

def _not_only_digits(value: str | None) -> str | None:
    if value is not None and value.isdigit():
        raise ValueError("Category name cannot contain only numbers")
    return value


class CategoryCreate(CamelModel):
    category_name: str = Field(min_length=1, max_length=15)
    description: str | None = Field(None, max_length=2000)

    @field_validator("category_name")
    @classmethod
    def validate_category_name(cls, v: str | None) -> str | None:
        return _not_only_digits(v)


class CategoryUpdate(CamelModel):
    category_name: str | None = Field(None, min_length=1, max_length=15)
    description: str | None = Field(None, max_length=2000)

    @field_validator("category_name")
    @classmethod
    def validate_category_name(cls, v: str | None) -> str | None:
        return _not_only_digits(v)


class CategoryRead(CamelModel):
    category_id: int
    category_name: str
    description: str | None


# --- Supplier ---

class SupplierCreate(CamelModel):
    company_name: str = Field(min_length=1, max_length=40)
    contact_name: str | None = Field(None, max_length=30)
    contact_title: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=60)
    city: str | None = Field(None, max_length=15)
    region: str | None = Field(None, max_length=15)
    postal_code: str | None = Field(None, max_length=10)
    country: str | None = Field(None, max_length=15)
    phone: str | None = Field(None, max_length=24)
    email: EmailStr | None = None
    fax: str | None = Field(None, max_length=24)
    home_page: str | None = Field(None, max_length=500)


class SupplierUpdate(SupplierCreate):
    company_name: str | None = Field(None, min_length=1, max_length=40)


class SupplierRead(CamelModel):
    supplier_id: int
    company_name: str
    contact_name: str | None
    contact_title: str | None
    address: str | None
    city: str | None
    region: str | None
    postal_code: str | None
    country: str | None
    phone: str | None
    email: str | None
    fax: str | None
    home_page: str | None


# --- Product ---

class ProductCreate(CamelModel):
    product_name: str = Field(min_length=1, max_length=40)
    supplier_id: int | None = Field(None, ge=1, le=MAX_ID)
    category_id: int | None = Field(None, ge=1, le=MAX_ID)
    quantity_per_unit: str | None = Field(None, max_length=20)
    unit_price: Decimal = Field(Decimal(0), ge=0, max_digits=10, decimal_places=2)
    units_in_stock: int = Field(0, ge=0, le=32767)
    units_on_order: int = Field(0, ge=0, le=32767)
    reorder_level: int = Field(0, ge=0, le=32767)
    discontinued: bool = False


class ProductUpdate(CamelModel):
    product_name: str | None = Field(None, min_length=1, max_length=40)
    supplier_id: int | None = Field(None, ge=1, le=MAX_ID)
    category_id: int | None = Field(None, ge=1, le=MAX_ID)
    quantity_per_unit: str | None = Field(None, max_length=20)
    unit_price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    units_in_stock: int | None = Field(None, ge=0, le=32767)
    units_on_order: int | None = Field(None, ge=0, le=32767)
    reorder_level: int | None = Field(None, ge=0, le=32767)
    discontinued: bool | None = None


class ProductRead(CamelModel):
    product_id: int
    product_name: str
    supplier_id: int | None
    category_id: int | None
    quantity_per_unit: str | None
    unit_price: Money | None
    units_in_stock: int | None
    units_on_order: int | None
    reorder_level: int | None
    discontinued: bool
