"""Customer, shipper, and order request/response schemas."""

from decimal import Decimal

from pydantic import EmailStr, Field, model_validator

from app.schemas.common import MAX_ID, CamelModel, Money, UtcDateTime


# --- Customer ---

class CustomerCreate(CamelModel):
    company_name: str = Field(min_length=1, max_length=40)
    contact_name: str | None = Field(None, max_length=30)
    contact_title: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=60)
    city: str | None = Field(None, max_length=15)
    region: str | None = Field(None, max_length=15)
    postal_code: str | None = Field(None, max_length=10)
    country: str | None = Field(None, max_length=15)
    phone: str | None = Field(None, max_length=24)
    mobile: str | None = Field(None, max_length=24)
    email: EmailStr | None = None
    fax: str | None = Field(None, max_length=24)


class CustomerUpdate(CustomerCreate):
    company_name: str | None = Field(None, min_length=1, max_length=40)


class CustomerRead(CamelModel):
    cust_id: int
    company_name: str
    contact_name: str | None
    contact_title: str | None
    address: str | None
    city: str | None
    region: str | None
    postal_code: str | None
    country: str | None
    phone: str | None
    mobile: str | None
    email: str | None
    fax: str | None


class CustomerSummary(CamelModel):
    cust_id: int
    company_name: str
    contact_name: str | None
    country: str | None


# --- Shipper ---

class ShipperRead(CamelModel):
    shipper_id: int
    company_name: str
    phone: str | None


# --- Order lines ---

class OrderLineCreate(CamelModel):
    product_id: int = Field(ge=1, le=MAX_ID)
    quantity: int = Field(ge=1, le=32767)
    # Defaults to the product's current price
    unit_price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount: Decimal = Field(Decimal(0), ge=0, le=1, max_digits=10, decimal_places=2)


class OrderDetailRead(CamelModel):
    order_detail_id: int
    order_id: int
    product_id: int
    unit_price: Money
    quantity: int
    discount: Money


# --- Order ---

class _ShippingFields(CamelModel):
    ship_name: str | None = Field(None, max_length=40)
    ship_address: str | None = Field(None, max_length=60)
    ship_city: str | None = Field(None, max_length=15)
    ship_region: str | None = Field(None, max_length=15)
    ship_postal_code: str | None = Field(None, max_length=10)
    ship_country: str | None = Field(None, max_length=15)


class OrderCreate(_ShippingFields):
    cust_id: int = Field(ge=1, le=MAX_ID)
    employee_id: int | None = Field(None, ge=1, le=MAX_ID)
    shipper_id: int = Field(ge=1, le=MAX_ID)
    order_date: UtcDateTime | None = None
    required_date: UtcDateTime | None = None
    freight: Decimal = Field(Decimal(0), ge=0, max_digits=10, decimal_places=2)
    order_details: list[OrderLineCreate] = Field(min_length=1, max_length=500)

    @model_validator(mode="after")
    def check_dates(self) -> "OrderCreate":
        if self.order_date and self.required_date and self.required_date < self.order_date:
            raise ValueError("requiredDate cannot be before orderDate")
        return self


class OrderUpdate(_ShippingFields):
    employee_id: int | None = Field(None, ge=1, le=MAX_ID)
    shipper_id: int | None = Field(None, ge=1, le=MAX_ID)
    order_date: UtcDateTime | None = None
    required_date: UtcDateTime | None = None
    freight: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


class ShipOrderRequest(CamelModel):
    shipped_date: UtcDateTime | None = None
    shipper_id: int | None = Field(None, ge=1, le=MAX_ID)
    freight: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


class OrderRead(CamelModel):
    order_id: int
    cust_id: int
    employee_id: int | None
    order_date: UtcDateTime | None
    required_date: UtcDateTime | None
    shipped_date: UtcDateTime | None
    shipper_id: int
    freight: Money
    ship_name: str | None
    ship_address: str | None
    ship_city: str | None
    ship_region: str | None
    ship_postal_code: str | None
    ship_country: str | None
