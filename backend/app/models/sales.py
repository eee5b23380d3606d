"""Customer, shipper, sales order, and order line models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Customer(Base):
    __tablename__ = "Customer"

    cust_id: Mapped[int] = mapped_column("custId", Integer, primary_key=True)
    company_name: Mapped[str] = mapped_column("companyName", String(40), nullable=False)
    contact_name: Mapped[str | None] = mapped_column("contactName", String(30), nullable=True)
    contact_title: Mapped[str | None] = mapped_column("contactTitle", String(30), nullable=True)
    address: Mapped[str | None] = mapped_column("address", String(60), nullable=True)
    city: Mapped[str | None] = mapped_column("city", String(15), nullable=True)
    region: Mapped[str | None] = mapped_column("region", String(15), nullable=True)
    postal_code: Mapped[str | None] = mapped_column("postalCode", String(10), nullable=True)
    country: Mapped[str | None] = mapped_column("country", String(15), nullable=True)
    phone: Mapped[str | None] = mapped_column("phone", String(24), nullable=True)
    mobile: Mapped[str | None] = mapped_column("mobile", String(24), nullable=True)
    email: Mapped[str | None] = mapped_column("email", String(225), nullable=True)
    fax: Mapped[str | None] = mapped_column("fax", String(24), nullable=True)

    # Relationships
    orders: Mapped[list["SalesOrder"]] = relationship(back_populates="customer")


class Shipper(Base):
    __tablename__ = "Shipper"

    shipper_id: Mapped[int] = mapped_column("shipperId", Integer, primary_key=True)
    company_name: Mapped[str] = mapped_column("companyName", String(40), nullable=False)
    phone: Mapped[str | None] = mapped_column("phone", String(44), nullable=True)

    orders: Mapped[list["SalesOrder"]] = relationship(back_populates="shipper")


class SalesOrder(Base):
    __tablename__ = "SalesOrder"

    order_id: Mapped[int] = mapped_column("orderId", Integer, primary_key=True)
    cust_id: Mapped[int] = mapped_column(
        "custId", Integer, ForeignKey("Customer.custId"), nullable=False
    )
    employee_id: Mapped[int | None] = mapped_column(
        "employeeId", Integer, ForeignKey("Employee.employeeId"), nullable=True
    )
    order_date: Mapped[datetime | None] = mapped_column(
        "orderDate", DateTime(timezone=True), nullable=True
    )
    required_date: Mapped[datetime | None] = mapped_column(
        "requiredDate", DateTime(timezone=True), nullable=True
    )
    shipped_date: Mapped[datetime | None] = mapped_column(
        "shippedDate", DateTime(timezone=True), nullable=True
    )
    shipper_id: Mapped[int] = mapped_column(
        "shipperid", Integer, ForeignKey("Shipper.shipperId"), nullable=False
    )
    freight: Mapped[Decimal] = mapped_column(
        "freight", Numeric(10, 2), default=0, nullable=False
    )
    ship_name: Mapped[str | None] = mapped_column("shipName", String(40), nullable=True)
    ship_address: Mapped[str | None] = mapped_column("shipAddress", String(60), nullable=True)
    ship_city: Mapped[str | None] = mapped_column("shipCity", String(15), nullable=True)
    ship_region: Mapped[str | None] = mapped_column("shipRegion", String(15), nullable=True)
    ship_postal_code: Mapped[str | None] = mapped_column(
        "shipPostalCode", String(10), nullable=True
    )
    ship_country: Mapped[str | None] = mapped_column("shipCountry", String(15), nullable=True)

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="orders")
    employee: Mapped["Employee | None"] = relationship(  # noqa: F821
        "Employee", back_populates="orders"
    )
    shipper: Mapped["Shipper"] = relationship(back_populates="orders")
    details: Mapped[list["OrderDetail"]] = relationship(
        back_populates="order", order_by="OrderDetail.order_detail_id"
    )

    __table_args__ = (
        Index("ix_sales_order_customer", "custId"),
        Index("ix_sales_order_employee", "employeeId"),
        Index("ix_sales_order_order_date", "orderDate"),
    )


class OrderDetail(Base):
    __tablename__ = "OrderDetail"

    order_detail_id: Mapped[int] = mapped_column("orderDetailId", Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        "orderId", Integer, ForeignKey("SalesOrder.orderId"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        "productId", Integer, ForeignKey("Product.productId"), nullable=False
    )
    unit_price: Mapped[Decimal] = mapped_column("unitPrice", Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column("quantity", SmallInteger, nullable=False)
    discount: Mapped[Decimal] = mapped_column(
        "discount", Numeric(10, 2), default=0, nullable=False
    )

    # Relationships
    order: Mapped["SalesOrder"] = relationship(back_populates="details")
    product: Mapped["Product"] = relationship(  # noqa: F821
        "Product", back_populates="order_details"
    )

    __table_args__ = (
        Index("ix_order_detail_order", "orderId"),
        Index("ix_order_detail_product", "productId"),
    )
