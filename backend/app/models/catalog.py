"""Category, supplier, and product models."""

from decimal import Decimal

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    Numeric,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Category(Base):
    __tablename__ = "Category"

    category_id: Mapped[int] = mapped_column("categoryId", Integer, primary_key=True)
    category_name: Mapped[str] = mapped_column(
        "categoryName", String(15), unique=True, nullable=False
    )
    description: Mapped[str | None] = mapped_column("description", Text, nullable=True)
    picture: Mapped[bytes | None] = mapped_column(
        "picture", LargeBinary, nullable=True, deferred=True
    )

    # Relationships
    products: Mapped[list["Product"]] = relationship(back_populates="category")


class Supplier(Base):
    __tablename__ = "Supplier"

    supplier_id: Mapped[int] = mapped_column("supplierId", Integer, primary_key=True)
    company_name: Mapped[str] = mapped_column("companyName", String(40), nullable=False)
    contact_name: Mapped[str | None] = mapped_column("contactName", String(30), nullable=True)
    contact_title: Mapped[str | None] = mapped_column("contactTitle", String(30), nullable=True)
    address: Mapped[str | None] = mapped_column("address", String(60), nullable=True)
    city: Mapped[str | None] = mapped_column("city", String(15), nullable=True)
    region: Mapped[str | None] = mapped_column("region", String(15), nullable=True)
    postal_code: Mapped[str | None] = mapped_column("postalCode", String(10), nullable=True)
    country: Mapped[str | None] = mapped_column("country", String(15), nullable=True)
    phone: Mapped[str | None] = mapped_column("phone", String(24), nullable=True)
    email: Mapped[str | None] = mapped_column("email", String(225), nullable=True)
    fax: Mapped[str | None] = mapped_column("fax", String(24), nullable=True)
    home_page: Mapped[str | None] = mapped_column("homePage", Text, nullable=True)

    # Relationships
    products: Mapped[list["Product"]] = relationship(back_populates="supplier")


class Product(Base):
    __tablename__ = "Product"

    product_id: Mapped[int] = mapped_column("productId", Integer, primary_key=True)
    product_name: Mapped[str] = mapped_column("productName", String(40), nullable=False)
    supplier_id: Mapped[int | None] = mapped_column(
        "supplierId", Integer, ForeignKey("Supplier.supplierId"), nullable=True
    )
    category_id: Mapped[int | None] = mapped_column(
        "categoryId", Integer, ForeignKey("Category.categoryId"), nullable=True
    )
    quantity_per_unit: Mapped[str | None] = mapped_column(
        "quantityPerUnit", String(20), nullable=True
    )
    unit_price: Mapped[Decimal | None] = mapped_column(
        "unitPrice", Numeric(10, 2), default=0, nullable=True
    )
    units_in_stock: Mapped[int | None] = mapped_column(
        "unitsInStock", SmallInteger, default=0, nullable=True
    )
    units_on_order: Mapped[int | None] = mapped_column(
        "unitsOnOrder", SmallInteger, default=0, nullable=True
    )
    reorder_level: Mapped[int | None] = mapped_column(
        "reorderLevel", SmallInteger, default=0, nullable=True
    )
    discontinued: Mapped[bool] = mapped_column(
        "discontinued", Boolean, default=False, nullable=False
    )

    # Relationships
    category: Mapped["Category | None"] = relationship(back_populates="products")
    supplier: Mapped["Supplier | None"] = relationship(back_populates="products")
    order_details: Mapped[list["OrderDetail"]] = relationship(  # noqa: F821
        "OrderDetail", back_populates="product"
    )

    __table_args__ = (
        Index("ix_product_category", "categoryId"),
        Index("ix_product_supplier", "supplierId"),
    )
