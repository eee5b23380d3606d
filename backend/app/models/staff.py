"""Employee, territory, and region models."""

from datetime import date

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

employee_territory = Table(
    "EmployeeTerritory",
    Base.metadata,
    Column("employeeId", Integer, ForeignKey("Employee.employeeId"), primary_key=True),
    Column("territoryId", String(20), ForeignKey("Territory.territoryId"), primary_key=True),
)


class Region(Base):
    __tablename__ = "Region"

    region_id: Mapped[int] = mapped_column("regionId", Integer, primary_key=True)
    region_description: Mapped[str] = mapped_column(
        "regiondescription", String(50), nullable=False
    )

    territories: Mapped[list["Territory"]] = relationship(back_populates="region")


class Territory(Base):
    __tablename__ = "Territory"

    territory_id: Mapped[str] = mapped_column("territoryId", String(20), primary_key=True)
    territory_description: Mapped[str] = mapped_column(
        "territorydescription", String(50), nullable=False
    )
    region_id: Mapped[int] = mapped_column(
        "regionId", Integer, ForeignKey("Region.regionId"), nullable=False
    )

    region: Mapped["Region"] = relationship(back_populates="territories")


class Employee(Base):
    __tablename__ = "Employee"

    employee_id: Mapped[int] = mapped_column("employeeId", Integer, primary_key=True)
    last_name: Mapped[str] = mapped_column("lastname", String(20), nullable=False)
    first_name: Mapped[str] = mapped_column("firstname", String(10), nullable=False)
    title: Mapped[str | None] = mapped_column("title", String(30), nullable=True)
    title_of_courtesy: Mapped[str | None] = mapped_column(
        "titleOfCourtesy", String(25), nullable=True
    )
    birth_date: Mapped[date | None] = mapped_column("birthDate", Date, nullable=True)
    hire_date: Mapped[date | None] = mapped_column("hireDate", Date, nullable=True)
    address: Mapped[str | None] = mapped_column("address", String(60), nullable=True)
    city: Mapped[str | None] = mapped_column("city", String(15), nullable=True)
    region: Mapped[str | None] = mapped_column("region", String(15), nullable=True)
    postal_code: Mapped[str | None] = mapped_column("postalCode", String(10), nullable=True)
    country: Mapped[str | None] = mapped_column("country", String(15), nullable=True)
    phone: Mapped[str | None] = mapped_column("phone", String(24), nullable=True)
    extension: Mapped[str | None] = mapped_column("extension", String(4), nullable=True)
    mobile: Mapped[str | None] = mapped_column("mobile", String(24), nullable=True)
    email: Mapped[str | None] = mapped_column("email", String(225), nullable=True)
    photo: Mapped[bytes | None] = mapped_column(
        "photo", LargeBinary, nullable=True, deferred=True
    )
    notes: Mapped[str | None] = mapped_column("notes", Text, nullable=True)
    mgr_id: Mapped[int | None] = mapped_column(
        "mgrId", Integer, ForeignKey("Employee.employeeId"), nullable=True
    )
    photo_path: Mapped[str | None] = mapped_column("photoPath", String(255), nullable=True)

    # Relationships
    manager: Mapped["Employee | None"] = relationship(
        back_populates="subordinates", remote_side=[employee_id]
    )
    subordinates: Mapped[list["Employee"]] = relationship(back_populates="manager")
    territories: Mapped[list["Territory"]] = relationship(secondary=employee_territory)
    orders: Mapped[list["SalesOrder"]] = relationship(  # noqa: F821
        "SalesOrder", back_populates="employee"
    )

    __table_args__ = (
        Index("ix_employee_manager", "mgrId"),
    )
