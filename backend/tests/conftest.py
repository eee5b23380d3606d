"""Shared fixtures: an in-memory SQLite database seeded with a small
Northwind dataset, an HTTP client bound to the app, and auth headers."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest")
os.environ.setdefault("DEBUG", "true")
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.rate_limit import reset_rate_limits
from app.core.security import create_access_token, hash_password
from app.database import Base, get_db
from app.main import app
from app.models import (
    Category,
    Customer,
    Employee,
    OrderDetail,
    Product,
    Region,
    SalesOrder,
    Shipper,
    Supplier,
    Territory,
    User,
    employee_territory,
)

PASSWORD = "Passw0rd1"


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# (id, name, supplier, category, price, stock, on order, reorder level, discontinued)
PRODUCTS = [
    (1, "Chai", 1, 1, "18.00", 39, 0, 10, False),
    (2, "Chang", 1, 1, "19.00", 17, 40, 25, False),
    (3, "Aniseed Syrup", 1, 2, "10.00", 13, 70, 25, False),
    (4, "Chef Anton's Cajun Seasoning", 2, 2, "22.00", 53, 0, 0, False),
    (5, "Chef Anton's Gumbo Mix", 2, 2, "21.35", 0, 0, 0, True),
    (6, "Grandma's Boysenberry Spread", 2, 2, "25.00", 120, 0, 25, False),
    (7, "Cote de Blaye", 1, 1, "263.50", 17, 0, 15, False),
    (8, "Ipoh Coffee", 1, 1, "46.00", 17, 10, 25, False),
    (9, "Steeleye Stout", 1, 1, "18.00", 20, 0, 15, False),
    (10, "Chartreuse verte", 1, 1, "18.00", 69, 0, 5, False),
    (11, "Lakkalikoori", 1, 1, "18.00", 57, 0, 20, False),
    (12, "Outback Lager", 1, 1, "15.00", 15, 10, 30, False),
    (13, "Rhonbrau Klosterbier", 1, 1, "7.75", 125, 0, 25, False),
    (14, "Laughing Lumberjack Lager", 1, 1, "14.00", 52, 0, 10, False),
    (15, "Guarana Fantastica", 1, 1, "4.50", 20, 0, 0, True),
    (16, "Sasquatch Ale", 1, 1, "14.00", 111, 0, 15, False),
    (17, "Louisiana Hot Spiced Okra", 2, 2, "17.00", 4, 100, 20, False),
    (18, "Vegie-spread", 2, 2, "43.90", 24, 0, 5, False),
    (19, "Original Frankfurter Sosse", 2, 2, "13.00", 32, 0, 15, False),
    (20, "Maple Syrup", 2, 2, "12.00", 0, 0, 10, False),
]


def build_fixture_rows() -> list:
    rows: list = [
        Category(category_id=1, category_name="Beverages", description="Soft drinks, coffees, teas, beers"),
        Category(category_id=2, category_name="Condiments", description="Sweet and savory sauces"),
        Category(category_id=3, category_name="Produce", description="Dried fruit and bean curd"),
        Supplier(
            supplier_id=1, company_name="Exotic Liquids", contact_name="Charlotte Cooper",
            address="49 Gilbert St.", city="London", postal_code="EC1 4SD", country="UK",
        ),
        Supplier(
            supplier_id=2, company_name="New Orleans Cajun Delights", contact_name="Shelley Burke",
            address="P.O. Box 78934", city="New Orleans", region="LA", postal_code="70117",
            country="USA",
        ),
        Supplier(supplier_id=3, company_name="Tokyo Traders", city="Tokyo", country="Japan"),
        Shipper(shipper_id=1, company_name="Speedy Express", phone="(503) 555-9831"),
        Shipper(shipper_id=2, company_name="United Package", phone="(503) 555-3199"),
        Customer(
            cust_id=1, company_name="Alfreds Futterkiste", contact_name="Maria Anders",
            city="Berlin", country="Germany",
        ),
        Customer(
            cust_id=2, company_name="Ana Trujillo Emparedados", contact_name="Ana Trujillo",
            city="Mexico D.F.", country="Mexico",
        ),
        Customer(
            cust_id=3, company_name="Around the Horn", contact_name="Thomas Hardy",
            city="London", country="UK",
        ),
        Customer(
            cust_id=4, company_name="Blondel pere et fils", contact_name="Frederique Citeaux",
            city="Strasbourg", country="France",
        ),
        Employee(
            employee_id=2, last_name="Fuller", first_name="Andrew", title="Vice President, Sales",
            birth_date=date(1952, 2, 19), hire_date=date(1992, 8, 14), city="Tacoma", country="USA",
        ),
        Employee(
            employee_id=1, last_name="Davolio", first_name="Nancy", title="Sales Representative",
            birth_date=date(1968, 12, 8), hire_date=date(1992, 5, 1), city="Seattle",
            country="USA", mgr_id=2,
        ),
        Employee(
            employee_id=3, last_name="Leverling", first_name="Janet", title="Sales Representative",
            birth_date=date(1963, 8, 30), hire_date=date(1992, 4, 1), city="Kirkland",
            country="USA", mgr_id=2,
        ),
        Employee(
            employee_id=5, last_name="Buchanan", first_name="Steven", title="Sales Manager",
            birth_date=date(1955, 3, 4), hire_date=date(1993, 10, 17), city="London",
            country="UK", mgr_id=2,
        ),
        Employee(
            employee_id=6, last_name="Suyama", first_name="Michael", title="Sales Representative",
            birth_date=date(1963, 7, 2), hire_date=date(1993, 10, 17), city="London",
            country="UK", mgr_id=5,
        ),
        Region(region_id=1, region_description="Eastern"),
        Territory(territory_id="01581", territory_description="Westboro", region_id=1),
        Territory(territory_id="02116", territory_description="Boston", region_id=1),
        User(id=1, user_name="admin@northwind.com", password_hash=hash_password(PASSWORD), admin=1),
        User(id=2, user_name="clerk@northwind.com", password_hash=hash_password(PASSWORD), admin=0),
    ]
    rows.extend(
        Product(
            product_id=pid, product_name=name, supplier_id=sid, category_id=cid,
            quantity_per_unit="10 boxes x 20 bags" if pid == 1 else "24 - 12 oz bottles",
            unit_price=Decimal(price), units_in_stock=stock, units_on_order=on_order,
            reorder_level=reorder, discontinued=discontinued,
        )
        for pid, name, sid, cid, price, stock, on_order, reorder, discontinued in PRODUCTS
    )
    rows.extend([
        # shipped
        SalesOrder(
            order_id=10248, cust_id=1, employee_id=5, shipper_id=1,
            order_date=_utc(2023, 7, 4), required_date=_utc(2023, 8, 1),
            shipped_date=_utc(2023, 7, 16), freight=Decimal("32.38"),
            ship_name="Alfreds Futterkiste", ship_city="Berlin", ship_country="Germany",
        ),
        # processing and overdue
        SalesOrder(
            order_id=10249, cust_id=1, employee_id=6, shipper_id=2,
            order_date=_utc(2023, 7, 5), required_date=_utc(2023, 8, 16),
            freight=Decimal("11.61"), ship_name="Alfreds Futterkiste", ship_city="Berlin",
            ship_country="Germany",
        ),
        # processing, not yet due
        SalesOrder(
            order_id=10250, cust_id=2, employee_id=1, shipper_id=1,
            order_date=_utc(2023, 7, 8), required_date=_utc(2099, 8, 5),
            freight=Decimal("65.83"), ship_name="Ana Trujillo", ship_city="Mexico D.F.",
            ship_country="Mexico",
        ),
        # pending
        SalesOrder(
            order_id=10251, cust_id=3, employee_id=3, shipper_id=2,
            freight=Decimal("41.34"), ship_name="Around the Horn", ship_city="London",
            ship_country="UK",
        ),
        # shipped, no employee
        SalesOrder(
            order_id=10252, cust_id=2, shipper_id=1,
            order_date=_utc(2024, 1, 15), required_date=_utc(2024, 2, 12),
            shipped_date=_utc(2024, 1, 20), freight=Decimal("51.30"),
            ship_name="Ana Trujillo", ship_city="Mexico D.F.", ship_country="Mexico",
        ),
        OrderDetail(order_detail_id=1, order_id=10248, product_id=1, unit_price=Decimal("18.00"),
                    quantity=12, discount=Decimal("0")),
        OrderDetail(order_detail_id=2, order_id=10248, product_id=2, unit_price=Decimal("19.00"),
                    quantity=10, discount=Decimal("0")),
        OrderDetail(order_detail_id=3, order_id=10249, product_id=4, unit_price=Decimal("22.00"),
                    quantity=9, discount=Decimal("0")),
        OrderDetail(order_detail_id=4, order_id=10249, product_id=17, unit_price=Decimal("17.00"),
                    quantity=40, discount=Decimal("0.25")),
        OrderDetail(order_detail_id=5, order_id=10250, product_id=9, unit_price=Decimal("18.00"),
                    quantity=10, discount=Decimal("0")),
        OrderDetail(order_detail_id=6, order_id=10251, product_id=3, unit_price=Decimal("10.00"),
                    quantity=6, discount=Decimal("0.05")),
        OrderDetail(order_detail_id=7, order_id=10252, product_id=20, unit_price=Decimal("12.00"),
                    quantity=5, discount=Decimal("0")),
    ])
    return rows


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(build_fixture_rows())
        await session.flush()
        await session.execute(
            employee_territory.insert(),
            [
                {"employeeId": 1, "territoryId": "01581"},
                {"employeeId": 1, "territoryId": "02116"},
            ],
        )
        await session.commit()
    return factory


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry():
    return app.state.registry


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    token = create_access_token(1, "admin@northwind.com", admin=True)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict:
    token = create_access_token(2, "clerk@northwind.com", admin=False)
    return {"Authorization": f"Bearer {token}"}
