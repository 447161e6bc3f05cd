import os

# Must be set before database.py is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Base, CashRegister, Category, Product, ProductWarehouseStock, Tenant, User, Warehouse

TENANT_ID = "tenant-1"
OTHER_TENANT_ID = "tenant-2"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def seeded(db):
    """
    One tenant with a warehouse, a category, two products, an open register and a user.
    A second tenant owns a product with the same name as the first tenant's.
    """
    db.add_all([
        Tenant(id=TENANT_ID, name="Cafetería Central", plan="pro", status="active"),
        Tenant(id=OTHER_TENANT_ID, name="Otro Negocio", plan="basic", status="active"),
    ])
    db.flush()

    warehouse = Warehouse(name="Almacén Principal", address="Centro", tenant_id=TENANT_ID)
    category = Category(name="Bebidas", code="BEB", tenant_id=TENANT_ID)
    db.add_all([warehouse, category])
    db.flush()

    cafe = Product(
        name="Café", sku="CAFE001", price=Decimal("30.00"), cost=Decimal("12.00"),
        stock=Decimal("50"), real_stock=Decimal("50"), min_stock=Decimal("5"),
        category_id=category.id, tenant_id=TENANT_ID,
    )
    queso = Product(
        name="Queso Oaxaca", sku="QUESO001", price=Decimal("120.00"), cost=Decimal("80.00"),
        stock=Decimal("3"), real_stock=Decimal("3"), min_stock=Decimal("5"),
        unit_type="kg", allow_decimals=True, tenant_id=TENANT_ID,
    )
    foreign = Product(
        name="Café", sku="CAFE999", price=Decimal("99.00"), cost=Decimal("1.00"),
        stock=Decimal("10"), real_stock=Decimal("10"), tenant_id=OTHER_TENANT_ID,
    )
    db.add_all([cafe, queso, foreign])
    db.flush()

    db.add(ProductWarehouseStock(product_id=cafe.id, warehouse_id=warehouse.id, stock=Decimal("50"), tenant_id=TENANT_ID))

    user = User(username="cajero", full_name="Cajero Uno", role="cashier", tenant_id=TENANT_ID)
    db.add(user)
    db.flush()

    register = CashRegister(
        name="Caja 1", user_id=user.id, warehouse_id=warehouse.id, opening_amount=Decimal("500"),
        is_open=True, status="open", tenant_id=TENANT_ID, opened_at=datetime(2025, 3, 1, 8, 0),
    )
    db.add(register)
    db.commit()

    return {
        "db": db,
        "warehouse": warehouse,
        "category": category,
        "cafe": cafe,
        "queso": queso,
        "user": user,
        "register": register,
    }
