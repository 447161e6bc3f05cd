from sqlalchemy import Column, String, Integer, DateTime, Boolean, Numeric, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()


class Tenant(Base):
    __tablename__ = 'tenants'

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    plan = Column(String, default="trial")   # trial, basic, pro, professional, enterprise
    status = Column(String, default="trial")
    created_at = Column(DateTime, default=datetime.utcnow)


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, nullable=False, default="")
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String, nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    cost = Column(Numeric(10, 2), nullable=True)
    stock = Column(Numeric(10, 3), nullable=False, default=0)
    real_stock = Column(Numeric(10, 3), nullable=False, default=0)
    min_stock = Column(Numeric(10, 3), nullable=False, default=5)
    unit_type = Column(String, nullable=False, default="piece")
    allow_decimals = Column(Boolean, nullable=False, default=False)
    sale_unit = Column(Numeric(10, 3), nullable=False, default=1)
    sale_unit_name = Column(String, default="unidad")
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=True)
    image_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")   # active, inactive, deleted
    is_composite = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    category = relationship("Category")
    warehouse_stocks = relationship("ProductWarehouseStock", back_populates="product", cascade="all, delete-orphan")


class Warehouse(Base):
    __tablename__ = 'warehouses'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False, default="")
    phone = Column(String, nullable=True)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class ProductWarehouseStock(Base):
    __tablename__ = 'product_warehouse_stock'

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=False)
    stock = Column(Numeric(10, 3), nullable=False, default=0)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="warehouse_stocks")
    warehouse = relationship("Warehouse")


class Supplier(Base):
    __tablename__ = 'suppliers'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    contact_person = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Purchase(Base):
    __tablename__ = 'purchases'

    id = Column(Integer, primary_key=True, index=True)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default="pending")   # pending, received, cancelled
    supplier_id = Column(Integer, ForeignKey('suppliers.id'), nullable=True)
    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=True)
    user_id = Column(Integer, nullable=True)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    supplier = relationship("Supplier")


class CashRegister(Base):
    __tablename__ = 'cash_registers'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    user_id = Column(Integer, nullable=False)
    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=True)
    opening_amount = Column(Numeric(10, 2), nullable=False, default=0)
    is_open = Column(Boolean, default=False)
    status = Column(String, nullable=False, default="closed")   # open, closed
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    opened_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Sale(Base):
    __tablename__ = 'sales'

    id = Column(Integer, primary_key=True, index=True)
    total = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), default=0)
    payment_method = Column(String, nullable=True)
    ticket_title = Column(String, nullable=True)
    status = Column(String, default="completed")
    cash_register_id = Column(Integer, ForeignKey('cash_registers.id'), nullable=True)
    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=True)
    user_id = Column(Integer, nullable=True)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")
    payments = relationship("SalePayment", back_populates="sale", cascade="all, delete-orphan")


class SaleItem(Base):
    __tablename__ = 'sale_items'

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey('sales.id'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    quantity = Column(Numeric(10, 3), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


class SalePayment(Base):
    __tablename__ = 'sale_payments'

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey('sales.id'), nullable=False)
    payment_method = Column(String, nullable=False)   # cash, card, transfer, credit, voucher, gift_card
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, nullable=False, default="MXN")
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    sale = relationship("Sale", back_populates="payments")


class Employee(Base):
    __tablename__ = 'employees'

    id = Column(Integer, primary_key=True, index=True)
    employee_number = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    position = Column(String, nullable=False, default="")
    department = Column(String, nullable=True)
    hire_date = Column(DateTime, nullable=True)
    salary = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=True)
    full_name = Column(String, nullable=False, default="")
    role = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_owner = Column(Boolean, nullable=False, default=False)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Appointment(Base):
    __tablename__ = 'appointments'

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    appointment_date = Column(DateTime(timezone=True), nullable=False)
    appointment_time = Column(String, nullable=False)   # "HH:MM"
    status = Column(String, nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)
    tenant_id = Column(String, ForeignKey('tenants.id'), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
