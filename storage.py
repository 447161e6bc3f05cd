# storage.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import (
    Appointment, CashRegister, Category, Employee, Product, ProductWarehouseStock,
    Purchase, Sale, SaleItem, SalePayment, Supplier, Tenant, User, Warehouse,
)

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _save(db: Session, obj):
    """
    Add, commit and refresh a single row. Rolls the session back and re-raises
    on failure so the caller decides how to report it.
    """
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        db.rollback()
        raise
    return obj

# -------------------------------------------------------------------------------------------------
# 1) Reads
# -------------------------------------------------------------------------------------------------
def get_tenant(db: Session, tenant_id: str) -> Optional[Tenant]:
    return db.query(Tenant).filter(Tenant.id == tenant_id).first()


def get_products(db: Session, tenant_id: str) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.tenant_id == tenant_id, Product.status != "deleted")
        .order_by(Product.sort_order.asc(), Product.id.asc())
        .all()
    )


def get_categories(db: Session, tenant_id: str) -> List[Category]:
    return db.query(Category).filter(Category.tenant_id == tenant_id).order_by(Category.name.asc()).all()


def get_warehouses(db: Session, tenant_id: str) -> List[Warehouse]:
    return db.query(Warehouse).filter(Warehouse.tenant_id == tenant_id).order_by(Warehouse.id.asc()).all()


def get_warehouse_stocks(db: Session, tenant_id: str) -> List[Dict[str, Any]]:
    """
    Stock grouped by product:
      [{"product_id", "product_name", "warehouse_stocks": [{"warehouse_id", "warehouse_name", "stock"}]}]
    """
    rows = (
        db.query(ProductWarehouseStock, Product, Warehouse)
        .join(Product, ProductWarehouseStock.product_id == Product.id)
        .join(Warehouse, ProductWarehouseStock.warehouse_id == Warehouse.id)
        .filter(ProductWarehouseStock.tenant_id == tenant_id)
        .order_by(Product.id.asc(), Warehouse.id.asc())
        .all()
    )

    grouped: Dict[int, Dict[str, Any]] = {}
    for pws, product, warehouse in rows:
        entry = grouped.setdefault(product.id, {
            "product_id": product.id,
            "product_name": product.name,
            "warehouse_stocks": [],
        })
        entry["warehouse_stocks"].append({
            "warehouse_id": warehouse.id,
            "warehouse_name": warehouse.name,
            "stock": _to_decimal(pws.stock),
        })
    return list(grouped.values())


def get_sales(db: Session, tenant_id: str) -> List[Sale]:
    return db.query(Sale).filter(Sale.tenant_id == tenant_id).order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def get_sales_stats(db: Session, tenant_id: str, now: Optional[datetime] = None) -> Dict[str, Decimal]:
    now = now or datetime.utcnow()
    today_start = datetime(now.year, now.month, now.day)
    month_start = datetime(now.year, now.month, 1)

    def _sum_since(start: datetime) -> Decimal:
        value = (
            db.query(func.coalesce(func.sum(Sale.total), 0))
            .filter(Sale.tenant_id == tenant_id, Sale.created_at >= start)
            .scalar()
        )
        return _to_decimal(value)

    total_transactions = db.query(func.count(Sale.id)).filter(Sale.tenant_id == tenant_id).scalar() or 0
    grand_total = _to_decimal(
        db.query(func.coalesce(func.sum(Sale.total), 0)).filter(Sale.tenant_id == tenant_id).scalar()
    )
    average_ticket = (grand_total / total_transactions).quantize(Decimal("0.01")) if total_transactions else Decimal("0")

    return {
        "today_sales": _sum_since(today_start),
        "month_sales": _sum_since(month_start),
        "total_transactions": total_transactions,
        "average_ticket": average_ticket,
    }


def get_top_selling_products(db: Session, tenant_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    quantity = func.sum(SaleItem.quantity)
    rows = (
        db.query(
            Product.name,
            Product.cost,
            quantity.label("total_quantity"),
            func.sum(SaleItem.total).label("total_revenue"),
        )
        .join(Product, SaleItem.product_id == Product.id)
        .filter(SaleItem.tenant_id == tenant_id)
        .group_by(Product.id, Product.name, Product.cost)
        .order_by(quantity.desc())
        .limit(limit)
        .all()
    )

    result = []
    for name, cost, total_quantity, total_revenue in rows:
        total_quantity = _to_decimal(total_quantity)
        total_revenue = _to_decimal(total_revenue)
        average_price = (total_revenue / total_quantity).quantize(Decimal("0.01")) if total_quantity else Decimal("0")
        result.append({
            "product_name": name,
            "average_price": average_price,
            "total_quantity": total_quantity,
            "total_revenue": total_revenue,
            "total_profit": total_revenue - total_quantity * _to_decimal(cost),
        })
    return result


def get_purchases(db: Session, tenant_id: str) -> List[Purchase]:
    return (
        db.query(Purchase)
        .filter(Purchase.tenant_id == tenant_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
        .all()
    )


def get_suppliers(db: Session, tenant_id: str) -> List[Supplier]:
    return db.query(Supplier).filter(Supplier.tenant_id == tenant_id).order_by(Supplier.id.asc()).all()


def get_employees(db: Session, tenant_id: str) -> List[Employee]:
    return db.query(Employee).filter(Employee.tenant_id == tenant_id).order_by(Employee.id.asc()).all()


def get_users(db: Session, tenant_id: str) -> List[User]:
    return db.query(User).filter(User.tenant_id == tenant_id).order_by(User.id.asc()).all()


def get_appointments(db: Session, tenant_id: str) -> List[Appointment]:
    return (
        db.query(Appointment)
        .filter(Appointment.tenant_id == tenant_id)
        .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
        .all()
    )


def get_active_cash_register(db: Session, tenant_id: str, user_id: Optional[int]) -> Optional[CashRegister]:
    """
    The most recently opened register of this user. Another cashier's drawer is never used.
    """
    if user_id is None:
        return None
    return (
        db.query(CashRegister)
        .filter(
            CashRegister.tenant_id == tenant_id,
            CashRegister.user_id == user_id,
            CashRegister.is_open.is_(True),
        )
        .order_by(CashRegister.opened_at.desc())
        .first()
    )

# -------------------------------------------------------------------------------------------------
# 2) Writes
# -------------------------------------------------------------------------------------------------
def create_supplier(db: Session, tenant_id: str, **fields) -> Supplier:
    return _save(db, Supplier(tenant_id=tenant_id, **fields))


def create_appointment(db: Session, tenant_id: str, **fields) -> Appointment:
    return _save(db, Appointment(tenant_id=tenant_id, **fields))


def create_product(db: Session, tenant_id: str, initial_warehouse: Optional[Warehouse] = None, **fields) -> Product:
    """
    Insert a product. When a warehouse is given, the initial stock is booked
    there in the same commit.
    """
    product = Product(tenant_id=tenant_id, **fields)
    if initial_warehouse is not None:
        product.warehouse_stocks.append(ProductWarehouseStock(
            warehouse_id=initial_warehouse.id,
            stock=fields.get("stock", 0),
            tenant_id=tenant_id,
        ))
    return _save(db, product)


def create_sale(
    db: Session,
    tenant_id: str,
    user_id: Optional[int],
    cash_register: CashRegister,
    items: List[Dict[str, Any]],
    payments: List[Dict[str, Any]],
    total: Decimal,
    ticket_title: Optional[str] = None,
) -> Sale:
    """
    Persist a sale with its line items and payments, and take the sold
    quantities out of product stock, in a single commit.

    items:    [{"product": Product, "quantity": Decimal, "unit_price": Decimal, "subtotal": Decimal}]
    payments: [{"method": str, "amount": Decimal}]
    """
    methods = {p["method"] for p in payments}
    sale = Sale(
        tenant_id=tenant_id,
        user_id=user_id,
        cash_register_id=cash_register.id,
        warehouse_id=cash_register.warehouse_id,
        total=total,
        subtotal=total,
        payment_method=methods.pop() if len(methods) == 1 else "mixed",
        ticket_title=ticket_title,
        status="completed",
    )

    try:
        db.add(sale)
        for item in items:
            product = item["product"]
            sale.items.append(SaleItem(
                product_id=product.id,
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total=item["subtotal"],
                tenant_id=tenant_id,
            ))
            product.stock = _to_decimal(product.stock) - item["quantity"]
            product.real_stock = _to_decimal(product.real_stock) - item["quantity"]
        for payment in payments:
            sale.payments.append(SalePayment(
                payment_method=payment["method"],
                amount=payment["amount"],
                tenant_id=tenant_id,
            ))
        db.commit()
        db.refresh(sale)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Sale rolled back for tenant {tenant_id!r}")
        raise
    return sale
