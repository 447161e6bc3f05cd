# context_manager.py

import logging
from collections import Counter, OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import storage
from schemas.context import (
    AppointmentDetail, AppointmentsSummary, AppointmentStatusCounts, BusinessContext, ContextOverview,
    DashboardSummary, DepartmentCount, EmployeesSummary, InventorySummary, LowStockProduct,
    NegativeStockProduct, PaymentMethodBreakdown, ProductRow, ProductsSummary, PurchasesSummary,
    RecentPurchase, RecentSale, RoleCount, SalesSummary, SupplierRow, SuppliersSummary, TenantInfo,
    TopProduct, UsersSummary, WarehouseRow, WarehousesSummary, WarehouseStockRow,
)

logger = logging.getLogger(__name__)

PRODUCTS_LIST_LIMIT = 20
TOP_PRODUCTS_LIMIT = 10
RECENT_SALES_LIMIT = 10
RECENT_PURCHASES_LIMIT = 5
SUPPLIERS_LIMIT = 10
STOCK_DISTRIBUTION_LIMIT = 100
UPCOMING_DAYS_LIMIT = 14
RECENT_HIRE_DAYS = 182

STATUS_ALIASES = {
    "scheduled": ("scheduled", "programada"),
    "confirmed": ("confirmed", "confirmada"),
    "pending": ("pending", "pendiente"),
    "cancelled": ("cancelled", "cancelada"),
}
PENDING_STATUSES = ("pending", "pendiente", "programada", "scheduled")


def _num(value) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(Decimal(str(value)))
    except (ArithmeticError, ValueError):
        return 0.0


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _safe_read(db: Session, label: str, fn: Callable[[], Any], default: Any) -> Any:
    """
    Run one sub-read. A failure degrades that section to `default` instead of
    failing the whole context.
    """
    try:
        return fn()
    except Exception:
        logger.exception(f"Business context: {label} unavailable, using defaults")
        try:
            db.rollback()
        except SQLAlchemyError:
            logger.exception("Business context: rollback after failed read also failed")
        return default

# -------------------------------------------------------------------------------------------------
# 1) Derived metrics
# -------------------------------------------------------------------------------------------------
def analyze_sales_by_payment_method(sales) -> List[PaymentMethodBreakdown]:
    totals: Dict[str, Dict[str, float]] = OrderedDict()
    for sale in sales:
        method = sale.payment_method or "cash"
        bucket = totals.setdefault(method, {"total": 0.0, "count": 0})
        bucket["total"] += _num(sale.total)
        bucket["count"] += 1

    grand_total = sum(b["total"] for b in totals.values())
    return [
        PaymentMethodBreakdown(
            method=method,
            total=round(data["total"], 2),
            count=data["count"],
            percentage=round(data["total"] / grand_total * 100, 1) if grand_total > 0 else 0.0,
        )
        for method, data in totals.items()
    ]


def group_employees_by_department(employees) -> List[DepartmentCount]:
    counts = Counter((e.department or "Sin departamento") for e in employees)
    return [DepartmentCount(department=dept, count=count) for dept, count in counts.items()]


def calculate_average_salary(employees) -> float:
    if not employees:
        return 0.0
    return round(sum(_num(e.salary) for e in employees) / len(employees), 2)


def group_users_by_role(users) -> List[RoleCount]:
    counts = Counter((u.role or "Usuario") for u in users)
    return [RoleCount(role=role, count=count) for role, count in counts.items()]


def find_low_stock(products) -> List[LowStockProduct]:
    low = []
    for p in products:
        stock, minimum = _num(p.stock), _num(p.min_stock)
        if 0 < stock <= minimum:
            low.append(LowStockProduct(name=p.name, current_stock=stock, min_stock=minimum, shortage=minimum - stock))
    return low


def find_negative_stock(products) -> List[NegativeStockProduct]:
    return [NegativeStockProduct(name=p.name, stock=_num(p.stock)) for p in products if _num(p.stock) < 0]


def stock_valuation(products) -> float:
    return round(sum(_num(p.stock) * _num(p.cost) for p in products), 2)


def flatten_warehouse_stocks(grouped: List[Dict[str, Any]]) -> List[WarehouseStockRow]:
    rows = []
    for product in grouped:
        for ws in product.get("warehouse_stocks", []):
            rows.append(WarehouseStockRow(
                product_id=product["product_id"],
                product_name=product["product_name"],
                warehouse_id=ws["warehouse_id"],
                warehouse_name=ws["warehouse_name"],
                stock=_num(ws["stock"]),
            ))
    return rows


def summarize_appointments(appointments, now: datetime) -> AppointmentsSummary:
    today = now.date()
    horizon = today + timedelta(days=UPCOMING_DAYS_LIMIT)

    def _day(apt):
        return apt.appointment_date.date() if apt.appointment_date else None

    todays = [a for a in appointments if _day(a) == today]
    upcoming = [a for a in appointments if _day(a) and _day(a) > today]
    pending = [a for a in appointments if (a.status or "").lower() in PENDING_STATUSES]

    by_day: Dict[str, int] = OrderedDict()
    for apt in sorted(upcoming, key=_day):
        if _day(apt) <= horizon:
            key = _day(apt).isoformat()
            by_day[key] = by_day.get(key, 0) + 1

    return AppointmentsSummary(
        total=len(appointments),
        today=len(todays),
        upcoming=len(upcoming),
        by_status=AppointmentStatusCounts(**{
            status: sum(1 for a in appointments if a.status in aliases)
            for status, aliases in STATUS_ALIASES.items()
        }),
        by_day=by_day,
        pending_details=[
            AppointmentDetail(
                customer_name=a.customer_name,
                date=_day(a).isoformat() if _day(a) else None,
                time=a.appointment_time or "",
                subject=a.subject,
                status=a.status,
            )
            for a in pending
        ],
        today_details=[
            AppointmentDetail(customer_name=a.customer_name, time=a.appointment_time or "", subject=a.subject, status=a.status)
            for a in todays
        ],
    )

# -------------------------------------------------------------------------------------------------
# 2) build_business_context
# -------------------------------------------------------------------------------------------------
def build_business_context(db: Session, tenant_id: str, now: Optional[datetime] = None) -> BusinessContext:
    """
    Assemble the BusinessContext for one request.
    - every sub-read is independent; one failing leaves its section at zero/empty
    - lists are capped so the prompt stays bounded
    - nothing is cached: the snapshot reflects the store at call time
    """
    now = now or datetime.utcnow()
    try:
        return _build(db, tenant_id, now)
    except Exception:
        logger.exception(f"Business context build failed for tenant {tenant_id!r}, using minimal context")
        return BusinessContext()


def _build(db: Session, tenant_id: str, now: datetime) -> BusinessContext:
    # A) Independent reads
    tenant = _safe_read(db, "tenant", lambda: storage.get_tenant(db, tenant_id), None)
    products = _safe_read(db, "products", lambda: storage.get_products(db, tenant_id), [])
    warehouses = _safe_read(db, "warehouses", lambda: storage.get_warehouses(db, tenant_id), [])
    categories = _safe_read(db, "categories", lambda: storage.get_categories(db, tenant_id), [])
    stock_rows = flatten_warehouse_stocks(
        _safe_read(db, "warehouse stock", lambda: storage.get_warehouse_stocks(db, tenant_id), [])
    )
    sales_stats = _safe_read(db, "sales stats", lambda: storage.get_sales_stats(db, tenant_id, now), {})
    sales = _safe_read(db, "sales", lambda: storage.get_sales(db, tenant_id), [])
    top_products = _safe_read(
        db, "top products", lambda: storage.get_top_selling_products(db, tenant_id, TOP_PRODUCTS_LIMIT), []
    )
    purchases = _safe_read(db, "purchases", lambda: storage.get_purchases(db, tenant_id), [])
    suppliers = _safe_read(db, "suppliers", lambda: storage.get_suppliers(db, tenant_id), [])
    employees = _safe_read(db, "employees", lambda: storage.get_employees(db, tenant_id), [])
    users = _safe_read(db, "users", lambda: storage.get_users(db, tenant_id), [])
    appointments = _safe_read(
        db, "appointments",
        lambda: summarize_appointments(storage.get_appointments(db, tenant_id), now),
        AppointmentsSummary(),
    )

    # B) Derived values
    low_stock = find_low_stock(products)
    active_employees = [e for e in employees if e.is_active]
    category_names = {c.id: c.name for c in categories}
    month_start = datetime(now.year, now.month, 1)
    hire_cutoff = now - timedelta(days=RECENT_HIRE_DAYS)

    today_sales = _num(sales_stats.get("today_sales"))
    month_sales = _num(sales_stats.get("month_sales"))
    total_transactions = int(sales_stats.get("total_transactions") or 0)
    average_ticket = _num(sales_stats.get("average_ticket"))

    # C) Sections
    return BusinessContext(
        tenant=TenantInfo(
            name=(tenant.name if tenant and tenant.name else "Negocio"),
            plan=(tenant.plan if tenant and tenant.plan else "Basic"),
        ),
        dashboard=DashboardSummary(
            total_products=len(products),
            total_warehouses=len(warehouses),
            total_employees=len(employees),
            total_users=len(users),
            total_suppliers=len(suppliers),
            today_sales=today_sales,
            month_sales=month_sales,
            total_transactions=total_transactions,
            average_ticket=average_ticket,
        ),
        products=ProductsSummary(
            total=len(products),
            low_stock=len(low_stock),
            categories=len(categories),
            active_products=sum(1 for p in products if p.status == "active"),
            inactive_products=sum(1 for p in products if p.status == "inactive"),
            top_selling_products=[
                TopProduct(
                    name=t["product_name"],
                    price=_num(t["average_price"]),
                    total_sold=_num(t["total_quantity"]),
                    revenue=_num(t["total_revenue"]),
                    profit=_num(t["total_profit"]),
                )
                for t in top_products[:TOP_PRODUCTS_LIMIT]
            ],
            products_list=[
                ProductRow(
                    id=p.id,
                    name=p.name,
                    sku=p.sku,
                    price=_num(p.price),
                    cost=_num(p.cost),
                    stock=_num(p.stock),
                    category=category_names.get(p.category_id, "Sin categoría"),
                    status=p.status or "active",
                )
                for p in products[:PRODUCTS_LIST_LIMIT]
            ],
        ),
        warehouses=WarehousesSummary(
            total=len(warehouses),
            rows=[
                WarehouseRow(
                    id=w.id,
                    name=w.name or "Almacén sin nombre",
                    location=w.address or "Sin ubicación",
                    products_count=sum(1 for row in stock_rows if row.warehouse_id == w.id),
                )
                for w in warehouses
            ],
        ),
        sales=SalesSummary(
            today_total=today_sales,
            this_month_total=month_sales,
            total_transactions=total_transactions,
            average_ticket=average_ticket,
            recent_sales=[
                RecentSale(id=s.id, total=_num(s.total), date=_iso(s.created_at), payment_method=s.payment_method, status=s.status)
                for s in sales[:RECENT_SALES_LIMIT]
            ],
            sales_by_payment_method=analyze_sales_by_payment_method(sales),
        ),
        purchases=PurchasesSummary(
            total=len(purchases),
            total_amount=round(sum(_num(p.total) for p in purchases), 2),
            monthly_total=round(sum(_num(p.total) for p in purchases if p.created_at and p.created_at >= month_start), 2),
            recent_purchases=[
                RecentPurchase(
                    id=p.id,
                    supplier=(p.supplier.name if p.supplier else "Sin proveedor"),
                    total=_num(p.total),
                    date=_iso(p.created_at),
                    status=p.status or "completed",
                )
                for p in purchases[:RECENT_PURCHASES_LIMIT]
            ],
        ),
        suppliers=SuppliersSummary(
            total=len(suppliers),
            active_suppliers=sum(1 for s in suppliers if s.status == "active"),
            rows=[
                SupplierRow(id=s.id, name=s.name, contact=s.contact_person, phone=s.phone, email=s.email, status=s.status)
                for s in suppliers[:SUPPLIERS_LIMIT]
            ],
        ),
        employees=EmployeesSummary(
            total=len(employees),
            active=len(active_employees),
            inactive=len(employees) - len(active_employees),
            departments=group_employees_by_department(employees),
            recent_hires=sum(1 for e in employees if e.hire_date and e.hire_date >= hire_cutoff),
            average_salary=calculate_average_salary(active_employees),
        ),
        users=UsersSummary(
            total=len(users),
            active_users=sum(1 for u in users if u.is_active),
            roles=group_users_by_role(users),
        ),
        inventory=InventorySummary(
            total_products=len(products),
            low_stock_products=low_stock,
            negative_stock_products=find_negative_stock(products),
            total_stock_value=stock_valuation(products),
            warehouse_stock_distribution=stock_rows[:STOCK_DISTRIBUTION_LIMIT],
        ),
        appointments=appointments,
        low_stock_products=low_stock,
    )

# -------------------------------------------------------------------------------------------------
# 3) build_context_overview
# -------------------------------------------------------------------------------------------------
def build_context_overview(db: Session, tenant_id: str) -> ContextOverview:
    products = _safe_read(db, "products", lambda: storage.get_products(db, tenant_id), [])
    warehouses = _safe_read(db, "warehouses", lambda: storage.get_warehouses(db, tenant_id), [])
    stats = _safe_read(db, "sales stats", lambda: storage.get_sales_stats(db, tenant_id), {})
    return ContextOverview(
        productsCount=len(products),
        warehousesCount=len(warehouses),
        todaySales=_num(stats.get("today_sales")),
        monthSales=_num(stats.get("month_sales")),
    )
