# schemas/context.py

from pydantic import BaseModel, Field
from typing import List, Dict, Optional


class TenantInfo(BaseModel):
    name: str = "Negocio"
    plan: str = "Basic"


class DashboardSummary(BaseModel):
    total_products: int = 0
    total_warehouses: int = 0
    total_employees: int = 0
    total_users: int = 0
    total_suppliers: int = 0
    today_sales: float = 0.0
    month_sales: float = 0.0
    total_transactions: int = 0
    average_ticket: float = 0.0


class TopProduct(BaseModel):
    name: str
    price: float = 0.0
    total_sold: float = 0.0
    revenue: float = 0.0
    profit: float = 0.0


class ProductRow(BaseModel):
    id: int
    name: str
    sku: str
    price: float = 0.0
    cost: float = 0.0
    stock: float = 0.0
    category: str = "Sin categoría"
    status: str = "active"


class ProductsSummary(BaseModel):
    total: int = 0
    low_stock: int = 0
    categories: int = 0
    active_products: int = 0
    inactive_products: int = 0
    top_selling_products: List[TopProduct] = Field(default_factory=list)
    products_list: List[ProductRow] = Field(default_factory=list)


class WarehouseStockRow(BaseModel):
    product_id: int
    product_name: str
    warehouse_id: int
    warehouse_name: str
    stock: float = 0.0


class WarehouseRow(BaseModel):
    id: int
    name: str
    location: str = "Sin ubicación"
    products_count: int = 0


class WarehousesSummary(BaseModel):
    total: int = 0
    rows: List[WarehouseRow] = Field(default_factory=list)


class RecentSale(BaseModel):
    id: int
    total: float = 0.0
    date: Optional[str] = None
    payment_method: Optional[str] = None
    status: Optional[str] = None


class PaymentMethodBreakdown(BaseModel):
    method: str
    total: float = 0.0
    count: int = 0
    percentage: float = 0.0


class SalesSummary(BaseModel):
    today_total: float = 0.0
    this_month_total: float = 0.0
    total_transactions: int = 0
    average_ticket: float = 0.0
    recent_sales: List[RecentSale] = Field(default_factory=list)
    sales_by_payment_method: List[PaymentMethodBreakdown] = Field(default_factory=list)


class RecentPurchase(BaseModel):
    id: int
    supplier: str = "Sin proveedor"
    total: float = 0.0
    date: Optional[str] = None
    status: str = "completed"


class PurchasesSummary(BaseModel):
    total: int = 0
    total_amount: float = 0.0
    monthly_total: float = 0.0
    recent_purchases: List[RecentPurchase] = Field(default_factory=list)


class SupplierRow(BaseModel):
    id: int
    name: str
    contact: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None


class SuppliersSummary(BaseModel):
    total: int = 0
    active_suppliers: int = 0
    rows: List[SupplierRow] = Field(default_factory=list)


class DepartmentCount(BaseModel):
    department: str
    count: int = 0


class EmployeesSummary(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    departments: List[DepartmentCount] = Field(default_factory=list)
    recent_hires: int = 0
    average_salary: float = 0.0


class RoleCount(BaseModel):
    role: str
    count: int = 0


class UsersSummary(BaseModel):
    total: int = 0
    active_users: int = 0
    roles: List[RoleCount] = Field(default_factory=list)


class LowStockProduct(BaseModel):
    name: str
    current_stock: float = 0.0
    min_stock: float = 0.0
    shortage: float = 0.0


class NegativeStockProduct(BaseModel):
    name: str
    stock: float = 0.0


class InventorySummary(BaseModel):
    total_products: int = 0
    low_stock_products: List[LowStockProduct] = Field(default_factory=list)
    negative_stock_products: List[NegativeStockProduct] = Field(default_factory=list)
    total_stock_value: float = 0.0
    warehouse_stock_distribution: List[WarehouseStockRow] = Field(default_factory=list)


class AppointmentStatusCounts(BaseModel):
    scheduled: int = 0
    confirmed: int = 0
    pending: int = 0
    cancelled: int = 0


class AppointmentDetail(BaseModel):
    customer_name: str
    date: Optional[str] = None
    time: str = ""
    subject: Optional[str] = None
    status: Optional[str] = None


class AppointmentsSummary(BaseModel):
    total: int = 0
    today: int = 0
    upcoming: int = 0
    by_status: AppointmentStatusCounts = Field(default_factory=AppointmentStatusCounts)
    by_day: Dict[str, int] = Field(default_factory=dict)   # "YYYY-MM-DD" -> count, upcoming days only
    pending_details: List[AppointmentDetail] = Field(default_factory=list)
    today_details: List[AppointmentDetail] = Field(default_factory=list)


class BusinessContext(BaseModel):
    """Per-request snapshot of a tenant's business state, fed to the model as grounding."""
    tenant: TenantInfo = Field(default_factory=TenantInfo)
    dashboard: DashboardSummary = Field(default_factory=DashboardSummary)
    products: ProductsSummary = Field(default_factory=ProductsSummary)
    warehouses: WarehousesSummary = Field(default_factory=WarehousesSummary)
    sales: SalesSummary = Field(default_factory=SalesSummary)
    purchases: PurchasesSummary = Field(default_factory=PurchasesSummary)
    suppliers: SuppliersSummary = Field(default_factory=SuppliersSummary)
    employees: EmployeesSummary = Field(default_factory=EmployeesSummary)
    users: UsersSummary = Field(default_factory=UsersSummary)
    inventory: InventorySummary = Field(default_factory=InventorySummary)
    appointments: AppointmentsSummary = Field(default_factory=AppointmentsSummary)
    low_stock_products: List[LowStockProduct] = Field(default_factory=list)


class ContextOverview(BaseModel):
    productsCount: int = 0
    warehousesCount: int = 0
    todaySales: float = 0.0
    monthSales: float = 0.0
