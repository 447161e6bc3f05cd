import json
from contextlib import ExitStack
from datetime import date, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from build_prompt import build_system_prompt
from context_manager import (
    analyze_sales_by_payment_method, build_business_context, build_context_overview, summarize_appointments,
)
from schemas.context import BusinessContext
from tool_registry import tool_registry

TENANT_ID = "tenant-1"

STORAGE_READS = [
    "get_tenant", "get_products", "get_categories", "get_warehouses", "get_warehouse_stocks",
    "get_sales", "get_sales_stats", "get_top_selling_products", "get_purchases", "get_suppliers",
    "get_employees", "get_users", "get_appointments",
]


def test_build_business_context(db, seeded):
    ctx = build_business_context(db, TENANT_ID)

    assert ctx.tenant.name == "Cafetería Central"
    assert ctx.tenant.plan == "pro"
    assert ctx.dashboard.total_products == 2
    assert ctx.dashboard.total_warehouses == 1
    assert ctx.products.categories == 1
    assert [p.name for p in ctx.low_stock_products] == ["Queso Oaxaca"]
    assert ctx.inventory.total_stock_value == 840.0
    assert ctx.warehouses.rows[0].products_count == 1
    assert ctx.sales.total_transactions == 0


def test_context_reflects_sales(db, seeded):
    tool_registry.call(
        "create_sale",
        json.dumps({
            "items": [{"productName": "Café", "quantity": 2}],
            "paymentMethods": [{"method": "cash", "amount": 60}],
        }),
        db,
        tenant_id=TENANT_ID,
        user_id="1",
    )

    ctx = build_business_context(db, TENANT_ID)

    assert ctx.sales.total_transactions == 1
    assert ctx.sales.today_total == 60.0
    assert ctx.sales.average_ticket == 60.0
    assert ctx.sales.sales_by_payment_method[0].method == "cash"
    assert ctx.sales.sales_by_payment_method[0].percentage == 100.0
    assert ctx.products.top_selling_products[0].name == "Café"
    assert ctx.products.top_selling_products[0].profit == 36.0


def test_context_survives_failing_store():
    db = MagicMock()
    with ExitStack() as stack:
        for name in STORAGE_READS:
            stack.enter_context(patch(f"storage.{name}", side_effect=RuntimeError("database is down")))
        ctx = build_business_context(db, TENANT_ID)
        overview = build_context_overview(db, TENANT_ID)

    assert ctx == BusinessContext()
    assert ctx.dashboard.total_products == 0
    assert ctx.sales.today_total == 0
    assert ctx.tenant.name == "Negocio"
    assert overview.productsCount == 0
    assert overview.todaySales == 0

    # The prompt still renders from an empty context
    prompt = build_system_prompt(ctx, today=date(2025, 3, 10))
    assert "FECHA DE HOY: 2025-03-10" in prompt


def test_context_overview(db, seeded):
    overview = build_context_overview(db, TENANT_ID)

    assert overview.productsCount == 2
    assert overview.warehousesCount == 1
    assert overview.model_dump() == {
        "productsCount": 2,
        "warehousesCount": 1,
        "todaySales": 0.0,
        "monthSales": 0.0,
    }


def appointment(day, status, name="Cliente", time="10:00"):
    return SimpleNamespace(
        appointment_date=day, appointment_time=time, status=status, customer_name=name, subject="Consulta",
    )


def test_summarize_appointments():
    now = datetime(2025, 3, 10, 12, 0)
    appointments = [
        appointment(datetime(2025, 3, 10), "scheduled", name="Ana"),
        appointment(datetime(2025, 3, 12), "confirmada"),
        appointment(datetime(2025, 3, 5), "cancelada"),
        appointment(datetime(2025, 4, 30), "pending"),
    ]

    summary = summarize_appointments(appointments, now)

    assert summary.total == 4
    assert summary.today == 1
    assert summary.upcoming == 2
    assert summary.by_day == {"2025-03-12": 1}
    assert summary.by_status.scheduled == 1
    assert summary.by_status.confirmed == 1
    assert summary.by_status.cancelled == 1
    assert summary.by_status.pending == 1
    assert len(summary.pending_details) == 2
    assert summary.today_details[0].customer_name == "Ana"


def test_sales_by_payment_method_without_revenue():
    sales = [SimpleNamespace(payment_method="card", total=0)]

    breakdown = analyze_sales_by_payment_method(sales)

    assert breakdown[0].count == 1
    assert breakdown[0].percentage == 0.0


def test_prompt_includes_live_data(db, seeded):
    prompt = build_system_prompt(build_business_context(db, TENANT_ID), today=date(2025, 3, 10))

    assert "Cafetería Central" in prompt
    assert "Queso Oaxaca" in prompt
    assert "create_sale" in prompt
