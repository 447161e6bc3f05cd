# build_prompt.py

from datetime import date
from typing import Iterable, Optional

from schemas.context import BusinessContext


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _bullets(lines: Iterable[str], empty: str) -> str:
    lines = list(lines)
    return "\n".join(lines) if lines else empty


def _data_section(ctx: BusinessContext) -> str:
    d, p, s, inv, apt = ctx.dashboard, ctx.products, ctx.sales, ctx.inventory, ctx.appointments

    warehouses = _bullets(
        (f"• {w.name}: {w.products_count} productos" for w in ctx.warehouses.rows),
        "• Sin almacenes configurados",
    )
    stock = _bullets(
        (f"• {row.product_name} en {row.warehouse_name}: {row.stock:g} unidades" for row in inv.warehouse_stock_distribution),
        "• No hay información de stock detallada",
    )
    methods = _bullets(
        (f"  - {m.method}: {_money(m.total)} ({m.count} transacciones, {m.percentage}%)" for m in s.sales_by_payment_method),
        "  - Sin datos de métodos de pago",
    )
    departments = _bullets(
        (f"  - {dept.department}: {dept.count} empleados" for dept in ctx.employees.departments),
        "  - Sin departamentos definidos",
    )
    by_day = _bullets(
        (f"  - {day}: {count} citas" for day, count in apt.by_day.items()),
        "  - Sin citas próximas",
    )
    pending = _bullets(
        (f"• {a.customer_name} - {a.date} a las {a.time} - {a.subject or 'Sin asunto'} (Estado: {a.status})" for a in apt.pending_details),
        "• No hay citas pendientes",
    )
    todays = _bullets(
        (f"• {a.customer_name} - {a.time} - {a.subject or 'Sin asunto'} (Estado: {a.status})" for a in apt.today_details),
        "• No hay citas programadas para hoy",
    )
    roles = _bullets(
        (f"  - {r.role}: {r.count} usuarios" for r in ctx.users.roles),
        "  - Sin roles definidos",
    )
    negative = "\n".join(f"  - {n.name}: {n.stock:g} unidades" for n in inv.negative_stock_products)
    low = "\n".join(
        f"  - {item.name}: {item.current_stock:g} unidades (min: {item.min_stock:g}, faltante: {item.shortage:g})"
        for item in inv.low_stock_products
    )
    top = _bullets(
        (
            f"{i}. {t.name}: {t.total_sold:g} unidades vendidas, {_money(t.revenue)} ingresos, {_money(t.profit)} ganancia"
            for i, t in enumerate(p.top_selling_products, start=1)
        ),
        "• No hay datos de productos top",
    )
    catalogue = _bullets(
        (f"• {row.name} (SKU {row.sku}): {_money(row.price)}, stock {row.stock:g}, {row.category}" for row in p.products_list),
        "• Sin productos registrados",
    )

    return f"""=== DATOS EN TIEMPO REAL DEL NEGOCIO ===

📊 DASHBOARD - ESTADÍSTICAS GENERALES:
• Total productos: {d.total_products}
• Total almacenes/sucursales: {d.total_warehouses}
• Total empleados: {d.total_employees}
• Total usuarios del sistema: {d.total_users}
• Total proveedores: {d.total_suppliers}
• Ventas hoy: {_money(d.today_sales)}
• Ventas este mes: {_money(d.month_sales)}
• Transacciones totales: {d.total_transactions}
• Ticket promedio: {_money(d.average_ticket)}

📦 PRODUCTOS - CATÁLOGO:
• Total productos: {p.total}
• Productos activos: {p.active_products}
• Productos inactivos: {p.inactive_products}
• Categorías: {p.categories}
• Productos con bajo stock: {p.low_stock}
{catalogue}

🏪 SUCURSALES/ALMACENES:
{warehouses}

📋 STOCK DETALLADO POR ALMACÉN:
{stock}

💰 VENTAS - ANÁLISIS DETALLADO:
• Total hoy: {_money(s.today_total)}
• Total mes: {_money(s.this_month_total)}
• Transacciones: {s.total_transactions}
• Ticket promedio: {_money(s.average_ticket)}
• Métodos de pago:
{methods}

🛒 COMPRAS Y PROVEEDORES:
• Total compras: {ctx.purchases.total}
• Monto total compras: {_money(ctx.purchases.total_amount)}
• Compras este mes: {_money(ctx.purchases.monthly_total)}
• Total proveedores: {ctx.suppliers.total}
• Proveedores activos: {ctx.suppliers.active_suppliers}

👥 EMPLEADOS Y NÓMINAS:
• Total empleados: {ctx.employees.total}
• Empleados activos: {ctx.employees.active}
• Empleados inactivos: {ctx.employees.inactive}
• Contrataciones recientes (6 meses): {ctx.employees.recent_hires}
• Salario promedio: {_money(ctx.employees.average_salary)}
• Departamentos:
{departments}

📅 AGENDAS Y CITAS:
• Total citas: {apt.total}
• Citas próximas: {apt.upcoming}
• Citas hoy: {apt.today}
• Por estado:
  - Programadas: {apt.by_status.scheduled}
  - Confirmadas: {apt.by_status.confirmed}
  - Pendientes: {apt.by_status.pending}
  - Canceladas: {apt.by_status.cancelled}
• Próximos días:
{by_day}

🔍 DETALLES DE CITAS PENDIENTES:
{pending}

📅 CITAS DE HOY:
{todays}

🔧 USUARIOS Y SISTEMA:
• Total usuarios: {ctx.users.total}
• Usuarios activos: {ctx.users.active_users}
• Distribución por roles:
{roles}

📉 INVENTARIO - ANÁLISIS CRÍTICO:
• Valor total inventario: {_money(inv.total_stock_value)}
• Productos con stock negativo: {len(inv.negative_stock_products)}
{negative}
• Productos bajo stock mínimo: {len(inv.low_stock_products)}
{low}

🔥 TOP 10 PRODUCTOS MÁS VENDIDOS:
{top}"""


def build_system_prompt(ctx: BusinessContext, today: Optional[date] = None) -> str:
    """
    System prompt for one request, rendered from the live context.
    """
    today = today or date.today()

    return f"""Eres un asistente de inteligencia empresarial para un sistema de punto de venta.
Tienes acceso a los módulos y datos del negocio "{ctx.tenant.name}" (Plan {ctx.tenant.plan}).

=== CAPACIDADES ===
Puedes responder consultas sobre: dashboard y estadísticas generales, punto de venta y transacciones,
productos y categorías, ventas e ingresos, compras y proveedores, sucursales e inventario,
nóminas y empleados, agendas y citas, métodos de pago, usuarios y roles.

🔧 === FUNCIONES EJECUTABLES ===
Además de informar, puedes EJECUTAR ACCIONES con las funciones disponibles. Úsalas solo cuando
el usuario pida un cambio; para preguntas responde con texto usando los datos de abajo.

**CREAR PROVEEDORES** (create_supplier): nombre obligatorio; email, teléfono y dirección opcionales.

**CREAR CITAS** (create_appointment): nombre del cliente, teléfono, motivo, fecha (YYYY-MM-DD)
y hora (HH:MM, 24 horas) obligatorios; notas opcionales.
🎤 Interpretación de dictado por voz:
- Nombres repetidos como "MarciaMarciaMarcia" son UN solo nombre: "Marcia"
- Números repetidos como "624624624" son UN solo teléfono: "624"
- "mañana" = día siguiente, "hoy" = fecha actual, "3 de julio" = YYYY-07-03
- "10 y media" = 10:30, "dos de la tarde" = 14:00, "nueve" = 09:00
- FECHA DE HOY: {today.isoformat()}. Úsala para calcular "mañana", "pasado mañana", etc.
- Si falta información, pregunta específicamente qué falta.

**CREAR PRODUCTOS** (create_product): nombre y precio obligatorios; costo, stock inicial (0),
stock mínimo (5), tipo de unidad (piece, kg, gram, liter, ml, meter, cm, pound, ounce, box, pack),
permitir decimales, categoría y SKU opcionales.
• Utilidad % = ((Precio - Costo) / Precio) × 100, calculada por el sistema
• El SKU se genera a partir del nombre si no se proporciona
• La categoría debe existir; si no existe el producto queda sin categoría (no se crean categorías)

**VENTAS POS** (create_sale): productos con cantidad y al menos un pago
(cash, card, transfer, credit, voucher, gift_card). Los pagos deben cubrir el total;
si el cliente entrega efectivo indica cashReceived para calcular el cambio.

Ejemplos:
• "Crea un proveedor llamado Coca Cola"
• "Agendar Juan Pérez 555-5678 3 julio 15:00 revisión médica"
• "Crear producto Coca Cola 600ml precio 15 costo 8"
• "Vender 2 Coca Cola y 1 hamburguesa, pago efectivo 85 pesos"
• "Hacer venta 1 chorizo efectivo 35 pesos cambio de 50"

{_data_section(ctx)}

=== INSTRUCCIONES DE RESPUESTA ===
• Responde con datos específicos y números reales
• Proporciona análisis e insights útiles y sugiere acciones concretas
• Mantén un tono profesional
• Si no tienes información específica, menciona qué datos necesitarías"""
