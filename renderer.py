# renderer.py

from decimal import Decimal

from schemas.tools import ToolResult

PAYMENT_METHOD_NAMES = {
    "cash": "Efectivo",
    "card": "Tarjeta",
    "transfer": "Transferencia",
    "credit": "Crédito",
    "voucher": "Vale",
    "gift_card": "Tarjeta de Regalo",
}

FAILURE_HEADERS = {
    "create_supplier": "Error al crear el proveedor",
    "create_appointment": "Error al crear la cita",
    "create_product": "Error al crear el producto",
    "create_sale": "Error al procesar la venta",
}


def _money(value) -> str:
    return f"${Decimal(str(value or 0)):.2f}"


def _qty(value) -> str:
    text = f"{Decimal(str(value or 0)):f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def payment_method_name(method: str) -> str:
    return PAYMENT_METHOD_NAMES.get(method, method)


def _render_supplier(result: ToolResult) -> str:
    s = result.entity
    return f"""✅ **Proveedor creado exitosamente**

📋 **Detalles del proveedor:**
• **Nombre:** {s.name}
• **Email:** {s.email or 'No especificado'}
• **Teléfono:** {s.phone or 'No especificado'}
• **Dirección:** {s.address or 'No especificada'}
• **ID:** {s.id}

El proveedor ha sido registrado correctamente en tu sistema y ya está disponible para realizar compras."""


def _render_appointment(result: ToolResult) -> str:
    a = result.entity
    day = result.details.get("appointment_day") or a.appointment_date.date()
    notes = f"\n• **Notas:** {a.notes}" if a.notes else ""
    return f"""✅ **Cita creada exitosamente**

📅 **Detalles de la cita:**
• **Cliente:** {a.customer_name}
• **Teléfono:** {a.customer_phone}
• **Fecha:** {day.day}/{day.month}/{day.year}
• **Hora:** {a.appointment_time}
• **Motivo:** {a.subject}
• **Estado:** {a.status}
• **ID:** {a.id}{notes}

La cita ha sido registrada correctamente en tu sistema de agendas y está visible en el calendario."""


def _render_product(result: ToolResult) -> str:
    p = result.entity
    margin = result.details.get("margin_percent")
    decimals = "\n\n🔢 **Producto configurado para cantidades decimales**" if p.allow_decimals else ""
    warehouse = result.details.get("warehouse_name")
    location = f"\n• **Almacén:** {warehouse}" if warehouse else ""
    return f"""✅ **Producto creado exitosamente**

📦 **Detalles del producto:**
• **Nombre:** {p.name}
• **SKU:** {p.sku}
• **Precio:** {_money(p.price)}
• **Costo:** {_money(p.cost)}
• **Utilidad:** {f'{margin}%' if margin is not None else 'N/A'}
• **Stock inicial:** {_qty(p.stock)} {p.unit_type}
• **Stock mínimo:** {_qty(p.min_stock)} {p.unit_type}
• **Categoría:** {result.details.get('category_name') or 'Sin categoría'}{location}
• **ID:** {p.id}{decimals}

El producto ha sido registrado correctamente y ya está disponible en tu inventario."""


def _render_sale(result: ToolResult) -> str:
    sale = result.entity
    details = result.details
    items = "\n".join(
        f"• {_qty(i['quantity'])} x {i['product_name']} - {_money(i['subtotal'])}" for i in details.get("items", [])
    ) or "• Sin detalles de productos"
    payments = "\n".join(
        f"• {payment_method_name(p['method'])}: {_money(p['amount'])}" for p in details.get("payments", [])
    ) or "• Sin detalles de pago"
    change = details.get("change") or Decimal("0")
    change_line = f"\n\n💵 **Cambio a entregar:** {_money(change)}" if change > 0 else ""
    return f"""✅ **Venta procesada exitosamente**

💰 **Detalles de la venta:**
• **Total:** {_money(details.get('total', sale.total))}
• **Ticket:** {sale.ticket_title or 'Sin título'}
• **ID de venta:** {sale.id}

📦 **Productos vendidos:**
{items}

💳 **Métodos de pago:**
{payments}{change_line}

🧾 **La venta ha sido registrada correctamente y el ticket está listo para imprimir.**"""


SUCCESS_RENDERERS = {
    "create_supplier": _render_supplier,
    "create_appointment": _render_appointment,
    "create_product": _render_product,
    "create_sale": _render_sale,
}


def render_result(result: ToolResult) -> str:
    if not result.success:
        header = FAILURE_HEADERS.get(result.tool, "Error al ejecutar la acción")
        return f"❌ **{header}:** {result.error}"
    return SUCCESS_RENDERERS[result.tool](result)
