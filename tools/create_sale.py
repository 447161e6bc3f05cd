# tools/create_sale.py

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional

from rapidfuzz import process, fuzz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import storage
from models import Product
from schemas.tools import MAX_AMOUNT, SaleArgs, ToolResult
from tools.errors import ToolExecutionError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS)


def _user_pk(user_id) -> Optional[int]:
    text = str(user_id or "").strip()
    return int(text) if text.isdigit() else None


def _product_not_found(name: str, products: List[Product]) -> str:
    message = f'Producto "{name}" no encontrado'
    match = process.extractOne(name, [p.name for p in products], scorer=fuzz.WRatio, score_cutoff=70)
    if match:
        message += f'. ¿Quisiste decir "{match[0]}"?'
    return message


def _resolve_product(name: str, by_name: Dict[str, List[Product]], products: List[Product]) -> Product:
    """
    Same-named products: the active one wins, several active ones are ambiguous.
    """
    candidates = by_name.get(name.casefold(), [])
    if len(candidates) > 1:
        candidates = [p for p in candidates if p.status == "active"] or candidates
    if not candidates:
        raise ToolExecutionError(_product_not_found(name, products), field="productName")
    if len(candidates) > 1:
        raise ToolExecutionError(
            f'El nombre "{name}" es ambiguo: hay {len(candidates)} productos activos con ese nombre',
            field="productName",
        )
    return candidates[0]


def price_items(args: SaleArgs, products: List[Product]) -> List[dict]:
    """
    Resolve each requested product by case-insensitive name and price it at
    the product's current price.
    """
    by_name: Dict[str, List[Product]] = defaultdict(list)
    for p in products:
        by_name[(p.name or "").casefold()].append(p)

    lines = []
    for item in args.items:
        product = _resolve_product(item.product_name, by_name, products)
        if not product.allow_decimals and item.quantity != item.quantity.to_integral_value():
            raise ToolExecutionError(
                f'El producto "{product.name}" solo se vende en cantidades enteras', field="quantity"
            )
        unit_price = _money(product.price)
        lines.append({
            "product": product,
            "product_name": product.name,
            "quantity": item.quantity,
            "unit_price": unit_price,
            "subtotal": (unit_price * item.quantity).quantize(CENTS),
        })
    return lines


def settle_payments(args: SaleArgs, total: Decimal) -> Decimal:
    """
    Check the payments against the total and return the change to hand back.
    Change only ever comes out of cash: card, transfer and the rest may not
    exceed the total on their own.
    """
    total_paid = sum((p.amount for p in args.payment_methods), Decimal("0"))
    if total_paid < total:
        raise ToolExecutionError(
            f"El total pagado (${total_paid:.2f}) no cubre el total de la venta (${total:.2f})",
            field="paymentMethods",
        )

    cash_paid = sum((p.amount for p in args.payment_methods if p.method == "cash"), Decimal("0"))
    non_cash = total_paid - cash_paid
    if non_cash > total:
        raise ToolExecutionError(
            f"Los pagos que no son en efectivo (${non_cash:.2f}) exceden el total de la venta (${total:.2f})",
            field="paymentMethods",
        )
    if not cash_paid:
        return Decimal("0.00")

    cash_due = total - non_cash
    if args.cash_received is None:
        return _money(cash_paid - cash_due)
    if args.cash_received < cash_due:
        raise ToolExecutionError(
            f"El efectivo recibido (${args.cash_received:.2f}) no cubre el monto en efectivo (${cash_due:.2f})",
            field="cashReceived",
        )
    return _money(args.cash_received - cash_due)


def create_sale_tool(db: Session, args: SaleArgs, tenant_id: str, user_id=None) -> ToolResult:
    try:
        lines = price_items(args, storage.get_products(db, tenant_id))
        total = sum((line["subtotal"] for line in lines), Decimal("0")).quantize(CENTS)
        if total > MAX_AMOUNT:
            raise ToolExecutionError(
                f"El total de la venta (${total:.2f}) excede el máximo permitido (${MAX_AMOUNT})", field="items"
            )
        change = settle_payments(args, total)

        register = storage.get_active_cash_register(db, tenant_id, _user_pk(user_id))
        if register is None:
            raise ToolExecutionError("No hay una caja registradora activa. Abre una caja antes de procesar ventas.")

        payments = [{"method": p.method, "amount": _money(p.amount)} for p in args.payment_methods]
        sale = storage.create_sale(
            db,
            tenant_id,
            _user_pk(user_id),
            cash_register=register,
            items=lines,
            payments=payments,
            total=total,
            ticket_title=args.ticket_title,
        )
    except SQLAlchemyError:
        logger.exception(f"Error creating sale for tenant {tenant_id!r}")
        return ToolResult.fail("create_sale", "Error interno al procesar la venta")

    logger.info(f"Sale {sale.id} for {total} recorded for tenant {tenant_id!r}")
    return ToolResult.ok(
        "create_sale",
        sale,
        total=total,
        change=change,
        items=[{k: v for k, v in line.items() if k != "product"} for line in lines],
        payments=payments,
    )
