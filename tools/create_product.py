# tools/create_product.py

import logging
import re
import time
import unicodedata
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import storage
from schemas.tools import ProductArgs, ToolResult

logger = logging.getLogger(__name__)

SKU_PREFIX_LENGTH = 6
SKU_SUFFIX_DIGITS = 8


def generate_sku(name: str, now_ms: Optional[int] = None) -> str:
    """
    Uppercase alphanumeric prefix of the name (accents stripped) followed by
    the trailing digits of the current epoch millisecond.
    Same name and millisecond always give the same SKU.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    decomposed = unicodedata.normalize("NFKD", name or "")
    ascii_name = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    prefix = re.sub(r"[^A-Z0-9]", "", ascii_name.upper())[:SKU_PREFIX_LENGTH] or "PRD"
    return f"{prefix}{str(now_ms)[-SKU_SUFFIX_DIGITS:]}"


def margin_percent(price: Decimal, cost: Optional[Decimal]) -> Optional[Decimal]:
    if cost is None or not price:
        return None
    return ((price - cost) / price * 100).quantize(Decimal("0.01"))


def resolve_category(db: Session, tenant_id: str, category_name: Optional[str]):
    """
    Case-insensitive exact match against the tenant's existing categories.
    Returns None when nothing matches; categories are never created here.
    """
    if not category_name:
        return None
    wanted = category_name.casefold()
    for category in storage.get_categories(db, tenant_id):
        if (category.name or "").casefold() == wanted:
            return category
    logger.info(f"Category {category_name!r} not found for tenant {tenant_id!r}; product left uncategorized")
    return None


def create_product_tool(db: Session, args: ProductArgs, tenant_id: str, user_id=None) -> ToolResult:
    sku = args.sku or generate_sku(args.name)

    try:
        category = resolve_category(db, tenant_id, args.category_name)
        warehouses = storage.get_warehouses(db, tenant_id)
        warehouse = warehouses[0] if warehouses else None

        product = storage.create_product(
            db,
            tenant_id,
            initial_warehouse=warehouse,
            name=args.name,
            description=args.description or "",
            sku=sku,
            price=args.price,
            cost=args.cost if args.cost is not None else Decimal("0"),
            stock=args.stock,
            real_stock=args.stock,
            min_stock=args.min_stock,
            unit_type=args.unit_type,
            allow_decimals=args.allow_decimals,
            sale_unit=Decimal("1"),
            sale_unit_name="unidad",
            category_id=category.id if category else None,
            image_url="",
            status="active",
            is_composite=False,
            sort_order=0,
        )
    except SQLAlchemyError:
        logger.exception(f"Error creating product for tenant {tenant_id!r}")
        return ToolResult.fail("create_product", "Error interno al crear el producto")

    logger.info(f"Product {product.id} ({sku}) created for tenant {tenant_id!r}")
    return ToolResult.ok(
        "create_product",
        product,
        margin_percent=margin_percent(args.price, args.cost),
        category_name=category.name if category else None,
        warehouse_name=warehouse.name if warehouse else None,
    )
