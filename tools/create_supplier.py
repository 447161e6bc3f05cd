# tools/create_supplier.py

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import storage
from schemas.tools import SupplierArgs, ToolResult

logger = logging.getLogger(__name__)


def create_supplier_tool(db: Session, args: SupplierArgs, tenant_id: str, user_id=None) -> ToolResult:
    try:
        supplier = storage.create_supplier(
            db,
            tenant_id,
            name=args.name,
            email=args.email,
            phone=args.phone,
            address=args.address,
        )
    except SQLAlchemyError:
        logger.exception(f"Error creating supplier for tenant {tenant_id!r}")
        return ToolResult.fail("create_supplier", "Error interno al crear el proveedor")

    logger.info(f"Supplier {supplier.id} created for tenant {tenant_id!r}")
    return ToolResult.ok("create_supplier", supplier)
