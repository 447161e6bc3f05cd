# tool_registry.py

import logging
from typing import Any, Callable, Dict, List, Type

from pydantic import ValidationError
from sqlalchemy.orm import Session

from schemas.tools import (
    PAYMENT_METHODS, UNIT_TYPES, AppointmentArgs, ProductArgs, SaleArgs, SupplierArgs,
    ToolArguments, ToolDefinition, ToolResult, validation_message,
)
from tools.errors import ToolExecutionError
from utils_general import parse_tool_arguments

logger = logging.getLogger(__name__)

# A "tool" takes the session, its parsed arguments and the caller identity, and returns a ToolResult.
ToolFn = Callable[..., ToolResult]


class ToolRegistry:
    def __init__(self):
        self._registry: Dict[str, Dict[str, Any]] = {}

    def register(self, name: str, fn: ToolFn, description: str, parameters: Dict[str, Any], args_model: Type[ToolArguments]):
        if name in self._registry:
            raise KeyError(f"Tool '{name}' is already registered")
        self._registry[name] = {
            "fn": fn,
            "definition": ToolDefinition(name=name, description=description, parameters=parameters),
            "args_model": args_model,
        }

    def __contains__(self, name: str) -> bool:
        return name in self._registry

    def definitions(self) -> List[ToolDefinition]:
        return [entry["definition"] for entry in self._registry.values()]

    def openai_tools(self) -> List[Dict[str, Any]]:
        return [definition.to_openai() for definition in self.definitions()]

    def list_tools(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "description": entry["definition"].description,
                "parameters": entry["definition"].parameters,
            }
            for name, entry in self._registry.items()
        }

    def parse(self, name: str, raw_arguments) -> ToolArguments:
        """
        Parse the model's raw JSON into the tool's argument model.
        Raises ToolExecutionError with a field-specific message on any problem.
        """
        entry = self._registry.get(name)
        if not entry:
            raise KeyError(f"Tool '{name}' not registered")
        model = entry["args_model"]
        try:
            payload = parse_tool_arguments(raw_arguments)
        except ValueError as e:
            logger.warning(f"Unparseable arguments for {name}: {raw_arguments!r} ({e})")
            raise ToolExecutionError("Los datos recibidos no tienen un formato JSON válido")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            message = validation_message(e, model)
            logger.info(f"Rejected {name} arguments: {message}")
            raise ToolExecutionError(message)

    def call(self, name: str, raw_arguments, db: Session, tenant_id: str, user_id=None) -> ToolResult:
        """
        Validate fully, then execute. Every rejection comes back as a failed ToolResult.
        """
        entry = self._registry.get(name)
        if not entry:
            raise KeyError(f"Tool '{name}' not registered")
        try:
            args = self.parse(name, raw_arguments)
            return entry["fn"](db, args, tenant_id=tenant_id, user_id=user_id)
        except ToolExecutionError as e:
            return ToolResult.fail(name, str(e))

# ─── Instantiate & register ────────────────────────────────────────────────────

tool_registry = ToolRegistry()

from tools.create_supplier    import create_supplier_tool
from tools.create_appointment import create_appointment_tool
from tools.create_product     import create_product_tool
from tools.create_sale        import create_sale_tool

tool_registry.register(
    name="create_supplier",
    fn=create_supplier_tool,
    description="Crear un nuevo proveedor en el sistema cuando el usuario lo solicite",
    parameters={
        "type": "object",
        "properties": {
            "name":    {"type": "string", "description": "Nombre del proveedor"},
            "email":   {"type": "string", "description": "Email del proveedor (opcional)"},
            "phone":   {"type": "string", "description": "Teléfono del proveedor (opcional)"},
            "address": {"type": "string", "description": "Dirección del proveedor (opcional)"},
        },
        "required": ["name"],
    },
    args_model=SupplierArgs,
)

tool_registry.register(
    name="create_appointment",
    fn=create_appointment_tool,
    description="Crear una nueva cita en el sistema cuando el usuario lo solicite",
    parameters={
        "type": "object",
        "properties": {
            "customerName":    {"type": "string", "description": "Nombre del cliente"},
            "customerPhone":   {"type": "string", "description": "Teléfono del cliente"},
            "subject":         {"type": "string", "description": "Motivo o asunto de la cita"},
            "appointmentDate": {"type": "string", "description": "Fecha de la cita en formato YYYY-MM-DD"},
            "appointmentTime": {"type": "string", "description": "Hora de la cita en formato HH:MM (24 horas)"},
            "notes":           {"type": "string", "description": "Notas adicionales de la cita (opcional)"},
        },
        "required": ["customerName", "customerPhone", "subject", "appointmentDate", "appointmentTime"],
    },
    args_model=AppointmentArgs,
)

tool_registry.register(
    name="create_product",
    fn=create_product_tool,
    description="Crear un nuevo producto en el sistema con cálculo automático de utilidad cuando el usuario lo solicite",
    parameters={
        "type": "object",
        "properties": {
            "name":          {"type": "string", "description": "Nombre del producto"},
            "description":   {"type": "string", "description": "Descripción del producto (opcional)"},
            "sku":           {"type": "string", "description": "SKU/código del producto (se genera automáticamente si no se proporciona)"},
            "price":         {"type": "number", "description": "Precio de venta del producto"},
            "cost":          {"type": "number", "description": "Costo del producto (opcional, para calcular utilidad)"},
            "stock":         {"type": "number", "description": "Stock inicial del producto (opcional, por defecto 0)"},
            "minStock":      {"type": "number", "description": "Stock mínimo (opcional, por defecto 5)"},
            "unitType": {
                "type": "string",
                "description": "Tipo de unidad: " + ", ".join(UNIT_TYPES),
                "enum": list(UNIT_TYPES),
            },
            "allowDecimals": {"type": "boolean", "description": "Permitir cantidades decimales (true para productos vendidos por peso/volumen)"},
            "categoryName":  {"type": "string", "description": "Nombre de una categoría existente (opcional, no se crean categorías nuevas)"},
        },
        "required": ["name", "price"],
    },
    args_model=ProductArgs,
)

tool_registry.register(
    name="create_sale",
    fn=create_sale_tool,
    description="Procesar una venta completa en el punto de venta con productos, cantidades, métodos de pago y título del ticket",
    parameters={
        "type": "object",
        "properties": {
            "items": {
                "type": "array",
                "description": "Lista de productos a vender",
                "items": {
                    "type": "object",
                    "properties": {
                        "productName": {"type": "string", "description": "Nombre del producto a vender"},
                        "quantity":    {"type": "number", "description": "Cantidad del producto a vender"},
                    },
                    "required": ["productName", "quantity"],
                },
            },
            "paymentMethods": {
                "type": "array",
                "description": "Métodos de pago utilizados",
                "items": {
                    "type": "object",
                    "properties": {
                        "method": {
                            "type": "string",
                            "description": "Método de pago: " + ", ".join(PAYMENT_METHODS),
                            "enum": list(PAYMENT_METHODS),
                        },
                        "amount": {"type": "number", "description": "Monto pagado con este método"},
                    },
                    "required": ["method", "amount"],
                },
            },
            "ticketTitle":  {"type": "string", "description": "Título o referencia del ticket para identificar la venta (opcional)"},
            "cashReceived": {"type": "number", "description": "Cantidad de efectivo recibida para calcular cambio (solo si el pago incluye efectivo)"},
        },
        "required": ["items", "paymentMethods"],
    },
    args_model=SaleArgs,
)

logger.info(f"Registered tools: {list(tool_registry.list_tools().keys())}")
