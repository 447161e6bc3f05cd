# schemas/tools.py

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

PAYMENT_METHODS = ("cash", "card", "transfer", "credit", "voucher", "gift_card")
UNIT_TYPES = ("piece", "kg", "gram", "liter", "ml", "meter", "cm", "pound", "ounce", "box", "pack")

PaymentMethod = Literal["cash", "card", "transfer", "credit", "voucher", "gift_card"]
UnitType = Literal["piece", "kg", "gram", "liter", "ml", "meter", "cm", "pound", "ounce", "box", "pack"]

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")

# Widest values the Numeric(10, 3) quantity and Numeric(10, 2) money columns hold
MAX_QUANTITY = Decimal("9999999.999")
MAX_AMOUNT = Decimal("99999999.99")


class ToolDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Dict[str, Any]

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


# ─── Model outcomes ───────────────────────────────────────────────────────────

class FreeText(BaseModel):
    text: str


class ToolCall(BaseModel):
    name: str
    arguments: str = "{}"   # raw JSON exactly as the model produced it


ModelOutcome = Union[FreeText, ToolCall]


class ToolResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tool: str
    success: bool
    entity: Any = None
    details: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, tool: str, entity: Any, **details) -> "ToolResult":
        return cls(tool=tool, success=True, entity=entity, details=details)

    @classmethod
    def fail(cls, tool: str, error: str) -> "ToolResult":
        return cls(tool=tool, success=False, error=error)


# ─── Tool arguments ───────────────────────────────────────────────────────────

def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class ToolArguments(BaseModel):
    """
    Base for the argument models the model's raw JSON is parsed into.
    `required_messages` maps a JSON key to the message shown when it is missing or blank.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    required_messages: ClassVar[Dict[str, str]] = {}


class SupplierArgs(ToolArguments):
    required_messages = {"name": "El nombre del proveedor es obligatorio"}

    name: str = Field(min_length=1)
    email: OptionalText = None
    phone: OptionalText = None
    address: OptionalText = None


class AppointmentArgs(ToolArguments):
    required_messages = {
        "customerName": "El nombre del cliente es obligatorio",
        "customerPhone": "El teléfono del cliente es obligatorio",
        "subject": "El motivo de la cita es obligatorio",
        "appointmentDate": "La fecha de la cita es obligatoria",
        "appointmentTime": "La hora de la cita es obligatoria",
    }

    customer_name: str = Field(alias="customerName", min_length=1)
    customer_phone: str = Field(alias="customerPhone", min_length=1)
    subject: str = Field(min_length=1)
    appointment_date: date = Field(alias="appointmentDate")
    appointment_time: str = Field(alias="appointmentTime", min_length=1)
    notes: OptionalText = None

    @field_validator("appointment_date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        text = str(value).strip()
        if not DATE_PATTERN.match(text):
            raise ValueError("La fecha debe estar en formato YYYY-MM-DD")
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            raise ValueError(f"La fecha {text} no es una fecha válida")

    @field_validator("appointment_time")
    @classmethod
    def _parse_time(cls, value: str) -> str:
        match = TIME_PATTERN.match(value)
        if not match:
            raise ValueError("La hora debe estar en formato HH:MM (24 horas)")
        return f"{int(match.group(1)):02d}:{match.group(2)}"


class ProductArgs(ToolArguments):
    required_messages = {
        "name": "El nombre y precio del producto son obligatorios",
        "price": "El nombre y precio del producto son obligatorios",
    }

    name: str = Field(min_length=1)
    price: Decimal
    description: OptionalText = None
    sku: OptionalText = None
    cost: Optional[Decimal] = None
    stock: Decimal = Decimal("0")
    min_stock: Decimal = Field(default=Decimal("5"), alias="minStock")
    unit_type: UnitType = Field(default="piece", alias="unitType")
    allow_decimals: bool = Field(default=False, alias="allowDecimals")
    category_name: OptionalText = Field(default=None, alias="categoryName")

    @field_validator("stock", "min_stock", "unit_type", "allow_decimals", mode="before")
    @classmethod
    def _null_means_default(cls, value, info):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("stock", "min_stock")
    @classmethod
    def _bounded_stock(cls, value: Decimal) -> Decimal:
        if abs(value) > MAX_QUANTITY:
            raise ValueError(f"El stock del producto no puede ser mayor a {MAX_QUANTITY}")
        return value

    @field_validator("price")
    @classmethod
    def _positive_price(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("El precio del producto debe ser mayor a 0")
        if value > MAX_AMOUNT:
            raise ValueError(f"El precio del producto no puede ser mayor a {MAX_AMOUNT}")
        return value

    @field_validator("cost")
    @classmethod
    def _non_negative_cost(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is not None and value < 0:
            raise ValueError("El costo del producto no puede ser negativo")
        if value is not None and value > MAX_AMOUNT:
            raise ValueError(f"El costo del producto no puede ser mayor a {MAX_AMOUNT}")
        return value


class SaleItemArgs(ToolArguments):
    product_name: str = Field(alias="productName", min_length=1)
    quantity: Decimal

    @field_validator("quantity")
    @classmethod
    def _positive_quantity(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("La cantidad de cada producto debe ser mayor a 0")
        if value > MAX_QUANTITY:
            raise ValueError(f"La cantidad de cada producto no puede ser mayor a {MAX_QUANTITY}")
        return value


class PaymentArgs(ToolArguments):
    method: PaymentMethod
    amount: Decimal

    @field_validator("method", mode="before")
    @classmethod
    def _lower_method(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("amount")
    @classmethod
    def _non_negative_amount(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("El monto de un pago no puede ser negativo")
        if value > MAX_AMOUNT:
            raise ValueError(f"El monto de un pago no puede ser mayor a {MAX_AMOUNT}")
        return value


class SaleArgs(ToolArguments):
    required_messages = {
        "items": "Se requiere al menos un producto para procesar la venta",
        "paymentMethods": "Se requiere al menos un método de pago para procesar la venta",
        "productName": "Cada producto de la venta requiere un nombre",
        "quantity": "Cada producto de la venta requiere una cantidad",
        "method": "Cada pago requiere un método de pago",
        "amount": "Cada pago requiere un monto",
    }

    items: List[SaleItemArgs] = Field(min_length=1)
    payment_methods: List[PaymentArgs] = Field(alias="paymentMethods", min_length=1)
    ticket_title: OptionalText = Field(default=None, alias="ticketTitle")
    cash_received: Optional[Decimal] = Field(default=None, alias="cashReceived")

    @field_validator("cash_received")
    @classmethod
    def _non_negative_cash(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is not None and value < 0:
            raise ValueError("El efectivo recibido no puede ser negativo")
        if value is not None and value > MAX_AMOUNT:
            raise ValueError(f"El efectivo recibido no puede ser mayor a {MAX_AMOUNT}")
        return value


_EMPTY_ERRORS = {"missing", "string_too_short", "too_short"}


def validation_message(exc: ValidationError, model: type) -> str:
    """
    Turn the first pydantic error into a user-facing message naming the field.
    """
    err = exc.errors()[0]
    loc = err.get("loc", ())
    path = ".".join(str(part) for part in loc)
    key = next((part for part in reversed(loc) if isinstance(part, str)), None)
    messages = getattr(model, "required_messages", {})

    if key in messages and (err["type"] in _EMPTY_ERRORS or (err["type"].endswith("_type") and err.get("input") is None)):
        return messages[key]
    if err["type"] == "value_error":
        return str(err["ctx"]["error"])
    if err["type"] in ("literal_error", "enum"):
        return f"Valor no válido para '{path}': se esperaba {err['ctx']['expected']}"
    return f"El campo '{path}' no es válido"
