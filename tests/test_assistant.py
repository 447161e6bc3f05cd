import json
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from assistant import GENERIC_ERROR_MESSAGE, process_user_query
from dispatch import MODEL_ERROR_MESSAGE, NO_ANSWER_MESSAGE, dispatch
from models import Sale, Supplier
from renderer import render_result
from schemas.tools import FreeText, ToolCall, ToolResult
from tool_registry import tool_registry

TENANT_ID = "tenant-1"


def fake_client(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    return client


def tool_call(name, arguments):
    return SimpleNamespace(function=SimpleNamespace(name=name, arguments=json.dumps(arguments)))


# --- dispatch ---

def test_dispatch_free_text():
    client = fake_client(content="Tienes 2 productos registrados.")

    outcome = dispatch("system", "¿Cuántos productos tengo?", tool_registry.openai_tools(), client=client)

    assert outcome == FreeText(text="Tienes 2 productos registrados.")
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["tool_choice"] == "auto"
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}
    assert len(kwargs["tools"]) == 4


def test_dispatch_only_first_tool_call():
    client = fake_client(tool_calls=[
        tool_call("create_supplier", {"name": "Coca Cola"}),
        tool_call("create_product", {"name": "Refresco", "price": 15}),
    ])

    outcome = dispatch("system", "Crea el proveedor y el producto", [], client=client)

    assert isinstance(outcome, ToolCall)
    assert outcome.name == "create_supplier"
    assert json.loads(outcome.arguments) == {"name": "Coca Cola"}


def test_dispatch_provider_error():
    client = MagicMock()
    client.chat.completions.create.side_effect = TimeoutError("timed out")

    outcome = dispatch("system", "hola", [], client=client)

    assert outcome == FreeText(text=MODEL_ERROR_MESSAGE)


def test_dispatch_empty_answer():
    outcome = dispatch("system", "hola", [], client=fake_client(content="   "))

    assert outcome == FreeText(text=NO_ANSWER_MESSAGE)


# --- process_user_query ---

def test_free_text_is_returned_verbatim(db, seeded):
    client = fake_client(content="Tus ventas de hoy suman $0.00")

    with patch.object(tool_registry, "call") as mock_call:
        response = process_user_query(db, "¿Cuánto vendí hoy?", TENANT_ID, "", client=client)

    assert response == "Tus ventas de hoy suman $0.00"
    mock_call.assert_not_called()


def test_prompt_carries_business_data(db, seeded):
    client = fake_client(content="ok")

    process_user_query(db, "resumen", TENANT_ID, "", client=client)

    system_prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
    assert "Cafetería Central" in system_prompt
    assert "Queso Oaxaca" in system_prompt


def test_tool_call_is_executed_and_rendered(db, seeded):
    client = fake_client(tool_calls=[tool_call("create_supplier", {"name": "Coca Cola", "phone": "5551234"})])

    response = process_user_query(db, "Crea un proveedor llamado Coca Cola", TENANT_ID, "", client=client)

    assert response.startswith("✅ **Proveedor creado exitosamente**")
    assert "Coca Cola" in response
    assert db.query(Supplier).filter_by(tenant_id=TENANT_ID).count() == 1


def test_rejected_tool_call_is_rendered(db, seeded):
    client = fake_client(tool_calls=[tool_call("create_sale", {
        "items": [{"productName": "Café", "quantity": 2}],
        "paymentMethods": [{"method": "cash", "amount": 10}],
    })])

    response = process_user_query(db, "Vende 2 cafés, pagan 10 pesos", TENANT_ID, "", client=client)

    assert response.startswith("❌ **Error al procesar la venta:**")
    assert db.query(Sale).count() == 0


def test_unknown_tool_gets_apology(db, seeded):
    client = fake_client(tool_calls=[tool_call("delete_all_products", {})])

    response = process_user_query(db, "Borra todo", TENANT_ID, "", client=client)

    assert response == NO_ANSWER_MESSAGE


def test_unexpected_failure_gets_generic_message(db):
    with patch("assistant.build_system_prompt", side_effect=RuntimeError("boom")):
        response = process_user_query(db, "hola", TENANT_ID, "", client=fake_client(content="hola"))

    assert response == GENERIC_ERROR_MESSAGE


# --- renderer ---

def test_render_product(db, seeded):
    result = tool_registry.call(
        "create_product", json.dumps({"name": "Coca Cola 600ml", "price": 30, "cost": 15}), db, tenant_id=TENANT_ID,
    )

    text = render_result(result)

    assert result.entity.sku in text
    assert "$30.00" in text
    assert "50.00%" in text
    assert "Almacén Principal" in text


def test_render_sale_change_line(db, seeded):
    result = tool_registry.call(
        "create_sale",
        json.dumps({
            "items": [{"productName": "Café", "quantity": 1}],
            "paymentMethods": [{"method": "cash", "amount": 30}],
            "cashReceived": 50,
        }),
        db,
        tenant_id=TENANT_ID,
        user_id="1",
    )

    text = render_result(result)

    assert "• 1 x Café - $30.00" in text
    assert "• Efectivo: $30.00" in text
    assert "Cambio a entregar:** $20.00" in text


def test_render_sale_without_change():
    sale = SimpleNamespace(id=7, total=Decimal("60.00"), ticket_title=None)
    result = ToolResult.ok(
        "create_sale", sale,
        total=Decimal("60.00"), change=Decimal("0.00"),
        items=[{"product_name": "Café", "quantity": Decimal("2"), "subtotal": Decimal("60.00")}],
        payments=[{"method": "card", "amount": Decimal("60.00")}],
    )

    text = render_result(result)

    assert "Cambio" not in text
    assert "• Tarjeta: $60.00" in text
    assert "Sin título" in text


def test_render_failure():
    text = render_result(ToolResult.fail("create_appointment", "La hora debe estar en formato HH:MM (24 horas)"))

    assert text == "❌ **Error al crear la cita:** La hora debe estar en formato HH:MM (24 horas)"
