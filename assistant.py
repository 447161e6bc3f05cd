# assistant.py

import logging
from typing import Optional

from openai import OpenAI
from sqlalchemy.orm import Session

from build_prompt import build_system_prompt
from context_manager import build_business_context
from dispatch import NO_ANSWER_MESSAGE, dispatch
from renderer import render_result
from schemas.tools import FreeText
from tool_registry import tool_registry

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Disculpa, hubo un error al procesar tu consulta. Por favor intenta de nuevo."


def process_user_query(
    db: Session,
    query: str,
    tenant_id: str,
    user_id: str,
    client: Optional[OpenAI] = None,
) -> str:
    """
    Answer one free-text query for a tenant. Stateless: the context and prompt
    are rebuilt on every call. Always returns a displayable string.
    """
    try:
        # 1. Context and prompt from the live store
        context = build_business_context(db, tenant_id)
        system_prompt = build_system_prompt(context)

        # 2. Model decides: text answer or a single tool call
        outcome = dispatch(system_prompt, query, tool_registry.openai_tools(), client=client)
        if isinstance(outcome, FreeText):
            return outcome.text

        # 3. Tool execution
        if outcome.name not in tool_registry:
            logger.warning(f"Model requested unknown tool {outcome.name!r}")
            return NO_ANSWER_MESSAGE

        result = tool_registry.call(outcome.name, outcome.arguments, db, tenant_id=tenant_id, user_id=user_id)
        if not result.success:
            logger.info(f"{outcome.name} rejected for tenant {tenant_id!r}: {result.error}")
        return render_result(result)
    except Exception:
        logger.exception(f"Error processing AI query for tenant {tenant_id!r}")
        return GENERIC_ERROR_MESSAGE
