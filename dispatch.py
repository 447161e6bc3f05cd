# dispatch.py

import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from openai import OpenAI

from schemas.tools import FreeText, ModelOutcome, ToolCall

logger = logging.getLogger(__name__)

load_dotenv()

# Model identifier: override with OPENAI_MODEL rather than editing code.
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "1000"))
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))

MODEL_ERROR_MESSAGE = "Disculpa, hubo un error al procesar tu consulta. Por favor intenta de nuevo."
NO_ANSWER_MESSAGE = "Disculpa, no pude procesar tu consulta."

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(timeout=OPENAI_TIMEOUT, max_retries=0)
    return _client


def dispatch(
    system_prompt: str,
    user_query: str,
    tools: List[Dict[str, Any]],
    client: Optional[OpenAI] = None,
) -> ModelOutcome:
    """
    One chat-completion call. Returns the model's text, or the first tool call it
    proposed. Provider errors never escape: they become MODEL_ERROR_MESSAGE.
    """
    try:
        client = client or get_client()
        response = client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_query},
            ],
            tools=tools,
            tool_choice="auto",
            max_tokens=OPENAI_MAX_TOKENS,
            temperature=OPENAI_TEMPERATURE,
        )
        message = response.choices[0].message
    except Exception as e:
        logger.error(f"Model dispatch failed: {e!r}")
        return FreeText(text=MODEL_ERROR_MESSAGE)

    tool_calls = getattr(message, "tool_calls", None) or []
    if tool_calls:
        if len(tool_calls) > 1:
            dropped = [tc.function.name for tc in tool_calls[1:]]
            logger.warning(f"Model proposed {len(tool_calls)} tool calls; only the first is executed, dropped {dropped}")
        first = tool_calls[0]
        logger.info(f"Model selected tool {first.function.name}")
        return ToolCall(name=first.function.name, arguments=first.function.arguments or "{}")

    content = message.content
    if not content or not content.strip():
        return FreeText(text=NO_ANSWER_MESSAGE)
    return FreeText(text=content)
