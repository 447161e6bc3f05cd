# utils_general.py

import json
import re


def parse_tool_arguments(text):
    """
    Parses the JSON object a model produced as tool arguments, even if it's wrapped in markdown.
    Raises ValueError when no JSON object can be recovered.
    """
    if isinstance(text, dict):
        return text
    text = (text or "").strip()
    if not text:
        return {}

    # Remove common markdown formatting
    text = re.sub(r"^```(?:json)?", "", text)
    text = re.sub(r"```$", "", text).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise ValueError("Failed to find JSON block")
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse extracted JSON: {e}")

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
