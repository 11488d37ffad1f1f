"""
Utility functions for LLM providers.

Simplified for CMD AI: message conversion and content-block handling.
"""

import logging
from typing import Dict, Any, Optional, List

logger = logging.getLogger(__name__)


def convert_to_standard_messages(
    messages: Any, system_prompt: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Convert various message formats to standard message format.

    Standard format:
    [
        {"role": "system", "content": "..."},
        {"role": "user", "content": "..."},
    ]
    """
    if isinstance(messages, str):
        result = []
        if system_prompt:
            result.append({"role": "system", "content": system_prompt})
        result.append({"role": "user", "content": messages})
        return result

    elif isinstance(messages, list):
        result = []
        has_system = any(
            msg.get("role") == "system" for msg in messages if isinstance(msg, dict)
        )
        if system_prompt and not has_system:
            result.append({"role": "system", "content": system_prompt})
        for msg in messages:
            if isinstance(msg, dict):
                result.append(msg)
            else:
                logger.warning(f"Invalid message format: {msg}")
        return result

    else:
        logger.error(f"Unknown message format: {type(messages)}")
        return [{"role": "user", "content": str(messages)}]


def message_to_content_blocks(message: Any) -> List[Dict[str, Any]]:
    """
    Turn an OpenAI ChatCompletion message into content blocks.

    Text content becomes a "text" block; a refusal or tool calls become
    blocks of their own type, after any text.
    """
    blocks: List[Dict[str, Any]] = []

    content = getattr(message, "content", None)
    if isinstance(content, str):
        blocks.append({"type": "text", "text": content})
    elif isinstance(content, list):
        for item in content:
            if isinstance(item, dict) and item.get("type"):
                blocks.append(item)

    refusal = getattr(message, "refusal", None)
    if refusal:
        blocks.append({"type": "refusal", "refusal": refusal})

    for tc in getattr(message, "tool_calls", None) or []:
        blocks.append({"type": "tool_call", "id": getattr(tc, "id", None)})

    return blocks


def first_text_block(blocks: List[Dict[str, Any]]) -> Optional[str]:
    """Text of the first text-typed block, verbatim. None if there is none."""
    for block in blocks or []:
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            return text if isinstance(text, str) else None
    return None
