"""
AI request logging.

Records every model request/response pair for audit and cost accounting.
Logging is best effort: a failure here is logged and never reaches the
translation caller.
"""

# Standard library
import logging
from typing import Any, Optional

# Local application
from message_translation.model_client import extract_text
from message_translation.repository import create_ai_request_log

# Configure logging
logger = logging.getLogger(__name__)


def extract_token_usage(response: Any) -> dict:
    """
    Extracts token usage metadata from a LangChain response object.

    Returns:
        input_tokens, output_tokens and total_tokens (zero when unknown).
    """
    usage = getattr(response, "usage_metadata", None) or {}
    if not isinstance(usage, dict):
        usage = {}
    return {
        "input_tokens": usage.get("input_tokens", 0),
        "output_tokens": usage.get("output_tokens", 0),
        "total_tokens": usage.get("total_tokens", 0),
    }


def serialize_response(response: Any) -> dict:
    """JSON-safe view of a model response."""
    return {
        "content": extract_text(response),
        "usage_metadata": extract_token_usage(response),
        "response_metadata": getattr(response, "response_metadata", None) or {},
    }


async def log_model_usage(
    user_id: Optional[str],
    request: dict,
    response: Any,
    *,
    agent_id: Optional[int] = None,
    log_type: str = "TRANSLATION",
) -> None:
    """
    Stores one AI request log row. Never raises.

    Args:
        user_id: Owner of the request, if known.
        request: Payload sent to the model.
        response: Raw LangChain response.
        agent_id: Agent of the conversation, if known.
        log_type: Category of the request.
    """
    try:
        usage = extract_token_usage(response)
        await create_ai_request_log(
            payload={
                "user_id": user_id,
                "agent_id": agent_id,
                "log_type": log_type,
                "model": request.get("model"),
                "request_json": request,
                "response_json": serialize_response(response),
                "prompt_tokens": usage["input_tokens"],
                "completion_tokens": usage["output_tokens"],
                "total_tokens": usage["total_tokens"],
            }
        )
        logger.debug(
            f"Logged AI request: model={request.get('model')}, tokens={usage['total_tokens']}"
        )
    except Exception as e:  # noqa: BLE001
        logger.error(f"Failed to log AI request: {e}")
