"""
Model invocation for translation prompts.

Wraps the LangChain chat model behind a single ``invoke_model`` call that
returns the response text together with the request payload, so callers
can log exactly what was sent.
"""

# Standard library
import logging
from dataclasses import dataclass
from typing import Any, Optional

# Third-party
from langchain_core.messages import HumanMessage, SystemMessage

# Local application
from core.llm_factory import LLMPurpose, get_llm_config, get_model_name
from core.providers import get_llm

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class ModelCall:
    """One completed model round trip."""

    request: dict
    text: Optional[str]
    response: Any


def extract_text(response: Any) -> Optional[str]:
    """
    Returns the text content of a chat model response.

    Gemini may answer with a list of content parts; text parts are joined.
    Returns None when the response carries no text at all.
    """
    content = getattr(response, "content", None)
    if content is None:
        return None
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content)


def build_request_payload(
    prompt: str, system_prompt: str, purpose: LLMPurpose
) -> dict:
    """Describes the request in the shape stored by the AI request log."""
    config = get_llm_config(purpose)
    payload: dict[str, Any] = {
        "model": get_model_name(),
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ],
        "temperature": config.get("temperature"),
    }
    if config.get("response_mime_type") == "application/json":
        payload["response_format"] = {"type": "json_object"}
    return payload


async def invoke_model(
    prompt: str,
    *,
    system_prompt: str,
    api_key: Optional[str],
    purpose: LLMPurpose = "word_translation",
) -> ModelCall:
    """
    Sends a system + user prompt to the model for a purpose.

    Temperature and JSON mode come from the purpose config in
    ``core.llm_factory``. Provider errors propagate unchanged.
    """
    llm = get_llm(purpose, api_key=api_key)
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=prompt)]

    logger.debug(f"Invoking model for {purpose} ({len(prompt)} chars)")
    response = await llm.ainvoke(messages)

    return ModelCall(
        request=build_request_payload(prompt, system_prompt, purpose),
        text=extract_text(response),
        response=response,
    )
