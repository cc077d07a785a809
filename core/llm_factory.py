"""
LLM Factory Module

Provides cached LLM instances with purpose-specific configurations.
Each purpose has its own settings; only the full translation purpose
answers in plain text, the word purposes run in JSON mode.
"""

# Standard library
import logging
import os
from functools import lru_cache
from typing import Literal, Optional

# Third-party
from langchain_google_genai import ChatGoogleGenerativeAI

# Configure logging
logger = logging.getLogger(__name__)

# Purpose type for type safety
LLMPurpose = Literal["translation", "word_translation", "word_parsing"]

_DEFAULT_MODEL = "gemini-2.5-flash"

# Fixed low temperature keeps token splits stable across re-translations
TRANSLATION_TEMPERATURE = 0.1

# Configuration for each purpose
_LLM_CONFIGS: dict[str, dict] = {
    "translation": {
        "temperature": TRANSLATION_TEMPERATURE,
        "max_output_tokens": 4096,
    },
    "word_translation": {
        "temperature": TRANSLATION_TEMPERATURE,
        "max_output_tokens": 8192,
        "response_mime_type": "application/json",
    },
    "word_parsing": {
        "temperature": TRANSLATION_TEMPERATURE,
        "max_output_tokens": 4096,
        "response_mime_type": "application/json",
    },
}


def get_model_name(model_name: Optional[str] = None) -> str:
    """Resolves the model tag: explicit override, then TRANSLATION_MODEL, then default."""
    return model_name or os.getenv("TRANSLATION_MODEL") or _DEFAULT_MODEL


def get_llm_config(purpose: LLMPurpose) -> dict:
    """Returns a copy of the generation settings for a purpose."""
    return dict(_LLM_CONFIGS.get(purpose, _LLM_CONFIGS["word_translation"]))


@lru_cache(maxsize=32)
def get_llm(
    purpose: LLMPurpose,
    model_name: Optional[str] = None,
    api_key: Optional[str] = None,
) -> ChatGoogleGenerativeAI:
    """
    Returns a cached LLM instance for a specific purpose.

    Instances are cached per (purpose, model, credential) so a user's key is
    never used for another user's request.

    Args:
        purpose: The intended use case for the LLM.
            - "translation": full message translation (plain text)
            - "word_translation": token-level + full translation (JSON mode)
            - "word_parsing": token segmentation without translation (JSON mode)
        model_name: Optional model override.
        api_key: Provider credential. Falls back to GOOGLE_API_KEY when None.

    Returns:
        Configured ChatGoogleGenerativeAI instance.

    Example:
        llm = get_llm("word_translation", api_key=user_key)
        response = await llm.ainvoke(messages)
    """
    config = get_llm_config(purpose)
    model = get_model_name(model_name)

    logger.info(f"Initializing LLM for purpose: {purpose} (model: {model})")

    kwargs = dict(config)
    if api_key:
        kwargs["google_api_key"] = api_key

    return ChatGoogleGenerativeAI(model=model, **kwargs)


def clear_llm_cache() -> None:
    """
    Clears the LLM instance cache.

    Useful for testing or when configuration needs to be reloaded.
    """
    get_llm.cache_clear()
    logger.info("LLM cache cleared")
