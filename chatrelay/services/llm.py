import logging
from functools import lru_cache
from typing import Any

import httpx
from openai import AsyncOpenAI
from openai import OpenAIError

from chatrelay.core.config import settings

# Configure module logger
logger = logging.getLogger(__name__)


# Custom exceptions for better error handling
class LLMError(Exception):
    """Raised when LLM call fails"""


class EmptyCompletionError(LLMError):
    """Raised when a backend answers successfully but with no text"""


# ---------------------------------------------------------------
# OpenAI client (async), built on first use
# ---------------------------------------------------------------
timeout_config = httpx.Timeout(
    settings.LLM_CONNECT_TIMEOUT,
    read=settings.LLM_READ_TIMEOUT,
)


@lru_cache(maxsize=1)
def get_client() -> AsyncOpenAI:
    """Shared client. Retries are owned by the tier attempts, not the SDK."""
    return AsyncOpenAI(
        api_key=settings.openai_api_key or "missing-api-key",
        base_url=settings.openai_base_url,
        timeout=timeout_config,
        max_retries=0,
    )


# ---------------------------------------------------------------
# Raw tier calls: return the SDK envelope untouched
# ---------------------------------------------------------------
async def call_responses(messages: list[dict[str, str]], *, model: str) -> Any:
    """Responses API call without an output cap; the backend applies its own ceiling."""
    logger.info("Calling Responses API with model %s (%d messages)", model, len(messages))
    try:
        return await get_client().responses.create(model=model, input=messages)
    except OpenAIError as e:
        logger.error("OpenAI API error from Responses API (%s): %s", model, str(e))
        raise LLMError(f"OpenAI API error: {str(e)}") from e


async def call_chat(messages: list[dict[str, str]], *, model: str, max_output_tokens: int) -> Any:
    """Chat Completions call with an explicit, generous output cap."""
    logger.info(
        "Calling Chat Completions with model %s (%d messages, cap %d tokens)",
        model,
        len(messages),
        max_output_tokens,
    )
    try:
        return await get_client().chat.completions.create(
            model=model,
            messages=messages,
            max_completion_tokens=max_output_tokens,
        )
    except OpenAIError as e:
        logger.error("OpenAI API error from Chat Completions (%s): %s", model, str(e))
        raise LLMError(f"OpenAI API error: {str(e)}") from e
