"""
Shared OpenAI client for the knowledge sync service.

Centralizes OpenAI API access for the Files, Vector Stores and
Assistants endpoints.
"""

import logging
from functools import lru_cache

from openai import AsyncOpenAI

from app.core.config import settings

logger = logging.getLogger("LinkAI.OpenAI")


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """
    Get the singleton OpenAI async client.

    Uses lru_cache to ensure only one client instance exists. Every request
    made through it carries the configured timeout, so a hung provider call
    surfaces as an error instead of blocking a sync forever.

    Returns:
        AsyncOpenAI client instance

    Raises:
        ValueError: If OPENAI_API_KEY is not set
    """
    api_key = settings.OPENAI_API_KEY
    if not api_key:
        raise ValueError("OPENAI_API_KEY environment variable not set")

    client = AsyncOpenAI(
        api_key=api_key,
        timeout=settings.OPENAI_TIMEOUT_SECONDS,
        max_retries=settings.OPENAI_MAX_RETRIES,
    )
    logger.info("OpenAI client initialized")
    return client


async def get_client() -> AsyncOpenAI:
    """
    Async-friendly wrapper to get the OpenAI client.

    Returns:
        AsyncOpenAI client instance
    """
    return get_openai_client()
