# =============================================================================
# EVMOS UPGRADE HELPER - OPENAI COMPLETION CLIENT
# =============================================================================
#
# CompletionClient over the official openai SDK (chat completions).
#
# ERROR MAPPING:
#   APITimeoutError, APIConnectionError,
#   RateLimitError, InternalServerError      -> TransientError
#   AuthenticationError, PermissionDeniedError,
#   BadRequestError, NotFoundError           -> FatalCompletionError
#
# The SDK's own retries are disabled; the summarizer owns the retry policy.
#
# =============================================================================

import logging
import os
from typing import Optional

import openai
from openai import OpenAI

from clients.base import CompletionClient
from shared.exceptions import FatalCompletionError, TransientError

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "OPENAI_API_KEY"
MAX_TOKENS = 2000

TRANSIENT_ERRORS = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)

FATAL_ERRORS = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
    openai.BadRequestError,
    openai.NotFoundError,
)


class OpenAICompletionClient(CompletionClient):
    """Single-prompt chat completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: API key, defaults to $OPENAI_API_KEY
            timeout: Per-request timeout in seconds
            client: Preconfigured SDK client (tests)

        Raises:
            FatalCompletionError: If no API key is available
        """
        if client is None:
            api_key = (api_key or os.environ.get(API_KEY_ENV_VAR, "")).strip()
            if not api_key:
                raise FatalCompletionError(f"{API_KEY_ENV_VAR} is not set")
            client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client

    def complete(self, prompt: str, model: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=MAX_TOKENS,
            )
        except TRANSIENT_ERRORS as e:
            raise TransientError(f"{type(e).__name__}: {e}") from e
        except FATAL_ERRORS as e:
            raise FatalCompletionError(f"{type(e).__name__}: {e}") from e

        if not response.choices:
            logger.warning(f"Completion from {model} returned no choices")
            return ""
        return response.choices[0].message.content or ""
