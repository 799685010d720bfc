"""
TaskChat - Inference Client

Sends one-shot prompts to an OpenAI-compatible chat completions endpoint
and returns the raw completion text. No retries: a failed call surfaces as
an InferenceError subclass and the caller decides how to degrade.
"""

import logging
from datetime import date
from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from taskchat.config import settings
from taskchat.chat.prompts import (
    HEALTH_CHECK_PROMPT,
    build_task_management_prompt,
    build_task_extraction_prompt,
)

logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """Base class for completion service failures."""


class InferenceNotConfiguredError(InferenceError):
    """No API credential is configured. Detected at startup, not per call."""


class InferenceAuthError(InferenceError):
    """The completion service rejected the credential."""


class InferenceTimeoutError(InferenceError):
    """The completion service did not answer within the configured timeouts."""


class InferenceUnavailableError(InferenceError):
    """Transport failure or non-2xx status from the completion service."""


class InferenceResponseError(InferenceError):
    """The completion envelope carried no usable choice."""


def build_timeout() -> httpx.Timeout:
    """Connect/write/pool bounded by LLM_CONNECT_TIMEOUT, read by LLM_READ_TIMEOUT."""
    return httpx.Timeout(
        settings.LLM_CONNECT_TIMEOUT,
        read=settings.LLM_READ_TIMEOUT,
    )


class InferenceClient:
    """
    Long-lived completion client.

    Wraps one AsyncOpenAI instance (and its pooled httpx client) for the
    lifetime of the process. Pass `client` to inject a fake in tests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or settings.MODEL_NAME

        if client is None:
            api_key = api_key if api_key is not None else settings.LLM_API_KEY
            if not api_key or not api_key.strip():
                raise InferenceNotConfiguredError(
                    "LLM API key is not configured. Set LLM_API_KEY."
                )
            timeout = build_timeout()
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url or settings.LLM_BASE_URL,
                timeout=timeout,
                max_retries=0,
                http_client=httpx.AsyncClient(timeout=timeout),
            )
        self._client = client

    async def close(self) -> None:
        await self._client.close()

    async def complete(self, prompt: str) -> str:
        """
        Run a single completion and return the text of the first choice.

        Raises:
            InferenceAuthError: Credential rejected (401/403)
            InferenceTimeoutError: Connect or read timeout
            InferenceUnavailableError: Transport failure or other non-2xx status
            InferenceResponseError: No choice or empty content in the response
        """
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=settings.LLM_TEMPERATURE,
                max_tokens=settings.LLM_MAX_TOKENS,
                top_p=settings.LLM_TOP_P,
                stream=False,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise InferenceAuthError(str(e)) from e
        # APITimeoutError subclasses APIConnectionError, so it goes first
        except openai.APITimeoutError as e:
            raise InferenceTimeoutError(str(e)) from e
        except openai.APIConnectionError as e:
            raise InferenceUnavailableError(str(e)) from e
        except openai.APIStatusError as e:
            raise InferenceUnavailableError(f"Completion call failed: {e.status_code}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise InferenceResponseError("Completion response has no choices")

        # A malformed choice deserializes with message=None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if content is None or not content.strip():
            raise InferenceResponseError("Completion response has empty content")

        logger.debug(f"Raw completion: {content[:200]}")
        return content

    async def classify_message(self, message: str, today: Optional[date] = None) -> str:
        """Completion for the action-classification prompt."""
        return await self.complete(build_task_management_prompt(message, today))

    async def extract_tasks(self, text: str) -> str:
        """Completion for the file task-extraction prompt."""
        return await self.complete(build_task_extraction_prompt(text))

    async def check_health(self) -> None:
        """Round-trip a trivial prompt. Raises an InferenceError subclass when unhealthy."""
        await self.complete(HEALTH_CHECK_PROMPT)
