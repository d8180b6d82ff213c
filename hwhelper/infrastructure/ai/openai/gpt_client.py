"""Concrete implementation of the AIModel interface using the OpenAI API.

Hides the specifics of the OpenAI client library and translates requests/
responses between the domain model and the OpenAI API format. SDK errors are
re-raised unchanged so the request queue can recognise rate limits.
"""

import logging
import os
import asyncio
import time
from typing import List, Optional, Any

from openai import OpenAI, RateLimitError, APIError, AuthenticationError, APIResponseValidationError

from hwhelper.domain.interfaces.ai_model import AIModel
from hwhelper.domain.models.ai import ChatMessage, StructuredAIResponse
from hwhelper.domain.models.common import TokenUsage

logger = logging.getLogger(__name__)


class GptClient(AIModel):
    """OpenAI implementation of the AIModel interface."""

    DEFAULT_MODEL = "gpt-4o"
    DEFAULT_TEMPERATURE = 0.5

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: Optional[float] = None,
    ):
        """Initializes the OpenAI client.

        Args:
            api_key: OpenAI API key. Reads from OPENAI_API_KEY env var if None.
            model: The OpenAI model to use.
            temperature: Sampling temperature sent with every request.
            timeout: Optional per-request timeout in seconds for the SDK.
        """
        effective_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not effective_api_key:
            raise ValueError("OpenAI API key not provided and not found in environment variables.")

        client_kwargs: dict = {"api_key": effective_api_key}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        # The SDK retries 429s itself by default; the request queue owns retries.
        client_kwargs["max_retries"] = 0
        self.client = OpenAI(**client_kwargs)

        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        logger.info(f"GptClient initialized for model: {self.model}")

    def _parse_openai_response(self, response: Any) -> StructuredAIResponse:
        """Parses the response object from OpenAI API call."""
        try:
            choice = response.choices[0]
            content = choice.message.content or ""

            token_usage = None
            if response.usage:
                token_usage = TokenUsage(
                    prompt_tokens=response.usage.prompt_tokens,
                    completion_tokens=response.usage.completion_tokens,
                    total_tokens=response.usage.total_tokens
                )

            return StructuredAIResponse(
                content=content,
                token_usage=token_usage,
                model_name=getattr(response, "model", None) or self.model,
            )
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse OpenAI response structure: {e}", exc_info=True)
            logger.debug(f"Raw OpenAI response object: {response}")
            raise ValueError(f"Invalid response structure from OpenAI: {e}") from e

    async def send_messages(
        self,
        messages: List[ChatMessage],
        response_format: Optional[str] = None,
    ) -> StructuredAIResponse:
        """Sends messages to the configured OpenAI model asynchronously."""
        logger.debug(f"Sending {len(messages)} messages to OpenAI model: {self.model}")
        request_kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if response_format:
            request_kwargs["response_format"] = {"type": response_format}

        start_time = time.perf_counter()
        try:
            # Use asyncio.to_thread for the synchronous SDK call
            response = await asyncio.to_thread(self.client.chat.completions.create, **request_kwargs)
        except AuthenticationError as e:
            logger.error(f"OpenAI Authentication Error: {e}")
            raise
        except RateLimitError as e:
            logger.warning(f"OpenAI Rate Limit Error encountered: {e}")
            raise
        except APIResponseValidationError as e:
            logger.error(f"OpenAI response validation error: {e}")
            raise
        except APIError as e:
            logger.warning(f"OpenAI API Error encountered (Status: {getattr(e, 'status_code', None)}): {e}")
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        structured_response = self._parse_openai_response(response)
        structured_response.latency_ms = latency_ms

        logger.debug(f"Received response from OpenAI in {latency_ms:.2f}ms. Usage: {structured_response.token_usage}")
        return structured_response
