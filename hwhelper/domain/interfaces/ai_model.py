"""Interface for AI Language Models (LLMs).

Defines the contract for sending messages to an AI provider.
"""

import abc
from typing import List, Optional

from ..models.ai import ChatMessage, StructuredAIResponse


class AIModel(abc.ABC):
    """Abstract Base Class for AI language model interactions."""

    @abc.abstractmethod
    async def send_messages(
        self,
        messages: List[ChatMessage],
        response_format: Optional[str] = None,
    ) -> StructuredAIResponse:
        """Sends a list of messages to the AI model asynchronously.

        Args:
            messages: A list of ChatMessage objects representing the conversation.
            response_format: Optional output format hint (e.g., 'json_object').

        Returns:
            A StructuredAIResponse containing the AI's reply and metadata.

        Raises:
            Exception: The provider's own error if the API call fails. Rate-limit
                errors must keep their status information so callers can
                recognise them.
        """
        pass
