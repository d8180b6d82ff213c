"""Interface for presenting results to the user.

Defines the contract for displaying explanations, settings, errors and
informational messages, allowing different UI implementations.
"""

import abc
from typing import Any, Dict

from hwhelper.domain.models.explanation import ProblemExplanation


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_explanation(self, explanation: ProblemExplanation, **kwargs: Any) -> None:
        """Displays a step-by-step explanation.

        Args:
            explanation: The explanation to render.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_settings(self, settings: Dict[str, Any]) -> None:
        """Displays effective configuration values as a table."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
