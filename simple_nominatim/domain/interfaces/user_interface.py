"""Interface for interacting with the user (output only).

Defines the contract for displaying results, errors and validation
issues, allowing different UI implementations.
"""

import abc
from typing import Any, Iterable, Tuple

from simple_nominatim.domain.models.common import ProcessedOutput


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: ProcessedOutput, **kwargs: Any) -> None:
        """Displays the command result on standard output.

        Args:
            output: The text to write, printed verbatim.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_validation_errors(self, issues: Iterable[Tuple[str, str]]) -> None:
        """Displays input validation issues, one ``(field, message)`` per line."""
        pass
