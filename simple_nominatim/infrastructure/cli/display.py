"""Console adapter for the UserInterface port, built on rich.

Command results go to stdout exactly as received; errors and validation
issues go to stderr with rich styling.
"""

import logging
from typing import Any, Iterable, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from simple_nominatim.domain.interfaces.user_interface import UserInterface
from simple_nominatim.domain.models.common import ProcessedOutput

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library.

    API output goes to stdout untouched (no markup, emoji, highlighting or
    wrapping) so it can be piped into other tools; diagnostics go to stderr.
    """

    def __init__(self, console: Optional[Console] = None, error_console: Optional[Console] = None):
        self._console = console or Console(highlight=False)
        self._error_console = error_console or Console(stderr=True, highlight=False)

    @property
    def console(self) -> Console:
        """Get the stdout console instance."""
        return self._console

    @property
    def error_console(self) -> Console:
        """Get the stderr console instance."""
        return self._error_console

    def display_output(self, output: ProcessedOutput, **kwargs: Any) -> None:
        logger.debug(f"display_output called: content_length={len(str(output))}")
        self.console.print(str(output), markup=False, emoji=False, highlight=False, soft_wrap=True)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        self.error_console.print(f"[bold red]Error:[/bold red] {escape(error_message)}", soft_wrap=True)

    def display_validation_errors(self, issues: Iterable[Tuple[str, str]]) -> None:
        self.error_console.print("[bold red]Validation error:[/bold red]", soft_wrap=True)
        for field, message in issues:
            self.error_console.print(f"  - {field}: {message}", markup=False, emoji=False, soft_wrap=True)
