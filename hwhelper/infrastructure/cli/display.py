import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.box import ROUNDED, HEAVY, SIMPLE
from rich.text import Text
from rich.table import Table

from hwhelper.domain.interfaces.user_interface import UserInterface
from hwhelper.domain.models.explanation import ProblemExplanation

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_explanation(self, explanation: ProblemExplanation, **kwargs: Any) -> None:
        """Renders the explanation as a header panel, one panel per step, and the solution.

        Args:
            explanation: The explanation to render.
            **kwargs: Additional arguments including:
                - show_hints: Whether to print step hints (default: True)
        """
        show_hints = kwargs.get("show_hints", True)
        grade = explanation.grade_level or "unknown"
        header = f"[bold white]{explanation.problem_type}[/bold white] [dim]·[/dim] [cyan]grade: {grade}[/cyan]"
        if explanation.is_fallback:
            self.console.print("[yellow]Offline explanation: the AI service was unavailable, "
                               "so this is a general guide for this kind of problem.[/yellow]")
        self.console.print(Panel(Markdown(explanation.overview), title=header, title_align="left",
                                 border_style="blue", box=ROUNDED, padding=(0, 1)))

        for number, step in enumerate(explanation.steps, start=1):
            body = step.description
            if show_hints and step.hint_question:
                body += f"\n\n*Think about it:* {step.hint_question}"
            if show_hints and step.hint:
                body += f"\n\n*Hint:* {step.hint}"
            self.console.print(Panel(Markdown(body), title=f"[bold]Step {number}: {step.title}[/bold]",
                                     title_align="left", border_style="cyan", box=SIMPLE, padding=(0, 1)))

        self.console.print(Panel(Markdown(explanation.detailed_explanation), title="[bold]Why it works[/bold]",
                                 title_align="left", border_style="magenta", box=SIMPLE, padding=(0, 1)))
        self.console.print(Panel(Markdown(explanation.solution), title="[bold green]Solution[/bold green]",
                                 title_align="left", border_style="green", box=ROUNDED, padding=(0, 1)))
        logger.debug(f"Displayed explanation with {len(explanation.steps)} steps")

    def display_settings(self, settings: Dict[str, Any]) -> None:
        table = Table(title="Effective settings", box=SIMPLE)
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="white")
        for key, value in settings.items():
            table.add_row(str(key), "-" if value is None else str(value))
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)
