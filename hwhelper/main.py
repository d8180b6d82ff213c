"""Main entry point for the hwhelper application.

Sets up the Typer CLI application, performs dependency injection (Composition Root)
and defines the CLI commands.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Setup Logging Early ---
# Use basic config until setup_logging is called with the configured settings
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Core Layer ---
from hwhelper.core.services.explanation_service import ExplanationService, GRADE_LEVELS

# --- Domain Layer ---
from hwhelper.domain.models.explanation import ExplanationFormatError

# --- Infrastructure Layer ---
from hwhelper.infrastructure.config.settings import (
    load_configuration, get_config, get_openai_api_key, get_default_model, get_queue_settings,
    get_fallback_enabled,
)
from hwhelper.infrastructure.cli.display import ConsoleDisplay
from hwhelper.infrastructure.ai.openai.gpt_client import GptClient
from hwhelper.infrastructure.resilience.request_queue import SerialRequestQueue
from hwhelper.infrastructure.monitoring.logger_setup import setup_logging, resolve_log_level


class StartupError(RuntimeError):
    """Raised when the application cannot be wired up (missing key, bad settings)."""
    pass


def configure_logging() -> None:
    log_level = resolve_log_level(get_config('logging.level', 'INFO'))
    log_file = get_config('logging.file')
    log_format = get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    setup_logging(log_level=log_level, log_file=log_file, log_format=log_format)


def create_dependencies(with_ai: bool = True, allow_fallback: Optional[bool] = None) -> Dict[str, Any]:
    """Creates and wires up the dependencies for one CLI invocation.

    This acts as the Composition Root. The request queue is created here and
    injected into every service that talks to the AI API.

    Args:
        with_ai: Whether to build the AI client, queue and explanation service.
        allow_fallback: Whether offline explanations may replace the AI.
            Uses the ``explanation.fallback`` config key when None.

    Raises:
        StartupError: If the queue settings are invalid, or no API key is
            configured and the fallback is disabled.
    """
    load_configuration()
    configure_logging()

    dependencies: Dict[str, Any] = {'ui': ConsoleDisplay()}
    try:
        dependencies['queue_settings'] = get_queue_settings()
    except ValueError as e:
        raise StartupError(f"Invalid queue configuration: {e}") from e

    if not with_ai:
        return dependencies

    use_fallback = get_fallback_enabled() if allow_fallback is None else allow_fallback
    openai_api_key = get_openai_api_key()
    if openai_api_key:
        dependencies['ai_model'] = GptClient(api_key=openai_api_key, model=get_default_model())
        dependencies['request_queue'] = SerialRequestQueue.from_settings(dependencies['queue_settings'], name="openai")
    elif use_fallback:
        logger.warning("OpenAI API key not found. Explanations will use offline templates.")
        dependencies['ai_model'] = None
        dependencies['request_queue'] = None
    else:
        raise StartupError("OpenAI API key not found. Set OPENAI_API_KEY or openai.api_key in the config file.")

    dependencies['explanation_service'] = ExplanationService(
        ai_model=dependencies['ai_model'],
        request_queue=dependencies['request_queue'],
        request_timeout=dependencies['queue_settings'].request_timeout_s,
        use_fallback=use_fallback,
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="hwhelper",
    help="hwhelper: grade-level-adapted, step-by-step explanations of homework problems.",
    add_completion=False,
)

GradeOption = Annotated[
    Optional[str],
    typer.Option("--grade", "-g", help=f"Target grade level ({', '.join(GRADE_LEVELS)}). Detected if not set.")
]


def _fail(ui: ConsoleDisplay, message: str) -> None:
    ui.display_error(message)
    raise typer.Exit(code=1)


@app.command()
def explain(
    problem: Annotated[Optional[str], typer.Argument(help="The problem text (e.g., OCR output).")] = None,
    file: Annotated[Optional[Path], typer.Option("--file", "-f",
                                                 exists=True, file_okay=True, dir_okay=False,
                                                 readable=True, resolve_path=True,
                                                 help="Read the problem text from a file.")] = None,
    grade: GradeOption = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", "-t", min=0.0,
                                                     help="Give up waiting after this many seconds.")] = None,
    no_fallback: Annotated[bool, typer.Option("--no-fallback",
                                              help="Fail instead of showing an offline explanation when the AI is unavailable.")] = False,
):
    """Explain a homework problem step by step."""
    try:
        dependencies = create_dependencies(allow_fallback=False if no_fallback else None)
    except StartupError as e:
        logger.error(f"Startup failed: {e}")
        _fail(ConsoleDisplay(), str(e))

    ui: ConsoleDisplay = dependencies['ui']
    if file is not None:
        problem = file.read_text(encoding='utf-8')
    if not problem:
        _fail(ui, "Provide the problem text as an argument or with --file.")

    service: ExplanationService = dependencies['explanation_service']
    if timeout is not None:
        service.request_timeout = timeout

    try:
        explanation = asyncio.run(service.explain(problem, grade))
    except ExplanationFormatError as e:
        logger.error(f"Unusable AI reply: {e}")
        _fail(ui, f"The AI reply could not be understood: {e}")
    except asyncio.TimeoutError:
        _fail(ui, f"No answer within {service.request_timeout}s. The AI service is busy, try again later.")
    except ValueError as e:
        _fail(ui, str(e))
    except Exception as e:
        logger.error(f"Explanation request failed: {e}", exc_info=True)
        _fail(ui, f"AI request failed: {e}")

    ui.display_explanation(explanation)


@app.command(name="settings")
def settings_command():
    """Show the effective request queue settings."""
    try:
        dependencies = create_dependencies(with_ai=False)
    except StartupError as e:
        _fail(ConsoleDisplay(), str(e))
    shown = dict(dependencies['queue_settings'].as_dict(), fallback=get_fallback_enabled())
    dependencies['ui'].display_settings(shown)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
