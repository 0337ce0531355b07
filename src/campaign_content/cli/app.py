"""Typer app configuration and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from dotenv import load_dotenv

from ..providers.config import EnvSettings

# Load environment variables from .env file
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="campaign-content",
    help="AI content generation for marketing campaigns",
    add_completion=False,
)


def register_commands() -> None:
    """Register all commands."""
    from .commands import run, validate

    app.command(name="run")(run)
    app.command(name="validate")(validate)


def _file_logger(name: str, log_file: Path) -> None:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.handlers = []  # Clear any existing handlers
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(handler)


def setup_logging(log_dir: Path | None = None) -> None:
    """Configure logging for CLI.

    - Suppresses console output from libraries
    - Sets up file logging for AI calls and generation events
    """
    log_dir = log_dir or EnvSettings().log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    # Remove any default console handlers from root logger
    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.CRITICAL)

    # Suppress loggers that might print to console
    for logger_name in ["httpx", "httpcore", "asyncio", "openai", "agno"]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.propagate = False

    _file_logger("ai_calls", log_dir / "ai_calls.log")
    _file_logger("generation", log_dir / "generation.log")
    # Retry attempts are part of the generation story
    retry_logger = logging.getLogger("retry")
    retry_logger.setLevel(logging.DEBUG)
    retry_logger.propagate = False
    retry_logger.handlers = logging.getLogger("generation").handlers[:]


@app.callback()
def _configure() -> None:
    setup_logging()


# Register all commands
register_commands()


def main() -> None:
    """CLI entry point."""
    app()
