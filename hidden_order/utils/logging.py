"""
Console logging for order-selection runs.

Log records go through loguru; report pieces that are meant to be read at
the terminal (the optimal order, section rules between search phases, the
history table) are drawn on a themed rich console.

Usage:
    from hidden_order.utils.logging import get_logger

    logger = get_logger(__name__)
    logger.section("Golden section search")
    logger.metric("optimal_order", 7, unit="units")
    logger.table(build_results_table(results))
"""

import os
import sys
from typing import Any, Dict, Optional

from loguru import logger as loguru_logger
from rich.console import Console, RenderableType
from rich.theme import Theme

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)

_DEFAULT_THEME = {
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "metric": "bold green",
    "section": "bold blue",
}

_console = Console(theme=Theme(_DEFAULT_THEME))


def _format_value(value: Any, unit: str = "") -> str:
    text = f"{value:.6f}" if isinstance(value, float) else str(value)
    return f"{text} {unit}" if unit else text


class RichLogger:
    """
    Named logger for the command line and reports.

    Every record is prefixed with ``[name]`` so lines from the controller,
    the trainer and the entry point can be told apart in one stream.

    Args:
        name: Prefix shown on each record, usually ``__name__``
    """

    def __init__(self, name: str):
        self.name = name
        self._logger = loguru_logger

    def _prefixed(self, message: str) -> str:
        return f"[{self.name}] {message}"

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._prefixed(message), **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._prefixed(message), **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(self._prefixed(message), **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._prefixed(message), **kwargs)

    def metric(self, name: str, value: Any, unit: str = "", **kwargs: Any) -> None:
        """
        Show a named result value on the console and log it.

        Floats are shown with six decimals, which matches the precision of
        the text report; other values are shown as they are.

        Args:
            name: Result name, e.g. "selection_error"
            value: Result value
            unit: Optional unit appended to the value
        """
        shown = _format_value(value, unit)
        _console.print(f"[metric]METRIC[/metric] {name}: [bold green]{shown}[/bold green]")
        self._logger.info(f"METRIC {name}={shown}", **kwargs)

    def section(self, title: str) -> None:
        """Draw a titled rule between phases of a run."""
        _console.rule(f"[section]{title}[/section]")
        self._logger.info(f"=== {title} ===")

    def table(self, renderable: RenderableType) -> None:
        """Print a rich renderable, typically the order-selection history table."""
        _console.print(renderable)


def get_logger(name: str) -> RichLogger:
    """Return a RichLogger prefixing its records with ``name``."""
    return RichLogger(name)


def configure_logging(
    level: Optional[str] = None,
    format: Optional[str] = None,
    sink: Any = sys.stderr,
    theme: Optional[Dict[str, str]] = None,
) -> None:
    """
    Replace the loguru sink and, optionally, the console theme.

    Runs once on import with the defaults. Call it again to send records
    elsewhere or to see per-trial DEBUG lines of a search with
    ``display=False``.

    Args:
        level: Minimum level; falls back to $LOG_LEVEL, then "INFO"
        format: loguru format string; falls back to $LOG_FORMAT, then DEFAULT_FORMAT
        sink: Where records are written (default: stderr)
        theme: Style overrides for the console keys info, warning, error,
               metric and section

    Example:
        >>> configure_logging(level="DEBUG")
        >>> configure_logging(theme={"metric": "bold magenta"})
    """
    global _console

    level = level or os.environ.get("LOG_LEVEL", "INFO")
    format = format or os.environ.get("LOG_FORMAT") or DEFAULT_FORMAT

    if theme is not None:
        _console = Console(theme=Theme({**_DEFAULT_THEME, **theme}))

    loguru_logger.remove()
    loguru_logger.add(sink, format=format, level=level, colorize=True)


configure_logging()
