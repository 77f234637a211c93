"""Structured error handling with rich-formatted panels.

Every failure raised by the order-selection package carries a problem
description and, where useful, the cause and a recovery hint. The message is
rendered as a rich panel on stderr when the error is constructed.

Example:
    raise ConfigurationError(
        problem="maximum_order must be greater than minimum_order",
        cause="minimum_order=5, maximum_order=3",
        recovery="Swap the bounds or raise maximum_order above 5",
    )
"""

from typing import Optional
from rich.console import Console
from rich.panel import Panel


console = Console(stderr=True)


class HiddenOrderError(Exception):
    """Base exception class for order-selection errors with rich formatting.

    Attributes:
        problem: A concise description of what went wrong
        cause: Explanation of why the error occurred
        recovery: Actionable steps to fix the issue
        context: Optional additional context (e.g., related config values)
    """

    def __init__(
        self,
        problem: str,
        cause: Optional[str] = None,
        recovery: Optional[str] = None,
        context: Optional[str] = None,
    ):
        """Initialize an error with structured information.

        Args:
            problem: A concise description of what went wrong
            cause: Explanation of why the error occurred (optional)
            recovery: Actionable steps to fix the issue (optional)
            context: Optional additional context information
        """
        self.problem = problem
        self.cause = cause
        self.recovery = recovery
        self.context = context

        message_parts = [f"[bold red]Problem:[/bold red] {problem}"]

        if cause:
            message_parts.append(f"\n[bold yellow]Cause:[/bold yellow] {cause}")

        if recovery:
            message_parts.append(f"\n[bold green]Recovery:[/bold green] {recovery}")

        if context:
            message_parts.append(f"\n[bold blue]Context:[/bold blue] {context}")

        self.message = "\n".join(message_parts)

        self._display_error()

        # Plain text for standard error handling
        super().__init__(problem)

    def _display_error(self):
        """Display the error message as a rich panel."""
        panel = Panel(
            self.message,
            title=f"[bold red]{self.__class__.__name__}[/bold red]",
            border_style="red",
            expand=False,
        )
        console.print(panel)


class ConfigurationError(HiddenOrderError):
    """Error raised for an unusable search setup.

    Raised before any trial runs: missing trainer or scoring functional, empty
    or single-layer network, no selection instances, inverted order bounds.

    Example:
        raise ConfigurationError(
            problem="Data set has no selection instances",
            cause="selection_instances_number=0",
            recovery="Call data_set.split_instances() with selection_ratio > 0"
        )
    """
    pass


class InvalidArgumentError(HiddenOrderError):
    """Error raised for a non-positive order, trial count, time or iteration bound."""
    pass


class ShapeMismatchError(HiddenOrderError):
    """Error raised when network input/output widths disagree with the data set."""
    pass


class UnknownTrainingMethodError(HiddenOrderError):
    """Error raised when a training result carries a method tag that is not handled."""
    pass


class UnknownReductionPolicyError(HiddenOrderError):
    """Error raised for a reduction policy other than Minimum, Maximum or Mean."""
    pass


class DegenerateTargetsError(HiddenOrderError):
    """Error raised when the normalization coefficient of the targets vanishes.

    This indicates unusable data (for example constant targets) rather than a
    transient fault, so it is never caught or retried by the search loop.
    """
    pass


class OrderNotFoundError(HiddenOrderError):
    """Error raised when asking for the record of an order that was never evaluated."""
    pass


class ValidationError(HiddenOrderError):
    """Error raised for malformed command-line or config-loader input.

    Example:
        raise ValidationError(
            problem="Invalid override argument format",
            cause="Override argument 'trials_number=3' must start with '--'",
            recovery="Use format: --key=value (e.g., --trials_number=3)"
        )
    """
    pass
