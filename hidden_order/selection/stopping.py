"""Stopping conditions and the mutable state they are judged on.

StoppingState tracks what the controller needs between evaluations: the
iteration count, the elapsed wall time, the best selection error seen, the
streak of evaluations that did not beat it, and (for annealing) the current
temperature.

Example:
    >>> state = StoppingState()
    >>> state.start()
    >>> state.update(selection_error=0.4)
    >>> state.check_limits(maximum_time=60.0, maximum_iterations_number=10)
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


class StoppingCondition(Enum):
    """Reason the order-selection loop ended."""

    MAXIMUM_TIME = "MaximumTime"
    SELECTION_ERROR_GOAL = "SelectionErrorGoal"
    MAXIMUM_ITERATIONS = "MaximumIterations"
    MAXIMUM_SELECTION_FAILURES = "MaximumSelectionFailures"
    MINIMUM_TEMPERATURE = "MinimumTemperature"
    ALGORITHM_FINISHED = "AlgorithmFinished"
    CANCELLED = "Cancelled"

    def describe(self) -> str:
        """Human-readable description used in reports."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    StoppingCondition.MAXIMUM_TIME: "Maximum time reached",
    StoppingCondition.SELECTION_ERROR_GOAL: "Selection error goal reached",
    StoppingCondition.MAXIMUM_ITERATIONS: "Maximum number of iterations reached",
    StoppingCondition.MAXIMUM_SELECTION_FAILURES: "Maximum selection failures reached",
    StoppingCondition.MINIMUM_TEMPERATURE: "Minimum temperature reached",
    StoppingCondition.ALGORITHM_FINISHED: "Algorithm finished",
    StoppingCondition.CANCELLED: "Search cancelled",
}


@dataclass
class StoppingState:
    """Progress of one search, updated by the controller after each evaluation.

    Attributes:
        clock: Time source in seconds
        temperature: Current annealing temperature, None for other strategies
        iterations: Orders evaluated so far (cache hits included)
        failures: Consecutive evaluations that did not beat the best selection error
        best_selection_error: Lowest selection error seen so far
        start_time: When the search started (set by start())
    """
    clock: Callable[[], float] = time.time
    temperature: Optional[float] = None

    iterations: int = field(default=0, init=False)
    failures: int = field(default=0, init=False)
    best_selection_error: float = field(default=float("inf"), init=False)
    start_time: Optional[float] = field(default=None, init=False)

    def start(self) -> None:
        """Start the timer and clear the counters."""
        self.start_time = self.clock()
        self.iterations = 0
        self.failures = 0
        self.best_selection_error = float("inf")

    @property
    def elapsed_time(self) -> float:
        if self.start_time is None:
            return 0.0
        return self.clock() - self.start_time

    def update(self, selection_error: float) -> bool:
        """Account for one evaluated order.

        Returns:
            True if the selection error improved on the best so far
        """
        self.iterations += 1
        if selection_error < self.best_selection_error:
            self.best_selection_error = selection_error
            self.failures = 0
            return True
        self.failures += 1
        return False

    def cool(self, cooling_rate: float) -> None:
        if self.temperature is not None:
            self.temperature *= cooling_rate

    def check_limits(
        self,
        maximum_time: float,
        maximum_iterations_number: int,
    ) -> Optional[StoppingCondition]:
        """Global limits checked before each proposal.

        Time is checked first, so a search that runs out of time is reported
        as MAXIMUM_TIME even if the iteration limit is also reached.

        Returns:
            The condition that fired, or None to continue
        """
        if self.elapsed_time >= maximum_time:
            return StoppingCondition.MAXIMUM_TIME
        if self.iterations >= maximum_iterations_number:
            return StoppingCondition.MAXIMUM_ITERATIONS
        return None
