"""Configuration dataclasses for hidden-layer order selection.

This module defines the settings shared by every search strategy:
- Order bounds and the number of trials per order
- How repeated trials are reduced to one value (Minimum / Maximum / Mean)
- Global stopping conditions (goal, iterations, wall time, tolerance)
- Which parts of the history the final results keep

Strategy-specific knobs live in their own small dataclasses
(IncrementalConfig, GoldenSectionConfig, SimulatedAnnealingConfig).

Example:
    from hidden_order.config import OrderSelectionConfig, ReductionPolicy

    config = OrderSelectionConfig(
        minimum_order=1,
        maximum_order=12,
        trials_number=3,
        reduction_policy=ReductionPolicy.MEAN,
    )
    config = config.replace(maximum_time=60.0)
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from hidden_order.errors import (
    ConfigurationError,
    InvalidArgumentError,
    UnknownReductionPolicyError,
)


class ReductionPolicy(Enum):
    """Rule for collapsing repeated trials at one order into a single value."""

    MINIMUM = "Minimum"
    MAXIMUM = "Maximum"
    MEAN = "Mean"

    @classmethod
    def parse(cls, value: Union[str, "ReductionPolicy"]) -> "ReductionPolicy":
        """Parse a policy name such as "Minimum", "mean" or "MAXIMUM".

        Raises:
            UnknownReductionPolicyError: If the name matches no policy
        """
        if isinstance(value, cls):
            return value
        for policy in cls:
            if str(value).lower() == policy.value.lower():
                return policy
        raise UnknownReductionPolicyError(
            problem=f"Unknown reduction policy: {value!r}",
            recovery="Use one of: Minimum, Maximum, Mean",
        )


@dataclass(frozen=True)
class ReserveFlags:
    """Which parts of the search history the final results keep.

    Frozen; results hold the instance they were built with.

    Attributes:
        parameters: Keep the parameter vector of every evaluated order
        training_error_history: Report the training error of every order
        selection_error_history: Report the selection error of every order
        minimal_parameters: Keep the parameter vector of the optimal order
    """
    parameters: bool = True
    training_error_history: bool = True
    selection_error_history: bool = True
    minimal_parameters: bool = True


def _require_positive(name: str, value: Union[int, float]) -> None:
    if value is None or value <= 0:
        raise InvalidArgumentError(
            problem=f"{name} must be greater than 0",
            cause=f"{name}={value}",
        )


def _require_non_negative(name: str, value: float) -> None:
    if value is None or value < 0:
        raise InvalidArgumentError(
            problem=f"{name} must be equal or greater than 0",
            cause=f"{name}={value}",
        )


@dataclass
class OrderSelectionConfig:
    """Settings of the order-selection control loop.

    Attributes:
        minimum_order: Smallest hidden-layer width to consider (>= 1)
        maximum_order: Largest hidden-layer width to consider. None derives
            2 * (inputs + outputs) from the scoring functional at check time
        trials_number: Trainings per order under randomized restarts (>= 1)
        reduction_policy: How the trials of one order are reduced
        selection_error_goal: Stop as soon as an order reaches this selection error
        maximum_iterations_number: Maximum number of proposals evaluated
        maximum_time: Wall-clock limit for the whole search in seconds
        tolerance: Bracket width (in order units) at which golden section stops
        reserve: Which parts of the history the results keep
        perturbation_magnitude: Uniform displacement applied before the first trial
        randomization_std: Standard deviation of the re-randomization between trials
        display: Log per-trial progress at INFO instead of DEBUG
    """
    minimum_order: int = 1
    maximum_order: Optional[int] = None
    trials_number: int = 1
    reduction_policy: ReductionPolicy = ReductionPolicy.MINIMUM
    selection_error_goal: float = 0.0
    maximum_iterations_number: int = 1000
    maximum_time: float = 10000.0
    tolerance: float = 1.0e-3
    reserve: ReserveFlags = field(default_factory=ReserveFlags)
    perturbation_magnitude: float = 0.5
    randomization_std: float = 1.0
    display: bool = True

    def __post_init__(self) -> None:
        """Normalize the reduction policy and validate every bound."""
        self.reduction_policy = ReductionPolicy.parse(self.reduction_policy)
        self.validate()

    def validate(self) -> None:
        """Check every field.

        Raises:
            InvalidArgumentError: For non-positive orders, trials, iterations or
                time, and for a negative goal, tolerance or perturbation
            ConfigurationError: If maximum_order is not above minimum_order
        """
        _require_positive("minimum_order", self.minimum_order)
        if self.maximum_order is not None:
            _require_positive("maximum_order", self.maximum_order)
        _require_positive("trials_number", self.trials_number)
        _require_positive("maximum_iterations_number", self.maximum_iterations_number)
        _require_positive("maximum_time", self.maximum_time)
        _require_non_negative("selection_error_goal", self.selection_error_goal)
        _require_non_negative("tolerance", self.tolerance)
        _require_non_negative("perturbation_magnitude", self.perturbation_magnitude)
        _require_non_negative("randomization_std", self.randomization_std)

        if self.maximum_order is not None and self.maximum_order <= self.minimum_order:
            raise ConfigurationError(
                problem="maximum_order must be greater than minimum_order",
                cause=f"minimum_order={self.minimum_order}, maximum_order={self.maximum_order}",
                recovery="Raise maximum_order or lower minimum_order",
            )

    def replace(self, **changes) -> "OrderSelectionConfig":
        """Return a validated copy with the given fields changed.

        Example:
            >>> config = OrderSelectionConfig(maximum_order=10).replace(trials_number=5)
        """
        return dataclasses.replace(self, **changes)


@dataclass
class IncrementalConfig:
    """Settings of the incremental (stepwise) strategy.

    Attributes:
        step: Order increment between proposals
        maximum_selection_failures: Consecutive non-improving evaluations
            after which the search stops
    """
    step: int = 1
    maximum_selection_failures: int = 10

    def __post_init__(self) -> None:
        _require_positive("step", self.step)
        _require_positive("maximum_selection_failures", self.maximum_selection_failures)


@dataclass
class GoldenSectionConfig:
    """Settings of the golden-section strategy.

    The bracket tolerance is shared with OrderSelectionConfig.tolerance.
    """
    pass


@dataclass
class SimulatedAnnealingConfig:
    """Settings of the simulated-annealing strategy.

    Attributes:
        initial_temperature: Temperature before the first evaluation
        cooling_rate: Multiplicative cooling factor applied after each evaluation
        minimum_temperature: The search stops once the temperature falls below this
        seed: Random seed for reproducibility (None = nondeterministic)
    """
    initial_temperature: float = 1.0
    cooling_rate: float = 0.5
    minimum_temperature: float = 1.0e-3
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        _require_positive("initial_temperature", self.initial_temperature)
        _require_positive("minimum_temperature", self.minimum_temperature)
        if not 0.0 < self.cooling_rate < 1.0:
            raise InvalidArgumentError(
                problem="cooling_rate must lie strictly between 0 and 1",
                cause=f"cooling_rate={self.cooling_rate}",
            )
