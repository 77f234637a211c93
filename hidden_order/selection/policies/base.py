"""Base interface for order-search policies.

A policy decides which order the controller evaluates next. It sees the
evaluation history and the stopping state, and answers with either an order
inside the configured bounds or Done (carrying the reason it gave up).

Policies never train anything themselves. Everything they know about an
order comes from the history, so a cached order is handled the same way as a
freshly trained one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from hidden_order.errors import ConfigurationError
from hidden_order.selection.history import EvaluationHistory
from hidden_order.selection.results import OrderSelectionResults
from hidden_order.selection.stopping import StoppingCondition, StoppingState


@dataclass(frozen=True)
class Done:
    """Signal that a policy has no further order to propose."""

    condition: StoppingCondition = StoppingCondition.ALGORITHM_FINISHED


Proposal = Union[int, Done]


class SearchPolicy(ABC):
    """Abstract base class for order-search strategies.

    Attributes:
        minimum_order: Lower bound set by reset()
        maximum_order: Upper bound set by reset()
        initial_temperature: Starting temperature, None for policies without one
        cooling_rate: Factor applied to the temperature after each evaluation,
            None for policies without a temperature
    """

    initial_temperature: Optional[float] = None
    cooling_rate: Optional[float] = None

    def __init__(self):
        self.minimum_order: Optional[int] = None
        self.maximum_order: Optional[int] = None

    def reset(self, minimum_order: int, maximum_order: int) -> None:
        """Prepare a fresh search over [minimum_order, maximum_order]."""
        self.minimum_order = minimum_order
        self.maximum_order = maximum_order

    def _require_bounds(self) -> None:
        if self.minimum_order is None or self.maximum_order is None:
            raise ConfigurationError(
                problem=f"{self.get_strategy_name()} has no order bounds",
                recovery="Call reset(minimum_order, maximum_order) before proposing",
            )

    @abstractmethod
    def propose_next(self, history: EvaluationHistory, state: StoppingState) -> Proposal:
        """Next order to evaluate, or Done."""
        pass

    @abstractmethod
    def get_strategy_name(self) -> str:
        """Human-readable name of the strategy (e.g., "Incremental order")."""
        pass

    @abstractmethod
    def build_results(self, state: StoppingState, **common: Any) -> OrderSelectionResults:
        """Wrap the common result fields into this strategy's results variant."""
        pass

    def describe(self) -> Dict[str, Any]:
        """Strategy settings logged at search start."""
        return {}
