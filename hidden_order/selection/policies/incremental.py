"""Incremental order search.

Starts at the minimum order and steps upward by a fixed increment. Stops
when the selection error has not improved for a number of consecutive
evaluations, or when the next order would exceed the maximum.

Example:
    >>> policy = IncrementalOrder(IncrementalConfig(step=2, maximum_selection_failures=3))
    >>> policy.reset(1, 10)
"""

from typing import Any, Dict, Optional

from hidden_order.config.selection import IncrementalConfig
from hidden_order.selection.history import EvaluationHistory
from hidden_order.selection.policies.base import Done, Proposal, SearchPolicy
from hidden_order.selection.results import IncrementalOrderResults
from hidden_order.selection.stopping import StoppingCondition, StoppingState


class IncrementalOrder(SearchPolicy):
    """Stepwise search over increasing orders.

    Args:
        config: Step and failure limit (default: IncrementalConfig())
    """

    def __init__(self, config: Optional[IncrementalConfig] = None):
        super().__init__()
        self.config = config if config is not None else IncrementalConfig()
        self._last_order: Optional[int] = None

    def reset(self, minimum_order: int, maximum_order: int) -> None:
        super().reset(minimum_order, maximum_order)
        self._last_order = None

    def propose_next(self, history: EvaluationHistory, state: StoppingState) -> Proposal:
        self._require_bounds()

        if state.failures >= self.config.maximum_selection_failures:
            return Done(StoppingCondition.MAXIMUM_SELECTION_FAILURES)

        if self._last_order is None:
            order = self.minimum_order
        else:
            order = self._last_order + self.config.step

        if order > self.maximum_order:
            return Done(StoppingCondition.ALGORITHM_FINISHED)

        self._last_order = order
        return order

    def get_strategy_name(self) -> str:
        return "Incremental order"

    def build_results(self, state: StoppingState, **common: Any) -> IncrementalOrderResults:
        return IncrementalOrderResults(step=self.config.step, **common)

    def describe(self) -> Dict[str, Any]:
        return {
            "step": self.config.step,
            "maximum_selection_failures": self.config.maximum_selection_failures,
        }
