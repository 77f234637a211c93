"""Golden-section order search.

Keeps a bracket [a, b] of orders and two interior points at the
golden-ratio positions of the bracket, rounded to integers. After both points
are evaluated the bracket shrinks toward the point with the lower selection
error; on a tie the lower-order side is kept.

Once the bracket spans at most two order units every order still inside it
is evaluated and the search finishes. It also finishes when the bracket width
falls to the configured tolerance.
"""

import math
from typing import Any, Dict, Optional, Tuple

from hidden_order.config.selection import GoldenSectionConfig
from hidden_order.selection.history import EvaluationHistory
from hidden_order.selection.policies.base import Done, Proposal, SearchPolicy
from hidden_order.selection.results import GoldenSectionOrderResults
from hidden_order.selection.stopping import StoppingState

GOLDEN_RATIO = (math.sqrt(5.0) - 1.0) / 2.0


class GoldenSectionOrder(SearchPolicy):
    """Golden-section bracketing of the order with lowest selection error.

    Args:
        tolerance: Bracket width (in order units) at which the search stops
        config: Strategy settings (default: GoldenSectionConfig())
    """

    def __init__(self, tolerance: float = 1.0e-3, config: Optional[GoldenSectionConfig] = None):
        super().__init__()
        self.tolerance = tolerance
        self.config = config if config is not None else GoldenSectionConfig()
        self.lower: Optional[int] = None
        self.upper: Optional[int] = None

    def reset(self, minimum_order: int, maximum_order: int) -> None:
        super().reset(minimum_order, maximum_order)
        self.lower = minimum_order
        self.upper = maximum_order

    @property
    def bracket(self) -> Tuple[int, int]:
        return self.lower, self.upper

    def interior_points(self) -> Tuple[int, int]:
        """Interior orders of the current bracket."""
        width = self.upper - self.lower
        first = self.lower + int(round((1.0 - GOLDEN_RATIO) * width))
        second = self.lower + int(round(GOLDEN_RATIO * width))
        if second <= first:
            second = first + 1
        return first, second

    def propose_next(self, history: EvaluationHistory, state: StoppingState) -> Proposal:
        self._require_bounds()

        while True:
            width = self.upper - self.lower
            if width <= self.tolerance:
                return Done()

            if width <= 2:
                for order in range(self.lower, self.upper + 1):
                    if order not in history:
                        return order
                return Done()

            first, second = self.interior_points()
            first_record = history.lookup(first)
            if first_record is None:
                return first
            second_record = history.lookup(second)
            if second_record is None:
                return second

            if second_record.selection_error < first_record.selection_error:
                self.lower = first
            else:
                self.upper = second

    def get_strategy_name(self) -> str:
        return "Golden section order"

    def build_results(self, state: StoppingState, **common: Any) -> GoldenSectionOrderResults:
        return GoldenSectionOrderResults(final_bracket=self.bracket, **common)

    def describe(self) -> Dict[str, Any]:
        return {"tolerance": self.tolerance}
