"""Simulated-annealing order search.

Keeps a current order and a temperature that the controller lowers
geometrically after each evaluation. Each proposal is a random neighbour of
the current order, within a radius that shrinks with the temperature. A
candidate with a lower selection error is always accepted; a worse one is
accepted with probability exp(-delta / T) (Metropolis criterion), where T
is the temperature in force when the candidate was proposed.

The search finishes once the temperature falls below the minimum.
"""

import math
import random
from typing import Any, Dict, Optional

from loguru import logger

from hidden_order.config.selection import SimulatedAnnealingConfig
from hidden_order.selection.history import EvaluationHistory
from hidden_order.selection.policies.base import Done, Proposal, SearchPolicy
from hidden_order.selection.results import SimulatedAnnealingOrderResults
from hidden_order.selection.stopping import StoppingCondition, StoppingState


class SimulatedAnnealingOrder(SearchPolicy):
    """Metropolis random walk over orders with geometric cooling.

    Args:
        config: Temperature schedule and seed (default: SimulatedAnnealingConfig())

    Attributes:
        current_order: Order the walk currently sits on
        current_selection_error: Selection error of the current order
        accepted_moves: Candidates accepted after the starting order
    """

    def __init__(self, config: Optional[SimulatedAnnealingConfig] = None):
        super().__init__()
        self.config = config if config is not None else SimulatedAnnealingConfig()
        self.initial_temperature = self.config.initial_temperature
        self.cooling_rate = self.config.cooling_rate
        self._rng = random.Random(self.config.seed)
        self.current_order: Optional[int] = None
        self.current_selection_error: Optional[float] = None
        self.accepted_moves = 0
        self._pending: Optional[int] = None
        self._pending_temperature: float = self.initial_temperature

    def reset(self, minimum_order: int, maximum_order: int) -> None:
        super().reset(minimum_order, maximum_order)
        self._rng = random.Random(self.config.seed)
        self.current_order = None
        self.current_selection_error = None
        self.accepted_moves = 0
        self._pending = None
        self._pending_temperature = self.initial_temperature

    def radius(self, temperature: float) -> int:
        """Neighbourhood radius for the given temperature (at least 1)."""
        half_range = (self.maximum_order - self.minimum_order) / 2.0
        return max(1, int(round(half_range * temperature / self.initial_temperature)))

    def accept(self, delta: float, temperature: float) -> bool:
        """Metropolis acceptance of a selection-error change."""
        if delta <= 0:
            return True
        return self._rng.random() < math.exp(-delta / temperature)

    def _settle_pending(self, history: EvaluationHistory) -> None:
        record = history.lookup(self._pending)
        self._pending = None
        if record is None:
            return

        if self.current_order is None:
            self.current_order = record.order
            self.current_selection_error = record.selection_error
            return

        delta = record.selection_error - self.current_selection_error
        if record.order != self.current_order and self.accept(delta, self._pending_temperature):
            logger.debug(
                f"Annealing: moved {self.current_order} -> {record.order} "
                f"(delta {delta:+.6f}, T={self._pending_temperature:.4g})"
            )
            self.current_order = record.order
            self.current_selection_error = record.selection_error
            self.accepted_moves += 1

    def _neighbour(self, temperature: float) -> int:
        radius = self.radius(temperature)
        offset = self._rng.randint(1, radius) * self._rng.choice((-1, 1))
        candidate = min(max(self.current_order + offset, self.minimum_order), self.maximum_order)
        if candidate == self.current_order:
            candidate = min(max(self.current_order - offset, self.minimum_order), self.maximum_order)
        return candidate

    def propose_next(self, history: EvaluationHistory, state: StoppingState) -> Proposal:
        self._require_bounds()

        if self._pending is not None:
            self._settle_pending(history)

        temperature = state.temperature if state.temperature is not None else self.initial_temperature
        if temperature < self.config.minimum_temperature:
            return Done(StoppingCondition.MINIMUM_TEMPERATURE)

        if self.current_order is None:
            candidate = self._rng.randint(self.minimum_order, self.maximum_order)
        else:
            candidate = self._neighbour(temperature)

        self._pending = candidate
        self._pending_temperature = temperature
        return candidate

    def get_strategy_name(self) -> str:
        return "Simulated annealing order"

    def build_results(self, state: StoppingState, **common: Any) -> SimulatedAnnealingOrderResults:
        final_temperature = state.temperature if state.temperature is not None else self.initial_temperature
        return SimulatedAnnealingOrderResults(
            final_temperature=final_temperature,
            accepted_moves=self.accepted_moves,
            **common,
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "initial_temperature": self.config.initial_temperature,
            "cooling_rate": self.config.cooling_rate,
            "minimum_temperature": self.config.minimum_temperature,
            "seed": self.config.seed,
        }
