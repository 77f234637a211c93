"""Terminal records of an order-selection search.

OrderSelectionResults is a frozen snapshot built once when the search loop
ends: the evaluation history (pruned by the reserve flags), the stopping
condition, and the optimal order with its errors and parameters. Each search
strategy returns its own variant carrying strategy-specific details:

- IncrementalOrderResults: the step used
- GoldenSectionOrderResults: the final bracket
- SimulatedAnnealingOrderResults: the final temperature and accepted moves

ModelSelectionResults wraps the variant together with the strategy type.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from hidden_order.config.selection import ReserveFlags
from hidden_order.errors import ConfigurationError
from hidden_order.selection.history import EvaluationRecord
from hidden_order.selection.stopping import StoppingCondition


class OrderSelectionType(Enum):
    """Order-selection strategy run by ModelSelection."""

    NO_ORDER_SELECTION = "no_order_selection"
    INCREMENTAL_ORDER = "incremental_order"
    GOLDEN_SECTION = "golden_section"
    SIMULATED_ANNEALING = "simulated_annealing"

    @classmethod
    def parse(cls, value: Union[str, "OrderSelectionType"]) -> "OrderSelectionType":
        """Parse a strategy name such as "golden_section" or "GOLDEN_SECTION".

        Raises:
            ConfigurationError: If the name matches no strategy
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for selection_type in cls:
            if normalized == selection_type.value:
                return selection_type
        raise ConfigurationError(
            problem=f"Unknown order selection type: {value!r}",
            recovery=f"Use one of: {', '.join(t.value for t in cls)}",
        )


def prune_history(
    records: Sequence[EvaluationRecord],
    reserve: ReserveFlags,
) -> Tuple[EvaluationRecord, ...]:
    """Strip parameter vectors from the records unless they are reserved."""
    if reserve.parameters:
        return tuple(records)
    return tuple(dataclasses.replace(record, parameters=()) for record in records)


def _format_row(values: Sequence[Any]) -> str:
    return " ".join(str(value) for value in values)


@dataclass(frozen=True)
class OrderSelectionResults:
    """Snapshot of a finished order-selection search.

    Attributes:
        history: Evaluated orders in evaluation order
        stopping_condition: Reason the loop ended
        optimal_order: Order with the lowest selection error (None if nothing
            was evaluated)
        final_training_error: Training error of the optimal order
        final_selection_error: Selection error of the optimal order
        minimal_parameters: Parameters of the optimal order, None unless reserved
        iterations_number: Proposals evaluated, cache hits included
        elapsed_time: Wall-clock duration of the search in seconds
        reserve: Reserve flags the history was pruned with
    """
    strategy_name: ClassVar[str] = "Order selection"

    history: Tuple[EvaluationRecord, ...]
    stopping_condition: StoppingCondition
    optimal_order: Optional[int] = None
    final_training_error: Optional[float] = None
    final_selection_error: Optional[float] = None
    minimal_parameters: Optional[Tuple[float, ...]] = None
    iterations_number: int = 0
    elapsed_time: float = 0.0
    reserve: ReserveFlags = field(default_factory=ReserveFlags)

    @property
    def order_history(self) -> List[int]:
        return [record.order for record in self.history]

    @property
    def training_error_history(self) -> Optional[List[float]]:
        if not self.reserve.training_error_history:
            return None
        return [record.training_error for record in self.history]

    @property
    def selection_error_history(self) -> Optional[List[float]]:
        if not self.reserve.selection_error_history:
            return None
        return [record.selection_error for record in self.history]

    @property
    def parameters_history(self) -> Optional[List[Tuple[float, ...]]]:
        if not self.reserve.parameters:
            return None
        return [record.parameters for record in self.history]

    def write_stopping_condition(self) -> str:
        return self.stopping_condition.describe()

    def extra_fields(self) -> Dict[str, Any]:
        """Strategy-specific fields, overridden by each variant."""
        return {}

    def to_string(self) -> str:
        """Plain-text report of the search."""
        lines = []
        if self.history:
            lines += ["% Order history:", _format_row(self.order_history)]
        if self.parameters_history:
            lines.append("% Parameters history:")
            lines += [_format_row(parameters) for parameters in self.parameters_history]
        if self.training_error_history:
            lines += ["% Training error history:", _format_row(self.training_error_history)]
        if self.selection_error_history:
            lines += ["% Selection error history:", _format_row(self.selection_error_history)]
        if self.minimal_parameters:
            lines += ["% Minimal parameters:", _format_row(self.minimal_parameters)]

        lines += ["% Stopping condition", self.write_stopping_condition()]

        if self.final_selection_error is not None:
            lines += ["% Optimum selection error:", str(self.final_selection_error)]
        if self.final_training_error is not None:
            lines += ["% Final training error:", str(self.final_training_error)]
        if self.optimal_order is not None:
            lines += ["% Optimal order:", str(self.optimal_order)]

        lines += [
            "% Number of iterations:",
            str(self.iterations_number),
            "% Elapsed time:",
            f"{self.elapsed_time:.3f}",
        ]
        for name, value in self.extra_fields().items():
            lines += [f"% {name.replace('_', ' ').capitalize()}:", str(value)]
        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the results to a JSON-serializable dictionary."""
        data = {
            "strategy_name": self.strategy_name,
            "stopping_condition": self.stopping_condition.value,
            "optimal_order": self.optimal_order,
            "final_training_error": self.final_training_error,
            "final_selection_error": self.final_selection_error,
            "minimal_parameters": (
                None if self.minimal_parameters is None else list(self.minimal_parameters)
            ),
            "iterations_number": self.iterations_number,
            "elapsed_time": self.elapsed_time,
            "order_history": self.order_history,
            "training_error_history": self.training_error_history,
            "selection_error_history": self.selection_error_history,
            "parameters_history": (
                None
                if self.parameters_history is None
                else [list(parameters) for parameters in self.parameters_history]
            ),
            "reserve": dataclasses.asdict(self.reserve),
        }
        data.update(self.extra_fields())
        return data


@dataclass(frozen=True)
class IncrementalOrderResults(OrderSelectionResults):
    strategy_name: ClassVar[str] = "Incremental order"

    step: int = 1

    def extra_fields(self) -> Dict[str, Any]:
        return {"step": self.step}


@dataclass(frozen=True)
class GoldenSectionOrderResults(OrderSelectionResults):
    strategy_name: ClassVar[str] = "Golden section order"

    final_bracket: Tuple[int, int] = (0, 0)

    def extra_fields(self) -> Dict[str, Any]:
        return {"final_bracket": list(self.final_bracket)}


@dataclass(frozen=True)
class SimulatedAnnealingOrderResults(OrderSelectionResults):
    strategy_name: ClassVar[str] = "Simulated annealing order"

    final_temperature: float = 0.0
    accepted_moves: int = 0

    def extra_fields(self) -> Dict[str, Any]:
        return {"final_temperature": self.final_temperature, "accepted_moves": self.accepted_moves}


@dataclass(frozen=True)
class ModelSelectionResults:
    """Outcome of ModelSelection.perform_order_selection().

    Attributes:
        order_selection_type: Strategy that was run
        order_selection: Its results, None for NO_ORDER_SELECTION
    """
    order_selection_type: OrderSelectionType
    order_selection: Optional[OrderSelectionResults] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_selection_type": self.order_selection_type.value,
            "order_selection": (
                None if self.order_selection is None else self.order_selection.to_dict()
            ),
        }
