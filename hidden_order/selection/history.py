"""Evaluation history and memoization for order selection.

Every distinct order is trained at most once per search. Its outcome is kept
as an immutable EvaluationRecord in an append-only EvaluationHistory, and the
EvaluationCache answers "has this order been measured already?" before the
aggregator touches the trainer.

The cache can also be seeded with metrics known from an earlier search
(``preload``). A preloaded order with both errors known is served without
training; with only one error known, that one is reused and the other is
measured fresh.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from hidden_order.errors import InvalidArgumentError, OrderNotFoundError


@dataclass(frozen=True)
class EvaluationRecord:
    """Measured outcome of one order.

    Attributes:
        order: Hidden-layer width that was evaluated
        training_error: Reduced training error over all trials
        selection_error: Reduced selection error over all trials
        parameters: Flattened network parameters kept for this order
    """
    order: int
    training_error: float
    selection_error: float
    parameters: Tuple[float, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "order": self.order,
            "training_error": self.training_error,
            "selection_error": self.selection_error,
            "parameters": list(self.parameters),
        }


class EvaluationHistory:
    """Append-only log of evaluation records, one per order.

    Records are kept in evaluation order and indexed by order. Inserting a
    second record for an order already present is rejected.

    Example:
        >>> history = EvaluationHistory()
        >>> history.record(EvaluationRecord(3, 0.2, 0.3))
        >>> history.lookup(3).selection_error
        0.3
    """

    def __init__(self, records: Sequence[EvaluationRecord] = ()):
        self._records: List[EvaluationRecord] = []
        self._index: Dict[int, EvaluationRecord] = {}
        for record in records:
            self.record(record)

    def record(self, record: EvaluationRecord) -> None:
        """Append a record.

        Raises:
            InvalidArgumentError: If the order is already recorded or an
                error is negative or NaN
        """
        if record.order in self._index:
            raise InvalidArgumentError(
                problem=f"Order {record.order} is already recorded",
                cause="Each order is evaluated at most once per search",
            )
        errors = (record.training_error, record.selection_error)
        if any(math.isnan(error) or error < 0 for error in errors):
            raise InvalidArgumentError(
                problem=f"Negative or NaN error recorded for order {record.order}",
                cause=(
                    f"training_error={record.training_error}, "
                    f"selection_error={record.selection_error}"
                ),
            )
        self._records.append(record)
        self._index[record.order] = record

    def lookup(self, order: int) -> Optional[EvaluationRecord]:
        return self._index.get(order)

    def parameters_for(self, order: int) -> Tuple[float, ...]:
        """Parameters stored for an evaluated order.

        Raises:
            OrderNotFoundError: If the order was never evaluated
        """
        record = self._index.get(order)
        if record is None:
            raise OrderNotFoundError(
                problem=f"Order {order} has not been evaluated",
                context=f"evaluated orders: {self.orders}",
            )
        return record.parameters

    def best(self) -> Optional[EvaluationRecord]:
        """Record with the lowest selection error, earliest on ties."""
        best_record = None
        for record in self._records:
            if best_record is None or record.selection_error < best_record.selection_error:
                best_record = record
        return best_record

    @property
    def orders(self) -> List[int]:
        return [record.order for record in self._records]

    @property
    def records(self) -> Tuple[EvaluationRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EvaluationRecord]:
        return iter(self._records)

    def __getitem__(self, position: int) -> EvaluationRecord:
        return self._records[position]

    def __contains__(self, order: object) -> bool:
        return order in self._index


@dataclass(frozen=True)
class KnownMetrics:
    """Metrics of an order already known before training it.

    A field is None when that metric still has to be measured.
    """
    training_error: Optional[float] = None
    selection_error: Optional[float] = None
    parameters: Optional[Tuple[float, ...]] = None

    @property
    def complete(self) -> bool:
        return self.training_error is not None and self.selection_error is not None


class EvaluationCache:
    """Memoization of measured orders in front of the trainer.

    Args:
        history: History to record into (default: a new empty history)
    """

    def __init__(self, history: Optional[EvaluationHistory] = None):
        self.history = history if history is not None else EvaluationHistory()
        self._preloaded: Dict[int, KnownMetrics] = {}

    def lookup(self, order: int) -> Optional[EvaluationRecord]:
        return self.history.lookup(order)

    def record(
        self,
        order: int,
        training_error: float,
        selection_error: float,
        parameters: Sequence[float] = (),
    ) -> EvaluationRecord:
        """Record the final outcome of an order and return the stored record."""
        record = EvaluationRecord(
            order=order,
            training_error=float(training_error),
            selection_error=float(selection_error),
            parameters=tuple(float(value) for value in parameters),
        )
        self.history.record(record)
        self._preloaded.pop(order, None)
        return record

    def preload(
        self,
        order: int,
        training_error: Optional[float] = None,
        selection_error: Optional[float] = None,
        parameters: Optional[Sequence[float]] = None,
    ) -> None:
        """Seed metrics known for an order from an earlier search.

        Orders already recorded in this search are left untouched.

        Raises:
            InvalidArgumentError: For a non-positive order or a negative or NaN error
        """
        if order <= 0:
            raise InvalidArgumentError(
                problem="Order must be greater than 0",
                cause=f"order={order}",
            )
        for name, value in (("training_error", training_error), ("selection_error", selection_error)):
            if value is not None and (math.isnan(value) or value < 0):
                raise InvalidArgumentError(
                    problem=f"Preloaded {name} must be equal or greater than 0",
                    cause=f"order={order}, {name}={value}",
                )
        if order in self.history:
            return
        self._preloaded[order] = KnownMetrics(
            training_error=None if training_error is None else float(training_error),
            selection_error=None if selection_error is None else float(selection_error),
            parameters=None if parameters is None else tuple(float(v) for v in parameters),
        )

    def known_metrics(self, order: int) -> KnownMetrics:
        """Metrics known for an order: recorded ones first, then preloaded ones."""
        record = self.history.lookup(order)
        if record is not None:
            return KnownMetrics(record.training_error, record.selection_error, record.parameters)
        return self._preloaded.get(order, KnownMetrics())

    def __len__(self) -> int:
        return len(self.history)
