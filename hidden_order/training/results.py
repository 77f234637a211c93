"""Training results and the trainer contract seen by the search loop.

A trainer fits the parameters of a fixed architecture and reports the final
training and selection errors, tagged with the training method that produced
them. The search loop only consumes the pair of errors, extracted by
``final_errors``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

from hidden_order.errors import UnknownTrainingMethodError


class TrainingMethod(Enum):
    """Training method that produced a TrainingResult."""

    GRADIENT_DESCENT = "gradient_descent"
    CONJUGATE_GRADIENT = "conjugate_gradient"
    QUASI_NEWTON = "quasi_newton"
    LEVENBERG_MARQUARDT = "levenberg_marquardt"
    NO_MAIN = "no_main"
    USER_MAIN = "user_main"

    @classmethod
    def parse(cls, value: Union[str, "TrainingMethod"]) -> "TrainingMethod":
        """Parse a method name such as "quasi_newton" or "QUASI_NEWTON".

        Raises:
            UnknownTrainingMethodError: If the name matches no method
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for method in cls:
            if normalized == method.value:
                return method
        raise UnknownTrainingMethodError(
            problem=f"Unknown training method: {value!r}",
            recovery=f"Use one of: {', '.join(m.value for m in cls)}",
        )


FITTING_METHODS = (
    TrainingMethod.GRADIENT_DESCENT,
    TrainingMethod.CONJUGATE_GRADIENT,
    TrainingMethod.QUASI_NEWTON,
    TrainingMethod.LEVENBERG_MARQUARDT,
)


@dataclass(frozen=True)
class TrainingResult:
    """Outcome of one blocking training run.

    Attributes:
        method: Training method that produced the result
        final_training_error: Error on the training partition after training
        final_selection_error: Error on the selection partition after training
        epochs_number: Epochs actually run
        elapsed_time: Wall-clock duration in seconds
        stopping_reason: Human-readable reason training stopped
    """
    method: Any
    final_training_error: float = 0.0
    final_selection_error: float = 0.0
    epochs_number: int = 0
    elapsed_time: float = 0.0
    stopping_reason: Optional[str] = None


def final_errors(result: TrainingResult) -> Tuple[float, float]:
    """Extract ``(training_error, selection_error)`` from a training result.

    NO_MAIN and USER_MAIN runs report (0.0, 0.0).

    Raises:
        UnknownTrainingMethodError: If the result carries an unhandled method tag
    """
    method = result.method
    if method in (TrainingMethod.NO_MAIN, TrainingMethod.USER_MAIN):
        return 0.0, 0.0
    if method in FITTING_METHODS:
        return float(result.final_training_error), float(result.final_selection_error)
    raise UnknownTrainingMethodError(
        problem="Unknown main training method",
        cause=f"Training result is tagged with {method!r}",
        recovery=f"Tag results with a TrainingMethod member ({', '.join(m.name for m in TrainingMethod)})",
    )


class Trainer(ABC):
    """Blocking training procedure for a fixed architecture.

    Attributes:
        loss_functional: Scoring functional used for training, or None when
            the trainer is not usable yet. It must expose ``inputs_count`` and
            ``outputs_count``.
    """

    loss_functional: Optional[Any] = None

    @property
    @abstractmethod
    def main_method(self) -> TrainingMethod:
        """Training method this trainer runs."""

    @abstractmethod
    def train(self) -> TrainingResult:
        """Train the current network to convergence and report the final errors."""
