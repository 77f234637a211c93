"""Training collaborators: results contract, scoring functional and torch trainer."""

from hidden_order.training.loss import NormalizedSquaredError
from hidden_order.training.results import (
    Trainer,
    TrainingMethod,
    TrainingResult,
    final_errors,
)
from hidden_order.training.strategy import TrainingStrategy

__all__ = [
    "NormalizedSquaredError",
    "Trainer",
    "TrainingMethod",
    "TrainingResult",
    "TrainingStrategy",
    "final_errors",
]
