"""Training configuration for the bundled torch training strategy.

The order-selection loop treats training as an opaque, blocking call. These
settings only concern the default TrainingStrategy used when no third-party
trainer is supplied:
- Which optimizer drives a single training run
- Learning rate and epoch limit
- Early stopping on the selection partition
"""

from dataclasses import dataclass

from hidden_order.errors import InvalidArgumentError


@dataclass
class TrainingConfig:
    """Hyperparameters of one training run for a fixed architecture.

    Attributes:
        method: Training method name ("gradient_descent", "quasi_newton",
            "no_main" or "user_main")
        learning_rate: Step size (SGD) or initial step (L-BFGS)
        maximum_epochs: Full-batch epochs per training run
        training_error_goal: Stop once the training error reaches this value
        maximum_selection_error_increases: Stop after this many consecutive
            epochs in which the selection error went up
        maximum_time: Wall-clock limit of one training run in seconds
        display_period: Epochs between debug log lines
    """
    method: str = "quasi_newton"
    learning_rate: float = 1.0
    maximum_epochs: int = 100
    training_error_goal: float = 0.0
    maximum_selection_error_increases: int = 10
    maximum_time: float = 600.0
    display_period: int = 10

    def __post_init__(self) -> None:
        """Validate training hyperparameters."""
        for name in ("learning_rate", "maximum_epochs", "maximum_selection_error_increases",
                     "maximum_time", "display_period"):
            value = getattr(self, name)
            if value <= 0:
                raise InvalidArgumentError(
                    problem=f"{name} must be greater than 0",
                    cause=f"{name}={value}",
                )
        if self.training_error_goal < 0:
            raise InvalidArgumentError(
                problem="training_error_goal must be equal or greater than 0",
                cause=f"training_error_goal={self.training_error_goal}",
            )
