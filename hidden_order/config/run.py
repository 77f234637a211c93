"""Flat run configuration for the select_order command line entry point.

Every field is a primitive so it can be overridden with ``--key=value``. The
command line script turns it into the structured configs used by the library.
"""

from dataclasses import dataclass

from hidden_order.config.selection import (
    IncrementalConfig,
    OrderSelectionConfig,
    ReserveFlags,
    SimulatedAnnealingConfig,
)
from hidden_order.config.training import TrainingConfig
from hidden_order.selection.results import OrderSelectionType


@dataclass
class OrderSelectionRunConfig:
    """Settings for one command-line order-selection run.

    Attributes:
        strategy: "incremental_order", "golden_section" or "simulated_annealing"
        instances_number: Number of synthetic samples of the noisy sine problem
        noise: Standard deviation of the additive target noise
        seed: Seed for data generation, network initialization and annealing
        output: Optional JSON path for the results ("" = do not write)
        minimum_order .. display: See OrderSelectionConfig
        step, maximum_selection_failures: See IncrementalConfig
        initial_temperature, cooling_rate, minimum_temperature: See SimulatedAnnealingConfig
        training_method .. maximum_selection_error_increases: See TrainingConfig
    """
    strategy: str = "incremental_order"
    instances_number: int = 200
    noise: float = 0.1
    seed: int = 0
    output: str = ""

    minimum_order: int = 1
    maximum_order: int = 10
    trials_number: int = 1
    reduction_policy: str = "Minimum"
    selection_error_goal: float = 0.0
    maximum_iterations_number: int = 1000
    maximum_time: float = 3600.0
    tolerance: float = 1.0e-3
    display: bool = True

    step: int = 1
    maximum_selection_failures: int = 3

    initial_temperature: float = 1.0
    cooling_rate: float = 0.5
    minimum_temperature: float = 1.0e-3

    training_method: str = "quasi_newton"
    learning_rate: float = 1.0
    maximum_epochs: int = 100
    maximum_selection_error_increases: int = 10

    def selection_config(self) -> OrderSelectionConfig:
        return OrderSelectionConfig(
            minimum_order=self.minimum_order,
            maximum_order=self.maximum_order,
            trials_number=self.trials_number,
            reduction_policy=self.reduction_policy,
            selection_error_goal=self.selection_error_goal,
            maximum_iterations_number=self.maximum_iterations_number,
            maximum_time=self.maximum_time,
            tolerance=self.tolerance,
            reserve=ReserveFlags(),
            display=self.display,
        )

    def strategy_config(self):
        """Return the strategy-specific config, or None when the strategy has none.

        Raises:
            ConfigurationError: If the strategy name is unknown
        """
        strategy = OrderSelectionType.parse(self.strategy)
        if strategy is OrderSelectionType.INCREMENTAL_ORDER:
            return IncrementalConfig(
                step=self.step,
                maximum_selection_failures=self.maximum_selection_failures,
            )
        if strategy is OrderSelectionType.SIMULATED_ANNEALING:
            return SimulatedAnnealingConfig(
                initial_temperature=self.initial_temperature,
                cooling_rate=self.cooling_rate,
                minimum_temperature=self.minimum_temperature,
                seed=self.seed,
            )
        return None

    def training_config(self) -> TrainingConfig:
        return TrainingConfig(
            method=self.training_method,
            learning_rate=self.learning_rate,
            maximum_epochs=self.maximum_epochs,
            maximum_selection_error_increases=self.maximum_selection_error_increases,
        )
