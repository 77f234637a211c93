"""Model selection facade.

Builds the search policy matching an OrderSelectionType, wires it into an
OrderSelectionController and runs it against one trainer, network and data
set.

Example:
    >>> selection = ModelSelection(
    ...     trainer, network, data_set,
    ...     order_selection_type="golden_section",
    ...     config=OrderSelectionConfig(minimum_order=1, maximum_order=20),
    ... )
    >>> results = selection.perform_order_selection()
    >>> results.order_selection.optimal_order
"""

from typing import Any, Optional, Union

from loguru import logger

from hidden_order.config.selection import (
    GoldenSectionConfig,
    IncrementalConfig,
    OrderSelectionConfig,
    SimulatedAnnealingConfig,
)
from hidden_order.errors import ConfigurationError
from hidden_order.network.mutator import ArchitectureMutator
from hidden_order.selection.controller import OrderSelectionController
from hidden_order.selection.policies import (
    GoldenSectionOrder,
    IncrementalOrder,
    SearchPolicy,
    SimulatedAnnealingOrder,
)
from hidden_order.selection.results import ModelSelectionResults, OrderSelectionType
from hidden_order.training.results import Trainer

StrategyConfig = Union[IncrementalConfig, GoldenSectionConfig, SimulatedAnnealingConfig, None]

_STRATEGY_CONFIGS = {
    OrderSelectionType.INCREMENTAL_ORDER: IncrementalConfig,
    OrderSelectionType.GOLDEN_SECTION: GoldenSectionConfig,
    OrderSelectionType.SIMULATED_ANNEALING: SimulatedAnnealingConfig,
}


def build_policy(
    order_selection_type: Union[OrderSelectionType, str],
    config: OrderSelectionConfig,
    strategy_config: StrategyConfig = None,
) -> SearchPolicy:
    """Create the search policy for a strategy type.

    Raises:
        ConfigurationError: For NO_ORDER_SELECTION or a strategy config of the
            wrong type
    """
    selection_type = OrderSelectionType.parse(order_selection_type)
    if selection_type is OrderSelectionType.NO_ORDER_SELECTION:
        raise ConfigurationError(problem="No order selection has no search policy")

    expected = _STRATEGY_CONFIGS[selection_type]
    if strategy_config is not None and not isinstance(strategy_config, expected):
        raise ConfigurationError(
            problem=f"{type(strategy_config).__name__} does not configure {selection_type.value}",
            recovery=f"Pass a {expected.__name__}",
        )

    if selection_type is OrderSelectionType.INCREMENTAL_ORDER:
        return IncrementalOrder(strategy_config)
    if selection_type is OrderSelectionType.GOLDEN_SECTION:
        return GoldenSectionOrder(tolerance=config.tolerance, config=strategy_config)
    return SimulatedAnnealingOrder(strategy_config)


class ModelSelection:
    """Run order selection of one network against one trainer.

    Args:
        trainer: Blocking trainer bound to ``network``
        network: Network whose hidden layer is searched
        data_set: Data set with a non-empty selection partition
        order_selection_type: Strategy to run (default: incremental order)
        config: Shared loop settings (default: OrderSelectionConfig())
        strategy_config: Settings of the chosen strategy (default: its defaults)
    """

    def __init__(
        self,
        trainer: Optional[Trainer] = None,
        network: Optional[ArchitectureMutator] = None,
        data_set: Any = None,
        order_selection_type: Union[OrderSelectionType, str] = OrderSelectionType.INCREMENTAL_ORDER,
        config: Optional[OrderSelectionConfig] = None,
        strategy_config: StrategyConfig = None,
    ):
        self.trainer = trainer
        self.network = network
        self.data_set = data_set
        self.order_selection_type = OrderSelectionType.parse(order_selection_type)
        self.config = config if config is not None else OrderSelectionConfig()
        self.controller: Optional[OrderSelectionController] = None
        if self.order_selection_type is not OrderSelectionType.NO_ORDER_SELECTION:
            policy = build_policy(self.order_selection_type, self.config, strategy_config)
            self.controller = OrderSelectionController(self.config, policy)

    def check(self) -> None:
        """Pre-flight check of the controller's collaborators."""
        if self.controller is not None:
            self.controller.check(self.trainer, self.network, self.data_set)

    def perform_order_selection(self) -> ModelSelectionResults:
        if self.controller is None:
            logger.info("Order selection disabled; network left unchanged")
            return ModelSelectionResults(self.order_selection_type)

        results = self.controller.run_order_selection(self.trainer, self.network, self.data_set)
        return ModelSelectionResults(self.order_selection_type, results)
