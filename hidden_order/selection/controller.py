"""Order-selection control loop.

The controller owns one search: it asks the policy for the next order,
evaluates it through the TrialAggregator (which consults the cache first),
updates the stopping state and decides when to stop. When the loop ends it
installs the best order found, with its parameters, on the live network and
returns a results snapshot.

Loop body per iteration:
1. Cancellation, wall-time and iteration limits (in that order)
2. Policy proposal, or Done
3. Evaluation of the proposed order
4. Selection-error goal
5. Stopping-state update (failure streak, temperature)

Example:
    >>> controller = OrderSelectionController(
    ...     OrderSelectionConfig(minimum_order=1, maximum_order=8),
    ...     IncrementalOrder(),
    ... )
    >>> results = controller.run_order_selection(trainer, network, data_set)
    >>> print(results.optimal_order)
"""

import threading
import time
from typing import Any, Callable, List, Optional

from loguru import logger

from hidden_order.config.selection import OrderSelectionConfig
from hidden_order.errors import ConfigurationError, ShapeMismatchError
from hidden_order.network.mutator import ArchitectureMutator, resize_hidden_layer
from hidden_order.selection.aggregator import TrialAggregator
from hidden_order.selection.history import EvaluationCache, EvaluationHistory
from hidden_order.selection.policies.base import Done, SearchPolicy
from hidden_order.selection.results import OrderSelectionResults, prune_history
from hidden_order.selection.stopping import StoppingCondition, StoppingState
from hidden_order.training.results import Trainer


class OrderSelectionController:
    """Drive a search policy over hidden-layer orders.

    The trainer, network and data set are passed to each call and are not
    kept after it returns.

    Args:
        config: Loop settings (default: OrderSelectionConfig())
        policy: Strategy proposing the next order
        clock: Time source for the wall-time limit (default: time.time)

    Attributes:
        history: Evaluation history of the latest search, readable even after
            the search failed part-way
        state: Stopping state of the latest search
    """

    def __init__(
        self,
        config: Optional[OrderSelectionConfig] = None,
        policy: Optional[SearchPolicy] = None,
        clock: Callable[[], float] = time.time,
    ):
        if policy is None:
            raise ConfigurationError(
                problem="Order selection controller has no search policy",
                recovery="Pass IncrementalOrder(), GoldenSectionOrder() or SimulatedAnnealingOrder()",
            )
        self.config = config if config is not None else OrderSelectionConfig()
        self.policy = policy
        self.history = EvaluationHistory()
        self.state: Optional[StoppingState] = None
        self._preloads: List[OrderSelectionResults] = []
        self._cancel_event = threading.Event()
        self._clock = clock

    def cancel(self) -> None:
        """Stop the search at the next trial boundary."""
        self._cancel_event.set()

    def warm_start(self, results: OrderSelectionResults) -> None:
        """Preload the metrics of a previous search so its orders are not retrained.

        Metrics pruned from the previous results (reserve flags disabled) are
        measured again when their order is proposed. Preloads apply to every
        later call of run_order_selection().
        """
        self._preloads.append(results)
        logger.info(f"Warm start: {len(results.history)} orders from a previous search")

    def _new_cache(self) -> EvaluationCache:
        self.history = EvaluationHistory()
        cache = EvaluationCache(self.history)
        for results in self._preloads:
            training_errors = results.training_error_history
            selection_errors = results.selection_error_history
            for position, record in enumerate(results.history):
                cache.preload(
                    record.order,
                    training_error=None if training_errors is None else training_errors[position],
                    selection_error=None if selection_errors is None else selection_errors[position],
                    parameters=record.parameters or None,
                )
        return cache

    def check(self, trainer: Optional[Trainer], network: Optional[ArchitectureMutator], data_set: Any) -> None:
        """Verify every collaborator before any training happens.

        Derives maximum_order as 2 * (inputs + outputs) when it is not set.

        Raises:
            ConfigurationError: If the trainer, its loss functional or the
                network is missing, the network is empty or has a single
                layer, the data set has no selection instances, or the order
                bounds are inverted
            ShapeMismatchError: If the loss functional widths do not match
                the data set
        """
        if trainer is None:
            raise ConfigurationError(
                problem="Training strategy is not set",
                recovery="Pass a Trainer to run_order_selection()",
            )
        loss = getattr(trainer, "loss_functional", None)
        if loss is None:
            raise ConfigurationError(
                problem="Training strategy has no loss functional",
                recovery="Attach a scoring functional such as NormalizedSquaredError to the trainer",
            )
        if network is None:
            raise ConfigurationError(
                problem="Neural network is not set",
                recovery="Pass the network to resize to run_order_selection()",
            )
        if network.is_empty():
            raise ConfigurationError(problem="Neural network is empty")
        if network.layers_number <= 1:
            raise ConfigurationError(
                problem="Neural network must have more than one layer",
                cause=f"layers_number={network.layers_number}",
            )
        if data_set is None:
            raise ConfigurationError(problem="Data set is not set")
        if data_set.selection_instances_number == 0:
            raise ConfigurationError(
                problem="Number of selection instances is zero",
                recovery="Split the data set with split_instances() or set_partition()",
            )

        if loss.inputs_count != data_set.inputs_number:
            raise ShapeMismatchError(
                problem="Number of inputs in loss functional differs from data set",
                cause=f"loss functional: {loss.inputs_count}, data set: {data_set.inputs_number}",
            )
        if loss.outputs_count != data_set.targets_number:
            raise ShapeMismatchError(
                problem="Number of outputs in loss functional differs from data set targets",
                cause=f"loss functional: {loss.outputs_count}, data set: {data_set.targets_number}",
            )

        if self.config.maximum_order is None:
            self.config = self.config.replace(maximum_order=2 * (loss.inputs_count + loss.outputs_count))
            logger.debug(f"Derived maximum_order={self.config.maximum_order}")
        else:
            self.config.validate()

    def _stopping_condition(self, state: StoppingState) -> Optional[StoppingCondition]:
        if self._cancel_event.is_set():
            return StoppingCondition.CANCELLED
        return state.check_limits(self.config.maximum_time, self.config.maximum_iterations_number)

    def run_order_selection(
        self,
        trainer: Trainer,
        network: ArchitectureMutator,
        data_set: Any,
    ) -> OrderSelectionResults:
        """Run the search and install the optimal order on ``network``.

        Returns:
            The policy's results variant

        Raises:
            ConfigurationError, ShapeMismatchError: From check(), before any training
            DegenerateTargetsError, UnknownTrainingMethodError: From the trainer,
                propagated with the history recorded so far left on ``self.history``
        """
        self.check(trainer, network, data_set)
        config = self.config

        aggregator = TrialAggregator(self._new_cache(), trainer, network, config)
        state = StoppingState(clock=self._clock, temperature=self.policy.initial_temperature)
        self.state = state
        self.policy.reset(config.minimum_order, config.maximum_order)

        logger.info(f"Starting {self.policy.get_strategy_name()} search")
        logger.info(f"Order range: [{config.minimum_order}, {config.maximum_order}]")
        logger.info(f"Trials per order: {config.trials_number} ({config.reduction_policy.value})")
        for key, value in self.policy.describe().items():
            logger.info(f"  {key}: {value}")

        state.start()
        condition = None
        while condition is None:
            condition = self._stopping_condition(state)
            if condition is not None:
                break

            proposal = self.policy.propose_next(self.history, state)
            if isinstance(proposal, Done):
                condition = proposal.condition
                break

            order = int(proposal)
            outcome = aggregator.evaluate(order, config.trials_number, config.reduction_policy)
            improved = state.update(outcome.selection_error)

            logger.info(
                f"Iteration {state.iterations}: order {order}, "
                f"training error {outcome.training_error:.6f}, "
                f"selection error {outcome.selection_error:.6f}"
                + (" (cached)" if outcome.cached else "")
                + (" *" if improved else "")
            )

            if outcome.selection_error <= config.selection_error_goal:
                condition = StoppingCondition.SELECTION_ERROR_GOAL
                break

            if self.policy.cooling_rate is not None:
                state.cool(self.policy.cooling_rate)

        self._cancel_event.clear()
        logger.info(f"Stopping condition: {condition.describe()}")
        return self._finish(state, condition, network)

    def _finish(
        self,
        state: StoppingState,
        condition: StoppingCondition,
        network: ArchitectureMutator,
    ) -> OrderSelectionResults:
        reserve = self.config.reserve
        optimum = self.history.best()

        if optimum is None:
            logger.warning("No order was evaluated; the network is left unchanged")
        else:
            resize_hidden_layer(network, optimum.order)
            if optimum.parameters:
                network.assign_parameters(optimum.parameters)
            else:
                logger.warning(f"No parameters stored for order {optimum.order}; only the width was restored")
            logger.info(
                f"Optimal order: {optimum.order} "
                f"(training error {optimum.training_error:.6f}, "
                f"selection error {optimum.selection_error:.6f})"
            )

        minimal_parameters = None
        if optimum is not None and reserve.minimal_parameters:
            minimal_parameters = optimum.parameters or None

        return self.policy.build_results(
            state,
            history=prune_history(self.history.records, reserve),
            stopping_condition=condition,
            optimal_order=None if optimum is None else optimum.order,
            final_training_error=None if optimum is None else optimum.training_error,
            final_selection_error=None if optimum is None else optimum.selection_error,
            minimal_parameters=minimal_parameters,
            iterations_number=state.iterations,
            elapsed_time=state.elapsed_time,
            reserve=reserve,
        )
