"""Repeated-trial evaluation of one order.

TrialAggregator trains the candidate network N times at a fixed order under
randomized restarts and reduces the N outcomes to a single
(training_error, selection_error, parameters) triple:

- Minimum: lowest value of each metric, independently
- Maximum: highest value of each metric, independently
- Mean: sum of value / N for each metric

Before the first trial the network is resized and its parameters perturbed so
a previous minimum is not replayed; later trials redraw the parameters from a
normal distribution. Orders already in the cache are returned without
training.

A trial whose error is NaN or infinite (diverged training) counts as +inf,
so it ranks behind every finite trial and every finite order.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from loguru import logger

from hidden_order.config.selection import OrderSelectionConfig, ReductionPolicy
from hidden_order.errors import InvalidArgumentError, UnknownReductionPolicyError
from hidden_order.network.mutator import ArchitectureMutator, resize_hidden_layer
from hidden_order.selection.history import EvaluationCache
from hidden_order.training.results import Trainer, final_errors


@dataclass(frozen=True)
class TrialOutcome:
    """Reduced outcome of all trials at one order.

    Attributes:
        training_error: Reduced training error
        selection_error: Reduced selection error
        parameters: Parameters kept for the order
        cached: True when the outcome came from the cache without training
    """
    training_error: float
    selection_error: float
    parameters: Tuple[float, ...] = ()
    cached: bool = field(default=False, compare=False)


def combine(
    policy: ReductionPolicy,
    aggregate: Optional[float],
    value: float,
    trials_number: int,
) -> Tuple[float, bool]:
    """Fold one trial value into a running aggregate.

    Args:
        policy: Reduction policy
        aggregate: Running aggregate, None before the first trial
        value: Value observed in the current trial
        trials_number: Total number of trials (divisor of the mean)

    Returns:
        Tuple of (new_aggregate, improved) where improved tells whether the
        current trial now determines the aggregate

    Raises:
        UnknownReductionPolicyError: If the policy is not handled
    """
    if policy is ReductionPolicy.MINIMUM:
        if aggregate is None or value < aggregate:
            return value, True
        return aggregate, False
    if policy is ReductionPolicy.MAXIMUM:
        if aggregate is None or value > aggregate:
            return value, True
        return aggregate, False
    if policy is ReductionPolicy.MEAN:
        previous = 0.0 if aggregate is None else aggregate
        return previous + value / trials_number, True
    raise UnknownReductionPolicyError(
        problem=f"Unknown reduction policy: {policy!r}",
        recovery="Use ReductionPolicy.MINIMUM, MAXIMUM or MEAN",
    )


def diverged_as_inf(value: float) -> float:
    """Map a NaN or infinite trial error to +inf."""
    return value if math.isfinite(value) else math.inf


class TrialAggregator:
    """Evaluate orders through a trainer, memoized by an EvaluationCache.

    Args:
        cache: Cache consulted before training and recorded into after it
        trainer: Blocking trainer bound to the mutator's network
        mutator: Network whose hidden layer is resized for each order
        config: Perturbation, randomization and display settings

    Attributes:
        trainings_number: Trainer invocations made by this aggregator

    Example:
        >>> aggregator = TrialAggregator(cache, trainer, network, config)
        >>> outcome = aggregator.evaluate(4, trials_number=3, reduction_policy="Mean")
    """

    def __init__(
        self,
        cache: EvaluationCache,
        trainer: Trainer,
        mutator: ArchitectureMutator,
        config: Optional[OrderSelectionConfig] = None,
    ):
        self.cache = cache
        self.trainer = trainer
        self.mutator = mutator
        self.config = config if config is not None else OrderSelectionConfig()
        self.trainings_number = 0

    def evaluate(
        self,
        order: int,
        trials_number: Optional[int] = None,
        reduction_policy: Union[ReductionPolicy, str, None] = None,
    ) -> TrialOutcome:
        """Evaluate an order, training only what is not known yet.

        Args:
            order: Hidden-layer width to evaluate
            trials_number: Trainings under randomized restarts (default: config)
            reduction_policy: Reduction of the trials (default: config)

        Returns:
            TrialOutcome for the order, identical across repeated calls

        Raises:
            InvalidArgumentError: If order or trials_number is not positive
            UnknownTrainingMethodError: If the trainer reports an unknown method
        """
        if trials_number is None:
            trials_number = self.config.trials_number
        policy = ReductionPolicy.parse(
            self.config.reduction_policy if reduction_policy is None else reduction_policy
        )

        if order is None or order <= 0:
            raise InvalidArgumentError(problem="Order must be greater than 0", cause=f"order={order}")
        if trials_number is None or trials_number <= 0:
            raise InvalidArgumentError(
                problem="Number of trials must be greater than 0",
                cause=f"trials_number={trials_number}",
            )

        record = self.cache.lookup(order)
        if record is not None:
            return TrialOutcome(record.training_error, record.selection_error, record.parameters, cached=True)

        known = self.cache.known_metrics(order)
        if known.complete:
            logger.debug(f"Order {order}: reusing preloaded errors")
            record = self.cache.record(
                order, known.training_error, known.selection_error, known.parameters or ()
            )
            return TrialOutcome(record.training_error, record.selection_error, record.parameters, cached=True)

        training_error = known.training_error
        selection_error = known.selection_error
        parameters: Tuple[float, ...] = ()
        level = "INFO" if self.config.display else "DEBUG"

        for trial in range(1, trials_number + 1):
            if trial == 1:
                resize_hidden_layer(self.mutator, order)
                self.mutator.perturb_parameters(self.config.perturbation_magnitude)
            else:
                self.mutator.randomize_parameters_normal(0.0, self.config.randomization_std)

            trial_training_error, trial_selection_error = final_errors(self.trainer.train())
            self.trainings_number += 1
            if not (math.isfinite(trial_training_error) and math.isfinite(trial_selection_error)):
                logger.warning(
                    f"Order {order} trial {trial}: training diverged "
                    f"(training error {trial_training_error}, selection error {trial_selection_error})"
                )
                trial_training_error = diverged_as_inf(trial_training_error)
                trial_selection_error = diverged_as_inf(trial_selection_error)

            improved = False
            if known.training_error is None:
                training_error, training_improved = combine(
                    policy, training_error, trial_training_error, trials_number
                )
                improved = improved or training_improved
            if known.selection_error is None:
                selection_error, selection_improved = combine(
                    policy, selection_error, trial_selection_error, trials_number
                )
                improved = improved or selection_improved
            if improved:
                parameters = tuple(self.mutator.flatten_parameters())

            logger.log(
                level,
                f"Order {order} trial {trial}/{trials_number}: "
                f"training error {trial_training_error:.6f}, "
                f"selection error {trial_selection_error:.6f}",
            )

        record = self.cache.record(order, training_error, selection_error, parameters)
        return TrialOutcome(record.training_error, record.selection_error, record.parameters)
