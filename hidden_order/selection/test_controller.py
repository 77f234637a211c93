"""Unit tests for the order-selection control loop.

Tests cover:
- End-to-end incremental search with a deterministic trainer
- Pre-flight checks raised before any training
- Stopping conditions and their precedence
- Optimum installation on the live network
- Failure propagation with history preserved
- Cancellation and warm start
"""

import dataclasses
import math

import pytest

from hidden_order.config.selection import (
    IncrementalConfig,
    OrderSelectionConfig,
    ReserveFlags,
    SimulatedAnnealingConfig,
)
from hidden_order.conftest import CountingTrainer, StubLoss
from hidden_order.data.dataset import DataSet
from hidden_order.errors import (
    ConfigurationError,
    DegenerateTargetsError,
    ShapeMismatchError,
)
from hidden_order.network.perceptron import MultilayerPerceptron
from hidden_order.selection.controller import OrderSelectionController
from hidden_order.selection.policies import GoldenSectionOrder, IncrementalOrder, SimulatedAnnealingOrder
from hidden_order.selection.stopping import StoppingCondition


class FakeClock:
    """Clock advanced explicitly by the trainer."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TimedTrainer(CountingTrainer):
    """CountingTrainer whose every training takes ``seconds`` of fake time."""

    def __init__(self, network, clock, seconds=10.0):
        super().__init__(network)
        self.clock = clock
        self.seconds = seconds

    def train(self):
        self.clock.now += self.seconds
        return super().train()


def quiet_config(**kwargs):
    kwargs.setdefault("display", False)
    return OrderSelectionConfig(**kwargs)


class TestIncrementalSearch:
    """Test the incremental search end to end."""

    def test_selects_lowest_selection_error(self, network, data_set):
        """Test 1/order errors over [1, 6] select order 6 after six ascending records."""
        trainer = CountingTrainer(network)
        controller = OrderSelectionController(
            quiet_config(minimum_order=1, maximum_order=6, trials_number=1, reduction_policy="Minimum"),
            IncrementalOrder(),
        )

        results = controller.run_order_selection(trainer, network, data_set)

        assert results.optimal_order == 6
        assert results.order_history == [1, 2, 3, 4, 5, 6]
        assert results.stopping_condition is StoppingCondition.ALGORITHM_FINISHED
        assert results.final_selection_error == pytest.approx(1.0 / 6)
        assert results.iterations_number == 6
        assert trainer.calls == 6

    def test_optimum_installed_on_network(self, network, data_set):
        """Test the network is left at the optimal width with its parameters."""
        trainer = CountingTrainer(network, selection_error=lambda order: abs(order - 3) + 0.1)
        controller = OrderSelectionController(quiet_config(minimum_order=1, maximum_order=6), IncrementalOrder())

        results = controller.run_order_selection(trainer, network, data_set)

        assert results.optimal_order == 3
        assert network.hidden_units == 3
        assert network.flatten_parameters() == pytest.approx(list(results.minimal_parameters))

    def test_optimum_is_in_history(self, network, data_set):
        """Test the optimum has a matching history record."""
        trainer = CountingTrainer(network, selection_error=lambda order: (order - 4) ** 2 + 0.5)
        results = OrderSelectionController(
            quiet_config(minimum_order=2, maximum_order=8), IncrementalOrder()
        ).run_order_selection(trainer, network, data_set)

        matching = [r for r in results.history if r.order == results.optimal_order]
        assert len(matching) == 1
        assert matching[0].selection_error == results.final_selection_error

    def test_step(self, network, data_set):
        """Test the increment between proposals."""
        trainer = CountingTrainer(network)
        results = OrderSelectionController(
            quiet_config(minimum_order=1, maximum_order=8), IncrementalOrder(IncrementalConfig(step=3))
        ).run_order_selection(trainer, network, data_set)

        assert results.order_history == [1, 4, 7]
        assert results.step == 3

    def test_maximum_order_derived(self, network, data_set):
        """Test maximum_order defaults to 2 * (inputs + outputs)."""
        trainer = CountingTrainer(network)
        controller = OrderSelectionController(quiet_config(), IncrementalOrder())

        results = controller.run_order_selection(trainer, network, data_set)

        assert controller.config.maximum_order == 4
        assert results.order_history == [1, 2, 3, 4]

    def test_diverged_order_never_selected(self, network, data_set):
        """Test an order whose training returns NaN ranks last."""
        errors = {1: float("nan"), 2: 0.5, 3: 0.1}
        trainer = CountingTrainer(network, selection_error=lambda order: errors[order])
        controller = OrderSelectionController(quiet_config(minimum_order=1, maximum_order=3), IncrementalOrder())

        results = controller.run_order_selection(trainer, network, data_set)

        assert results.optimal_order == 3
        assert results.final_selection_error == pytest.approx(0.1)
        assert results.selection_error_history[0] == math.inf
        assert network.hidden_units == 3

    def test_results_keep_reserve_flags_of_their_run(self, network, data_set):
        """Test editing the controller config afterwards leaves the results unchanged."""
        controller = OrderSelectionController(quiet_config(minimum_order=1, maximum_order=3), IncrementalOrder())
        results = controller.run_order_selection(CountingTrainer(network), network, data_set)
        before = list(results.training_error_history)

        with pytest.raises(dataclasses.FrozenInstanceError):
            controller.config.reserve.training_error_history = False
        controller.config = controller.config.replace(reserve=ReserveFlags(training_error_history=False))

        assert results.training_error_history == before
        assert results.training_error_history == pytest.approx([0.5, 0.25, 0.5 / 3])


class TestPreflightCheck:
    """Test configuration problems are reported before any training."""

    def test_inverted_bounds(self, network):
        """Test minimum_order=5, maximum_order=3 fails without training."""
        trainer = CountingTrainer(network)
        with pytest.raises(ConfigurationError):
            OrderSelectionConfig(minimum_order=5, maximum_order=3)
        assert trainer.calls == 0

    def test_derived_bound_below_minimum(self, network, data_set):
        """Test a derived maximum_order not above minimum_order fails."""
        trainer = CountingTrainer(network)
        controller = OrderSelectionController(quiet_config(minimum_order=5), IncrementalOrder())
        with pytest.raises(ConfigurationError):
            controller.run_order_selection(trainer, network, data_set)
        assert trainer.calls == 0

    def test_missing_trainer(self, network, data_set):
        """Test a missing trainer is rejected."""
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        with pytest.raises(ConfigurationError):
            controller.run_order_selection(None, network, data_set)

    def test_missing_loss_functional(self, network, data_set):
        """Test a trainer without loss functional is rejected."""
        trainer = CountingTrainer(network)
        trainer.loss_functional = None
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        with pytest.raises(ConfigurationError):
            controller.run_order_selection(trainer, network, data_set)
        assert trainer.calls == 0

    @pytest.mark.parametrize("architecture", [[], [1, 1]])
    def test_unusable_network(self, network, data_set, architecture):
        """Test empty and single-layer networks are rejected."""
        trainer = CountingTrainer(network)
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        with pytest.raises(ConfigurationError):
            controller.run_order_selection(trainer, MultilayerPerceptron(architecture), data_set)
        assert trainer.calls == 0

    def test_no_selection_instances(self, network):
        """Test a data set without selection partition is rejected."""
        trainer = CountingTrainer(network)
        unsplit = DataSet([[0.0], [1.0], [2.0]], [[0.0], [1.0], [4.0]])
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        with pytest.raises(ConfigurationError):
            controller.run_order_selection(trainer, network, unsplit)
        assert trainer.calls == 0

    def test_shape_mismatch(self, network, data_set):
        """Test loss functional widths must match the data set."""
        trainer = CountingTrainer(network)
        trainer.loss_functional = StubLoss(inputs_count=2, outputs_count=1)
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        with pytest.raises(ShapeMismatchError):
            controller.run_order_selection(trainer, network, data_set)
        assert trainer.calls == 0

    def test_missing_policy(self):
        """Test a controller needs a policy."""
        with pytest.raises(ConfigurationError):
            OrderSelectionController(quiet_config(maximum_order=4), None)


class TestStoppingConditions:
    """Test each stopping condition and their precedence."""

    def test_maximum_time(self, network, data_set):
        """Test the time limit stops the search."""
        clock = FakeClock()
        trainer = TimedTrainer(network, clock)
        controller = OrderSelectionController(
            quiet_config(maximum_order=50, maximum_time=25.0, maximum_iterations_number=100),
            IncrementalOrder(),
            clock=clock,
        )

        results = controller.run_order_selection(trainer, network, data_set)

        assert results.stopping_condition is StoppingCondition.MAXIMUM_TIME
        assert results.order_history == [1, 2, 3]

    def test_maximum_iterations(self, network, data_set):
        """Test the iteration limit stops the search."""
        clock = FakeClock()
        trainer = TimedTrainer(network, clock)
        controller = OrderSelectionController(
            quiet_config(maximum_order=50, maximum_time=1000.0, maximum_iterations_number=2),
            IncrementalOrder(),
            clock=clock,
        )

        results = controller.run_order_selection(trainer, network, data_set)

        assert results.stopping_condition is StoppingCondition.MAXIMUM_ITERATIONS
        assert results.order_history == [1, 2]

    def test_time_reported_when_both_limits_hit(self, network, data_set):
        """Test time takes precedence when both limits are reached together."""
        clock = FakeClock()
        trainer = TimedTrainer(network, clock)
        controller = OrderSelectionController(
            quiet_config(maximum_order=50, maximum_time=20.0, maximum_iterations_number=2),
            IncrementalOrder(),
            clock=clock,
        )

        results = controller.run_order_selection(trainer, network, data_set)

        assert results.stopping_condition is StoppingCondition.MAXIMUM_TIME

    def test_selection_error_goal(self, network, data_set):
        """Test reaching the goal stops the search immediately."""
        trainer = CountingTrainer(network)
        results = OrderSelectionController(
            quiet_config(maximum_order=10, selection_error_goal=0.25), IncrementalOrder()
        ).run_order_selection(trainer, network, data_set)

        assert results.stopping_condition is StoppingCondition.SELECTION_ERROR_GOAL
        assert results.order_history == [1, 2, 3, 4]

    def test_maximum_selection_failures(self, network, data_set):
        """Test consecutive non-improving orders stop the incremental search."""
        trainer = CountingTrainer(network, selection_error=lambda order: abs(order - 3) + 0.1)
        results = OrderSelectionController(
            quiet_config(maximum_order=10),
            IncrementalOrder(IncrementalConfig(maximum_selection_failures=2)),
        ).run_order_selection(trainer, network, data_set)

        assert results.stopping_condition is StoppingCondition.MAXIMUM_SELECTION_FAILURES
        assert results.order_history == [1, 2, 3, 4, 5]
        assert results.optimal_order == 3

    def test_minimum_temperature(self, network, data_set):
        """Test annealing stops once the temperature drops below the minimum."""
        trainer = CountingTrainer(network)
        policy = SimulatedAnnealingOrder(
            SimulatedAnnealingConfig(initial_temperature=1.0, cooling_rate=0.5, minimum_temperature=0.1, seed=3)
        )
        results = OrderSelectionController(quiet_config(maximum_order=10), policy).run_order_selection(
            trainer, network, data_set
        )

        assert results.stopping_condition is StoppingCondition.MINIMUM_TEMPERATURE
        assert results.iterations_number == 4
        assert results.final_temperature == pytest.approx(0.0625)


class TestBounds:
    """Test every evaluated order lies inside the configured bounds."""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_annealing_respects_bounds(self, network, data_set, seed):
        """Test annealing never leaves [minimum_order, maximum_order]."""
        trainer = CountingTrainer(network, selection_error=lambda order: (order - 6) ** 2 + 1.0)
        policy = SimulatedAnnealingOrder(SimulatedAnnealingConfig(cooling_rate=0.9, minimum_temperature=0.01, seed=seed))
        results = OrderSelectionController(
            quiet_config(minimum_order=3, maximum_order=9), policy
        ).run_order_selection(trainer, network, data_set)

        assert all(3 <= order <= 9 for order in results.order_history)
        assert all(3 <= order <= 9 for order in trainer.trained_orders)

    def test_golden_section_finds_minimum(self, network, data_set):
        """Test golden section brackets the best order of a unimodal error."""
        trainer = CountingTrainer(network, selection_error=lambda order: (order - 7) ** 2 + 0.01)
        results = OrderSelectionController(
            quiet_config(minimum_order=1, maximum_order=20), GoldenSectionOrder()
        ).run_order_selection(trainer, network, data_set)

        assert results.optimal_order == 7
        assert results.stopping_condition is StoppingCondition.ALGORITHM_FINISHED
        assert all(1 <= order <= 20 for order in results.order_history)
        assert len(set(results.order_history)) == len(results.order_history)


class TestFailures:
    """Test failures propagate and keep the partial history."""

    def test_degenerate_targets_propagate(self, network, data_set):
        """Test a trainer failure aborts the search with earlier records intact."""

        def selection_error(order):
            if order == 3:
                raise DegenerateTargetsError(problem="Normalization coefficient is zero")
            return 1.0 / order

        trainer = CountingTrainer(network, selection_error=selection_error)
        controller = OrderSelectionController(quiet_config(maximum_order=6), IncrementalOrder())

        with pytest.raises(DegenerateTargetsError):
            controller.run_order_selection(trainer, network, data_set)

        assert controller.history.orders == [1, 2]


class TestCancellation:
    """Test cancellation at trial boundaries."""

    def test_cancel_after_current_trial(self, network, data_set):
        """Test cancel() ends the search after the running evaluation."""
        controller = OrderSelectionController(quiet_config(maximum_order=8), IncrementalOrder())

        def selection_error(order):
            if order == 2:
                controller.cancel()
            return 1.0 / order

        trainer = CountingTrainer(network, selection_error=selection_error)
        results = controller.run_order_selection(trainer, network, data_set)

        assert results.stopping_condition is StoppingCondition.CANCELLED
        assert results.order_history == [1, 2]

    def test_cancel_does_not_leak_into_next_run(self, network, data_set):
        """Test a new run after a cancelled one runs to completion."""
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        controller.cancel()
        first = controller.run_order_selection(CountingTrainer(network), network, data_set)
        second = controller.run_order_selection(CountingTrainer(network), network, data_set)

        assert first.stopping_condition is StoppingCondition.CANCELLED
        assert first.optimal_order is None
        assert second.stopping_condition is StoppingCondition.ALGORITHM_FINISHED


class TestWarmStart:
    """Test reuse of a previous search."""

    def test_warm_start_skips_training(self, network, data_set):
        """Test orders of a previous search are not retrained."""
        config = quiet_config(maximum_order=4)
        previous = OrderSelectionController(config, IncrementalOrder()).run_order_selection(
            CountingTrainer(network), network, data_set
        )

        trainer = CountingTrainer(network)
        controller = OrderSelectionController(config, IncrementalOrder())
        controller.warm_start(previous)
        results = controller.run_order_selection(trainer, network, data_set)

        assert trainer.calls == 0
        assert results.order_history == previous.order_history
        assert results.final_selection_error == previous.final_selection_error

    def test_warm_start_retrains_pruned_metric(self, network, data_set):
        """Test a metric pruned from the previous results is measured again."""
        config = quiet_config(
            maximum_order=4,
            reserve=ReserveFlags(training_error_history=False),
        )
        previous = OrderSelectionController(config, IncrementalOrder()).run_order_selection(
            CountingTrainer(network), network, data_set
        )

        trainer = CountingTrainer(network)
        controller = OrderSelectionController(config, IncrementalOrder())
        controller.warm_start(previous)
        controller.run_order_selection(trainer, network, data_set)

        assert trainer.calls == 4

    def test_warm_start_without_parameters(self, network, data_set):
        """Test an optimum served from a preload without parameters reports None."""
        pruned = quiet_config(maximum_order=4, reserve=ReserveFlags(parameters=False, minimal_parameters=False))
        previous = OrderSelectionController(pruned, IncrementalOrder()).run_order_selection(
            CountingTrainer(network), network, data_set
        )

        trainer = CountingTrainer(network)
        controller = OrderSelectionController(quiet_config(maximum_order=4), IncrementalOrder())
        controller.warm_start(previous)
        results = controller.run_order_selection(trainer, network, data_set)

        assert trainer.calls == 0
        assert results.optimal_order == 4
        assert results.minimal_parameters is None
