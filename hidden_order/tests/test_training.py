"""Tests for the training results contract, the scoring functional and the torch trainer."""

import pytest
import torch

from hidden_order.config import OrderSelectionConfig, TrainingConfig
from hidden_order.data import DataSet
from hidden_order.errors import (
    ConfigurationError,
    DegenerateTargetsError,
    ShapeMismatchError,
    UnknownTrainingMethodError,
)
from hidden_order.network import MultilayerPerceptron
from hidden_order.selection import ModelSelection
from hidden_order.training import (
    NormalizedSquaredError,
    TrainingMethod,
    TrainingResult,
    TrainingStrategy,
    final_errors,
)


class TestFinalErrors:
    """Test extraction of the final error pair."""

    @pytest.mark.parametrize(
        "method",
        [
            TrainingMethod.GRADIENT_DESCENT,
            TrainingMethod.CONJUGATE_GRADIENT,
            TrainingMethod.QUASI_NEWTON,
            TrainingMethod.LEVENBERG_MARQUARDT,
        ],
    )
    def test_fitting_methods(self, method):
        """Test fitting methods report their final errors."""
        result = TrainingResult(method, final_training_error=0.2, final_selection_error=0.3)
        assert final_errors(result) == (0.2, 0.3)

    @pytest.mark.parametrize("method", [TrainingMethod.NO_MAIN, TrainingMethod.USER_MAIN])
    def test_non_fitting_methods(self, method):
        """Test NO_MAIN and USER_MAIN report zero errors."""
        result = TrainingResult(method, final_training_error=0.2, final_selection_error=0.3)
        assert final_errors(result) == (0.0, 0.0)

    def test_unknown_method(self):
        """Test an unhandled tag raises UnknownTrainingMethodError."""
        with pytest.raises(UnknownTrainingMethodError):
            final_errors(TrainingResult("adam"))


class TestTrainingMethod:
    """Test parsing of training method names."""

    def test_parse(self):
        """Test names are matched case-insensitively."""
        assert TrainingMethod.parse("Quasi_Newton") is TrainingMethod.QUASI_NEWTON
        assert TrainingMethod.parse(TrainingMethod.NO_MAIN) is TrainingMethod.NO_MAIN

    def test_parse_unknown(self):
        """Test unknown names are rejected."""
        with pytest.raises(UnknownTrainingMethodError):
            TrainingMethod.parse("adam")


class TestNormalizedSquaredError:
    """Test the scoring functional."""

    def test_mean_predictor_scores_one(self, data_set):
        """Test predicting the target mean gives an error of one."""
        network = MultilayerPerceptron([1, 1, 1])
        with torch.no_grad():
            for parameter in network.parameters():
                parameter.zero_()
            network.layers[-1].bias.fill_(data_set.training_data()[1].mean().item())

        loss = NormalizedSquaredError(network, data_set)

        assert loss.calculate_training_error() == pytest.approx(1.0, rel=1e-4)

    def test_check_shapes(self, data_set):
        """Test width mismatches are reported."""
        NormalizedSquaredError(MultilayerPerceptron([1, 2, 1]), data_set).check()
        with pytest.raises(ShapeMismatchError):
            NormalizedSquaredError(MultilayerPerceptron([2, 2, 1]), data_set).check()
        with pytest.raises(ShapeMismatchError):
            NormalizedSquaredError(MultilayerPerceptron([1, 2, 3]), data_set).check()

    def test_constant_targets(self):
        """Test constant targets raise DegenerateTargetsError."""
        data = DataSet(torch.linspace(0.0, 1.0, 10), torch.ones(10))
        loss = NormalizedSquaredError(MultilayerPerceptron([1, 2, 1]), data)
        with pytest.raises(DegenerateTargetsError):
            loss.calculate_training_error()

    def test_empty_selection_partition(self):
        """Test an empty selection partition raises DegenerateTargetsError."""
        data = DataSet(torch.linspace(0.0, 1.0, 10), torch.linspace(0.0, 1.0, 10))
        loss = NormalizedSquaredError(MultilayerPerceptron([1, 2, 1]), data)
        with pytest.raises(DegenerateTargetsError):
            loss.calculate_selection_error()


class TestTrainingStrategy:
    """Test the bundled torch trainer."""

    @pytest.fixture
    def loss(self, network, data_set):
        network.grow_hidden_units(2)
        return NormalizedSquaredError(network, data_set)

    def test_no_main(self):
        """Test NO_MAIN trains nothing."""
        result = TrainingStrategy(config=TrainingConfig(method="no_main")).train()
        assert result.method is TrainingMethod.NO_MAIN
        assert final_errors(result) == (0.0, 0.0)

    def test_user_main(self):
        """Test USER_MAIN runs the supplied callable."""
        calls = []
        trainer = TrainingStrategy(config=TrainingConfig(method="user_main"), user_main=lambda: calls.append(1))
        result = trainer.train()
        assert calls == [1]
        assert result.method is TrainingMethod.USER_MAIN

    def test_user_main_requires_callable(self):
        """Test USER_MAIN without a callable is rejected."""
        with pytest.raises(ConfigurationError):
            TrainingStrategy(config=TrainingConfig(method="user_main"))

    @pytest.mark.parametrize("method", ["conjugate_gradient", "levenberg_marquardt"])
    def test_unavailable_methods(self, method):
        """Test methods without a torch optimizer are rejected."""
        with pytest.raises(ConfigurationError):
            TrainingStrategy(config=TrainingConfig(method=method))

    def test_requires_loss(self):
        """Test fitting without a loss functional is rejected."""
        with pytest.raises(ConfigurationError):
            TrainingStrategy().train()

    def test_gradient_descent_reduces_error(self, loss):
        """Test SGD lowers the training error."""
        initial = loss.calculate_training_error()
        config = TrainingConfig(
            method="gradient_descent",
            learning_rate=0.01,
            maximum_epochs=20,
            maximum_selection_error_increases=1000,
        )

        result = TrainingStrategy(loss, config).train()

        assert result.method is TrainingMethod.GRADIENT_DESCENT
        assert result.final_training_error < initial
        assert result.epochs_number == 20
        assert result.stopping_reason == "Maximum epochs"

    def test_quasi_newton_reduces_error(self, loss):
        """Test L-BFGS lowers the training error."""
        initial = loss.calculate_training_error()
        result = TrainingStrategy(loss, TrainingConfig(maximum_epochs=3)).train()
        assert result.method is TrainingMethod.QUASI_NEWTON
        assert result.final_training_error < initial
        assert result.final_selection_error == pytest.approx(loss.calculate_selection_error())

    def test_training_goal_stops_early(self, loss):
        """Test reaching the training goal ends training."""
        config = TrainingConfig(method="gradient_descent", learning_rate=0.01, training_error_goal=1.0e6)
        result = TrainingStrategy(loss, config).train()
        assert result.epochs_number == 1
        assert result.stopping_reason == "Training error goal"


class TestOrderSelectionWithTorchTrainer:
    """Test a short order selection with real training."""

    def test_incremental_search(self, network, data_set):
        """Test the network ends on the optimal order with its parameters."""
        loss = NormalizedSquaredError(network, data_set)
        trainer = TrainingStrategy(loss, TrainingConfig(method="gradient_descent", learning_rate=0.01, maximum_epochs=5))
        config = OrderSelectionConfig(minimum_order=1, maximum_order=3, display=False)

        results = ModelSelection(trainer, network, data_set, "incremental_order", config).perform_order_selection()

        selection = results.order_selection
        assert selection.order_history == [1, 2, 3]
        assert network.hidden_units == selection.optimal_order
        assert network.flatten_parameters() == pytest.approx(list(selection.minimal_parameters))
        assert selection.final_selection_error == min(selection.selection_error_history)
