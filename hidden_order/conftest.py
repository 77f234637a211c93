"""Shared pytest fixtures for hidden_order tests.

Provides stub collaborators for the search loop:
- StubLoss: scoring functional exposing only inputs_count / outputs_count
- CountingTrainer: deterministic trainer keyed on the live hidden width
- ScriptedTrainer: trainer replaying a fixed sequence of error pairs
plus a tiny perceptron and a small split data set.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

import pytest
import torch

from hidden_order.data.dataset import DataSet
from hidden_order.network.perceptron import MultilayerPerceptron
from hidden_order.training.results import Trainer, TrainingMethod, TrainingResult


@dataclass
class StubLoss:
    inputs_count: int = 1
    outputs_count: int = 1


class CountingTrainer(Trainer):
    """Trainer whose errors depend only on the network's hidden width.

    Args:
        network: Network whose hidden_units is read at each train()
        selection_error: Selection error as a function of the order (default: 1 / order)
        training_error: Training error as a function of the order (default: 0.5 / order)
        method: Method tag reported in each result
    """

    def __init__(
        self,
        network: MultilayerPerceptron,
        selection_error: Optional[Callable[[int], float]] = None,
        training_error: Optional[Callable[[int], float]] = None,
        method=TrainingMethod.QUASI_NEWTON,
    ):
        self.network = network
        self.loss_functional = StubLoss(network.inputs_number, network.outputs_number)
        self.selection_error = selection_error or (lambda order: 1.0 / order)
        self.training_error = training_error or (lambda order: 0.5 / order)
        self.method = method
        self.calls = 0
        self.trained_orders: List[int] = []

    @property
    def main_method(self):
        return self.method

    def train(self) -> TrainingResult:
        self.calls += 1
        order = self.network.hidden_units
        self.trained_orders.append(order)
        return TrainingResult(
            method=self.method,
            final_training_error=self.training_error(order),
            final_selection_error=self.selection_error(order),
        )


class ScriptedTrainer(Trainer):
    """Trainer replaying (training_error, selection_error) pairs in order."""

    def __init__(self, outcomes: Iterable[Tuple[float, float]], inputs_count: int = 1, outputs_count: int = 1):
        self.outcomes = list(outcomes)
        self.loss_functional = StubLoss(inputs_count, outputs_count)
        self.calls = 0

    @property
    def main_method(self):
        return TrainingMethod.GRADIENT_DESCENT

    def train(self) -> TrainingResult:
        training_error, selection_error = self.outcomes[self.calls]
        self.calls += 1
        return TrainingResult(
            method=TrainingMethod.GRADIENT_DESCENT,
            final_training_error=training_error,
            final_selection_error=selection_error,
        )


@pytest.fixture
def network():
    """Single-hidden-layer perceptron [1, 1, 1]."""
    torch.manual_seed(0)
    return MultilayerPerceptron([1, 1, 1])


@pytest.fixture
def data_set():
    """Forty noisy samples of a quadratic, split 60/20/20."""
    generator = torch.Generator().manual_seed(0)
    x = torch.linspace(-1.0, 1.0, 40).unsqueeze(-1)
    y = x ** 2 + 0.05 * torch.randn(x.shape, generator=generator)
    data = DataSet(x, y)
    data.split_instances(seed=0)
    return data


@pytest.fixture
def counting_trainer(network):
    return CountingTrainer(network)
