"""Networks whose hidden layer the order-selection loop can resize."""

from hidden_order.network.mutator import ArchitectureMutator, resize_hidden_layer
from hidden_order.network.perceptron import MultilayerPerceptron

__all__ = [
    "ArchitectureMutator",
    "MultilayerPerceptron",
    "resize_hidden_layer",
]
