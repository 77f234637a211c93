"""
Multilayer perceptron with a resizable last hidden layer.

This is the default ArchitectureMutator: a plain feed-forward network of
``nn.Linear`` layers with tanh hidden activations and a linear output layer.
Growing or shrinking the last hidden layer rebuilds the two ``nn.Linear``
modules around it and copies the weights of the surviving units, so a resized
network starts from where the previous order left off.
"""

from typing import List, Sequence

import torch
import torch.nn as nn
from torch.nn.utils import parameters_to_vector, vector_to_parameters

from hidden_order.errors import InvalidArgumentError, ShapeMismatchError
from hidden_order.network.mutator import ArchitectureMutator


class MultilayerPerceptron(nn.Module, ArchitectureMutator):
    """
    Feed-forward network described by an architecture list.

    Args:
        architecture: Layer widths ``[inputs, hidden..., outputs]``; an empty
            sequence builds an empty network

    Example:
        >>> network = MultilayerPerceptron([1, 3, 1])
        >>> network.grow_hidden_units(2)
        >>> network.architecture
        [1, 5, 1]
    """

    def __init__(self, architecture: Sequence[int] = ()):
        super().__init__()
        architecture = list(architecture)
        if any(width <= 0 for width in architecture):
            raise InvalidArgumentError(
                problem="Layer widths must be greater than 0",
                cause=f"architecture={architecture}",
            )
        if len(architecture) == 1:
            raise InvalidArgumentError(
                problem="An architecture needs at least an input and an output width",
                cause=f"architecture={architecture}",
            )

        self.layers = nn.ModuleList(
            nn.Linear(n_in, n_out) for n_in, n_out in zip(architecture[:-1], architecture[1:])
        )

    @property
    def architecture(self) -> List[int]:
        if not self.layers:
            return []
        return [self.layers[0].in_features] + [layer.out_features for layer in self.layers]

    @property
    def inputs_number(self) -> int:
        return self.layers[0].in_features if self.layers else 0

    @property
    def outputs_number(self) -> int:
        return self.layers[-1].out_features if self.layers else 0

    @property
    def layers_number(self) -> int:
        return len(self.layers)

    @property
    def hidden_units(self) -> int:
        if self.layers_number < 2:
            return 0
        return self.layers[-2].out_features

    def is_empty(self) -> bool:
        return self.layers_number == 0

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        for layer in self.layers[:-1]:
            x = torch.tanh(layer(x))
        return self.layers[-1](x)

    def _require_hidden_layer(self) -> None:
        if self.layers_number < 2:
            raise InvalidArgumentError(
                problem="Network has no hidden layer to resize",
                cause=f"architecture={self.architecture}",
                recovery="Build the network with at least one hidden layer, e.g. [inputs, 1, outputs]",
            )

    @torch.no_grad()
    def grow_hidden_units(self, count: int) -> None:
        """Append ``count`` units to the last hidden layer.

        New incoming and outgoing weights are drawn uniformly from [-1, 1];
        the weights of existing units are kept.
        """
        self._require_hidden_layer()
        if count <= 0:
            raise InvalidArgumentError(
                problem="Number of units to add must be greater than 0",
                cause=f"count={count}",
            )

        incoming, outgoing = self.layers[-2], self.layers[-1]
        width = incoming.out_features
        new_incoming, new_outgoing = self._make_pair(incoming, outgoing, width + count)

        new_incoming.weight[:width] = incoming.weight
        new_incoming.bias[:width] = incoming.bias
        new_outgoing.weight[:, :width] = outgoing.weight
        new_outgoing.bias.copy_(outgoing.bias)

        self.layers[-2], self.layers[-1] = new_incoming, new_outgoing

    @torch.no_grad()
    def shrink_hidden_units(self, count: int) -> None:
        """Remove the trailing ``count`` units of the last hidden layer.

        Raises:
            InvalidArgumentError: If fewer than one unit would remain
        """
        self._require_hidden_layer()
        incoming, outgoing = self.layers[-2], self.layers[-1]
        width = incoming.out_features - count
        if count <= 0 or width < 1:
            raise InvalidArgumentError(
                problem="Cannot shrink the hidden layer below one unit",
                cause=f"hidden_units={incoming.out_features}, count={count}",
            )

        new_incoming, new_outgoing = self._make_pair(incoming, outgoing, width)

        new_incoming.weight.copy_(incoming.weight[:width])
        new_incoming.bias.copy_(incoming.bias[:width])
        new_outgoing.weight.copy_(outgoing.weight[:, :width])
        new_outgoing.bias.copy_(outgoing.bias)

        self.layers[-2], self.layers[-1] = new_incoming, new_outgoing

    @staticmethod
    def _make_pair(incoming: nn.Linear, outgoing: nn.Linear, width: int):
        factory = {"device": incoming.weight.device, "dtype": incoming.weight.dtype}
        new_incoming = nn.Linear(incoming.in_features, width, **factory)
        new_outgoing = nn.Linear(width, outgoing.out_features, **factory)
        for parameter in (*new_incoming.parameters(), *new_outgoing.parameters()):
            nn.init.uniform_(parameter, -1.0, 1.0)
        return new_incoming, new_outgoing

    @torch.no_grad()
    def perturb_parameters(self, magnitude: float) -> None:
        for parameter in self.parameters():
            parameter.add_(torch.empty_like(parameter).uniform_(-magnitude, magnitude))

    @torch.no_grad()
    def randomize_parameters_normal(self, mean: float = 0.0, std: float = 1.0) -> None:
        for parameter in self.parameters():
            parameter.normal_(mean, std)

    def flatten_parameters(self) -> List[float]:
        if self.is_empty():
            return []
        return parameters_to_vector(self.parameters()).detach().cpu().tolist()

    @torch.no_grad()
    def assign_parameters(self, values: Sequence[float]) -> None:
        """Load a flat parameter vector.

        Raises:
            ShapeMismatchError: If the vector length differs from the parameter count
        """
        expected = sum(p.numel() for p in self.parameters())
        if len(values) != expected:
            raise ShapeMismatchError(
                problem="Parameter vector does not fit the network",
                cause=f"got {len(values)} values, network has {expected} parameters",
                context=f"architecture={self.architecture}",
            )
        reference = next(self.parameters())
        vector = torch.as_tensor(list(values), dtype=reference.dtype, device=reference.device)
        vector_to_parameters(vector, self.parameters())
