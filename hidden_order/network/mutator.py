"""Architecture mutation interface consumed by the order-selection loop.

The search loop never looks inside the network. It only asks for the width
of the last hidden layer to change, for the parameters to be perturbed or
redrawn between trials, and for the flattened parameter vector after training.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from hidden_order.errors import InvalidArgumentError


class ArchitectureMutator(ABC):
    """Abstract network whose last hidden layer can grow and shrink.

    Implementations must keep all other layers untouched by resizing and
    must keep existing weights of the surviving units.
    """

    @property
    @abstractmethod
    def hidden_units(self) -> int:
        """Current width of the last hidden layer."""

    @property
    @abstractmethod
    def layers_number(self) -> int:
        """Number of layers with parameters (hidden layers + output layer)."""

    @abstractmethod
    def is_empty(self) -> bool:
        """True when the network has no layers."""

    @abstractmethod
    def grow_hidden_units(self, count: int) -> None:
        """Append ``count`` units to the last hidden layer."""

    @abstractmethod
    def shrink_hidden_units(self, count: int) -> None:
        """Remove ``count`` units from the last hidden layer."""

    @abstractmethod
    def perturb_parameters(self, magnitude: float) -> None:
        """Add uniform noise in [-magnitude, magnitude] to every parameter."""

    @abstractmethod
    def randomize_parameters_normal(self, mean: float = 0.0, std: float = 1.0) -> None:
        """Redraw every parameter from a normal distribution."""

    @abstractmethod
    def flatten_parameters(self) -> List[float]:
        """Return all parameters as one flat list."""

    @abstractmethod
    def assign_parameters(self, values: Sequence[float]) -> None:
        """Load a flat parameter vector produced by flatten_parameters()."""


def resize_hidden_layer(mutator: ArchitectureMutator, order: int) -> None:
    """Grow or shrink the last hidden layer of ``mutator`` to ``order`` units.

    Raises:
        InvalidArgumentError: If order is not positive
    """
    if order <= 0:
        raise InvalidArgumentError(
            problem="Number of hidden units must be greater than 0",
            cause=f"order={order}",
        )

    current = mutator.hidden_units
    if order > current:
        mutator.grow_hidden_units(order - current)
    elif order < current:
        mutator.shrink_hidden_units(current - order)
