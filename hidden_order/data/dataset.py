"""Instance-partitioned data set for architecture search.

The search objective is the error on a held-out selection partition, so a
data set here is a pair of input/target matrices plus three disjoint index
sets: training, selection and testing.

Example:
    >>> import math
    >>> data_set = DataSet.from_function(math.sin, instances_number=200, noise=0.1, seed=0)
    >>> data_set.split_instances(training_ratio=0.6, selection_ratio=0.2, testing_ratio=0.2, seed=0)
    >>> x, y = data_set.selection_data()
"""

from typing import Callable, Optional, Sequence, Tuple

import torch

from hidden_order.errors import InvalidArgumentError, ShapeMismatchError


class DataSet:
    """Input/target matrices with training, selection and testing partitions.

    Args:
        inputs: (instances, inputs_number) tensor
        targets: (instances, targets_number) tensor

    Until split_instances() or set_partition() is called every instance is
    a training instance.
    """

    def __init__(self, inputs: torch.Tensor, targets: torch.Tensor):
        inputs = torch.as_tensor(inputs, dtype=torch.get_default_dtype())
        targets = torch.as_tensor(targets, dtype=torch.get_default_dtype())

        if inputs.dim() == 1:
            inputs = inputs.unsqueeze(-1)
        if targets.dim() == 1:
            targets = targets.unsqueeze(-1)

        if inputs.dim() != 2 or targets.dim() != 2:
            raise ShapeMismatchError(
                problem="Inputs and targets must be 2-D matrices",
                cause=f"inputs.shape={tuple(inputs.shape)}, targets.shape={tuple(targets.shape)}",
            )
        if inputs.shape[0] != targets.shape[0]:
            raise ShapeMismatchError(
                problem="Inputs and targets must have the same number of instances",
                cause=f"{inputs.shape[0]} input rows vs {targets.shape[0]} target rows",
            )

        self.inputs = inputs
        self.targets = targets
        self.training_indices = torch.arange(inputs.shape[0])
        self.selection_indices = torch.empty(0, dtype=torch.long)
        self.testing_indices = torch.empty(0, dtype=torch.long)

    @classmethod
    def from_function(
        cls,
        function: Callable[[float], float],
        instances_number: int = 200,
        low: float = -3.0,
        high: float = 3.0,
        noise: float = 0.0,
        seed: Optional[int] = None,
    ) -> "DataSet":
        """Sample a 1-D regression problem y = f(x) + noise on [low, high].

        Args:
            function: Scalar function to sample
            instances_number: Number of samples
            low, high: Input range
            noise: Standard deviation of Gaussian target noise
            seed: Random seed for reproducibility
        """
        if instances_number <= 0:
            raise InvalidArgumentError(
                problem="instances_number must be greater than 0",
                cause=f"instances_number={instances_number}",
            )
        generator = torch.Generator()
        if seed is not None:
            generator.manual_seed(seed)

        x = low + (high - low) * torch.rand(instances_number, 1, generator=generator)
        y = torch.tensor([[function(float(v))] for v in x.flatten()])
        if noise > 0:
            y = y + noise * torch.randn(y.shape, generator=generator)
        return cls(x, y)

    @property
    def instances_number(self) -> int:
        return self.inputs.shape[0]

    @property
    def inputs_number(self) -> int:
        return self.inputs.shape[1]

    @property
    def targets_number(self) -> int:
        return self.targets.shape[1]

    @property
    def training_instances_number(self) -> int:
        return len(self.training_indices)

    @property
    def selection_instances_number(self) -> int:
        return len(self.selection_indices)

    @property
    def testing_instances_number(self) -> int:
        return len(self.testing_indices)

    def split_instances(
        self,
        training_ratio: float = 0.6,
        selection_ratio: float = 0.2,
        testing_ratio: float = 0.2,
        seed: Optional[int] = None,
    ) -> None:
        """Randomly partition the instances according to the given ratios.

        The ratios are normalized by their sum. The training partition takes
        whatever is left after rounding the selection and testing sizes.

        Raises:
            InvalidArgumentError: If a ratio is negative or all are zero
        """
        ratios = (training_ratio, selection_ratio, testing_ratio)
        if any(r < 0 for r in ratios) or sum(ratios) <= 0:
            raise InvalidArgumentError(
                problem="Partition ratios must be non-negative with a positive sum",
                cause=f"ratios={ratios}",
            )

        total = sum(ratios)
        n = self.instances_number
        selection_count = int(round(n * selection_ratio / total))
        testing_count = int(round(n * testing_ratio / total))
        selection_count = min(selection_count, n)
        testing_count = min(testing_count, n - selection_count)

        generator = torch.Generator()
        if seed is not None:
            generator.manual_seed(seed)
        permutation = torch.randperm(n, generator=generator)

        self.selection_indices = permutation[:selection_count]
        self.testing_indices = permutation[selection_count:selection_count + testing_count]
        self.training_indices = permutation[selection_count + testing_count:]

    def set_partition(
        self,
        training_indices: Sequence[int],
        selection_indices: Sequence[int],
        testing_indices: Sequence[int] = (),
    ) -> None:
        """Assign explicit, disjoint index sets to the three partitions."""
        partitions = [torch.as_tensor(list(p), dtype=torch.long)
                      for p in (training_indices, selection_indices, testing_indices)]
        merged = torch.cat(partitions)
        if len(merged) and (merged.min() < 0 or merged.max() >= self.instances_number):
            raise InvalidArgumentError(
                problem="Partition index out of range",
                cause=f"indices must lie in [0, {self.instances_number})",
            )
        if len(torch.unique(merged)) != len(merged):
            raise InvalidArgumentError(problem="Partitions must be disjoint")

        self.training_indices, self.selection_indices, self.testing_indices = partitions

    def training_data(self) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.inputs[self.training_indices], self.targets[self.training_indices]

    def selection_data(self) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.inputs[self.selection_indices], self.targets[self.selection_indices]

    def testing_data(self) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.inputs[self.testing_indices], self.targets[self.testing_indices]
