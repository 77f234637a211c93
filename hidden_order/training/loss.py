"""Normalized squared error scoring functional.

The error of a partition is the sum of squared prediction errors divided by
the sum of squared deviations of that partition's targets from their mean.
A value of 1 therefore means "no better than predicting the mean".

The normalization coefficient vanishes for constant targets; that is
reported as DegenerateTargetsError and never retried.
"""

from typing import Tuple

import torch

from hidden_order.data.dataset import DataSet
from hidden_order.errors import DegenerateTargetsError, ShapeMismatchError
from hidden_order.network.perceptron import MultilayerPerceptron

NORMALIZATION_EPSILON = 1.0e-99


class NormalizedSquaredError:
    """Scoring functional binding a network to a data set.

    Args:
        network: Network whose predictions are scored
        data_set: Data set providing the training and selection partitions
    """

    def __init__(self, network: MultilayerPerceptron, data_set: DataSet):
        self.network = network
        self.data_set = data_set

    @property
    def inputs_count(self) -> int:
        return self.network.inputs_number

    @property
    def outputs_count(self) -> int:
        return self.network.outputs_number

    def check(self) -> None:
        """Verify the network widths agree with the data set.

        Raises:
            ShapeMismatchError: On an input or output width mismatch
        """
        if self.inputs_count != self.data_set.inputs_number:
            raise ShapeMismatchError(
                problem="Network inputs do not match data set inputs",
                cause=f"network has {self.inputs_count} inputs, data set has {self.data_set.inputs_number}",
            )
        if self.outputs_count != self.data_set.targets_number:
            raise ShapeMismatchError(
                problem="Network outputs do not match data set targets",
                cause=f"network has {self.outputs_count} outputs, data set has {self.data_set.targets_number}",
            )

    def _error(self, data: Tuple[torch.Tensor, torch.Tensor], partition: str) -> torch.Tensor:
        inputs, targets = data
        outputs = self.network(inputs)

        sum_squared_error = ((outputs - targets) ** 2).sum()
        if targets.shape[0] == 0:
            normalization_coefficient = torch.zeros(())
        else:
            normalization_coefficient = ((targets - targets.mean(dim=0)) ** 2).sum()

        if normalization_coefficient.item() < NORMALIZATION_EPSILON:
            raise DegenerateTargetsError(
                problem=f"Normalization coefficient of the {partition} partition is zero",
                cause=f"{partition} targets are constant or the partition is empty",
                recovery="Use targets with non-zero variance in every partition",
                context=f"coefficient={normalization_coefficient.item():.3e}",
            )

        return sum_squared_error / normalization_coefficient

    def training_loss(self) -> torch.Tensor:
        """Differentiable normalized squared error on the training partition."""
        return self._error(self.data_set.training_data(), "training")

    @torch.no_grad()
    def calculate_training_error(self) -> float:
        return float(self._error(self.data_set.training_data(), "training"))

    @torch.no_grad()
    def calculate_selection_error(self) -> float:
        return float(self._error(self.data_set.selection_data(), "selection"))
