"""Hidden-layer order selection for feed-forward networks.

Searches for the hidden-layer width with the lowest selection error by
resizing a live network, retraining it and comparing held-out errors.

Example:
    >>> from hidden_order import (
    ...     DataSet, MultilayerPerceptron, NormalizedSquaredError,
    ...     TrainingStrategy, ModelSelection, OrderSelectionConfig,
    ... )
    >>> data_set = DataSet.from_function(math.sin, instances_number=200, noise=0.1, seed=0)
    >>> data_set.split_instances(seed=0)
    >>> network = MultilayerPerceptron([1, 1, 1])
    >>> trainer = TrainingStrategy(NormalizedSquaredError(network, data_set))
    >>> selection = ModelSelection(trainer, network, data_set, "incremental_order",
    ...                            OrderSelectionConfig(maximum_order=10))
    >>> results = selection.perform_order_selection()
"""

__version__ = "0.1.0"

from hidden_order.config import (
    GoldenSectionConfig,
    IncrementalConfig,
    OrderSelectionConfig,
    ReductionPolicy,
    ReserveFlags,
    SimulatedAnnealingConfig,
    TrainingConfig,
)
from hidden_order.data import DataSet
from hidden_order.errors import (
    ConfigurationError,
    DegenerateTargetsError,
    HiddenOrderError,
    InvalidArgumentError,
    OrderNotFoundError,
    ShapeMismatchError,
    UnknownReductionPolicyError,
    UnknownTrainingMethodError,
    ValidationError,
)
from hidden_order.network import ArchitectureMutator, MultilayerPerceptron, resize_hidden_layer
from hidden_order.selection import (
    ModelSelection,
    ModelSelectionResults,
    OrderSelectionController,
    OrderSelectionResults,
    OrderSelectionType,
    StoppingCondition,
    TrialAggregator,
)
from hidden_order.training import (
    NormalizedSquaredError,
    Trainer,
    TrainingMethod,
    TrainingResult,
    TrainingStrategy,
)

__all__ = [
    "ArchitectureMutator",
    "ConfigurationError",
    "DataSet",
    "DegenerateTargetsError",
    "GoldenSectionConfig",
    "HiddenOrderError",
    "IncrementalConfig",
    "InvalidArgumentError",
    "ModelSelection",
    "ModelSelectionResults",
    "MultilayerPerceptron",
    "NormalizedSquaredError",
    "OrderNotFoundError",
    "OrderSelectionConfig",
    "OrderSelectionController",
    "OrderSelectionResults",
    "OrderSelectionType",
    "ReductionPolicy",
    "ReserveFlags",
    "ShapeMismatchError",
    "SimulatedAnnealingConfig",
    "StoppingCondition",
    "Trainer",
    "TrainingConfig",
    "TrainingMethod",
    "TrainingResult",
    "TrainingStrategy",
    "TrialAggregator",
    "UnknownReductionPolicyError",
    "UnknownTrainingMethodError",
    "ValidationError",
    "__version__",
    "resize_hidden_layer",
]
