"""Configuration module for hidden_order.

Exports:
    OrderSelectionConfig: Settings of the order-selection control loop
    ReductionPolicy: Minimum / Maximum / Mean reduction of repeated trials
    ReserveFlags: Which parts of the history the results keep
    IncrementalConfig, GoldenSectionConfig, SimulatedAnnealingConfig: Strategy settings
    TrainingConfig: Settings of the bundled torch training strategy
    OrderSelectionRunConfig: Flat settings of the command line entry point
"""

from .selection import (
    GoldenSectionConfig,
    IncrementalConfig,
    OrderSelectionConfig,
    ReductionPolicy,
    ReserveFlags,
    SimulatedAnnealingConfig,
)
from .training import TrainingConfig
from .run import OrderSelectionRunConfig

__all__ = [
    "GoldenSectionConfig",
    "IncrementalConfig",
    "OrderSelectionConfig",
    "ReductionPolicy",
    "ReserveFlags",
    "SimulatedAnnealingConfig",
    "TrainingConfig",
    "OrderSelectionRunConfig",
]
