"""Order-search policies for the selection controller.

This module provides the strategies the controller can drive:
- Incremental: stepwise growth from the minimum order
- Golden section: bracketing by golden-ratio interior points
- Simulated annealing: Metropolis random walk with geometric cooling
"""

from hidden_order.selection.policies.base import Done, Proposal, SearchPolicy
from hidden_order.selection.policies.golden_section import GOLDEN_RATIO, GoldenSectionOrder
from hidden_order.selection.policies.incremental import IncrementalOrder
from hidden_order.selection.policies.simulated_annealing import SimulatedAnnealingOrder

__all__ = [
    "Done",
    "GOLDEN_RATIO",
    "GoldenSectionOrder",
    "IncrementalOrder",
    "Proposal",
    "SearchPolicy",
    "SimulatedAnnealingOrder",
]
