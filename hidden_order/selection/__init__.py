"""Order selection: search over hidden-layer widths.

This package provides:
- EvaluationCache / EvaluationHistory: memoized, append-only evaluation log
- TrialAggregator: repeated-trial evaluation reduced by Minimum / Maximum / Mean
- Search policies: incremental, golden section, simulated annealing
- OrderSelectionController: the search loop and its stopping conditions
- ModelSelection: facade selecting the strategy by type
- Export utilities for results

Example:
    >>> from hidden_order.selection import ModelSelection, OrderSelectionConfig
    >>> selection = ModelSelection(trainer, network, data_set, "incremental_order")
    >>> results = selection.perform_order_selection()
"""

from hidden_order.config.selection import OrderSelectionConfig, ReductionPolicy, ReserveFlags
from hidden_order.selection.aggregator import TrialAggregator, TrialOutcome
from hidden_order.selection.controller import OrderSelectionController
from hidden_order.selection.export import (
    export_to_json,
    generate_summary_report,
    load_from_json,
    print_results_table,
)
from hidden_order.selection.history import EvaluationCache, EvaluationHistory, EvaluationRecord
from hidden_order.selection.model_selection import ModelSelection, build_policy
from hidden_order.selection.policies import (
    Done,
    GoldenSectionOrder,
    IncrementalOrder,
    SearchPolicy,
    SimulatedAnnealingOrder,
)
from hidden_order.selection.results import (
    GoldenSectionOrderResults,
    IncrementalOrderResults,
    ModelSelectionResults,
    OrderSelectionResults,
    OrderSelectionType,
    SimulatedAnnealingOrderResults,
)
from hidden_order.selection.stopping import StoppingCondition, StoppingState

__all__ = [
    "Done",
    "EvaluationCache",
    "EvaluationHistory",
    "EvaluationRecord",
    "GoldenSectionOrder",
    "GoldenSectionOrderResults",
    "IncrementalOrder",
    "IncrementalOrderResults",
    "ModelSelection",
    "ModelSelectionResults",
    "OrderSelectionConfig",
    "OrderSelectionController",
    "OrderSelectionResults",
    "OrderSelectionType",
    "ReductionPolicy",
    "ReserveFlags",
    "SearchPolicy",
    "SimulatedAnnealingOrder",
    "SimulatedAnnealingOrderResults",
    "StoppingCondition",
    "StoppingState",
    "TrialAggregator",
    "TrialOutcome",
    "build_policy",
    "export_to_json",
    "generate_summary_report",
    "load_from_json",
    "print_results_table",
]
