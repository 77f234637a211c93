"""
Order selection on a noisy sine regression problem.

Builds a synthetic 1-D data set, a single-hidden-layer perceptron and the
bundled torch training strategy, then searches for the hidden-layer width
with the lowest selection error.

Usage:
    # Incremental search with defaults
    python -m hidden_order.cli.select_order

    # Golden section over a wider range
    python -m hidden_order.cli.select_order --strategy=golden_section --maximum_order=24

    # Annealing with three trials per order, results written to JSON
    python -m hidden_order.cli.select_order --strategy=simulated_annealing \\
        --trials_number=3 --reduction_policy=Mean --output=results/annealing.json

    # Settings from a preset module, then overrides
    python -m hidden_order.cli.select_order presets/wide_search.py --seed=7
"""

import math
import sys
from typing import List, Optional

import torch

from hidden_order.config.loader import load_config
from hidden_order.config.run import OrderSelectionRunConfig
from hidden_order.data.dataset import DataSet
from hidden_order.errors import HiddenOrderError
from hidden_order.network.perceptron import MultilayerPerceptron
from hidden_order.selection.export import (
    export_to_json,
    generate_summary_report,
    build_results_table,
)
from hidden_order.selection.model_selection import ModelSelection
from hidden_order.selection.results import ModelSelectionResults
from hidden_order.training.loss import NormalizedSquaredError
from hidden_order.training.strategy import TrainingStrategy
from hidden_order.utils.logging import get_logger

logger = get_logger(__name__)


def run(config: OrderSelectionRunConfig) -> ModelSelectionResults:
    """Build the collaborators described by ``config`` and run order selection."""
    torch.manual_seed(config.seed)

    data_set = DataSet.from_function(
        math.sin,
        instances_number=config.instances_number,
        noise=config.noise,
        seed=config.seed,
    )
    data_set.split_instances(seed=config.seed)

    network = MultilayerPerceptron([data_set.inputs_number, config.minimum_order, data_set.targets_number])
    loss = NormalizedSquaredError(network, data_set)
    trainer = TrainingStrategy(loss, config.training_config())

    selection = ModelSelection(
        trainer,
        network,
        data_set,
        order_selection_type=config.strategy,
        config=config.selection_config(),
        strategy_config=config.strategy_config(),
    )
    return selection.perform_order_selection()


def main(args: Optional[List[str]] = None) -> int:
    """Command line entry point; returns the process exit code."""
    try:
        config = load_config(OrderSelectionRunConfig, args)
    except HiddenOrderError:
        return 1

    logger.section("Order Selection")
    logger.info(f"Strategy: {config.strategy}")
    logger.info(f"Data: noisy sine, {config.instances_number} instances, noise {config.noise}")

    try:
        results = run(config)
    except HiddenOrderError as e:
        logger.error(f"Order selection failed: {e}")
        return 1

    order_selection = results.order_selection
    if order_selection is not None:
        logger.table(build_results_table(results))
        if order_selection.optimal_order is not None:
            logger.metric("optimal_order", order_selection.optimal_order)
            logger.metric("selection_error", order_selection.final_selection_error)

    print(generate_summary_report(results))

    if config.output:
        export_to_json(results, config.output, description=f"noisy sine, strategy {config.strategy}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
