"""Export utilities for order-selection results.

This module saves and summarizes finished searches:
- JSON export of the results with metadata (export_to_json / load_from_json)
- Plain-text summary report (generate_summary_report)
- Rich table of the evaluation history (print_results_table)

Example:
    >>> from hidden_order.selection.export import export_to_json, generate_summary_report
    >>>
    >>> export_to_json(results, "results/order_selection.json")
    >>> print(generate_summary_report(results))
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger
from rich.console import Console
from rich.table import Table

from hidden_order.errors import ValidationError
from hidden_order.selection.results import ModelSelectionResults, OrderSelectionResults

AnyResults = Union[OrderSelectionResults, ModelSelectionResults]


def _order_selection(results: AnyResults) -> Optional[OrderSelectionResults]:
    if isinstance(results, ModelSelectionResults):
        return results.order_selection
    return results


def export_to_json(
    results: AnyResults,
    output_path: Union[str, Path],
    description: Optional[str] = None,
) -> None:
    """Export order-selection results to a JSON file.

    Args:
        results: OrderSelectionResults or ModelSelectionResults to export
        output_path: Path of the JSON file (parent directories are created)
        description: Human-readable description stored in the metadata

    Example:
        >>> export_to_json(results, "results/sine_order.json", description="sine, noise 0.1")
    """
    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    export_dict = {
        "results": results.to_dict(),
        "metadata": {
            "exported_at": datetime.now().isoformat(),
            "results_type": type(results).__name__,
        },
    }
    if description:
        export_dict["metadata"]["description"] = description

    with open(output_path_obj, "w") as f:
        json.dump(export_dict, f, indent=2)

    logger.info(f"Exported order selection results to JSON: {output_path}")


def load_from_json(input_path: Union[str, Path]) -> Dict[str, Any]:
    """Load results exported by export_to_json as a plain dictionary.

    Raises:
        ValidationError: If the file is not an export produced by export_to_json
    """
    with open(input_path, "r") as f:
        data = json.load(f)

    if not isinstance(data, dict) or "results" not in data:
        raise ValidationError(
            problem=f"{input_path} is not an order selection export",
            cause="Top-level 'results' key is missing",
            recovery="Load a file written by export_to_json()",
        )
    return data


def generate_summary_report(
    results: AnyResults,
    output_path: Optional[Union[str, Path]] = None,
) -> str:
    """Generate a human-readable summary of a search.

    Args:
        results: OrderSelectionResults or ModelSelectionResults to summarize
        output_path: Optional path to save the report

    Returns:
        Multi-line report string
    """
    selection = _order_selection(results)

    lines = []
    lines.append("=" * 60)
    lines.append("ORDER SELECTION - SUMMARY REPORT")
    lines.append("=" * 60)
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    if selection is None:
        lines.append("Order selection was not performed.")
    else:
        lines.append(f"Strategy: {selection.strategy_name}")
        lines.append(f"Stopping condition: {selection.write_stopping_condition()}")
        lines.append(f"Iterations: {selection.iterations_number}")
        lines.append(f"Elapsed time: {selection.elapsed_time:.2f}s")
        lines.append(f"Orders evaluated: {len(selection.history)}")
        lines.append("")

        if selection.optimal_order is not None:
            lines.append("Optimum:")
            lines.append(f"  Order: {selection.optimal_order}")
            lines.append(f"  Training error: {selection.final_training_error:.6f}")
            lines.append(f"  Selection error: {selection.final_selection_error:.6f}")
            if selection.minimal_parameters is not None:
                lines.append(f"  Parameters: {len(selection.minimal_parameters)}")
            lines.append("")

        for name, value in selection.extra_fields().items():
            lines.append(f"{name.replace('_', ' ').capitalize()}: {value}")

    lines.append("=" * 60)
    report_text = "\n".join(lines)

    if output_path:
        output_path_obj = Path(output_path)
        output_path_obj.parent.mkdir(parents=True, exist_ok=True)
        output_path_obj.write_text(report_text)
        logger.info(f"Generated summary report: {output_path}")

    return report_text


def build_results_table(results: AnyResults) -> Table:
    """Rich table of the evaluation history, optimum highlighted."""
    selection = _order_selection(results)
    table = Table(title="Order selection history")
    table.add_column("#", justify="right")
    table.add_column("Order", justify="right")
    table.add_column("Training error", justify="right")
    table.add_column("Selection error", justify="right")

    if selection is None:
        return table

    training_errors = selection.training_error_history
    selection_errors = selection.selection_error_history
    for position, order in enumerate(selection.order_history):
        style = "bold green" if order == selection.optimal_order else None
        table.add_row(
            str(position + 1),
            str(order),
            "-" if training_errors is None else f"{training_errors[position]:.6f}",
            "-" if selection_errors is None else f"{selection_errors[position]:.6f}",
            style=style,
        )
    return table


def print_results_table(results: AnyResults, console: Optional[Console] = None) -> None:
    console = console if console is not None else Console()
    console.print(build_results_table(results))
