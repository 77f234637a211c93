"""Unit tests for order-selection export utilities.

Tests cover:
- JSON export with metadata and loading
- Summary report generation and saving
- Rich results table
"""

import json
import os
import shutil
import tempfile

import pytest
from rich.console import Console

from hidden_order.errors import ValidationError
from hidden_order.selection.export import (
    build_results_table,
    export_to_json,
    generate_summary_report,
    load_from_json,
    print_results_table,
)
from hidden_order.selection.history import EvaluationRecord
from hidden_order.selection.results import (
    GoldenSectionOrderResults,
    ModelSelectionResults,
    OrderSelectionType,
)
from hidden_order.selection.stopping import StoppingCondition


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def results():
    """Golden-section results over three orders."""
    return GoldenSectionOrderResults(
        history=(
            EvaluationRecord(5, 0.3, 0.40, (0.1,)),
            EvaluationRecord(8, 0.2, 0.25, (0.2,)),
            EvaluationRecord(6, 0.1, 0.30, (0.3,)),
        ),
        stopping_condition=StoppingCondition.ALGORITHM_FINISHED,
        optimal_order=8,
        final_training_error=0.2,
        final_selection_error=0.25,
        minimal_parameters=(0.2,),
        iterations_number=3,
        elapsed_time=2.0,
        final_bracket=(6, 8),
    )


class TestJsonExport:
    """Test JSON export and loading."""

    def test_export_creates_file(self, temp_dir, results):
        """Test export writes the results and metadata."""
        path = os.path.join(temp_dir, "nested", "results.json")
        export_to_json(results, path, description="unit test")

        with open(path) as f:
            data = json.load(f)

        assert data["results"]["optimal_order"] == 8
        assert data["results"]["final_bracket"] == [6, 8]
        assert data["metadata"]["description"] == "unit test"
        assert data["metadata"]["results_type"] == "GoldenSectionOrderResults"
        assert "exported_at" in data["metadata"]

    def test_load_round_trip(self, temp_dir, results):
        """Test load_from_json returns the exported dictionary."""
        path = os.path.join(temp_dir, "results.json")
        export_to_json(ModelSelectionResults(OrderSelectionType.GOLDEN_SECTION, results), path)

        data = load_from_json(path)

        assert data["results"]["order_selection_type"] == "golden_section"
        assert data["results"]["order_selection"]["order_history"] == [5, 8, 6]

    def test_load_rejects_foreign_json(self, temp_dir):
        """Test files without a results key are rejected."""
        path = os.path.join(temp_dir, "other.json")
        with open(path, "w") as f:
            json.dump({"architecture": {}}, f)

        with pytest.raises(ValidationError):
            load_from_json(path)


class TestSummaryReport:
    """Test the text summary report."""

    def test_report_contents(self, results):
        """Test the report names strategy, condition and optimum."""
        report = generate_summary_report(results)
        assert "ORDER SELECTION - SUMMARY REPORT" in report
        assert "Strategy: Golden section order" in report
        assert "Stopping condition: Algorithm finished" in report
        assert "Order: 8" in report
        assert "Final bracket: [6, 8]" in report

    def test_report_saved(self, temp_dir, results):
        """Test the report is written when a path is given."""
        path = os.path.join(temp_dir, "report.txt")
        report = generate_summary_report(results, output_path=path)
        with open(path) as f:
            assert f.read() == report

    def test_report_without_order_selection(self):
        """Test the report of a disabled order selection."""
        report = generate_summary_report(ModelSelectionResults(OrderSelectionType.NO_ORDER_SELECTION))
        assert "Order selection was not performed." in report


class TestResultsTable:
    """Test the rich table of the history."""

    def test_table_rows(self, results):
        """Test one row per evaluated order."""
        table = build_results_table(results)
        assert table.row_count == 3
        assert len(table.columns) == 4

    def test_print_table(self, results):
        """Test the table renders the optimum."""
        console = Console(record=True, width=100)
        print_results_table(results, console=console)
        output = console.export_text()
        assert "Order selection history" in output
        assert "0.250000" in output
