"""
Unit tests for the custom report builder.
"""

import pytest

from inventory_shared.test_helpers import test_data_factory
from service_inventory.app.reports.builder import (
    UNSPECIFIED, Aggregation, AggregationOperation, ReportBuilder, ReportConfig,
    aggregate, build_rows,
)


class TestAggregate:
    """Test cases for single aggregations."""

    @pytest.fixture
    def records(self):
        return [
            {"price": 100, "brand": "Dell"},
            {"price": "250", "brand": "dell"},
            {"price": None, "brand": "HP"},
            {"price": "n/a"},
        ]

    def test_count(self, records):
        """Test counting rows and present values."""
        assert aggregate(records, Aggregation()) == 4
        assert aggregate(records, Aggregation(field="price", operation="count")) == 3

    def test_sum_and_avg_skip_non_numbers(self, records):
        """Test non-numeric values are ignored."""
        assert aggregate(records, Aggregation(field="price", operation="sum")) == 350
        assert aggregate(records, Aggregation(field="price", operation="avg")) == 175

    def test_avg_without_numbers(self):
        """Test an average of nothing is None."""
        assert aggregate([{"price": "free"}], Aggregation(field="price", operation="avg")) is None

    def test_min_max(self, records):
        """Test extremes over present values."""
        numbers = [{"price": 3}, {"price": 11}, {}]

        assert aggregate(numbers, Aggregation(field="price", operation="min")) == 3
        assert aggregate(numbers, Aggregation(field="price", operation="max")) == 11
        assert aggregate([], Aggregation(field="price", operation="max")) is None

    def test_distinct(self, records):
        """Test distinct values by display text."""
        assert aggregate(records, Aggregation(field="brand", operation="distinct")) == 3

    def test_output_name(self):
        """Test generated and aliased column names."""
        assert Aggregation().output_name == "count_records"
        assert Aggregation(field="price", operation=AggregationOperation.SUM).output_name == "sum_price"
        assert Aggregation(field="price", operation="sum", alias="total").output_name == "total"


class TestReportBuilder:
    """Test cases for ReportBuilder."""

    @pytest.fixture
    def builder(self):
        """Create ReportBuilder instance."""
        return ReportBuilder()

    def test_group_and_sort(self, builder):
        """Test grouping by type with sorted output rows."""
        config = ReportConfig(
            name="Spend by type",
            group_by=["type"],
            aggregations=[
                Aggregation(),
                Aggregation(field="price", operation="sum"),
                Aggregation(field="price", operation="avg"),
            ],
            sort=[{"column": "sum_price", "direction": "asc"}],
        )

        result = builder.build(test_data_factory.create_test_hardware(), config)

        assert result.columns == ["type", "count_records", "sum_price", "avg_price"]
        assert result.rows == [
            {"type": "Monitor", "count_records": 1, "sum_price": 450, "avg_price": 450},
            {"type": "Laptop", "count_records": 2, "sum_price": 4300, "avg_price": 2150},
        ]
        assert result.total_records == 3
        assert result.matched_records == 3

    def test_filters_narrow_records(self, builder):
        """Test filters apply before grouping."""
        config = ReportConfig(
            group_by=["owner.dept"],
            filters=[{"column": "status", "operator": "equals", "value": "active"}],
        )

        result = builder.build(test_data_factory.create_test_employees(), config)

        assert result.rows == [
            {"owner.dept": "IT", "count_records": 1},
            {"owner.dept": "HR", "count_records": 1},
        ]
        assert result.matched_records == 2

    def test_missing_group_value(self):
        """Test absent group values fall into one bucket."""
        rows = build_rows([{"site": "Seoul"}, {}, {"site": " "}], ["site"], [Aggregation()])

        assert rows == [
            {"site": "Seoul", "count_records": 1},
            {"site": UNSPECIFIED, "count_records": 2},
        ]

    def test_ungrouped_report(self, builder):
        """Test a single summary row without group_by."""
        config = ReportConfig(aggregations=[Aggregation(field="price", operation="max", alias="top")])

        result = builder.build(test_data_factory.create_test_hardware(), config)

        assert result.rows == [{"top": 2800}]
