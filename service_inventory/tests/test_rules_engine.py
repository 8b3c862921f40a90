"""
Unit tests for the record filter/sort evaluator.
"""

import math
from datetime import date, datetime
from unittest.mock import MagicMock, ANY

import pytest

from inventory_shared.test_helpers import test_data_factory
from service_inventory.app.rules.engine import (
    MISSING, RuleEvaluator, apply_filters, apply_sort, compute_unique_values,
    evaluate, matches_date_range, matches_rule, resolve_path, stringify,
    to_datetime, to_number,
)
from service_inventory.app.rules.models import (
    DatePreset, DateRangeFilter, FilterOperator, FilterRule, RecordQueryRequest,
    SortDirection, SortRule,
)


def ids(records):
    return [record["id"] for record in records]


class TestValueHelpers:
    """Test cases for path resolution and coercion."""

    def test_resolve_dotted_path(self):
        """Test nested mappings are traversed by dotted path."""
        record = {"owner": {"dept": "IT"}}

        assert resolve_path(record, "owner.dept") == "IT"

    def test_resolve_missing_path(self):
        """Test unresolvable paths yield MISSING."""
        record = {"owner": {"dept": "IT"}}

        assert resolve_path(record, "owner.site") is MISSING
        assert resolve_path(record, "owner.dept.code") is MISSING
        assert resolve_path("not a mapping", "owner") is MISSING

    def test_resolve_prefers_literal_key(self):
        """Test a key containing dots wins over traversal."""
        record = {"owner.dept": "literal", "owner": {"dept": "nested"}}

        assert resolve_path(record, "owner.dept") == "literal"

    def test_stringify(self):
        """Test display rendering of values."""
        assert stringify(True) == "true"
        assert stringify(3.0) == "3"
        assert stringify(2.5) == "2.5"
        assert stringify(None) == ""
        assert stringify(date(2024, 5, 2)) == "2024-05-02"

    def test_to_number(self):
        """Test numeric parsing is lenient and never raises."""
        assert to_number("42") == 42.0
        assert to_number(" 1.5 ") == 1.5
        assert math.isnan(to_number("abc"))
        assert math.isnan(to_number("1_000"))
        assert math.isnan(to_number(True))
        assert math.isnan(to_number(None))

    def test_to_number_beyond_float_range(self):
        """Test integers too large for a float saturate to signed infinity."""
        assert to_number(10 ** 400) == math.inf
        assert to_number(-10 ** 400) == -math.inf
        assert to_number(7) == 7.0

    def test_to_datetime(self):
        """Test the supported date spellings."""
        assert to_datetime("2024-05-02") == datetime(2024, 5, 2)
        assert to_datetime("2024/05/02") == datetime(2024, 5, 2)
        assert to_datetime("2024.05.02") == datetime(2024, 5, 2)
        assert to_datetime("20240502") == datetime(2024, 5, 2)
        assert to_datetime("05/02/2024") == datetime(2024, 5, 2)
        assert to_datetime("someday") is None
        assert to_datetime(20240502) is None

    def test_nested_records_of_every_value_kind(self):
        """Test nested mappings holding each scalar kind resolve and compare."""
        record = {
            "asset": {
                "tag": "HW-1",
                "seats": 3,
                "price": 12.5,
                "active": True,
                "bought": date(2024, 1, 2),
                "audited": datetime(2024, 3, 4, 5, 6),
                "notes": None,
            }
        }

        assert resolve_path(record, "asset.bought") == date(2024, 1, 2)
        assert compute_unique_values([record], ["asset.seats", "asset.active", "asset.notes"]) == {
            "asset.seats": [3],
            "asset.active": [True],
            "asset.notes": [],
        }
        rule = FilterRule(column="asset.price", operator=FilterOperator.GREATER_THAN, value=12)
        window = DateRangeFilter(enabled=True, column="asset.audited", start_date=date(2024, 3, 1))
        assert apply_filters([record], [rule], window) == [record]


class TestFilters:
    """Test cases for filter rules."""

    @pytest.fixture
    def employees(self):
        """Create employee records."""
        return test_data_factory.create_test_employees()

    @pytest.fixture
    def hardware(self):
        """Create hardware records."""
        return test_data_factory.create_test_hardware()

    def test_equals_on_dotted_path(self, employees):
        """Test equals resolves nested columns and ignores case."""
        rule = FilterRule(column="owner.dept", operator=FilterOperator.EQUALS, value="it")

        assert ids(apply_filters(employees, [rule])) == [1, 3]

    def test_equals_case_sensitive(self, employees):
        """Test case-sensitive comparison."""
        rule = FilterRule(column="owner.dept", operator=FilterOperator.EQUALS, value="it", case_sensitive=True)

        assert apply_filters(employees, [rule]) == []

    def test_string_operators(self, employees):
        """Test contains, startsWith and endsWith."""
        contains = FilterRule(column="email", operator=FilterOperator.CONTAINS, value="BOB")
        starts = FilterRule(column="name", operator=FilterOperator.STARTS_WITH, value="car")
        ends = FilterRule(column="name", operator=FilterOperator.ENDS_WITH, value="kim")

        assert ids(apply_filters(employees, [contains])) == [2]
        assert ids(apply_filters(employees, [starts])) == [3]
        assert ids(apply_filters(employees, [ends])) == [1]

    def test_in_and_not_in(self, hardware):
        """Test comma separated token lists."""
        in_rule = FilterRule(column="type", operator=FilterOperator.IN, value="laptop , Monitor")
        not_in_rule = FilterRule(column="type", operator=FilterOperator.NOT_IN, value="Laptop")
        list_rule = FilterRule(column="manufacturer", operator=FilterOperator.IN, value=["dell", "apple"])

        assert ids(apply_filters(hardware, [in_rule])) == ["hw-1", "hw-2", "hw-3"]
        assert ids(apply_filters(hardware, [not_in_rule])) == ["hw-2"]
        assert ids(apply_filters(hardware, [list_rule])) == ["hw-2", "hw-3"]

    def test_between_inclusive(self, hardware):
        """Test between accepts both bounds."""
        rule = FilterRule(column="price", operator=FilterOperator.BETWEEN, min_value=450, max_value="1500")

        assert ids(apply_filters(hardware, [rule])) == ["hw-1", "hw-2"]

    def test_between_missing_bound_accepts_all(self, hardware):
        """Test between with one bound absent accepts every record."""
        rule = FilterRule(column="price", operator=FilterOperator.BETWEEN, min_value=1000)

        assert len(apply_filters(hardware, [rule])) == 3

    def test_numeric_comparisons(self, hardware):
        """Test greaterThan and lessThan."""
        greater = FilterRule(column="price", operator=FilterOperator.GREATER_THAN, value="1000")
        less = FilterRule(column="price", operator=FilterOperator.LESS_THAN, value=1000)

        assert ids(apply_filters(hardware, [greater])) == ["hw-1", "hw-3"]
        assert ids(apply_filters(hardware, [less])) == ["hw-2"]

    def test_non_numeric_comparison_rejects(self, hardware):
        """Test non-numeric input never matches and never raises."""
        rule = FilterRule(column="price", operator=FilterOperator.GREATER_THAN, value="cheap")
        text_rule = FilterRule(column="model", operator=FilterOperator.LESS_THAN, value=10)

        assert apply_filters(hardware, [rule]) == []
        assert apply_filters(hardware, [text_rule]) == []

    def test_missing_column_rejects(self, employees):
        """Test a path that does not resolve rejects the record."""
        rule = FilterRule(column="owner.floor", operator=FilterOperator.NOT_IN, value="3")

        assert matches_rule(employees[0], rule) is False

    def test_unknown_operator_accepts(self, employees):
        """Test an operator outside the known set accepts every record without raising."""
        rule = FilterRule(column="department", operator="resembles", value="x")
        absent = FilterRule(column="owner.floor", operator="resembles", value="x")

        assert apply_filters(employees, [rule]) == employees
        assert matches_rule(employees[0], absent) is True

    def test_integer_beyond_float_range(self):
        """Test very large integers compare without raising."""
        records = [{"id": 1, "n": 10 ** 400}, {"id": 2, "n": -10 ** 400}, {"id": 3, "n": 5}]
        rule = FilterRule(column="n", operator=FilterOperator.GREATER_THAN, value=1)
        window = FilterRule(column="n", operator=FilterOperator.BETWEEN, min_value=0, max_value=10)

        assert ids(apply_filters(records, [rule])) == [1, 3]
        assert ids(apply_filters(records, [window])) == [3]
        assert ids(apply_sort(records, [SortRule(column="n")])) == [2, 3, 1]

    def test_rules_are_anded(self, employees):
        """Test all rules must accept."""
        rules = [
            FilterRule(column="department", operator=FilterOperator.EQUALS, value="Engineering"),
            FilterRule(column="status", operator=FilterOperator.EQUALS, value="active"),
        ]

        assert ids(apply_filters(employees, rules)) == [1]
        assert ids(apply_filters(employees, list(reversed(rules)))) == [1]

    def test_disabled_rule_ignored(self, employees):
        """Test disabled rules do not participate."""
        rule = FilterRule(column="status", operator=FilterOperator.EQUALS, value="inactive", enabled=False)

        assert len(apply_filters(employees, [rule])) == 3

    def test_input_not_mutated(self, employees):
        """Test filtering returns a new list."""
        original = list(employees)
        rule = FilterRule(column="status", operator=FilterOperator.EQUALS, value="active")

        result = apply_filters(employees, [rule])

        assert result is not employees
        assert employees == original


class TestDateRange:
    """Test cases for the date-range filter."""

    @pytest.fixture
    def hardware(self):
        """Create hardware records."""
        return test_data_factory.create_test_hardware()

    def test_range_with_both_bounds(self, hardware):
        """Test start and end bounds are inclusive."""
        date_range = DateRangeFilter(
            enabled=True, column="purchase_date",
            start_date=date(2024, 1, 1), end_date=date(2024, 2, 20),
        )

        assert ids(apply_filters(hardware, [], date_range)) == ["hw-3"]

    def test_end_date_covers_whole_day(self):
        """Test a date-only end bound includes times on that day."""
        date_range = DateRangeFilter(enabled=True, column="created", end_date=date(2024, 2, 20))

        assert matches_date_range({"created": "2024-02-20T15:30:00"}, date_range)
        assert not matches_date_range({"created": "2024-02-21T00:00:00"}, date_range)

    def test_open_bound(self, hardware):
        """Test an unset bound imposes no constraint."""
        date_range = DateRangeFilter(enabled=True, column="purchase_date", start_date=date(2024, 1, 1))

        assert ids(apply_filters(hardware, [], date_range)) == ["hw-2", "hw-3"]

    def test_unparsable_date_excluded(self):
        """Test records without a parsable date are dropped."""
        date_range = DateRangeFilter(enabled=True, column="created", start_date=date(2020, 1, 1))

        assert not matches_date_range({"created": "soon"}, date_range)
        assert not matches_date_range({}, date_range)

    def test_disabled_range(self, hardware):
        """Test a disabled range accepts everything."""
        date_range = DateRangeFilter(enabled=False, column="purchase_date", start_date=date(2030, 1, 1))

        assert len(apply_filters(hardware, [], date_range)) == 3

    def test_preset_window(self):
        """Test a preset overrides explicit dates."""
        now = datetime(2024, 5, 5, 12, 0)
        date_range = DateRangeFilter(
            enabled=True, column="created", preset=DatePreset.WEEK,
            start_date=date(2000, 1, 1),
        )

        assert matches_date_range({"created": "2024-04-28"}, date_range, now)
        assert not matches_date_range({"created": "2024-04-27"}, date_range, now)
        assert not matches_date_range({"created": "2000-06-01"}, date_range, now)


class TestSort:
    """Test cases for sort rules."""

    @pytest.fixture
    def hardware(self):
        """Create hardware records."""
        return test_data_factory.create_test_hardware()

    def test_numeric_descending(self, hardware):
        """Test numbers compare numerically."""
        rules = [SortRule(column="price", direction=SortDirection.DESC)]

        assert ids(apply_sort(hardware, rules)) == ["hw-3", "hw-1", "hw-2"]

    def test_sort_is_stable(self, hardware):
        """Test equal keys keep their original order."""
        rules = [SortRule(column="type")]

        assert ids(apply_sort(hardware, rules)) == ["hw-1", "hw-3", "hw-2"]

    def test_priority_order(self, hardware):
        """Test lower priority numbers are more significant."""
        rules = [
            SortRule(column="price", direction=SortDirection.DESC, priority=2),
            SortRule(column="type", priority=1),
        ]

        assert ids(apply_sort(hardware, rules)) == ["hw-3", "hw-1", "hw-2"]

    def test_strings_case_insensitive(self):
        """Test string keys ignore case."""
        records = [{"id": 1, "name": "bravo"}, {"id": 2, "name": "Alpha"}, {"id": 3, "name": "charlie"}]

        assert ids(apply_sort(records, [SortRule(column="name")])) == [2, 1, 3]

    def test_unknown_direction_sorts_ascending(self, hardware):
        """Test a direction other than desc sorts ascending without raising."""
        rules = [SortRule(column="price", direction="sideways")]
        spelled = [SortRule(column="price", direction="DESC")]

        assert ids(apply_sort(hardware, rules)) == ["hw-2", "hw-1", "hw-3"]
        assert ids(apply_sort(hardware, spelled)) == ["hw-3", "hw-1", "hw-2"]

    @pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
    def test_absent_values_last(self, direction):
        """Test absent values sort last in either direction."""
        records = [
            {"id": 1, "price": None},
            {"id": 2, "price": 20},
            {"id": 3},
            {"id": 4, "price": 10},
        ]

        result = ids(apply_sort(records, [SortRule(column="price", direction=direction)]))

        assert result[2:] == [1, 3]
        assert set(result[:2]) == {2, 4}

    def test_no_rules_returns_copy(self, hardware):
        """Test sorting without rules keeps order."""
        result = apply_sort(hardware, [])

        assert result == hardware
        assert result is not hardware

    def test_evaluate_filters_then_sorts(self, hardware):
        """Test the combined pipeline."""
        filters = [FilterRule(column="type", operator=FilterOperator.EQUALS, value="laptop")]
        sort = [SortRule(column="purchase_date", direction=SortDirection.DESC)]

        assert ids(evaluate(hardware, filters, None, sort)) == ["hw-3", "hw-1"]


class TestUniqueValues:
    """Test cases for autocomplete suggestions."""

    def test_first_seen_order(self):
        """Test distinct values keep first-seen order."""
        records = test_data_factory.create_test_employees()

        values = compute_unique_values(records, ["department", "owner.dept"])

        assert values == {"department": ["Engineering", "Finance"], "owner.dept": ["IT", "HR"]}

    def test_skips_null_and_limits(self):
        """Test nulls are skipped and the limit applies per column."""
        records = [{"tag": None}, {"tag": "a"}, {}, {"tag": "b"}, {"tag": "c"}]

        assert compute_unique_values(records, ["tag"], limit=2) == {"tag": ["a", "b"]}

    def test_booleans_distinct_from_numbers(self):
        """Test True and 1 are separate suggestions."""
        records = [{"flag": 1}, {"flag": True}, {"flag": 1}]

        assert compute_unique_values(records, ["flag"]) == {"flag": [1, True]}


class TestRuleEvaluator:
    """Test cases for RuleEvaluator."""

    def test_evaluate_records_metrics(self):
        """Test evaluation is reported to metrics."""
        metrics = MagicMock()
        evaluator = RuleEvaluator(metrics=metrics)
        records = test_data_factory.create_test_hardware()

        result = evaluator.evaluate(records, sort=[SortRule(column="price")])

        assert ids(result) == ["hw-2", "hw-1", "hw-3"]
        metrics.record_evaluation.assert_called_once_with("evaluate", 3, ANY)

    def test_unique_values_default_limit(self):
        """Test the configured limit is used when none is given."""
        evaluator = RuleEvaluator(unique_values_limit=1)
        records = test_data_factory.create_test_hardware()

        assert evaluator.unique_values(records, ["type"]) == {"type": ["Laptop"]}

    def test_query_request_conversion(self):
        """Test wire models convert to evaluator rules."""
        request = RecordQueryRequest.model_validate({
            "records": [],
            "filters": [{"column": "price", "operator": "between", "min_value": 1, "max_value": 2}],
            "sort": [{"column": "price", "direction": "desc", "priority": 1}],
            "date_range": {"enabled": True, "column": "purchase_date", "start_date": "2024-01-01"},
        })

        assert request.filter_rules()[0].operator == FilterOperator.BETWEEN
        assert request.sort_rules()[0].direction == SortDirection.DESC
        assert request.date_range_filter().start_date == date(2024, 1, 1)


PEOPLE = [
    {"name": "Alice", "age": 30, "joined": "2023-06-01"},
    {"name": "bob", "age": 25, "joined": "2024-02-10"},
    {"name": "Carol", "age": 25, "joined": "not a date"},
    {"name": "Dave", "age": "unknown", "joined": "2024-11-30"},
    {"name": "Eve", "joined": "2025-01-15"},
]

RULE_SETS = [
    [FilterRule(column="age", operator=FilterOperator.GREATER_THAN, value=24)],
    [FilterRule(column="name", operator=FilterOperator.CONTAINS, value="a")],
    [FilterRule(column="age", operator=FilterOperator.BETWEEN, min_value=26, max_value=31)],
    [
        FilterRule(column="name", operator=FilterOperator.NOT_IN, value="bob, Eve"),
        FilterRule(column="age", operator=FilterOperator.LESS_THAN, value=30),
    ],
    [
        FilterRule(column="name", operator=FilterOperator.ENDS_WITH, value="E"),
        FilterRule(column="age", operator=FilterOperator.EQUALS, value="30", case_sensitive=True),
    ],
]

DATE_RANGES = [
    None,
    DateRangeFilter(enabled=True, column="joined", start_date=date(2024, 1, 1), end_date=date(2024, 12, 31)),
]


class TestFilterProperties:
    """Laws the filter and sort steps hold for any records and rules."""

    @pytest.mark.parametrize("date_range", DATE_RANGES)
    @pytest.mark.parametrize("rules", RULE_SETS)
    def test_filtering_is_idempotent(self, rules, date_range):
        """Test filtering a filtered set changes nothing."""
        once = apply_filters(PEOPLE, rules, date_range)

        assert apply_filters(once, rules, date_range) == once

    @pytest.mark.parametrize("date_range", DATE_RANGES)
    @pytest.mark.parametrize("rules", RULE_SETS)
    def test_filtering_keeps_input_order(self, rules, date_range):
        """Test retained records keep their relative input order."""
        kept = apply_filters(PEOPLE, rules, date_range)
        positions = [PEOPLE.index(record) for record in kept]

        assert positions == sorted(positions)

    @pytest.mark.parametrize("first", [rules[0] for rules in RULE_SETS])
    @pytest.mark.parametrize("second", [rules[-1] for rules in RULE_SETS])
    def test_combined_rules_equal_sequential(self, first, second):
        """Test applying two rules together equals applying them one after the other."""
        combined = apply_filters(PEOPLE, [first, second])
        sequential = apply_filters(apply_filters(PEOPLE, [first]), [second])

        assert combined == sequential

    @pytest.mark.parametrize("column", ["age", "name", "joined"])
    def test_sort_keeps_ties_in_order(self, column):
        """Test records with equal keys keep their pre-sort order."""
        records = [
            dict(person, copy=copy)
            for copy in (0, 1)
            for person in PEOPLE
            if not isinstance(person.get("age"), str)
        ]

        result = apply_sort(records, [SortRule(column=column)])

        for key in {record.get(column) for record in records}:
            before = [record for record in records if record.get(column) == key]
            after = [record for record in result if record.get(column) == key]
            assert len(after) == len(before)
            assert all(a is b for a, b in zip(before, after))

    def test_case_sensitivity_toggle(self):
        """Test case-insensitive equals matches and case-sensitive equals does not."""
        records = [{"col": "x"}]
        loose = FilterRule(column="col", operator=FilterOperator.EQUALS, value="X")
        strict = FilterRule(column="col", operator=FilterOperator.EQUALS, value="X", case_sensitive=True)

        assert apply_filters(records, [loose]) == records
        assert apply_filters(records, [strict]) == []

    def test_greater_than_on_text_excludes(self):
        """Test a numeric comparison against text never raises and never matches."""
        rule = FilterRule(column="age", operator=FilterOperator.GREATER_THAN, value=1)

        assert [person["name"] for person in apply_filters(PEOPLE[3:4], [rule])] == []


class TestPeopleScenarios:
    """Worked examples over a small set of people."""

    @pytest.fixture
    def people(self):
        return [
            {"name": "Alice", "age": 30},
            {"name": "bob", "age": 25},
            {"name": "Carol", "age": 25},
        ]

    def names(self, records):
        return [record["name"] for record in records]

    def test_greater_than_then_sort(self, people):
        """Test everyone passes age > 24 and ties keep their order when sorted."""
        kept = apply_filters(people, [FilterRule(column="age", operator=FilterOperator.GREATER_THAN, value=24)])

        assert self.names(kept) == ["Alice", "bob", "Carol"]
        ordered = apply_sort(kept, [SortRule(column="age", direction=SortDirection.ASC, priority=1)])
        assert self.names(ordered) == ["bob", "Carol", "Alice"]

    def test_contains_ignores_case(self, people):
        """Test contains 'a' keeps Alice and Carol only."""
        rule = FilterRule(column="name", operator=FilterOperator.CONTAINS, value="a", case_sensitive=False)

        assert self.names(apply_filters(people, [rule])) == ["Alice", "Carol"]

    def test_between_bounds(self, people):
        """Test between 26 and 31 keeps only Alice."""
        rule = FilterRule(column="age", operator=FilterOperator.BETWEEN, min_value=26, max_value=31)

        assert self.names(apply_filters(people, [rule])) == ["Alice"]

    def test_unparsable_date_excluded_from_year(self):
        """Test a record whose date cannot be parsed falls outside a year window."""
        records = [{"name": "Alice", "joined": "2024-05-01"}, {"name": "bob", "joined": "whenever"}]
        window = DateRangeFilter(
            enabled=True, column="joined", start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
        )

        assert self.names(apply_filters(records, [], window)) == ["Alice"]
