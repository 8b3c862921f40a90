"""
Record filter/sort evaluator shared by export, import preview and reports.

The module-level functions are pure and never raise for malformed record
data. ``RuleEvaluator`` wraps them with logging and metrics for the service.
"""

import functools
import math
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from inventory_shared.logging import get_logger
from .models import (
    DateRangeFilter, FilterOperator, FilterRule, NUMERIC_OPERATORS, Record,
    SortDirection, SortRule, Value,
)


class _Missing:
    """Marker for a dotted path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

DEFAULT_UNIQUE_VALUES_LIMIT = 100

_DATE_FORMATS = ("%Y/%m/%d", "%Y.%m.%d", "%Y%m%d", "%m/%d/%Y")


def resolve_path(record: Record, path: str) -> Any:
    """Resolve ``path`` against ``record``, returning ``MISSING`` if absent.

    A key containing dots is tried verbatim before the path is traversed.
    """
    if not path or not isinstance(record, Mapping):
        return MISSING

    if path in record:
        return record[path]

    current: Any = record
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return MISSING
    return current


def stringify(value: Value) -> str:
    """Render a value the way the filter UI displays it."""
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def to_number(value: Value) -> float:
    """Parse a value as a number; anything non-numeric becomes NaN."""
    if value is None or value is MISSING or isinstance(value, bool):
        return math.nan
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    if isinstance(value, (date, datetime)):
        return _naive(value).replace(tzinfo=timezone.utc).timestamp()
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def to_datetime(value: Value) -> Optional[datetime]:
    """Parse a record value as a naive datetime, or ``None`` if unparsable."""
    if isinstance(value, (date, datetime)):
        return _naive(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _naive(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _naive(value) -> datetime:
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        return value.astimezone(tz=None).replace(tzinfo=None)
    return value


def _split_tokens(value: Any) -> List[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return [stringify(item).strip() for item in value]
    return [token.strip() for token in stringify(value).split(",")]


def _operator(value: Any) -> Optional[FilterOperator]:
    try:
        return FilterOperator(value)
    except ValueError:
        return None


def _is_descending(rule: SortRule) -> bool:
    return str(getattr(rule.direction, "value", rule.direction)).lower() == SortDirection.DESC.value


def matches_rule(record: Record, rule: FilterRule) -> bool:
    """Return True if ``record`` satisfies ``rule``.

    An unknown operator accepts every record; otherwise a path that does
    not resolve rejects it.
    """
    operator = _operator(rule.operator)
    if operator is None:
        return True

    raw = resolve_path(record, rule.column)
    if raw is MISSING:
        return False

    if operator in NUMERIC_OPERATORS:
        number = to_number(raw)
        if operator == FilterOperator.GREATER_THAN:
            return number > to_number(rule.value)
        if operator == FilterOperator.LESS_THAN:
            return number < to_number(rule.value)
        if rule.min_value is None or rule.max_value is None:
            return True
        return to_number(rule.min_value) <= number <= to_number(rule.max_value)

    actual = stringify(raw)
    if operator in (FilterOperator.IN, FilterOperator.NOT_IN):
        tokens = _split_tokens(rule.value)
        if not rule.case_sensitive:
            actual = actual.lower()
            tokens = [token.lower() for token in tokens]
        found = actual in tokens
        return found if operator == FilterOperator.IN else not found

    expected = stringify(rule.value)
    if not rule.case_sensitive:
        actual = actual.lower()
        expected = expected.lower()

    if operator == FilterOperator.EQUALS:
        return actual == expected
    if operator == FilterOperator.CONTAINS:
        return expected in actual
    if operator == FilterOperator.STARTS_WITH:
        return actual.startswith(expected)
    if operator == FilterOperator.ENDS_WITH:
        return actual.endswith(expected)
    return True


def matches_date_range(record: Record, date_range: DateRangeFilter,
                       now: Optional[datetime] = None) -> bool:
    """Return True if the record's date column falls inside the range."""
    if not date_range.is_active:
        return True

    value = to_datetime(resolve_path(record, date_range.column))
    if value is None:
        return False

    start, end = date_range.resolve_bounds(now)
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def apply_filters(records: Iterable[Record],
                  filter_rules: Sequence[FilterRule] = (),
                  date_range: Optional[DateRangeFilter] = None,
                  now: Optional[datetime] = None) -> List[Record]:
    """Return the records accepted by every enabled rule and the date range."""
    active = [rule for rule in filter_rules if rule.enabled]
    result = []
    for record in records:
        if not all(matches_rule(record, rule) for rule in active):
            continue
        if date_range is not None and not matches_date_range(record, date_range, now):
            continue
        result.append(record)
    return result


def is_absent(value: Any) -> bool:
    if value is None or value is MISSING:
        return True
    return isinstance(value, float) and math.isnan(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_values(left: Value, right: Value) -> int:
    """Three-way comparison of two present values."""
    if _is_number(left) and _is_number(right):
        a, b = left, right
    elif isinstance(left, (date, datetime)) and isinstance(right, (date, datetime)):
        a, b = _naive(left), _naive(right)
    else:
        a, b = stringify(left).lower(), stringify(right).lower()
    return (a > b) - (a < b)


def apply_sort(records: Iterable[Record], sort_rules: Sequence[SortRule] = ()) -> List[Record]:
    """Return the records ordered by the sort rules.

    Rules are applied by ascending priority; absent values sort last for
    either direction. The sort is stable.
    """
    items = list(records)
    if not sort_rules:
        return items

    ordered = sorted(sort_rules, key=lambda rule: rule.priority)

    def compare(left: Record, right: Record) -> int:
        for rule in ordered:
            a = resolve_path(left, rule.column)
            b = resolve_path(right, rule.column)
            a_absent, b_absent = is_absent(a), is_absent(b)
            if a_absent or b_absent:
                if a_absent and b_absent:
                    continue
                return 1 if a_absent else -1

            outcome = compare_values(a, b)
            if outcome:
                return -outcome if _is_descending(rule) else outcome
        return 0

    return sorted(items, key=functools.cmp_to_key(compare))


def compute_unique_values(records: Iterable[Record], columns: Iterable[str],
                          limit: int = DEFAULT_UNIQUE_VALUES_LIMIT) -> Dict[str, List[Value]]:
    """Collect up to ``limit`` distinct non-null values per column."""
    columns = list(columns)
    seen: Dict[str, set] = {column: set() for column in columns}
    values: Dict[str, List[Value]] = {column: [] for column in columns}

    for record in records:
        for column in columns:
            if len(values[column]) >= limit:
                continue
            value = resolve_path(record, column)
            if value is None or value is MISSING or isinstance(value, (Mapping, list)):
                continue
            # keep True distinct from 1
            marker = (isinstance(value, bool), value)
            if marker in seen[column]:
                continue
            seen[column].add(marker)
            values[column].append(value)
    return values


def evaluate(records: Iterable[Record],
             filters: Sequence[FilterRule] = (),
             date_range: Optional[DateRangeFilter] = None,
             sort: Sequence[SortRule] = (),
             now: Optional[datetime] = None) -> List[Record]:
    """Filter then sort."""
    return apply_sort(apply_filters(records, filters, date_range, now), sort)


class RuleEvaluator:
    """Observable front end to the evaluator functions."""

    def __init__(self, metrics=None, unique_values_limit: int = DEFAULT_UNIQUE_VALUES_LIMIT):
        self.logger = get_logger("inventory.rules")
        self.metrics = metrics
        self.unique_values_limit = unique_values_limit

    def evaluate(self, records: Sequence[Record],
                 filters: Sequence[FilterRule] = (),
                 date_range: Optional[DateRangeFilter] = None,
                 sort: Sequence[SortRule] = ()) -> List[Record]:
        start_time = time.time()
        result = evaluate(records, filters, date_range, sort)
        duration = time.time() - start_time

        if self.metrics:
            self.metrics.record_evaluation("evaluate", len(records), duration)

        self.logger.debug(
            "Records evaluated",
            total=len(records),
            matched=len(result),
            filters=len([rule for rule in filters if rule.enabled]),
            sort_rules=len(sort),
            date_range=bool(date_range and date_range.is_active),
            duration_ms=round(duration * 1000, 2),
        )
        return result

    def unique_values(self, records: Sequence[Record], columns: Sequence[str],
                      limit: Optional[int] = None) -> Dict[str, List[Any]]:
        start_time = time.time()
        result = compute_unique_values(records, columns, limit or self.unique_values_limit)

        if self.metrics:
            self.metrics.record_evaluation("unique_values", len(records), time.time() - start_time)
        return result
