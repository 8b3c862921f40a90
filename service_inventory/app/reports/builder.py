"""
Custom report builder: filter, group, aggregate, sort.
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from inventory_shared.logging import get_logger
from ..rules.engine import (
    RuleEvaluator, apply_sort, compare_values, is_absent, resolve_path, stringify, to_number,
)
from ..rules.models import RuleSetModel

UNSPECIFIED = "Unspecified"


class AggregationOperation(str, Enum):
    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    DISTINCT = "distinct"


class Aggregation(BaseModel):
    field: str = ""
    operation: AggregationOperation = AggregationOperation.COUNT
    alias: Optional[str] = None

    @property
    def output_name(self) -> str:
        if self.alias:
            return self.alias
        return f"{self.operation.value}_{self.field or 'records'}"


class ReportConfig(RuleSetModel):
    """Rules narrow the records; ``sort`` orders the output rows."""
    name: str = ""
    group_by: List[str] = Field(default_factory=list)
    aggregations: List[Aggregation] = Field(default_factory=list)


class ReportRequest(ReportConfig):
    records: List[Dict[str, Any]] = Field(default_factory=list)


class ReportResult(BaseModel):
    name: str = ""
    columns: List[str]
    rows: List[Dict[str, Any]]
    total_records: int
    matched_records: int


def group_label(value: Any) -> str:
    if is_absent(value):
        return UNSPECIFIED
    text = stringify(value).strip()
    return text or UNSPECIFIED


def aggregate(records: Sequence[Dict[str, Any]], aggregation: Aggregation) -> Any:
    """Compute one aggregation over a group of records."""
    operation = aggregation.operation
    if operation == AggregationOperation.COUNT and not aggregation.field:
        return len(records)

    values = [resolve_path(record, aggregation.field) for record in records]
    present = [value for value in values if not is_absent(value)]

    if operation == AggregationOperation.COUNT:
        return len(present)
    if operation == AggregationOperation.DISTINCT:
        return len({stringify(value) for value in present})

    if operation in (AggregationOperation.MIN, AggregationOperation.MAX):
        if not present:
            return None
        best = present[0]
        for value in present[1:]:
            order = compare_values(value, best)
            if (operation == AggregationOperation.MIN and order < 0) or \
                    (operation == AggregationOperation.MAX and order > 0):
                best = value
        return best

    numbers = [number for number in (to_number(value) for value in present) if not math.isnan(number)]
    if operation == AggregationOperation.SUM:
        return _tidy(sum(numbers))
    return _tidy(sum(numbers) / len(numbers)) if numbers else None


def _tidy(number: float) -> Any:
    return int(number) if float(number).is_integer() else number


def build_rows(records: Sequence[Dict[str, Any]], group_by: Sequence[str],
               aggregations: Sequence[Aggregation]) -> List[Dict[str, Any]]:
    """One output row per group, in first-seen group order."""
    if not group_by:
        return [{aggregation.output_name: aggregate(records, aggregation) for aggregation in aggregations}]

    groups: Dict[Tuple[str, ...], List[Dict[str, Any]]] = {}
    for record in records:
        key = tuple(group_label(resolve_path(record, field)) for field in group_by)
        groups.setdefault(key, []).append(record)

    rows = []
    for key, members in groups.items():
        row: Dict[str, Any] = dict(zip(group_by, key))
        for aggregation in aggregations:
            row[aggregation.output_name] = aggregate(members, aggregation)
        rows.append(row)
    return rows


class ReportBuilder:

    def __init__(self, evaluator: Optional[RuleEvaluator] = None):
        self.evaluator = evaluator or RuleEvaluator()
        self.logger = get_logger("inventory.reports")

    def build(self, records: Sequence[Dict[str, Any]], config: ReportConfig) -> ReportResult:
        matched = self.evaluator.evaluate(
            records,
            filters=config.filter_rules(),
            date_range=config.date_range_filter(),
        )
        aggregations = config.aggregations or [Aggregation()]
        rows = apply_sort(build_rows(matched, config.group_by, aggregations), config.sort_rules())

        self.logger.info(
            "Report built",
            report=config.name or None,
            total=len(records),
            matched=len(matched),
            groups=len(rows),
            group_by=config.group_by,
        )
        return ReportResult(
            name=config.name,
            columns=[*config.group_by, *(aggregation.output_name for aggregation in aggregations)],
            rows=rows,
            total_records=len(records),
            matched_records=len(matched),
        )
