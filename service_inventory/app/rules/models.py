"""
Rule data models for the record filter/sort evaluator.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

Value = Union[str, int, float, bool, date, datetime, None]
Record = Mapping[str, Union[Value, "Record"]]


class FilterOperator(str, Enum):
    """Filter rule operators."""
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "notIn"


NUMERIC_OPERATORS = frozenset({
    FilterOperator.GREATER_THAN,
    FilterOperator.LESS_THAN,
    FilterOperator.BETWEEN,
})

# Operators offered per column type in filter builders
OPERATORS_BY_COLUMN_TYPE: Dict[str, Tuple[FilterOperator, ...]] = {
    "string": (
        FilterOperator.EQUALS,
        FilterOperator.CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
    ),
    "number": (
        FilterOperator.EQUALS,
        FilterOperator.GREATER_THAN,
        FilterOperator.LESS_THAN,
        FilterOperator.BETWEEN,
    ),
    "date": (
        FilterOperator.EQUALS,
        FilterOperator.GREATER_THAN,
        FilterOperator.LESS_THAN,
        FilterOperator.BETWEEN,
    ),
    "boolean": (FilterOperator.EQUALS,),
}
OPERATORS_BY_COLUMN_TYPE["currency"] = OPERATORS_BY_COLUMN_TYPE["number"]
OPERATORS_BY_COLUMN_TYPE["percentage"] = OPERATORS_BY_COLUMN_TYPE["number"]


class SortDirection(str, Enum):
    """Sort directions."""
    ASC = "asc"
    DESC = "desc"


class DatePreset(str, Enum):
    """Relative date windows for the date-range filter."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"


DATE_PRESET_DAYS: Dict[DatePreset, Optional[int]] = {
    DatePreset.TODAY: 0,
    DatePreset.WEEK: 7,
    DatePreset.MONTH: 30,
    DatePreset.QUARTER: 90,
    DatePreset.YEAR: 365,
    DatePreset.CUSTOM: None,
}


@dataclass
class FilterRule:
    """Declarative predicate over one record column."""
    column: str
    operator: FilterOperator
    value: Any = None
    min_value: Any = None
    max_value: Any = None
    case_sensitive: bool = False
    enabled: bool = True


@dataclass
class SortRule:
    """Ordering key; lower priority numbers are more significant."""
    column: str
    direction: SortDirection = SortDirection.ASC
    priority: int = 0


@dataclass
class DateRangeFilter:
    """Implicit AND-ed range filter on a date column."""
    enabled: bool = False
    column: str = ""
    start_date: Optional[Union[date, datetime]] = None
    end_date: Optional[Union[date, datetime]] = None
    preset: Optional[DatePreset] = None

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.column)

    def resolve_bounds(self, now: Optional[datetime] = None) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Return inclusive ``(start, end)`` bounds as naive datetimes.

        A preset other than ``custom`` overrides explicit dates. A date-only
        end bound covers that whole day.
        """
        days = DATE_PRESET_DAYS.get(self.preset) if self.preset else None
        if days is not None:
            now = now or datetime.now()
            start = datetime.combine((now - timedelta(days=days)).date(), time.min)
            return start, now

        start = _as_bound(self.start_date, time.min)
        end = _as_bound(self.end_date, time.max)
        return start, end


def _as_bound(value: Optional[Union[date, datetime]], day_time: time) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(tz=None).replace(tzinfo=None)
        return value
    return datetime.combine(value, day_time)


# ---------------------------------------------------------------------------
# API request/response models
# ---------------------------------------------------------------------------


class FilterRuleModel(BaseModel):
    """Wire format of a filter rule."""
    column: str = Field(..., description="Column key or dotted path")
    operator: FilterOperator = Field(..., description="Filter operator")
    value: Any = Field(None, description="Comparison value")
    min_value: Any = Field(None, description="Lower bound for between")
    max_value: Any = Field(None, description="Upper bound for between")
    case_sensitive: bool = Field(False, description="Compare strings case-sensitively")
    enabled: bool = Field(True, description="Whether the rule participates")

    def to_rule(self) -> FilterRule:
        return FilterRule(
            column=self.column,
            operator=self.operator,
            value=self.value,
            min_value=self.min_value,
            max_value=self.max_value,
            case_sensitive=self.case_sensitive,
            enabled=self.enabled,
        )


class SortRuleModel(BaseModel):
    """Wire format of a sort rule."""
    column: str
    direction: SortDirection = SortDirection.ASC
    priority: int = 0

    def to_rule(self) -> SortRule:
        return SortRule(column=self.column, direction=self.direction, priority=self.priority)


class DateRangeFilterModel(BaseModel):
    """Wire format of the date-range filter."""
    enabled: bool = False
    column: str = ""
    start_date: Optional[Union[date, datetime]] = None
    end_date: Optional[Union[date, datetime]] = None
    preset: Optional[DatePreset] = None

    def to_filter(self) -> DateRangeFilter:
        return DateRangeFilter(
            enabled=self.enabled,
            column=self.column,
            start_date=self.start_date,
            end_date=self.end_date,
            preset=self.preset,
        )


class RuleSetModel(BaseModel):
    """Filters, date range and sort rules applied together."""
    filters: List[FilterRuleModel] = Field(default_factory=list)
    date_range: Optional[DateRangeFilterModel] = None
    sort: List[SortRuleModel] = Field(default_factory=list)

    def filter_rules(self) -> List[FilterRule]:
        return [rule.to_rule() for rule in self.filters]

    def sort_rules(self) -> List[SortRule]:
        return [rule.to_rule() for rule in self.sort]

    def date_range_filter(self) -> Optional[DateRangeFilter]:
        return self.date_range.to_filter() if self.date_range else None


class RecordQueryRequest(RuleSetModel):
    """Request model for filtering and sorting a record set."""
    records: List[Dict[str, Any]] = Field(default_factory=list)


class RecordQueryResponse(BaseModel):
    """Response model for a record query."""
    records: List[Dict[str, Any]]
    total: int
    matched: int


class UniqueValuesRequest(BaseModel):
    """Request model for autocomplete suggestions."""
    records: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    limit: Optional[int] = Field(None, ge=1, le=1000)
