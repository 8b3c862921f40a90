"""
Export flow: validate the request, narrow and order the records with the
rule evaluator, project the visible columns and hand the rows to a writer.
"""

import math
import re
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from inventory_shared.errors import ExportError, ValidationError
from inventory_shared.logging import get_logger
from ..rules.engine import MISSING, RuleEvaluator, resolve_path, stringify, to_datetime, to_number
from ..rules.models import OPERATORS_BY_COLUMN_TYPE
from .models import (
    ExportArtifact, ExportColumn, ExportColumnType, ExportFormat, ExportRequest,
    FILE_EXTENSIONS, MEDIA_TYPES,
)
from .presets import PRESETS
from .writers import PAGE_SIZES, write_csv, write_excel, write_json, write_pdf

CSV_DELIMITERS = (",", ";", "\t", "|")
CSV_QUOTE_CHARS = ('"', "'")
PDF_ORIENTATIONS = ("portrait", "landscape")
CURRENCY_SYMBOL = "₩"
TRUE_TOKENS = ("true", "1", "yes", "y")

_SHEET_NAME_FORBIDDEN = re.compile(r"[\[\]:*?/\\]")
_FILENAME_UNSAFE = re.compile(r"[^\w\-.]+")

Issue = Dict[str, str]


def format_value(value: Any, column_type: ExportColumnType = ExportColumnType.STRING) -> str:
    """Human-readable cell text for CSV, PDF and Excel text columns."""
    if value is None or value is MISSING:
        return ""

    if column_type == ExportColumnType.DATE:
        parsed = to_datetime(value)
        return parsed.date().isoformat() if parsed else stringify(value)

    if column_type == ExportColumnType.BOOLEAN:
        return "Yes" if stringify(value).strip().lower() in TRUE_TOKENS else "No"

    if column_type in (ExportColumnType.NUMBER, ExportColumnType.CURRENCY, ExportColumnType.PERCENTAGE):
        number = to_number(value)
        if math.isnan(number) or math.isinf(number):
            return stringify(value)
        if column_type == ExportColumnType.PERCENTAGE:
            return f"{number * 100:.2f}%"
        if column_type == ExportColumnType.CURRENCY:
            sign = "-" if number < 0 else ""
            return f"{sign}{CURRENCY_SYMBOL}{round(abs(number)):,}"
        if number.is_integer():
            return f"{int(number):,}"
        return f"{number:,.3f}".rstrip("0").rstrip(".")

    return stringify(value)


def excel_value(value: Any, column_type: ExportColumnType = ExportColumnType.STRING) -> Any:
    """Plain numbers stay numeric in workbooks; everything else is formatted."""
    if column_type == ExportColumnType.NUMBER:
        number = to_number(value)
        if not (math.isnan(number) or math.isinf(number)):
            return int(number) if number.is_integer() else number
    return format_value(value, column_type)


def json_value(value: Any) -> Any:
    if value is MISSING:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


def generate_export_filename(data_type: str, export_format: ExportFormat,
                             prefix: Optional[str] = None, suffix: Optional[str] = None,
                             today: Optional[date] = None) -> str:
    """``[prefix_]data_type[_suffix]_YYYY-MM-DD.ext``"""
    today = today or date.today()
    parts = [prefix, data_type or "data", suffix, today.isoformat()]
    stem = "_".join(_FILENAME_UNSAFE.sub("-", part.strip()) for part in parts if part and part.strip())
    return f"{stem}.{FILE_EXTENSIONS[ExportFormat(export_format)]}"


def check_export_request(request: ExportRequest) -> Tuple[List[Issue], List[Issue]]:
    """Return ``(errors, warnings)`` for an export request."""
    errors: List[Issue] = []
    warnings: List[Issue] = []

    if not request.columns:
        errors.append(_issue("columns", "MISSING_COLUMNS", "Select at least one column to export."))
    elif all(column.hidden for column in request.columns):
        errors.append(_issue("columns", "MISSING_COLUMNS", "All selected columns are hidden."))

    for index, column in enumerate(request.columns):
        if not column.key.strip():
            errors.append(_issue(f"columns[{index}].key", "MISSING_COLUMN_KEY", "Column key is required."))
        elif not column.label:
            warnings.append(_issue(f"columns[{index}].label", "MISSING_COLUMN_LABEL",
                                   f"Column '{column.key}' has no label; the key is used as header."))

    column_types = {column.key: column.type.value for column in request.columns}
    for index, rule in enumerate(request.filters):
        if not rule.column.strip():
            errors.append(_issue(f"filters[{index}].column", "MISSING_FILTER_COLUMN",
                                 "Filter column is required."))
        elif rule.value in (None, "") and rule.min_value is None and rule.max_value is None:
            warnings.append(_issue(f"filters[{index}].value", "MISSING_FILTER_VALUE",
                                   f"Filter on '{rule.column}' has no value."))
        column_type = column_types.get(rule.column)
        offered = OPERATORS_BY_COLUMN_TYPE.get(column_type) if column_type else None
        if offered and rule.operator not in offered:
            warnings.append(_issue(f"filters[{index}].operator", "UNSUPPORTED_OPERATOR",
                                   f"Operator '{rule.operator.value}' is not offered for "
                                   f"{column_type} column '{rule.column}'."))

    if request.format == ExportFormat.EXCEL:
        excel = request.excel
        if not excel.sheet_name.strip() or _SHEET_NAME_FORBIDDEN.search(excel.sheet_name):
            errors.append(_issue("excel.sheet_name", "INVALID_SHEET_NAME",
                                 "Sheet name may not be empty or contain [ ] : * ? / \\."))
        if excel.header_style is None and excel.style_preset not in PRESETS:
            errors.append(_issue("excel.style_preset", "INVALID_STYLE_PRESET",
                                 f"Style preset must be one of: {', '.join(PRESETS)}."))
    elif request.format == ExportFormat.CSV:
        if request.csv.delimiter not in CSV_DELIMITERS:
            errors.append(_issue("csv.delimiter", "INVALID_DELIMITER",
                                 "Delimiter must be a comma, semicolon, tab or pipe."))
        if request.csv.quote_char not in CSV_QUOTE_CHARS:
            errors.append(_issue("csv.quote_char", "INVALID_QUOTE_CHAR",
                                 "Quote character must be a double or single quote."))
    elif request.format == ExportFormat.PDF:
        if request.pdf.page_size.lower() not in PAGE_SIZES:
            errors.append(_issue("pdf.page_size", "INVALID_PAGE_SIZE",
                                 f"Page size must be one of: {', '.join(PAGE_SIZES)}."))
        if request.pdf.orientation not in PDF_ORIENTATIONS:
            errors.append(_issue("pdf.orientation", "INVALID_ORIENTATION",
                                 "Orientation must be portrait or landscape."))

    return errors, warnings


def validate_export_request(request: ExportRequest) -> List[Issue]:
    """Raise ``ValidationError`` on blocking problems, else return warnings."""
    errors, warnings = check_export_request(request)
    if errors:
        raise ValidationError(
            "Export request is invalid",
            field_errors={error["field"]: error["message"] for error in errors},
            details={"errors": errors},
        )
    return warnings


def _issue(field: str, code: str, message: str) -> Issue:
    return {"field": field, "code": code, "message": message}


class ExportService:
    """Turns a record list and an export request into a file."""

    def __init__(self, evaluator: Optional[RuleEvaluator] = None, metrics=None,
                 clock: Callable[[], datetime] = datetime.now):
        self.evaluator = evaluator or RuleEvaluator(metrics=metrics)
        self.metrics = metrics
        self.clock = clock
        self.logger = get_logger("inventory.exports")

    def export(self, records: Sequence[Dict[str, Any]], request: ExportRequest) -> ExportArtifact:
        warnings = validate_export_request(request)
        for warning in warnings:
            self.logger.info("Export request warning", **warning)

        start_time = time.time()
        selected = self.evaluator.evaluate(
            records,
            filters=request.filter_rules(),
            date_range=request.date_range_filter(),
            sort=request.sort_rules(),
        )
        columns = [column for column in request.columns if not column.hidden]
        exported_at = self.clock()

        try:
            content = self._render(request, columns, selected, exported_at)
        except (ValueError, TypeError, LookupError) as e:
            if self.metrics:
                self.metrics.record_export(request.format.value, "error")
            self.logger.error("Export failed", format=request.format.value,
                              data_type=request.data_type, error=str(e))
            raise ExportError(f"Export failed: {e}", details={"format": request.format.value}) from e

        artifact = ExportArtifact(
            filename=generate_export_filename(
                request.data_type, request.format,
                request.filename_prefix, request.filename_suffix, exported_at.date(),
            ),
            media_type=MEDIA_TYPES[request.format],
            content=content,
            row_count=len(selected),
        )

        if self.metrics:
            self.metrics.record_export(request.format.value, "success")
        self.logger.info(
            "Export generated",
            format=request.format.value,
            data_type=request.data_type,
            total=len(records),
            exported=artifact.row_count,
            columns=len(columns),
            size_bytes=len(content),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return artifact

    def _render(self, request: ExportRequest, columns: List[ExportColumn],
                records: List[Dict[str, Any]], exported_at: datetime) -> bytes:
        if request.format == ExportFormat.JSON:
            projected = [
                {column.key: json_value(resolve_path(record, column.key)) for column in columns}
                for record in records
            ]
            return write_json(columns, projected, request.json_config, request.data_type, exported_at)

        if request.format == ExportFormat.EXCEL:
            rows = project_rows(records, columns, excel_value)
            return write_excel(columns, rows, request.excel)

        rows = project_rows(records, columns, format_value)
        if request.format == ExportFormat.CSV:
            return write_csv(columns, rows, request.csv)
        return write_pdf(columns, rows, request.pdf)


def project_rows(records: Sequence[Dict[str, Any]], columns: Sequence[ExportColumn],
                 formatter: Callable[[Any, ExportColumnType], Any] = format_value) -> List[List[Any]]:
    """One row per record, one cell per column, resolved by dotted path."""
    return [
        [formatter(resolve_path(record, column.key), column.type) for column in columns]
        for record in records
    ]
