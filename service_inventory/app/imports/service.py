"""
Import preview and row validation for uploaded files.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from pydantic import BaseModel, Field

from inventory_shared.logging import get_logger
from ..rules.engine import stringify, to_number
from .mapping import detect_data_type, find_missing_required_columns, suggest_mapping_for_type
from .parser import DEFAULT_MAX_FILE_SIZE, Rows, parse_file
from .schemas import (
    ImportConfig, ImportDataType, ValidationRule, ValidationRuleType,
    get_import_config,
)

# Data rows are numbered as spreadsheet rows: header is row 1
FIRST_DATA_ROW = 2

ROW_NUMBER_KEY = "_originalRowIndex"


class ImportIssue(BaseModel):
    """A problem found in the file or in one of its rows."""
    row: int
    field: Optional[str] = None
    message: str
    code: str
    severity: str = "error"
    original_value: Any = None


class ImportRowWarning(BaseModel):
    """A value that was changed while importing a row."""
    row: int
    field: Optional[str] = None
    message: str
    original_value: Any = None
    transformed_value: Any = None


class ImportRowResult(BaseModel):
    row: int
    data: Dict[str, Any]
    valid: bool
    errors: List[ImportIssue] = Field(default_factory=list)
    warnings: List[ImportRowWarning] = Field(default_factory=list)
    transformed: Dict[str, Any]


class ImportResult(BaseModel):
    success: bool
    total_rows: int
    processed_rows: int
    successful_imports: int
    failed_imports: int
    errors: List[ImportIssue] = Field(default_factory=list)
    warnings: List[ImportRowWarning] = Field(default_factory=list)
    skipped_rows: List[int] = Field(default_factory=list)
    imported_data: List[Dict[str, Any]] = Field(default_factory=list)
    validation_results: List[ImportRowResult] = Field(default_factory=list)


class ImportPreview(BaseModel):
    headers: List[str]
    sample_data: List[List[Any]]
    detected_data_type: Optional[ImportDataType] = None
    suggested_mapping: Dict[str, str] = Field(default_factory=dict)
    issues: List[ImportIssue] = Field(default_factory=list)
    estimated_rows: int = 0


class ImportProgress(BaseModel):
    stage: str
    progress: float
    current_row: int = 0
    total_rows: int = 0
    message: str = ""
    errors: int = 0
    warnings: int = 0


class ImportValidateRequest(BaseModel):
    """Request model for validating already-parsed rows."""
    data_type: ImportDataType
    headers: List[str]
    rows: List[List[Any]]
    mapping: Dict[str, str]


ProgressCallback = Callable[[ImportProgress], None]


class DataImportService:
    """Parses uploads, suggests mappings and validates rows."""

    def __init__(self,
                 progress_callback: Optional[ProgressCallback] = None,
                 max_file_size: int = DEFAULT_MAX_FILE_SIZE,
                 preview_rows: int = 5,
                 metrics=None):
        self.progress_callback = progress_callback
        self.max_file_size = max_file_size
        self.preview_rows = preview_rows
        self.metrics = metrics
        self.logger = get_logger("inventory.imports")

    def parse(self, filename: str, content: bytes) -> Rows:
        self._update_progress("parsing", 0, "Reading file")
        rows = parse_file(filename, content, self.max_file_size)
        self._update_progress("parsing", 100, "File read")
        return rows

    def preview(self, filename: str, content: bytes,
                data_type: Optional[ImportDataType] = None) -> ImportPreview:
        """Summarise a file before the user confirms the column mapping."""
        rows = self.parse(filename, content)
        headers = [str(header) for header in rows[0]] if rows else []
        detected = data_type or detect_data_type(headers)

        preview = ImportPreview(
            headers=headers,
            sample_data=rows[1:1 + self.preview_rows],
            detected_data_type=detected,
            suggested_mapping=suggest_mapping_for_type(headers, detected),
            issues=self._detect_preview_issues(rows, headers, detected),
            estimated_rows=max(0, len(rows) - 1),
        )

        self.logger.info(
            "Import preview generated",
            filename=filename,
            detected_data_type=detected.value if detected else None,
            estimated_rows=preview.estimated_rows,
            issues=len(preview.issues),
        )
        return preview

    def import_file(self, filename: str, content: bytes, data_type: ImportDataType,
                    mapping: Mapping[str, str], config: Optional[ImportConfig] = None) -> ImportResult:
        rows = self.parse(filename, content)
        if not rows:
            return self.import_rows([], [], data_type, mapping, config)
        return self.import_rows(rows[0], rows[1:], data_type, mapping, config)

    def import_rows(self, headers: Sequence[str], rows: Sequence[Sequence[Any]],
                    data_type: ImportDataType, mapping: Mapping[str, str],
                    config: Optional[ImportConfig] = None) -> ImportResult:
        """Map, validate and transform data rows."""
        config = config or get_import_config(data_type)
        mapped = map_rows(headers, rows, mapping)

        self._update_progress("validation", 0, "Validating rows", total_rows=len(mapped))
        results = []
        unique_seen: Dict[str, Set[str]] = {name: set() for name in config.unique_fields}
        error_count = warning_count = 0

        for index, row in enumerate(mapped):
            result = validate_row(row, config, unique_seen)
            results.append(result)
            error_count += len(result.errors)
            warning_count += len(result.warnings)
            self._update_progress(
                "validation",
                (index + 1) / len(mapped) * 100,
                f"Validating rows ({index + 1}/{len(mapped)})",
                current_row=index + 1,
                total_rows=len(mapped),
                errors=error_count,
                warnings=warning_count,
            )

        result = summarize_results(results)
        self._update_progress(
            "complete", 100, "Import validated",
            current_row=len(mapped), total_rows=len(mapped),
            errors=error_count, warnings=warning_count,
        )

        if self.metrics:
            self.metrics.record_import(config.data_type.value, "success" if result.success else "partial")

        self.logger.info(
            "Import rows validated",
            data_type=config.data_type.value,
            total_rows=result.total_rows,
            successful=result.successful_imports,
            failed=result.failed_imports,
            warnings=len(result.warnings),
        )
        return result

    def _detect_preview_issues(self, rows: Rows, headers: List[str],
                               data_type: Optional[ImportDataType]) -> List[ImportIssue]:
        issues = []
        if len(rows) < 2:
            issues.append(ImportIssue(
                row=0,
                message="Not enough data. At least one data row is required.",
                code="INSUFFICIENT_DATA",
            ))

        if data_type is not None:
            missing = find_missing_required_columns(headers, data_type)
            if missing:
                issues.append(ImportIssue(
                    row=0,
                    message=f"Required columns are missing: {', '.join(missing)}",
                    code="MISSING_REQUIRED_COLUMNS",
                ))
        return issues

    def _update_progress(self, stage: str, progress: float, message: str, **counts):
        if self.progress_callback:
            self.progress_callback(ImportProgress(stage=stage, progress=progress, message=message, **counts))


def map_rows(headers: Sequence[str], rows: Sequence[Sequence[Any]],
             mapping: Mapping[str, str]) -> List[Dict[str, Any]]:
    """Turn positional rows into field dicts, tagging each with its row number."""
    mapped = []
    for index, row in enumerate(rows):
        record: Dict[str, Any] = {ROW_NUMBER_KEY: index + FIRST_DATA_ROW}
        for position, header in enumerate(headers):
            field_name = mapping.get(header)
            if field_name and position < len(row):
                record[field_name] = row[position]
        mapped.append(record)
    return mapped


def _is_empty(value: Any) -> bool:
    return value is None or stringify(value).strip() == ""


def check_rule(value: Any, rule: ValidationRule, row: Mapping[str, Any], row_number: int):
    """Return True when ``value`` passes, else False or a message."""
    if rule.type == ValidationRuleType.FORMAT:
        return bool(rule.params.search(stringify(value)))
    if rule.type == ValidationRuleType.RANGE:
        number = to_number(value)
        return rule.params["min"] <= number <= rule.params["max"]
    if rule.type == ValidationRuleType.CUSTOM and rule.validator is not None:
        return rule.validator(value, row, row_number)
    return True


def validate_row(row: Dict[str, Any], config: ImportConfig,
                 unique_seen: Dict[str, Set[str]]) -> ImportRowResult:
    """Validate one mapped row; ``unique_seen`` carries state across rows."""
    row_number = row.get(ROW_NUMBER_KEY, 0)
    errors: List[ImportIssue] = []
    warnings: List[ImportRowWarning] = []
    transformed = dict(row)

    for field_name in config.required_fields:
        if _is_empty(row.get(field_name)):
            errors.append(ImportIssue(
                row=row_number,
                field=field_name,
                message=f"Required field '{field_name}' is empty.",
                code="REQUIRED_FIELD_MISSING",
            ))

    for field_name in config.unique_fields:
        value = row.get(field_name)
        if _is_empty(value):
            continue
        key = stringify(value)
        if key in unique_seen.setdefault(field_name, set()):
            errors.append(ImportIssue(
                row=row_number,
                field=field_name,
                message=f"Duplicate value: {key}",
                code="DUPLICATE_VALUE",
                original_value=value,
            ))
        else:
            unique_seen[field_name].add(key)

    for rule in config.validation_rules:
        value = row.get(rule.field)
        if _is_empty(value):
            continue
        outcome = check_rule(value, rule, row, row_number)
        if outcome is not True:
            errors.append(ImportIssue(
                row=row_number,
                field=rule.field,
                message=outcome if isinstance(outcome, str) else (rule.message or "Invalid value."),
                code=f"VALIDATION_{rule.type.value.upper()}",
                original_value=value,
            ))

    for rule in config.transform_rules:
        original = transformed.get(rule.field)
        try:
            value = rule.transformer(original, transformed, row_number)
        except (ValueError, TypeError) as e:
            errors.append(ImportIssue(
                row=row_number,
                field=rule.field,
                message=f"Value could not be converted: {e}",
                code="TRANSFORMATION_ERROR",
            ))
            continue
        if value != original:
            transformed[rule.field] = value
            warnings.append(ImportRowWarning(
                row=row_number,
                field=rule.field,
                message="Value was converted.",
                original_value=original,
                transformed_value=value,
            ))

    return ImportRowResult(
        row=row_number,
        data=row,
        valid=not errors,
        errors=errors,
        warnings=warnings,
        transformed=transformed,
    )


def summarize_results(results: Sequence[ImportRowResult]) -> ImportResult:
    valid = [result for result in results if result.valid]
    invalid = [result for result in results if not result.valid]

    return ImportResult(
        success=not invalid,
        total_rows=len(results),
        processed_rows=len(results),
        successful_imports=len(valid),
        failed_imports=len(invalid),
        errors=[issue for result in results for issue in result.errors],
        warnings=[warning for result in results for warning in result.warnings],
        skipped_rows=[result.row for result in invalid],
        imported_data=[_without_row_number(result.transformed) for result in valid],
        validation_results=list(results),
    )


def _without_row_number(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if key != ROW_NUMBER_KEY}
