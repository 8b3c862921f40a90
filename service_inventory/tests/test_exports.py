"""
Unit tests for the export service and format writers.
"""

import json
from datetime import date, datetime
from io import BytesIO
from unittest.mock import MagicMock

import pytest
from openpyxl import load_workbook

from inventory_shared.errors import ValidationError
from inventory_shared.test_helpers import test_data_factory
from service_inventory.app.exports.models import (
    CellStyle, ExcelExportConfig, ExportColumn, ExportColumnType, ExportFormat, ExportRequest,
)
from service_inventory.app.exports.presets import PRESETS, resolve_style
from service_inventory.app.exports.service import (
    ExportService, check_export_request, excel_value, format_value,
    generate_export_filename, validate_export_request,
)


def make_request(**overrides):
    data = {
        "format": "csv",
        "data_type": "hardware",
        "columns": [
            {"key": "asset_tag", "label": "Asset Tag"},
            {"key": "type", "label": "Type"},
            {"key": "price", "label": "Price", "type": "currency"},
        ],
    }
    data.update(overrides)
    return ExportRequest.model_validate(data)


class TestFormatting:
    """Test cases for cell formatting."""

    def test_currency(self):
        """Test won amounts with thousands separators."""
        assert format_value(1500, ExportColumnType.CURRENCY) == "₩1,500"
        assert format_value("-2500.4", ExportColumnType.CURRENCY) == "-₩2,500"

    def test_numbers(self):
        """Test integral and fractional numbers."""
        assert format_value(1234567, ExportColumnType.NUMBER) == "1,234,567"
        assert format_value(1.25, ExportColumnType.NUMBER) == "1.25"
        assert format_value("n/a", ExportColumnType.NUMBER) == "n/a"

    def test_percentage(self):
        """Test fractions render as percentages."""
        assert format_value(0.125, ExportColumnType.PERCENTAGE) == "12.50%"

    def test_dates_and_booleans(self):
        """Test dates render as ISO and booleans as Yes/No."""
        assert format_value("2024/05/02", ExportColumnType.DATE) == "2024-05-02"
        assert format_value(datetime(2024, 5, 2, 9, 30), ExportColumnType.DATE) == "2024-05-02"
        assert format_value(True, ExportColumnType.BOOLEAN) == "Yes"
        assert format_value("no", ExportColumnType.BOOLEAN) == "No"

    def test_missing_values(self):
        """Test None renders empty."""
        assert format_value(None, ExportColumnType.CURRENCY) == ""

    def test_excel_keeps_numbers_numeric(self):
        """Test number columns stay numeric in workbooks."""
        assert excel_value("42", ExportColumnType.NUMBER) == 42
        assert excel_value(1500, ExportColumnType.CURRENCY) == "₩1,500"


class TestFilename:
    """Test cases for export file names."""

    def test_default_name(self):
        """Test type, date and extension."""
        name = generate_export_filename("hardware", ExportFormat.EXCEL, today=date(2024, 5, 2))

        assert name == "hardware_2024-05-02.xlsx"

    def test_prefix_and_suffix(self):
        """Test unsafe characters are replaced."""
        name = generate_export_filename("employees", ExportFormat.CSV, "IT dept", "q2/2024", date(2024, 5, 2))

        assert name == "IT-dept_employees_q2-2024_2024-05-02.csv"


class TestExportValidation:
    """Test cases for export request validation."""

    def test_valid_request(self):
        """Test a complete request has no errors."""
        errors, warnings = check_export_request(make_request())

        assert errors == []
        assert warnings == []

    def test_missing_columns(self):
        """Test an export needs at least one visible column."""
        errors, _ = check_export_request(make_request(columns=[]))
        hidden_errors, _ = check_export_request(make_request(columns=[{"key": "id", "hidden": True}]))

        assert [error["code"] for error in errors] == ["MISSING_COLUMNS"]
        assert [error["code"] for error in hidden_errors] == ["MISSING_COLUMNS"]

    def test_format_options(self):
        """Test CSV and PDF option checks."""
        csv_errors, _ = check_export_request(make_request(csv={"delimiter": ":", "quote_char": "`"}))
        pdf_errors, _ = check_export_request(
            make_request(format="pdf", pdf={"page_size": "b5", "orientation": "sideways"})
        )

        assert [error["code"] for error in csv_errors] == ["INVALID_DELIMITER", "INVALID_QUOTE_CHAR"]
        assert [error["code"] for error in pdf_errors] == ["INVALID_PAGE_SIZE", "INVALID_ORIENTATION"]

    def test_excel_options(self):
        """Test sheet name and preset checks."""
        errors, _ = check_export_request(
            make_request(format="excel", excel={"sheet_name": "a/b", "style_preset": "neon"})
        )

        assert [error["code"] for error in errors] == ["INVALID_SHEET_NAME", "INVALID_STYLE_PRESET"]

    def test_warnings(self):
        """Test unlabeled columns and empty filters only warn."""
        request = make_request(
            columns=[{"key": "type"}],
            filters=[{"column": "type", "operator": "equals"}],
        )

        warnings = validate_export_request(request)

        assert [warning["code"] for warning in warnings] == ["MISSING_COLUMN_LABEL", "MISSING_FILTER_VALUE"]

    def test_operator_not_offered_for_column_type(self):
        """Test a text operator on a currency column warns, a numeric one does not."""
        request = make_request(filters=[
            {"column": "price", "operator": "contains", "value": "12"},
            {"column": "price", "operator": "greaterThan", "value": 100},
            {"column": "type", "operator": "startsWith", "value": "Lap"},
            {"column": "owner.dept", "operator": "between", "min_value": 1, "max_value": 2},
        ])

        errors, warnings = check_export_request(request)

        assert errors == []
        assert [(warning["field"], warning["code"]) for warning in warnings] == [
            ("filters[0].operator", "UNSUPPORTED_OPERATOR"),
        ]

    def test_errors_raise(self):
        """Test blocking problems raise ValidationError."""
        request = make_request(filters=[{"column": " ", "operator": "equals", "value": "x"}])

        with pytest.raises(ValidationError) as exc_info:
            validate_export_request(request)

        assert exc_info.value.status_code == 422
        assert "filters[0].column" in exc_info.value.field_errors


class TestExportService:
    """Test cases for ExportService."""

    @pytest.fixture
    def metrics(self):
        """Create mock metrics."""
        return MagicMock()

    @pytest.fixture
    def service(self, metrics):
        """Create ExportService with a fixed clock."""
        return ExportService(metrics=metrics, clock=lambda: datetime(2024, 5, 2, 10, 0))

    @pytest.fixture
    def hardware(self):
        """Create hardware records."""
        return test_data_factory.create_test_hardware()

    def test_csv_export(self, service, hardware, metrics):
        """Test CSV content, filtering, sorting and the artifact metadata."""
        request = make_request(
            filters=[{"column": "type", "operator": "equals", "value": "laptop"}],
            sort=[{"column": "price", "direction": "desc"}],
        )

        artifact = service.export(hardware, request)

        assert artifact.filename == "hardware_2024-05-02.csv"
        assert artifact.media_type == "text/csv"
        assert artifact.row_count == 2
        assert artifact.content.startswith(b"\xef\xbb\xbf")
        lines = artifact.content.decode("utf-8-sig").split("\r\n")
        assert lines[0] == "Asset Tag,Type,Price"
        assert lines[1] == 'LT-003,Laptop,"₩2,800"'
        assert lines[2] == 'LT-001,Laptop,"₩1,500"'
        metrics.record_export.assert_called_once_with("csv", "success")

    def test_csv_options(self, service, hardware):
        """Test delimiter, header and BOM options."""
        request = make_request(csv={"delimiter": ";", "include_bom": False, "include_headers": False})

        artifact = service.export(hardware, request)

        assert artifact.content.decode("utf-8").split("\r\n")[0] == "LT-001;Laptop;₩1,500"

    def test_json_export(self, service):
        """Test metadata envelope and dotted columns."""
        records = test_data_factory.create_test_employees()
        request = make_request(
            format="json",
            data_type="employees",
            columns=[{"key": "name", "label": "Name"}, {"key": "owner.dept", "label": "Dept"}],
            date_range={"enabled": True, "column": "hire_date", "start_date": "2021-01-01"},
        )

        artifact = service.export(records, request)
        payload = json.loads(artifact.content)

        assert artifact.filename == "employees_2024-05-02.json"
        assert payload["metadata"]["total_records"] == 2
        assert payload["metadata"]["exported_at"] == "2024-05-02T10:00:00"
        assert payload["metadata"]["columns"][1] == {"key": "owner.dept", "label": "Dept", "type": "string"}
        assert payload["data"] == [
            {"name": "Alice Kim", "owner.dept": "IT"},
            {"name": "Bob Lee", "owner.dept": "HR"},
        ]

    def test_json_without_metadata(self, service, hardware):
        """Test a bare array when metadata is off."""
        request = make_request(format="json", json_config={"include_metadata": False})

        payload = json.loads(service.export(hardware, request).content)

        assert payload[0] == {"asset_tag": "LT-001", "type": "Laptop", "price": 1500}

    def test_excel_export(self, service, hardware):
        """Test headers, styling, frozen header and column widths."""
        request = make_request(
            format="excel",
            excel={"sheet_name": "Hardware", "style_preset": "corporate"},
            columns=[
                {"key": "asset_tag", "label": "Asset Tag", "width": 18},
                {"key": "price", "label": "Price", "type": "number"},
                {"key": "serial_number", "label": "Serial", "hidden": True},
            ],
        )

        artifact = service.export(hardware, request)
        workbook = load_workbook(BytesIO(artifact.content))
        sheet = workbook["Hardware"]

        assert [cell.value for cell in sheet[1]] == ["Asset Tag", "Price"]
        assert sheet["B2"].value == 1500
        assert sheet.freeze_panes == "A2"
        assert sheet["A1"].font.bold is True
        assert sheet["A1"].fill.start_color.rgb.endswith("2C3E50")
        assert sheet["A3"].fill.start_color.rgb.endswith("ECF0F1")
        assert sheet.column_dimensions["A"].width == 18
        assert sheet.column_dimensions["B"].width == 10
        assert artifact.filename.endswith(".xlsx")

    def test_pdf_export(self, service, hardware):
        """Test a PDF document is produced."""
        request = make_request(format="pdf", pdf={"title": "Hardware <inventory>", "orientation": "landscape"})

        artifact = service.export(hardware, request)

        assert artifact.content.startswith(b"%PDF")
        assert artifact.media_type == "application/pdf"
        assert artifact.row_count == 3

    def test_invalid_request_not_rendered(self, service, hardware, metrics):
        """Test validation errors stop the export."""
        with pytest.raises(ValidationError):
            service.export(hardware, make_request(columns=[]))

        metrics.record_export.assert_not_called()


class TestPresets:
    """Test cases for Excel style presets."""

    def test_minimal_has_no_fills(self):
        """Test the minimal preset draws no backgrounds."""
        assert PRESETS["minimal"].header_fill is None
        assert PRESETS["minimal"].alternate_fill is None

    def test_custom_header_overrides_preset(self):
        """Test a custom header style is laid over the preset."""
        style = resolve_style("default", CellStyle(background_color="#FF0000", font_color="#00FF00", bold=True))

        assert style.header_fill.start_color.rgb.endswith("FF0000")
        assert style.header_font.color.rgb.endswith("00FF00")
        assert style.data_font == PRESETS["default"].data_font

    def test_unknown_preset_falls_back(self):
        """Test unknown presets resolve to the default."""
        assert resolve_style("neon") == PRESETS["default"]

    def test_sheet_name_length(self):
        """Test Excel's sheet name length limit."""
        with pytest.raises(ValueError):
            ExcelExportConfig(sheet_name="x" * 32)
