"""
Export request and artifact models.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..rules.models import RuleSetModel


class ExportFormat(str, Enum):
    EXCEL = "excel"
    CSV = "csv"
    PDF = "pdf"
    JSON = "json"


FILE_EXTENSIONS: Dict[ExportFormat, str] = {
    ExportFormat.EXCEL: "xlsx",
    ExportFormat.CSV: "csv",
    ExportFormat.PDF: "pdf",
    ExportFormat.JSON: "json",
}

MEDIA_TYPES: Dict[ExportFormat, str] = {
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.CSV: "text/csv",
    ExportFormat.PDF: "application/pdf",
    ExportFormat.JSON: "application/json",
}


class ExportColumnType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"


class ExportColumn(BaseModel):
    """One output column; ``key`` may be a dotted path."""
    key: str
    label: str = ""
    type: ExportColumnType = ExportColumnType.STRING
    width: Optional[int] = Field(None, ge=1, le=255)
    hidden: bool = False

    @property
    def header(self) -> str:
        return self.label or self.key


class CellStyle(BaseModel):
    """Custom cell style; colours are ``#RRGGBB`` strings."""
    background_color: Optional[str] = None
    font_color: Optional[str] = None
    font_size: Optional[int] = None
    bold: bool = False
    border_color: Optional[str] = None
    border_style: str = "thin"


class ExcelExportConfig(BaseModel):
    sheet_name: str = Field("Sheet1", max_length=31)
    style_preset: str = "default"
    header_style: Optional[CellStyle] = None
    data_style: Optional[CellStyle] = None
    freeze_header: bool = True
    auto_width: bool = True
    alternate_rows: bool = True


class CsvExportConfig(BaseModel):
    delimiter: str = ","
    quote_char: str = '"'
    line_terminator: str = "\r\n"
    encoding: str = "utf-8"
    include_bom: bool = True
    include_headers: bool = True


class PdfExportConfig(BaseModel):
    page_size: str = "a4"
    orientation: str = "portrait"
    title: Optional[str] = None
    font_size: int = Field(9, ge=4, le=24)
    page_numbers: bool = True


class JsonExportConfig(BaseModel):
    indent: Optional[int] = Field(2, ge=0, le=8)
    include_metadata: bool = True


class ExportRequest(RuleSetModel):
    """What to export, how to narrow it down and how to render it."""
    format: ExportFormat = ExportFormat.EXCEL
    data_type: str = "data"
    columns: List[ExportColumn] = Field(default_factory=list)
    excel: ExcelExportConfig = Field(default_factory=ExcelExportConfig)
    csv: CsvExportConfig = Field(default_factory=CsvExportConfig)
    pdf: PdfExportConfig = Field(default_factory=PdfExportConfig)
    json_config: JsonExportConfig = Field(default_factory=JsonExportConfig)
    filename_prefix: Optional[str] = None
    filename_suffix: Optional[str] = None


class ExportPayload(ExportRequest):
    """Export request carrying its own records."""
    records: List[Dict[str, Any]] = Field(default_factory=list)


class ExportArtifact(BaseModel):
    filename: str
    media_type: str
    content: bytes
    row_count: int
