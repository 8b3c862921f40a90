"""
Format writers. Each takes the visible columns and already projected rows
and returns the file content as bytes.
"""

import csv
import json
from datetime import datetime
from io import BytesIO, StringIO
from typing import Any, Dict, List, Sequence
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A3, A4, landscape, legal, letter, portrait
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import (
    CsvExportConfig, ExcelExportConfig, ExportColumn, JsonExportConfig, PdfExportConfig,
)
from .presets import CENTER, LEFT, resolve_style

PAGE_SIZES = {
    "a4": A4,
    "a3": A3,
    "letter": letter,
    "legal": legal,
    "tabloid": (11 * inch, 17 * inch),
}

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 60
# Rows sampled when sizing columns
WIDTH_SAMPLE_ROWS = 100


def write_excel(columns: Sequence[ExportColumn], rows: Sequence[Sequence[Any]],
                config: ExcelExportConfig) -> bytes:
    style = resolve_style(config.style_preset, config.header_style, config.data_style)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = config.sheet_name

    sheet.append([column.header for column in columns])
    for row in rows:
        sheet.append(list(row))

    for cell in sheet[1]:
        cell.font = style.header_font
        cell.border = style.header_border
        cell.alignment = CENTER
        if style.header_fill is not None:
            cell.fill = style.header_fill

    for index, row in enumerate(sheet.iter_rows(min_row=2, max_row=sheet.max_row), start=1):
        striped = config.alternate_rows and style.alternate_fill is not None and index % 2 == 0
        for cell in row:
            cell.font = style.data_font
            cell.border = style.data_border
            cell.alignment = LEFT
            if striped:
                cell.fill = style.alternate_fill

    if config.freeze_header:
        sheet.freeze_panes = "A2"

    for position, column in enumerate(columns, start=1):
        column_letter = get_column_letter(position)
        if column.width:
            sheet.column_dimensions[column_letter].width = column.width
        elif config.auto_width:
            sheet.column_dimensions[column_letter].width = _auto_width(sheet, position)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _auto_width(sheet, position: int) -> int:
    longest = 0
    for (value,) in sheet.iter_rows(min_row=1, max_row=min(sheet.max_row, WIDTH_SAMPLE_ROWS + 1),
                                    min_col=position, max_col=position, values_only=True):
        if value is not None:
            longest = max(longest, len(str(value)))
    return max(MIN_COLUMN_WIDTH, min(longest + 2, MAX_COLUMN_WIDTH))


def write_csv(columns: Sequence[ExportColumn], rows: Sequence[Sequence[Any]],
              config: CsvExportConfig) -> bytes:
    buffer = StringIO()
    writer = csv.writer(
        buffer,
        delimiter=config.delimiter,
        quotechar=config.quote_char,
        lineterminator=config.line_terminator,
        quoting=csv.QUOTE_MINIMAL,
    )
    if config.include_headers:
        writer.writerow([column.header for column in columns])
    writer.writerows(rows)

    encoding = config.encoding
    if config.include_bom and encoding.lower().replace("_", "-") in ("utf-8", "utf8"):
        encoding = "utf-8-sig"
    return buffer.getvalue().encode(encoding)


def write_json(columns: Sequence[ExportColumn], records: List[Dict[str, Any]],
               config: JsonExportConfig, data_type: str,
               exported_at: datetime) -> bytes:
    if config.include_metadata:
        payload: Any = {
            "metadata": {
                "data_type": data_type,
                "exported_at": exported_at.isoformat(),
                "total_records": len(records),
                "columns": [{"key": column.key, "label": column.header, "type": column.type.value}
                            for column in columns],
            },
            "data": records,
        }
    else:
        payload = records
    return json.dumps(payload, indent=config.indent, ensure_ascii=False, default=str).encode("utf-8")


def write_pdf(columns: Sequence[ExportColumn], rows: Sequence[Sequence[Any]],
              config: PdfExportConfig) -> bytes:
    pagesize = PAGE_SIZES.get(config.page_size.lower(), A4)
    pagesize = landscape(pagesize) if config.orientation == "landscape" else portrait(pagesize)

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=pagesize, topMargin=0.5 * inch, bottomMargin=0.6 * inch,
                            leftMargin=0.5 * inch, rightMargin=0.5 * inch, title=config.title or "")
    styles = getSampleStyleSheet()

    story = []
    if config.title:
        story.append(Paragraph(escape(config.title), styles["Title"]))
        story.append(Spacer(1, 12))

    table_data = [[column.header for column in columns]]
    table_data.extend([["" if value is None else str(value) for value in row] for row in rows])
    table = Table(table_data, repeatRows=1)
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), config.font_size),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#366092")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8F9FA")]),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#E0E0E0")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    story.append(table)

    def draw_page_number(canvas, document):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.drawRightString(pagesize[0] - 0.5 * inch, 0.35 * inch, f"Page {document.page}")
        canvas.restoreState()

    if config.page_numbers:
        doc.build(story, onFirstPage=draw_page_number, onLaterPages=draw_page_number)
    else:
        doc.build(story)
    return buffer.getvalue()
