"""
Read uploaded CSV and Excel files into rows of cell values.
"""

import csv
import os
import zipfile
from io import BytesIO, StringIO
from typing import Any, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from inventory_shared.errors import ImportFileError

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")

_CSV_ENCODINGS = ("utf-8-sig", "cp949", "latin-1")

Rows = List[List[Any]]


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def parse_file(filename: str, content: bytes, max_size: int = DEFAULT_MAX_FILE_SIZE) -> Rows:
    """Parse an upload into rows; the first row holds the trimmed headers."""
    extension = file_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise ImportFileError(
            "Unsupported file type. Upload a CSV or Excel (.xlsx) file.",
            details={"filename": filename, "supported": list(SUPPORTED_EXTENSIONS)},
        )
    if len(content) > max_size:
        raise ImportFileError(
            f"File is larger than the {max_size // (1024 * 1024)}MB limit.",
            details={"filename": filename, "size": len(content), "max_size": max_size},
        )
    if extension == ".xls":
        raise ImportFileError(
            "Legacy .xls workbooks cannot be read. Save the file as .xlsx or CSV and upload it again.",
            details={"filename": filename},
        )

    rows = parse_csv(content) if extension == ".csv" else parse_xlsx(content)
    if rows:
        rows[0] = [_header(cell) for cell in rows[0]]
    return rows


def decode_text(content: bytes) -> str:
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        return content.decode("utf-16")
    for encoding in _CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ImportFileError("CSV file encoding is not supported.")


def parse_csv(content: bytes, delimiter: str = ",") -> Rows:
    text = decode_text(content)
    try:
        reader = csv.reader(StringIO(text, newline=""), delimiter=delimiter)
        return [row for row in reader if not _is_blank_row(row)]
    except csv.Error as e:
        raise ImportFileError(f"CSV parse error: {e}") from e


def parse_xlsx(content: bytes) -> Rows:
    """Read the first worksheet; empty cells become ''."""
    try:
        workbook = load_workbook(filename=BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ImportFileError(f"Excel file could not be read: {e}") from e

    try:
        if not workbook.worksheets:
            return []
        worksheet = workbook.worksheets[0]
        rows = []
        for values in worksheet.iter_rows(values_only=True):
            row = ["" if value is None else value for value in values]
            if not _is_blank_row(row):
                rows.append(row)
        return rows
    finally:
        workbook.close()


def _header(cell: Any) -> str:
    return "" if cell is None else str(cell).strip()


def _is_blank_row(row: List[Any]) -> bool:
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)
