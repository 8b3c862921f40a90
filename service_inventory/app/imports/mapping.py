"""
Header-to-field mapping suggestions for imported files.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .schemas import ColumnDefinition, ImportDataType, get_import_config

# Common header spellings per field key
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("fullname", "full_name"),
    "email": ("e-mail", "mail"),
    "phone": ("tel", "telephone"),
    "department": ("dept",),
    "assetTag": ("asset_tag", "tag"),
    "serialNumber": ("serial_number", "serial"),
}

# Checked in order; the first keyword found decides the type
DATA_TYPE_KEYWORDS: Tuple[Tuple[ImportDataType, Tuple[str, ...]], ...] = (
    (ImportDataType.EMPLOYEES, ("employee", "직원", "이름")),
    (ImportDataType.HARDWARE, ("asset", "hardware", "자산", "하드웨어")),
    (ImportDataType.SOFTWARE, ("software", "license", "소프트웨어", "라이선스")),
    (ImportDataType.ASSIGNMENTS, ("assignment", "할당")),
    (ImportDataType.USERS, ("user", "username", "사용자")),
)


def column_variations(column: ColumnDefinition) -> List[str]:
    """Lower-cased strings that identify ``column`` inside a header."""
    candidates = [column.key, column.label, *column.aliases, *COLUMN_ALIASES.get(column.key, ())]
    variations = []
    for candidate in candidates:
        text = candidate.strip().lower()
        if text and text not in variations:
            variations.append(text)
    return variations


def match_header(header: str, columns: Sequence[ColumnDefinition]) -> Optional[str]:
    """Key of the first column with a variation contained in ``header``."""
    normalized = str(header).strip().lower()
    if not normalized:
        return None
    for column in columns:
        if any(variation in normalized for variation in column_variations(column)):
            return column.key
    return None


def suggest_column_mapping(headers: Iterable[str],
                           columns: Sequence[ColumnDefinition]) -> Dict[str, str]:
    """Propose ``{header: field_key}``; unmatched headers are left out."""
    mapping = {}
    for header in headers:
        key = match_header(header, columns)
        if key is not None:
            mapping[header] = key
    return mapping


def suggest_mapping_for_type(headers: Iterable[str], data_type: Optional[ImportDataType]) -> Dict[str, str]:
    if data_type is None:
        return {}
    return suggest_column_mapping(headers, get_import_config(data_type).columns)


def detect_data_type(headers: Iterable[str]) -> Optional[ImportDataType]:
    """Guess what kind of records a file holds from its headers."""
    joined = " ".join(str(header) for header in headers).lower()
    for data_type, keywords in DATA_TYPE_KEYWORDS:
        if any(keyword in joined for keyword in keywords):
            return data_type
    return None


def find_missing_required_columns(headers: Iterable[str], data_type: ImportDataType) -> List[str]:
    """Required fields of ``data_type`` that no header appears to carry."""
    config = get_import_config(data_type)
    headers = list(headers)
    missing = []
    for field_name in config.required_fields:
        column = config.column(field_name) or ColumnDefinition(field_name, field_name)
        if not any(match_header(header, [column]) for header in headers):
            missing.append(field_name)
    return missing
