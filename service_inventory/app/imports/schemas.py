"""
Per-type import configurations: columns, required and unique fields,
validation rules and value transforms.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..access.constants import (
    ASSET_STATUSES, ASSET_TYPES, EMPLOYEE_STATUSES, LICENSE_TYPES,
)
from ..access.permissions import Role
from ..access.validators import ASSET_TAG_PATTERN, EMAIL_PATTERN
from ..rules.engine import to_datetime


class ImportDataType(str, Enum):
    """Record kinds that can be imported."""
    EMPLOYEES = "employees"
    HARDWARE = "hardware"
    SOFTWARE = "software"
    ASSIGNMENTS = "assignments"
    USERS = "users"


class ColumnType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    CURRENCY = "currency"


class ValidationRuleType(str, Enum):
    REQUIRED = "required"
    UNIQUE = "unique"
    FORMAT = "format"
    RANGE = "range"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ColumnDefinition:
    """Target schema column; aliases extend the header matching."""
    key: str
    label: str
    type: ColumnType = ColumnType.STRING
    aliases: Tuple[str, ...] = ()


# Returns True, False, or a message overriding the rule's own
CustomValidator = Callable[[Any, Mapping[str, Any], int], Union[bool, str]]
Transformer = Callable[[Any, Mapping[str, Any], int], Any]


@dataclass(frozen=True)
class ValidationRule:
    field: str
    type: ValidationRuleType
    params: Any = None
    message: Optional[str] = None
    validator: Optional[CustomValidator] = None


@dataclass(frozen=True)
class TransformRule:
    field: str
    transformer: Transformer


@dataclass(frozen=True)
class ImportConfig:
    data_type: ImportDataType
    columns: Tuple[ColumnDefinition, ...]
    required_fields: Tuple[str, ...]
    unique_fields: Tuple[str, ...] = ()
    validation_rules: Tuple[ValidationRule, ...] = ()
    transform_rules: Tuple[TransformRule, ...] = ()
    batch_size: int = 100

    def column(self, key: str) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.key == key:
                return column
        return None

    def with_overrides(self, **overrides) -> "ImportConfig":
        return replace(self, **overrides)


def one_of(*allowed: str) -> CustomValidator:
    def validator(value, row, row_number):
        return value in allowed
    return validator


def to_iso_datetime(value, row, row_number):
    """Normalise a date cell to ISO 8601; blank cells become None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = to_datetime(value)
    if parsed is None:
        raise ValueError(f"invalid date: {value!r}")
    return parsed.isoformat()


def default_to(default: Any) -> Transformer:
    def transformer(value, row, row_number):
        return value if value not in (None, "") else default
    return transformer


PHONE_FORMAT = re.compile(r"^[\d\-\(\)\s]+$")


EMPLOYEES = ImportConfig(
    data_type=ImportDataType.EMPLOYEES,
    required_fields=("name", "email", "department"),
    unique_fields=("email",),
    batch_size=100,
    columns=(
        ColumnDefinition("name", "Name", aliases=("이름",)),
        ColumnDefinition("email", "Email", aliases=("이메일",)),
        ColumnDefinition("department", "Department", aliases=("부서",)),
        ColumnDefinition("position", "Position", aliases=("직급",)),
        ColumnDefinition("phone", "Phone", aliases=("전화", "전화번호")),
        ColumnDefinition("joinDate", "Join Date", ColumnType.DATE, aliases=("hire date", "입사일")),
        ColumnDefinition("status", "Status", aliases=("상태",)),
    ),
    validation_rules=(
        ValidationRule("email", ValidationRuleType.FORMAT, EMAIL_PATTERN, "Not a valid email address."),
        ValidationRule("phone", ValidationRuleType.FORMAT, PHONE_FORMAT, "Not a valid phone number."),
        ValidationRule(
            "status", ValidationRuleType.CUSTOM,
            message=f"Status must be one of: {', '.join(EMPLOYEE_STATUSES)}.",
            validator=one_of(*EMPLOYEE_STATUSES),
        ),
    ),
    transform_rules=(
        TransformRule("joinDate", to_iso_datetime),
        TransformRule("status", default_to("active")),
    ),
)

HARDWARE = ImportConfig(
    data_type=ImportDataType.HARDWARE,
    required_fields=("assetTag", "type", "brand", "model"),
    unique_fields=("assetTag", "serialNumber"),
    batch_size=50,
    columns=(
        ColumnDefinition("assetTag", "Asset Tag", aliases=("자산태그",)),
        ColumnDefinition("type", "Type", aliases=("유형",)),
        ColumnDefinition("brand", "Brand", aliases=("manufacturer", "브랜드")),
        ColumnDefinition("model", "Model", aliases=("모델",)),
        ColumnDefinition("serialNumber", "Serial Number", aliases=("일련번호",)),
        ColumnDefinition("status", "Status", aliases=("상태",)),
        ColumnDefinition("location", "Location", aliases=("위치",)),
        ColumnDefinition("purchaseDate", "Purchase Date", ColumnType.DATE, aliases=("구매일",)),
        ColumnDefinition("warrantyExpiry", "Warranty Expiry", ColumnType.DATE, aliases=("warranty", "보증만료일")),
        ColumnDefinition("price", "Price", ColumnType.CURRENCY, aliases=("cost", "가격")),
    ),
    validation_rules=(
        ValidationRule(
            "assetTag", ValidationRuleType.FORMAT, ASSET_TAG_PATTERN,
            "Asset tags may contain only uppercase letters, digits and hyphens.",
        ),
        ValidationRule(
            "price", ValidationRuleType.RANGE, {"min": 0, "max": 10_000_000},
            "Price must be between 0 and 10,000,000.",
        ),
        ValidationRule(
            "status", ValidationRuleType.CUSTOM,
            message=f"Status must be one of: {', '.join(ASSET_STATUSES)}.",
            validator=one_of(*ASSET_STATUSES),
        ),
    ),
)

SOFTWARE = ImportConfig(
    data_type=ImportDataType.SOFTWARE,
    required_fields=("name", "vendor", "licenseType", "totalLicenses"),
    unique_fields=("name", "version"),
    batch_size=50,
    columns=(
        ColumnDefinition("name", "Software Name", aliases=("소프트웨어명",)),
        ColumnDefinition("version", "Version", aliases=("버전",)),
        ColumnDefinition("vendor", "Vendor", aliases=("publisher", "제조사")),
        ColumnDefinition("licenseType", "License Type", aliases=("license_type", "라이선스유형")),
        ColumnDefinition("totalLicenses", "Total Licenses", ColumnType.NUMBER, aliases=("seats", "총라이선스")),
        ColumnDefinition("price", "Price", ColumnType.CURRENCY, aliases=("cost", "가격")),
        ColumnDefinition("purchaseDate", "Purchase Date", ColumnType.DATE, aliases=("구매일",)),
        ColumnDefinition("expiryDate", "Expiry Date", ColumnType.DATE, aliases=("만료일",)),
    ),
    validation_rules=(
        ValidationRule(
            "totalLicenses", ValidationRuleType.RANGE, {"min": 1, "max": 10_000},
            "License count must be between 1 and 10,000.",
        ),
        ValidationRule(
            "licenseType", ValidationRuleType.CUSTOM,
            message=f"License type must be one of: {', '.join(LICENSE_TYPES)}.",
            validator=one_of(*LICENSE_TYPES),
        ),
    ),
)

ASSIGNMENTS = ImportConfig(
    data_type=ImportDataType.ASSIGNMENTS,
    required_fields=("employeeId", "assetType", "assetId"),
    batch_size=100,
    columns=(
        ColumnDefinition("employeeId", "Employee ID", aliases=("employee_id", "직원id")),
        ColumnDefinition("assetType", "Asset Type", aliases=("asset_type", "자산유형")),
        ColumnDefinition("assetId", "Asset ID", aliases=("asset_id", "자산id")),
        ColumnDefinition("assignedDate", "Assigned Date", ColumnType.DATE, aliases=("assigned_date", "할당일")),
        ColumnDefinition("dueDate", "Due Date", ColumnType.DATE, aliases=("due_date", "반납예정일")),
        ColumnDefinition("notes", "Notes", aliases=("비고",)),
    ),
    validation_rules=(
        ValidationRule(
            "assetType", ValidationRuleType.CUSTOM,
            message="Asset type must be hardware or software.",
            validator=one_of(*ASSET_TYPES),
        ),
    ),
)

USERS = ImportConfig(
    data_type=ImportDataType.USERS,
    required_fields=("username", "fullName", "email", "role"),
    unique_fields=("username", "email"),
    batch_size=50,
    columns=(
        ColumnDefinition("username", "Username", aliases=("login", "사용자명")),
        ColumnDefinition("fullName", "Full Name", aliases=("이름",)),
        ColumnDefinition("email", "Email", aliases=("이메일",)),
        ColumnDefinition("role", "Role", aliases=("역할",)),
        ColumnDefinition("department", "Department", aliases=("부서",)),
        ColumnDefinition("status", "Status", aliases=("상태",)),
    ),
    validation_rules=(
        ValidationRule(
            "role", ValidationRuleType.CUSTOM,
            message="Role must be admin, manager or user.",
            validator=one_of(*(role.value for role in Role)),
        ),
        ValidationRule("email", ValidationRuleType.FORMAT, EMAIL_PATTERN, "Not a valid email address."),
    ),
)

IMPORT_CONFIGS: Dict[ImportDataType, ImportConfig] = {
    config.data_type: config
    for config in (EMPLOYEES, HARDWARE, SOFTWARE, ASSIGNMENTS, USERS)
}


def get_import_config(data_type: Union[ImportDataType, str]) -> ImportConfig:
    return IMPORT_CONFIGS[ImportDataType(data_type)]


def validate_import_config(config: ImportConfig) -> List[Dict[str, str]]:
    """Structural problems with a (possibly overridden) import config."""
    errors = []
    if not config.columns:
        errors.append({
            "field": "columns",
            "code": "MISSING_COLUMNS",
            "message": "At least one column must be defined.",
        })
    if not config.required_fields:
        errors.append({
            "field": "required_fields",
            "code": "MISSING_REQUIRED_FIELDS",
            "message": "At least one required field must be defined.",
        })
    return errors
