"""
Field validators for inventory console forms.

Form validators return ``{field: message}`` and never raise; an empty dict
means the form may be submitted.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..rules.engine import to_datetime, to_number
from .constants import (
    ASSET_CONDITIONS, ASSET_STATUSES, ASSET_TYPES, EMPLOYEE_STATUSES,
    LICENSE_TYPES, MIN_ASSIGNMENT_DATE, NOTES_MAX_LENGTH,
    RETURN_NOTES_MAX_LENGTH, USER_STATUSES,
)
from .permissions import parse_role

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EMAIL_MAX_LENGTH = 255

PHONE_PATTERN = re.compile(r"^[\d\-\(\)\s\+]+$")
ASSET_TAG_PATTERN = re.compile(r"^[A-Z0-9\-]+$")
SERIAL_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9\-_./]+$")
SERIAL_NUMBER_MIN_LENGTH = 3
SERIAL_NUMBER_MAX_LENGTH = 50

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
RESERVED_USERNAMES = frozenset({
    "admin", "administrator", "root", "system", "guest", "user", "test",
    "demo", "support", "help", "info", "contact", "mail", "email",
    "webmaster", "postmaster", "hostmaster", "abuse", "security", "api",
    "www", "ftp",
})

# Latin letters, spaces and Hangul (jamo through syllables)
FULL_NAME_PATTERN = re.compile(r"^[a-zA-Z\s\u3131-\uD79D]+$")
FULL_NAME_MIN_LENGTH = 2
FULL_NAME_MAX_LENGTH = 100

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PASSWORD_REQUIRE_UPPERCASE = True
PASSWORD_REQUIRE_LOWERCASE = True
PASSWORD_REQUIRE_NUMBERS = True
PASSWORD_REQUIRE_SPECIAL_CHARS = False
PASSWORD_SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
FORBIDDEN_PASSWORD_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in ("password", "123456", "qwerty", "admin", "letmein", "welcome", "monkey", "dragon")
)

SOFTWARE_NAME_MIN_LENGTH = 2
SOFTWARE_NAME_MAX_LENGTH = 200
TOTAL_LICENSES_MIN = 1
TOTAL_LICENSES_MAX = 10000
PRICE_MAX = 999_999_999

REQUIRED_MESSAGE = "This field is required."


@dataclass
class PasswordStrength:
    """Result of scoring a password against the password policy."""
    is_valid: bool
    issues: List[str] = field(default_factory=list)
    score: int = 0


def validate_password_strength(password: str) -> PasswordStrength:
    """Score a password: one point per satisfied rule, bonuses for length."""
    password = password or ""
    issues: List[str] = []
    score = 0

    if len(password) < PASSWORD_MIN_LENGTH:
        issues.append(f"Must be at least {PASSWORD_MIN_LENGTH} characters long")
    else:
        score += 1

    if len(password) > PASSWORD_MAX_LENGTH:
        issues.append(f"Must be at most {PASSWORD_MAX_LENGTH} characters long")

    if PASSWORD_REQUIRE_UPPERCASE:
        if re.search(r"[A-Z]", password):
            score += 1
        else:
            issues.append("Must contain an uppercase letter")

    if PASSWORD_REQUIRE_LOWERCASE:
        if re.search(r"[a-z]", password):
            score += 1
        else:
            issues.append("Must contain a lowercase letter")

    if PASSWORD_REQUIRE_NUMBERS:
        if re.search(r"\d", password):
            score += 1
        else:
            issues.append("Must contain a number")

    if PASSWORD_REQUIRE_SPECIAL_CHARS:
        if any(char in PASSWORD_SPECIAL_CHARS for char in password):
            score += 1
        else:
            issues.append("Must contain a special character")

    if any(pattern.search(password) for pattern in FORBIDDEN_PASSWORD_PATTERNS):
        issues.append("Common patterns are not allowed")
        score -= 1

    if len(password) >= 12:
        score += 1
    if len(password) >= 16:
        score += 1

    return PasswordStrength(is_valid=not issues, issues=issues, score=max(0, score))


def is_reserved_username(username: str) -> bool:
    return (username or "").lower() in RESERVED_USERNAMES


def validate_email(value: Any) -> Optional[str]:
    text = _text(value)
    if len(text) > EMAIL_MAX_LENGTH:
        return f"Email must be at most {EMAIL_MAX_LENGTH} characters."
    if not EMAIL_PATTERN.match(text):
        return "Enter a valid email address."
    return None


def validate_phone(value: Any) -> Optional[str]:
    if not PHONE_PATTERN.match(_text(value)):
        return "Enter a valid phone number."
    return None


def validate_asset_tag(value: Any) -> Optional[str]:
    if not ASSET_TAG_PATTERN.match(_text(value)):
        return "Asset tags may contain only uppercase letters, digits and hyphens."
    return None


def validate_serial_number(value: Any) -> Optional[str]:
    text = _text(value)
    if len(text) < SERIAL_NUMBER_MIN_LENGTH:
        return f"Serial number must be at least {SERIAL_NUMBER_MIN_LENGTH} characters."
    if len(text) > SERIAL_NUMBER_MAX_LENGTH:
        return f"Serial number must be at most {SERIAL_NUMBER_MAX_LENGTH} characters."
    if not SERIAL_NUMBER_PATTERN.match(text):
        return "Serial number contains invalid characters."
    return None


def validate_username(value: Any) -> Optional[str]:
    text = _text(value)
    if len(text) < USERNAME_MIN_LENGTH:
        return f"Username must be at least {USERNAME_MIN_LENGTH} characters."
    if len(text) > USERNAME_MAX_LENGTH:
        return f"Username must be at most {USERNAME_MAX_LENGTH} characters."
    if not USERNAME_PATTERN.match(text):
        return "Username may contain only letters, digits, '_', '.' and '-'."
    if is_reserved_username(text):
        return "This username is reserved."
    return None


def validate_full_name(value: Any) -> Optional[str]:
    text = _text(value)
    if len(text) < FULL_NAME_MIN_LENGTH:
        return f"Name must be at least {FULL_NAME_MIN_LENGTH} characters."
    if len(text) > FULL_NAME_MAX_LENGTH:
        return f"Name must be at most {FULL_NAME_MAX_LENGTH} characters."
    if not FULL_NAME_PATTERN.match(text):
        return "Name may contain only letters and spaces."
    return None


# ---------------------------------------------------------------------------
# Form validators
# ---------------------------------------------------------------------------


def validate_employee_form(data: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    today = today or date.today()

    if _blank(data.get("name")):
        errors["name"] = "Name is required."
    if _blank(data.get("department")):
        errors["department"] = "Department is required."

    if not _blank(data.get("email")):
        _put(errors, "email", validate_email(data["email"]))
    if not _blank(data.get("phone")):
        _put(errors, "phone", validate_phone(data["phone"]))

    hire_date = _date_field(data, "hire_date", errors)
    if hire_date is not None and hire_date > today:
        errors["hire_date"] = "Hire date cannot be in the future."

    status = data.get("status")
    if not _blank(status) and status not in EMPLOYEE_STATUSES:
        errors["status"] = "Select a valid status."
    return errors


def validate_hardware_form(data: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    today = today or date.today()

    if _blank(data.get("type")):
        errors["type"] = "Hardware type is required."
    if _blank(data.get("manufacturer")):
        errors["manufacturer"] = "Manufacturer is required."
    if _blank(data.get("model")):
        errors["model"] = "Model is required."

    if _blank(data.get("serial_number")):
        errors["serial_number"] = "Serial number is required."
    else:
        _put(errors, "serial_number", validate_serial_number(data["serial_number"]))

    if not _blank(data.get("asset_tag")):
        _put(errors, "asset_tag", validate_asset_tag(data["asset_tag"]))

    _put(errors, "price", _check_price(data.get("price")))

    purchase_date = _date_field(data, "purchase_date", errors)
    if purchase_date is not None and purchase_date > today:
        errors["purchase_date"] = "Purchase date cannot be in the future."

    warranty_expiry = _date_field(data, "warranty_expiry", errors)
    if purchase_date and warranty_expiry and warranty_expiry < purchase_date:
        errors["warranty_expiry"] = "Warranty expiry must be after the purchase date."

    status = data.get("status")
    if _blank(status):
        errors["status"] = "Select a status."
    elif status not in ASSET_STATUSES:
        errors["status"] = "Select a valid status."
    return errors


def validate_software_form(data: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    name = _text(data.get("name"))
    if not name:
        errors["name"] = "Software name is required."
    elif len(name) < SOFTWARE_NAME_MIN_LENGTH:
        errors["name"] = f"Software name must be at least {SOFTWARE_NAME_MIN_LENGTH} characters."
    elif len(name) > SOFTWARE_NAME_MAX_LENGTH:
        errors["name"] = f"Software name must be at most {SOFTWARE_NAME_MAX_LENGTH} characters."

    licenses = to_number(data.get("total_licenses"))
    if math.isnan(licenses) or licenses < TOTAL_LICENSES_MIN:
        errors["total_licenses"] = f"At least {TOTAL_LICENSES_MIN} license is required."
    elif licenses > TOTAL_LICENSES_MAX:
        errors["total_licenses"] = f"At most {TOTAL_LICENSES_MAX} licenses are allowed."
    elif not float(licenses).is_integer():
        errors["total_licenses"] = "License count must be a whole number."

    license_type = data.get("license_type")
    if not _blank(license_type) and license_type not in LICENSE_TYPES:
        errors["license_type"] = "Select a valid license type."

    _put(errors, "price", _check_price(data.get("price")))

    purchase_date = _date_field(data, "purchase_date", errors)
    expiry_date = _date_field(data, "expiry_date", errors)
    if purchase_date and expiry_date and expiry_date < purchase_date:
        errors["expiry_date"] = "Expiry date must be after the purchase date."
    return errors


def validate_user_form(data: Mapping[str, Any], is_update: bool = False) -> Dict[str, str]:
    """Validate a create/update user form; updates only check present fields."""
    errors: Dict[str, str] = {}

    checks: Dict[str, Callable[[Any], Optional[str]]] = {
        "username": validate_username,
        "password": _check_password,
        "full_name": validate_full_name,
        "role": _check_role,
    }
    for name, check in checks.items():
        if data.get(name) is not None:
            _put(errors, name, check(data[name]))
        elif not is_update:
            errors[name] = REQUIRED_MESSAGE

    if not _blank(data.get("email")):
        _put(errors, "email", validate_email(data["email"]))

    status = data.get("status")
    if not _blank(status) and status not in USER_STATUSES:
        errors["status"] = "Select a valid status."

    if not _blank(data.get("confirm_password")) and data.get("confirm_password") != data.get("password"):
        errors["confirm_password"] = "Passwords do not match."
    return errors


def get_user_form_warnings(data: Mapping[str, Any]) -> List[str]:
    warnings = []
    if _blank(data.get("email")):
        warnings.append("Without an email address the password cannot be reset by mail.")
    if _blank(data.get("department")):
        warnings.append("Without a department the user is missing from the org chart.")
    return warnings


def validate_assignment_form(data: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    today = today or date.today()

    if _blank(data.get("employee_id")):
        errors["employee_id"] = "Select an employee."
    if _blank(data.get("asset_id")):
        errors["asset_id"] = "Select an asset."

    asset_type = data.get("asset_type")
    if _blank(asset_type):
        errors["asset_type"] = "Select an asset type."
    elif asset_type not in ASSET_TYPES:
        errors["asset_type"] = "Asset type must be hardware or software."

    assigned_date = _date_field(data, "assigned_date", errors)
    if assigned_date is None and "assigned_date" not in errors:
        errors["assigned_date"] = "Assignment date is required."
    elif assigned_date is not None:
        if assigned_date > today:
            errors["assigned_date"] = "Assignment date cannot be in the future."
        elif assigned_date < MIN_ASSIGNMENT_DATE:
            errors["assigned_date"] = f"Assignment date cannot be before {MIN_ASSIGNMENT_DATE.isoformat()}."

    expected_return = _date_field(data, "expected_return_date", errors)
    if assigned_date and expected_return and expected_return <= assigned_date:
        errors["expected_return_date"] = "Expected return date must be after the assignment date."

    notes = _text(data.get("notes"))
    if len(notes) > NOTES_MAX_LENGTH:
        errors["notes"] = f"Notes must be at most {NOTES_MAX_LENGTH} characters."
    return errors


def validate_return_form(data: Mapping[str, Any], assigned_date: Any = None,
                         today: Optional[date] = None) -> Dict[str, str]:
    """Check a return form against the assignment it closes."""
    errors: Dict[str, str] = {}
    today = today or date.today()

    return_date = _date_field(data, "return_date", errors)
    if return_date is None and "return_date" not in errors:
        errors["return_date"] = "Return date is required."
    elif return_date is not None:
        assigned = _as_date(assigned_date)
        if assigned is not None and return_date < assigned:
            errors["return_date"] = "Return date cannot be before the assignment date."
        elif return_date > today:
            errors["return_date"] = "Return date cannot be in the future."

    condition = data.get("condition")
    if not _blank(condition) and condition not in ASSET_CONDITIONS:
        errors["condition"] = "Select a valid condition."

    notes = _text(data.get("return_notes") or data.get("notes"))
    if len(notes) > RETURN_NOTES_MAX_LENGTH:
        errors["return_notes"] = f"Return notes must be at most {RETURN_NOTES_MAX_LENGTH} characters."
    return errors


FORM_VALIDATORS: Dict[str, Callable[..., Dict[str, str]]] = {
    "employee": validate_employee_form,
    "hardware": validate_hardware_form,
    "software": validate_software_form,
    "user": validate_user_form,
    "assignment": validate_assignment_form,
    "return": validate_return_form,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _blank(value: Any) -> bool:
    return not _text(value)


def _put(errors: Dict[str, str], name: str, message: Optional[str]):
    if message:
        errors[name] = message


def _as_date(value: Any) -> Optional[date]:
    parsed = to_datetime(value)
    return parsed.date() if parsed is not None else None


def _date_field(data: Mapping[str, Any], name: str, errors: Dict[str, str]) -> Optional[date]:
    value = data.get(name)
    if not isinstance(value, (date, datetime)) and _blank(value):
        return None
    parsed = _as_date(value)
    if parsed is None:
        errors[name] = "Enter a valid date."
    return parsed


def _check_price(value: Any) -> Optional[str]:
    if _blank(value):
        return None
    price = to_number(value)
    if math.isnan(price):
        return "Enter a valid number."
    if price < 0:
        return "Price cannot be negative."
    if price > PRICE_MAX:
        return "Price is too large."
    return None


def _check_password(value: Any) -> Optional[str]:
    strength = validate_password_strength(str(value))
    return strength.issues[0] if strength.issues else None


def _check_role(value: Any) -> Optional[str]:
    return None if parse_role(value) is not None else "Invalid role."
