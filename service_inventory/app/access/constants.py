"""
Status dictionaries and limits shared by validators, imports and reports.
"""

from datetime import date
from typing import Dict, Tuple

# Users
USER_STATUSES: Tuple[str, ...] = ("active", "inactive", "suspended", "pending")

USER_STATUS_LABELS: Dict[str, str] = {
    "active": "Active",
    "inactive": "Inactive",
    "suspended": "Suspended",
    "pending": "Pending approval",
}

USER_STATUS_DESCRIPTIONS: Dict[str, str] = {
    "active": "Can sign in and use every feature granted by the role",
    "inactive": "Cannot sign in",
    "suspended": "Temporarily blocked from using the system",
    "pending": "Waiting for account approval",
}

# Employees
EMPLOYEE_STATUSES: Tuple[str, ...] = ("active", "inactive", "terminated")

EMPLOYEE_STATUS_LABELS: Dict[str, str] = {
    "active": "Employed",
    "inactive": "On leave",
    "terminated": "Left the company",
}

# Hardware and software
ASSET_TYPES: Tuple[str, ...] = ("hardware", "software")

ASSET_STATUSES: Tuple[str, ...] = ("available", "assigned", "maintenance", "retired")

ASSET_STATUS_LABELS: Dict[str, str] = {
    "available": "Available",
    "assigned": "Assigned",
    "maintenance": "In maintenance",
    "retired": "Retired",
}

HARDWARE_TYPES: Tuple[str, ...] = (
    "Desktop",
    "Laptop",
    "Monitor",
    "Server",
    "Printer",
    "Scanner",
    "Network Equipment",
    "Mobile Device",
    "Tablet",
    "Accessories",
)

LICENSE_TYPES: Tuple[str, ...] = (
    "perpetual",
    "subscription",
    "volume",
    "oem",
    "freeware",
    "open_source",
)

LICENSE_TYPE_LABELS: Dict[str, str] = {
    "perpetual": "Perpetual",
    "subscription": "Subscription",
    "volume": "Volume",
    "oem": "OEM",
    "freeware": "Freeware",
    "open_source": "Open source",
}

# Assignments
ASSIGNMENT_STATUSES: Tuple[str, ...] = (
    "active",
    "returned",
    "pending",
    "overdue",
    "lost",
    "damaged",
)

ASSIGNMENT_STATUS_LABELS: Dict[str, str] = {
    "active": "In use",
    "returned": "Returned",
    "pending": "Pending",
    "overdue": "Overdue",
    "lost": "Lost",
    "damaged": "Damaged",
}

ASSET_CONDITIONS: Tuple[str, ...] = ("good", "fair", "poor", "damaged")

ASSET_CONDITION_LABELS: Dict[str, str] = {
    "good": "Good",
    "fair": "Fair",
    "poor": "Poor",
    "damaged": "Damaged",
}

# Activity log
ACTIVITY_TYPES: Tuple[str, ...] = ("assignment", "return", "create", "update", "delete")

USER_ACTIVITY_TYPES: Tuple[str, ...] = (
    "login",
    "logout",
    "password_change",
    "profile_update",
    "role_change",
    "account_lock",
    "account_unlock",
    "failed_login",
    "password_reset",
    "status_change",
)

ENTITY_TYPES: Tuple[str, ...] = ("employee", "hardware", "software", "assignment", "user")

# Assignment limits
NOTES_MAX_LENGTH = 500
RETURN_NOTES_MAX_LENGTH = 500
MIN_ASSIGNMENT_DATE = date(2020, 1, 1)
MAX_ASSIGNMENTS_PER_EMPLOYEE = 5
MAX_ASSIGNMENT_DURATION_DAYS = 365 * 2
LICENSE_UTILIZATION_WARNING = 0.8

# Security
MAX_LOGIN_ATTEMPTS = 5
SESSION_TIMEOUT_SECONDS = 8 * 60 * 60
