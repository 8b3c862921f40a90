"""
Pre-assignment eligibility checks over the current assignment list.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from ..access.constants import LICENSE_UTILIZATION_WARNING, MAX_ASSIGNMENTS_PER_EMPLOYEE

ACTIVE_STATUS = "active"

Assignment = Mapping[str, Any]


class EligibilityIssue(BaseModel):
    type: str  # asset_availability | employee_limit | software_license | conflict
    severity: str = "error"
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class EligibilityResult(BaseModel):
    is_eligible: bool
    issues: List[EligibilityIssue] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class SoftwareLicenses(BaseModel):
    total_licenses: Optional[int] = None
    max_licenses: Optional[int] = None

    @property
    def capacity(self) -> int:
        return self.max_licenses or self.total_licenses or 1


class EligibilityRequest(BaseModel):
    employee_id: str
    asset_id: str
    asset_type: str
    assignments: List[Dict[str, Any]] = Field(default_factory=list)
    max_employee_assignments: int = Field(MAX_ASSIGNMENTS_PER_EMPLOYEE, ge=1)
    software_licenses: Optional[SoftwareLicenses] = None
    exclude_assignment_id: Optional[str] = None


def is_active(assignment: Assignment) -> bool:
    return assignment.get("status") == ACTIVE_STATUS


def _ids(assignments: Sequence[Assignment]) -> List[Any]:
    return [assignment.get("id") for assignment in assignments]


def active_for_asset(asset_id: str, assignments: Sequence[Assignment]) -> List[Assignment]:
    return [a for a in assignments if str(a.get("asset_id")) == str(asset_id) and is_active(a)]


def active_for_employee(employee_id: str, assignments: Sequence[Assignment]) -> List[Assignment]:
    return [a for a in assignments if str(a.get("employee_id")) == str(employee_id) and is_active(a)]


def check_assignment_eligibility(employee_id: str, asset_id: str, asset_type: str,
                                 assignments: Sequence[Assignment],
                                 max_employee_assignments: int = MAX_ASSIGNMENTS_PER_EMPLOYEE,
                                 software_licenses: Optional[SoftwareLicenses] = None,
                                 exclude_assignment_id: Optional[str] = None) -> EligibilityResult:
    """Decide whether ``asset_id`` may be assigned to ``employee_id``.

    ``exclude_assignment_id`` leaves out the assignment being edited.
    Software with licence data is limited by seat count; without it a
    software asset is treated like hardware, one active assignment at a time.
    """
    if exclude_assignment_id is not None:
        assignments = [a for a in assignments if str(a.get("id")) != str(exclude_assignment_id)]

    issues: List[EligibilityIssue] = []
    warnings: List[str] = []
    recommendations: List[str] = []

    asset_assignments = active_for_asset(asset_id, assignments)
    if software_licenses is not None and asset_type == "software":
        in_use = len([a for a in asset_assignments if a.get("asset_type") == "software"])
        capacity = software_licenses.capacity
        utilization = in_use / capacity * 100 if capacity > 0 else 0.0
        if in_use >= capacity:
            issues.append(EligibilityIssue(
                type="software_license",
                message=f"All licences are in use ({in_use}/{capacity}).",
                details={"current_usage": in_use, "max_licenses": capacity, "utilization_rate": utilization},
            ))
        elif utilization >= LICENSE_UTILIZATION_WARNING * 100:
            warnings.append(f"Software licence utilisation is high ({utilization:.1f}%).")
    elif asset_assignments:
        message = ("This hardware is already assigned to another employee."
                   if asset_type == "hardware" else "All licences for this software are in use.")
        issues.append(EligibilityIssue(
            type="asset_availability",
            message=message,
            details={"conflicting_assignments": _ids(asset_assignments)},
        ))

    employee_assignments = active_for_employee(employee_id, assignments)
    current = len(employee_assignments)
    if current >= max_employee_assignments:
        issues.append(EligibilityIssue(
            type="employee_limit",
            message=f"Employee has reached the maximum of {max_employee_assignments} assignments.",
            details={"current_count": current, "active_assignments": _ids(employee_assignments)},
        ))
    elif current >= max_employee_assignments - 1:
        warnings.append(f"Employee is close to the assignment limit ({current + 1}/{max_employee_assignments}).")

    duplicates = [a for a in employee_assignments if str(a.get("asset_id")) == str(asset_id)]
    if duplicates:
        issues.append(EligibilityIssue(
            type="conflict",
            message="There is already an active assignment of this asset to the employee.",
            details={"conflicting_assignments": _ids(duplicates)},
        ))

    if not issues:
        recommendations.append("Hardware assignment approved." if asset_type == "hardware"
                               else "Software licence assignment approved.")
    else:
        kinds = {issue.type for issue in issues}
        if "asset_availability" in kinds or "software_license" in kinds:
            recommendations.append("Choose another available asset or retry after the current assignment is returned.")
        if "employee_limit" in kinds:
            recommendations.append("Return one of the employee's assignments or ask an administrator to raise the limit.")

    return EligibilityResult(
        is_eligible=not any(issue.severity == "error" for issue in issues),
        issues=issues,
        warnings=warnings,
        recommendations=recommendations,
    )
