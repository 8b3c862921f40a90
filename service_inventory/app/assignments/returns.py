"""
Return checks and asset condition scoring.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from ..rules.engine import to_datetime

CONDITION_SCORES: Dict[str, int] = {
    "excellent": 5,
    "good": 4,
    "fair": 3,
    "poor": 2,
    "damaged": 1,
}

SCORE_WEIGHTS = {"overall": 0.4, "physical": 0.3, "functional": 0.3}

MANAGER_APPROVAL_SCORE = 2.5
MIN_RETURN_NOTES_LENGTH = 10

# Minutes
PROCESSING_TIME_CRITICAL = 120
PROCESSING_TIME_MAJOR = 60
PROCESSING_TIME_DEFAULT = 30


class AssetIssue(BaseModel):
    type: str = "functional"  # cosmetic | functional | performance | software | missing_parts
    severity: str = "minor"  # minor | moderate | major | critical
    description: str = ""
    requires_repair: bool = False
    estimated_cost: Optional[float] = None


class AssetCondition(BaseModel):
    overall: str = "good"
    physical: Dict[str, str] = Field(default_factory=dict)
    functional: Dict[str, str] = Field(default_factory=dict)
    issues: List[AssetIssue] = Field(default_factory=list)
    rating: Optional[int] = Field(None, ge=1, le=5)


class ReturnIssue(BaseModel):
    type: str  # condition | timing | process | documentation
    severity: str
    message: str
    solution: Optional[str] = None
    blocking: bool = False


class ReturnValidationResult(BaseModel):
    can_return: bool
    issues: List[ReturnIssue] = Field(default_factory=list)
    warnings: List[ReturnIssue] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    estimated_processing_time: int
    requires_manager_approval: bool
    approval_reason: Optional[str] = None
    return_score: float


class ReturnCheckRequest(BaseModel):
    assignment: Dict[str, Any]
    return_data: Dict[str, Any] = Field(default_factory=dict)
    condition: AssetCondition = Field(default_factory=AssetCondition)


def _average(ratings: Mapping[str, str]) -> float:
    if not ratings:
        return 0.0
    return sum(CONDITION_SCORES.get(rating, 0) for rating in ratings.values()) / len(ratings)


def calculate_return_score(condition: AssetCondition) -> float:
    """Weighted 1-5 score; unknown ratings count as 0."""
    return (
        CONDITION_SCORES.get(condition.overall, 0) * SCORE_WEIGHTS["overall"]
        + _average(condition.physical) * SCORE_WEIGHTS["physical"]
        + _average(condition.functional) * SCORE_WEIGHTS["functional"]
    )


def days_between(start: Any, end: Any) -> int:
    """Whole days from ``start`` to ``end`` rounded up; 0 when either is unreadable."""
    start_at, end_at = to_datetime(start), to_datetime(end)
    if start_at is None or end_at is None:
        return 0
    return math.ceil((end_at - start_at).total_seconds() / 86400)


def validate_return(assignment: Mapping[str, Any], return_data: Mapping[str, Any],
                    condition: AssetCondition, now: Optional[datetime] = None) -> ReturnValidationResult:
    issues: List[ReturnIssue] = []
    warnings: List[ReturnIssue] = []
    next_steps: List[str] = []

    returned_at = return_data.get("return_date") or now or datetime.now()
    if days_between(assignment.get("assigned_date"), returned_at) < 1:
        warnings.append(ReturnIssue(
            type="timing",
            severity="warning",
            message="Returning an asset on the day it was assigned is unusual.",
            solution="State the reason for the return.",
        ))

    critical = [issue for issue in condition.issues if issue.severity == "critical"]
    major = [issue for issue in condition.issues if issue.severity == "major"]

    if critical:
        issues.append(ReturnIssue(
            type="condition",
            severity="error",
            message=f"{len(critical)} critical issue(s) found.",
            solution="Repair is required and a manager must approve the return.",
            blocking=True,
        ))
        next_steps.extend(["Register repair", "Manager approval"])

    if major:
        warnings.append(ReturnIssue(
            type="condition",
            severity="warning",
            message=f"{len(major)} major issue(s) found.",
            solution="Inspect the asset and decide whether it needs repair.",
        ))
        next_steps.append("Technical inspection")

    notes = return_data.get("return_notes") or ""
    if len(str(notes).strip()) < MIN_RETURN_NOTES_LENGTH:
        warnings.append(ReturnIssue(
            type="documentation",
            severity="warning",
            message="The return reason is too short.",
            solution="Describe why the asset is being returned.",
        ))

    score = calculate_return_score(condition)
    if critical:
        processing_time = PROCESSING_TIME_CRITICAL
    elif major:
        processing_time = PROCESSING_TIME_MAJOR
    else:
        processing_time = PROCESSING_TIME_DEFAULT

    requires_approval = bool(critical) or score < MANAGER_APPROVAL_SCORE
    approval_reason = None
    if requires_approval:
        approval_reason = "Severe asset damage" if critical else "Low condition score"

    return ReturnValidationResult(
        can_return=not issues,
        issues=issues,
        warnings=warnings,
        next_steps=next_steps,
        estimated_processing_time=processing_time,
        requires_manager_approval=requires_approval,
        approval_reason=approval_reason,
        return_score=round(score, 2),
    )
