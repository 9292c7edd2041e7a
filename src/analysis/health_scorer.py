"""This module computes the heuristic health score of a group."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from analysis.models import GroupRecord

BASELINE_SCORE = 100
LARGE_GROUP_THRESHOLD = 1000
MAX_AGE_DAYS = 730
HIGH_DISABLED_PERCENT = 40
MODERATE_DISABLED_PERCENT = 20

MISSING_DESCRIPTION = "Missing description"
NO_MANAGER = "No manager assigned"
EMPTY_GROUP = "Empty group"
LARGE_GROUP = "Large group (>1000 members)"
OLD_GROUP = "Group older than 2 years"
HIGH_DISABLED = "High percentage of disabled users (>40%)"
MODERATE_DISABLED = "Moderate percentage of disabled users (>20%)"


@dataclass(frozen=True)
class HealthAssessment:
    """The score of a group and the reasons it lost points."""

    score: int
    issues: list[str] = field(default_factory=list)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _age_in_days(created_at: datetime, now: datetime) -> int:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (now - created_at).days


def score_group(record: GroupRecord, now: datetime | None = None) -> HealthAssessment:
    """Score a group between 0 and 100.

    Rules are evaluated in a fixed order and every triggered rule appends its
    issue, so the issue list is stable for a given record.

    Parameters
    ----------
    record
        The assembled group record.
    now
        The reference time for the age rule. Defaults to the current UTC time.

    Returns
    -------
    HealthAssessment
        The clamped score and the ordered issue list.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    score = BASELINE_SCORE
    issues: list[str] = []

    if _is_blank(record.description):
        score -= 20
        issues.append(MISSING_DESCRIPTION)

    if _is_blank(record.manager_reference):
        score -= 20
        issues.append(NO_MANAGER)

    # Both rules key off the member count, keep them as one if/elif chain.
    if record.total_member_count == 0:
        score -= 30
        issues.append(EMPTY_GROUP)
    elif record.total_member_count > LARGE_GROUP_THRESHOLD:
        score -= 10
        issues.append(LARGE_GROUP)

    if record.created_at is not None:
        if _age_in_days(record.created_at, now) > MAX_AGE_DAYS:
            score -= 10
            issues.append(OLD_GROUP)

    if record.user_member_count > 0:
        disabled_percent = (
            record.disabled_user_count / record.user_member_count * 100
        )
        if disabled_percent > HIGH_DISABLED_PERCENT:
            score -= 30
            issues.append(HIGH_DISABLED)
        elif disabled_percent > MODERATE_DISABLED_PERCENT:
            score -= 15
            issues.append(MODERATE_DISABLED)

    return HealthAssessment(score=max(score, 0), issues=issues)
