"""Urgency scores for PRs from ticket release deadlines and PR age."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Mapping

from .models import PriorityReason, PriorityScore, PullRequest, Ticket


@dataclass(frozen=True)
class ScoringPolicy:
    """Score constants; lower scores are reviewed sooner.

    A PR without a ticket scores below any scheduled release so it surfaces
    for triage. For scheduled PRs each day until release is worth
    ``days_weight`` points and each day of PR age one point, capped below a
    single day. Old PRs on overdue releases can still score below the
    ``no_fix_version`` and ``missing_release_date`` constants.
    """

    no_ticket: int = -1000
    no_fix_version: int = -900
    missing_release_date: int = -800
    days_weight: int = 1000

    @classmethod
    def from_config(cls, scoring: Mapping[str, Any] | None) -> "ScoringPolicy":
        known = {f.name for f in fields(cls)}
        overrides = {k: int(v) for k, v in (scoring or {}).items() if k in known}
        return cls(**overrides)


def pr_age_days(pr: PullRequest, now: datetime) -> int:
    return max(0, (_aware(now) - pr.created_at).days)


def score_pull_request(
    pr: PullRequest,
    ticket: Ticket | None,
    now: datetime | None = None,
    policy: ScoringPolicy | None = None,
) -> PriorityScore:
    """Score a PR; the first matching rule wins.

    No ticket, then no usable fix version, then an unreleased fix version
    without a date, then days until the earliest unreleased release.
    """
    policy = policy or ScoringPolicy()
    now = _aware(now or datetime.now(timezone.utc))
    age = pr_age_days(pr, now)

    if ticket is None:
        return PriorityScore(policy.no_ticket, PriorityReason.NO_TICKET, age)

    if not ticket.fix_versions:
        return PriorityScore(policy.no_fix_version, PriorityReason.NO_FIX_VERSION, age)

    if ticket.has_version_without_date:
        return PriorityScore(policy.missing_release_date, PriorityReason.MISSING_RELEASE_DATE, age)

    earliest = ticket.earliest_release
    if earliest is None:
        # Every fix version already shipped; nothing schedules this PR.
        return PriorityScore(policy.no_fix_version, PriorityReason.NO_FIX_VERSION, age)

    days = (earliest.release_date - now.date()).days
    # Overdue releases rank as due today and age never outweighs a whole day,
    # so scheduled scores stay above ``no_ticket`` (with the default constants).
    score = max(days, 0) * policy.days_weight - min(age, policy.days_weight - 1)
    return PriorityScore(
        score=score,
        reason=PriorityReason.SCHEDULED,
        pr_age_days=age,
        release_date=earliest.release_date,
        days_until_release=days,
        fix_version=earliest.name,
    )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
