"""Merge dependency order and priority scores into a grouped review queue."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from .dependencies import CycleReport, DependencyAnalysis, DependencyChain
from .models import EXCEPTION_REASONS, PriorityReason, ReviewQueueEntry

GROUP_TITLES = {
    PriorityReason.NO_TICKET: "No Ticket",
    PriorityReason.NO_FIX_VERSION: "No Fix Version",
    PriorityReason.MISSING_RELEASE_DATE: "Fix Version Missing Date",
}


@dataclass
class QueueGroup:
    title: str
    reason: PriorityReason
    release_date: date | None = None
    fix_version: str | None = None
    entries: list[ReviewQueueEntry] = field(default_factory=list)


@dataclass
class ReviewQueue:
    entries: list[ReviewQueueEntry]
    groups: list[QueueGroup]
    analysis: DependencyAnalysis | None = None

    @property
    def chains(self) -> list[DependencyChain]:
        return self.analysis.chains if self.analysis else []

    @property
    def independent(self) -> list[int]:
        return self.analysis.independent if self.analysis else []

    @property
    def cycles(self) -> list[CycleReport]:
        return self.analysis.cycles if self.analysis else []

    def issue_summary(self) -> dict[str, int]:
        """Count PRs whose ticket metadata needs attention."""
        return {
            "no_ticket": sum(1 for e in self.entries if e.ticket is None),
            "no_fix_version": sum(
                1 for e in self.entries if e.ticket is not None and not e.ticket.fix_versions
            ),
            "missing_release_date": sum(
                1 for e in self.entries if e.ticket is not None and e.ticket.has_version_without_date
            ),
        }


def sort_entries(
    entries: Iterable[ReviewQueueEntry],
    analysis: DependencyAnalysis | None = None,
) -> list[ReviewQueueEntry]:
    """Review order first when dependencies were analyzed, then score.

    The sort is stable, so full ties keep their input order.
    """
    entries = list(entries)
    if analysis is None:
        return sorted(entries, key=lambda e: e.priority.score)

    unranked = len(analysis.records)

    def key(entry: ReviewQueueEntry) -> tuple[int, int]:
        order = entry.dependency.review_order if entry.dependency else unranked
        return order, entry.priority.score

    return sorted(entries, key=key)


def group_entries(entries: Iterable[ReviewQueueEntry]) -> list[QueueGroup]:
    """Bucket sorted entries: exception reasons first, then releases by date and name."""
    exception_groups = {
        reason: QueueGroup(title=GROUP_TITLES[reason], reason=reason) for reason in EXCEPTION_REASONS
    }
    release_groups: dict[tuple[date, str], QueueGroup] = {}

    for entry in entries:
        priority = entry.priority
        if priority.reason in exception_groups:
            exception_groups[priority.reason].entries.append(entry)
            continue

        bucket = (priority.release_date, priority.fix_version or "Unknown")
        if bucket not in release_groups:
            release_groups[bucket] = QueueGroup(
                title=f"{priority.release_date:%b %d, %Y} - {bucket[1]}",
                reason=priority.reason,
                release_date=priority.release_date,
                fix_version=bucket[1],
            )
        release_groups[bucket].entries.append(entry)

    groups = [exception_groups[reason] for reason in EXCEPTION_REASONS]
    groups.extend(release_groups[bucket] for bucket in sorted(release_groups))
    return [group for group in groups if group.entries]


def compose_review_queue(
    entries: Iterable[ReviewQueueEntry],
    analysis: DependencyAnalysis | None = None,
) -> ReviewQueue:
    """Attach dependency records, sort, and group scored entries."""
    entries = list(entries)
    if analysis is not None:
        for entry in entries:
            entry.dependency = analysis.get(entry.pr.id)

    ordered = sort_entries(entries, analysis)
    return ReviewQueue(entries=ordered, groups=group_entries(ordered), analysis=analysis)
