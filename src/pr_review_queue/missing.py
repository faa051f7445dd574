"""Find tickets due in an upcoming release that nobody has opened a PR for."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

from rich.console import Console

from .models import FixVersion, PullRequest, Ticket

console = Console()


@dataclass(frozen=True)
class MissingPR:
    ticket: Ticket
    fix_version: FixVersion
    days_until_release: int


def find_missing_prs(
    tickets: Iterable[Ticket],
    prs: Iterable[PullRequest],
    now: datetime | None = None,
    window_days: int = 28,
    is_merged: Callable[[str], bool] | None = None,
    skip_issue_types: Iterable[str] = ("sub-task", "subtask"),
) -> list[MissingPR]:
    """Tickets with no open PR whose fix version ships within ``window_days``.

    Sub-tasks are skipped, as are tickets ``is_merged`` reports as already
    landed. Only the first qualifying fix version of a ticket counts.
    """
    today = (now or datetime.now(timezone.utc)).date()
    keys_with_prs = {pr.ticket_key for pr in prs if pr.ticket_key}
    skipped_types = tuple(t.lower() for t in skip_issue_types)

    missing = []
    for ticket in tickets:
        if ticket.key in keys_with_prs:
            continue
        issue_type = (ticket.issue_type or "").lower()
        if any(t in issue_type for t in skipped_types):
            console.print(f"[dim]Skipping {ticket.key} - is a {ticket.issue_type}[/]")
            continue

        version, days = _first_version_in_window(ticket, today, window_days)
        if version is None:
            continue
        if is_merged is not None and is_merged(ticket.key):
            console.print(f"[dim]Skipping {ticket.key} - already merged[/]")
            continue
        missing.append(MissingPR(ticket=ticket, fix_version=version, days_until_release=days))

    missing.sort(key=lambda m: m.days_until_release)
    return missing


def _first_version_in_window(ticket: Ticket, today, window_days: int) -> tuple[FixVersion | None, int]:
    for version in ticket.unreleased_versions:
        if version.release_date is None:
            continue
        days = (version.release_date - today).days
        if 0 <= days <= window_days:
            return version, days
    return None, 0
