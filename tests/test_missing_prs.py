from datetime import date, datetime, timezone

from pr_review_queue.missing import find_missing_prs
from pr_review_queue.models import FixVersion, PullRequest, Ticket

NOW = datetime(2024, 12, 20, 15, 0, tzinfo=timezone.utc)


def _ticket(key, *versions, issue_type="Story"):
    return Ticket(key=key, summary=f"{key} summary", fix_versions=tuple(versions), issue_type=issue_type)


def _pr(key):
    return PullRequest(
        id=1,
        title=f"{key} implement",
        author="dev",
        source_branch=f"feat/{key}",
        target_branch="test",
        created_at=NOW,
    )


def test_window_bounds_are_inclusive_and_sorted_by_days():
    tickets = [
        _ticket("APP-1", FixVersion("late", False, date(2025, 1, 17))),  # 28 days
        _ticket("APP-2", FixVersion("today", False, date(2024, 12, 20))),  # 0 days
        _ticket("APP-3", FixVersion("too-late", False, date(2025, 1, 18))),  # 29 days
        _ticket("APP-4", FixVersion("past", False, date(2024, 12, 19))),
    ]

    missing = find_missing_prs(tickets, [], now=NOW)

    assert [(m.ticket.key, m.days_until_release) for m in missing] == [("APP-2", 0), ("APP-1", 28)]


def test_tickets_with_prs_subtasks_and_released_versions_are_skipped():
    tickets = [
        _ticket("APP-1", FixVersion("soon", False, date(2024, 12, 24))),
        _ticket("APP-2", FixVersion("soon", False, date(2024, 12, 24)), issue_type="Sub-task"),
        _ticket("APP-3", FixVersion("shipped", True, date(2024, 12, 24))),
        _ticket("APP-4", FixVersion("undated", False, None)),
        _ticket("APP-5", FixVersion("soon", False, date(2024, 12, 24))),
    ]

    missing = find_missing_prs(tickets, [_pr("APP-1")], now=NOW)

    assert [m.ticket.key for m in missing] == ["APP-5"]


def test_first_qualifying_version_is_used_and_merged_tickets_are_dropped():
    tickets = [
        _ticket(
            "APP-1",
            FixVersion("far", False, date(2025, 6, 1)),
            FixVersion("near", False, date(2024, 12, 30)),
            FixVersion("nearer", False, date(2024, 12, 22)),
        ),
        _ticket("APP-2", FixVersion("near", False, date(2024, 12, 30))),
    ]
    checked = []

    def is_merged(key):
        checked.append(key)
        return key == "APP-2"

    missing = find_missing_prs(tickets, [], now=NOW, is_merged=is_merged, window_days=14)

    assert len(missing) == 1
    assert missing[0].fix_version.name == "near"
    assert missing[0].days_until_release == 10
    assert checked == ["APP-1", "APP-2"]
