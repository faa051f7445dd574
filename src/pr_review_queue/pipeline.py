"""End-to-end review run: load snapshots, analyze dependencies, score and compose."""

from __future__ import annotations

from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Iterable

from rich.console import Console

from .dependencies import analyze_dependencies
from .ingest import (
    AncestryOracle,
    GitAncestryOracle,
    TicketSource,
    TicketStore,
    awaiting_review,
    is_ticket_merged,
    load_pull_requests,
    lookup_ticket,
    refresh_remote_refs,
)
from .missing import MissingPR, find_missing_prs
from .models import PullRequest, ReviewQueueEntry
from .priority import ScoringPolicy, score_pull_request
from .review_queue import ReviewQueue, compose_review_queue

console = Console()


def unique_pull_requests(prs: Iterable[PullRequest]) -> list[PullRequest]:
    """First occurrence of each PR id wins; later copies are dropped with a warning."""
    seen: set[int] = set()
    unique = []
    for pr in prs:
        if pr.id in seen:
            console.print(f"[yellow]Warning: duplicate PR #{pr.id} ignored[/]")
            continue
        seen.add(pr.id)
        unique.append(pr)
    return unique


def score_entries(
    prs: Iterable[PullRequest],
    tickets: TicketSource | None,
    now: datetime,
    policy: ScoringPolicy | None = None,
) -> list[ReviewQueueEntry]:
    entries = []
    for pr in prs:
        ticket = lookup_ticket(tickets, pr.ticket_key)
        priority = score_pull_request(pr, ticket, now=now, policy=policy)
        entries.append(ReviewQueueEntry(pr=pr, priority=priority, ticket=ticket))
    return entries


def build_review_queue(
    prs: Iterable[PullRequest],
    tickets: TicketSource | None = None,
    now: datetime | None = None,
    reviewer: str | None = None,
    oracle: AncestryOracle | None = None,
    policy: ScoringPolicy | None = None,
    max_workers: int = 1,
) -> ReviewQueue:
    """Compose the review queue from already-loaded collaborators.

    Dependency analysis runs only when an ``oracle`` is given. PRs are fed
    to it in score order, so PRs no dependency constrains keep their
    priority order in the final queue.
    """
    now = now or datetime.now(timezone.utc)
    prs = unique_pull_requests(prs)
    if reviewer:
        prs = awaiting_review(prs, reviewer)

    entries = score_entries(prs, tickets, now, policy)

    analysis = None
    if oracle is not None:
        by_score = sorted(entries, key=lambda e: e.priority.score)
        analysis = analyze_dependencies([e.pr for e in by_score], oracle, max_workers=max_workers)

    return compose_review_queue(entries, analysis)


def load_sources(config: dict) -> tuple[list[PullRequest], TicketStore]:
    prs_path = Path(config["sources"]["prs_file"])
    console.print(f"\n[bold blue]Step 1:[/] Loading open PRs from {prs_path}...")
    prs = load_pull_requests(prs_path)
    console.print(f"  → {len(prs)} PRs loaded")

    console.print("\n[bold blue]Step 2:[/] Loading ticket snapshot...")
    tickets = TicketStore.load(config["sources"]["tickets_file"])
    console.print(f"  → {len(tickets)} tickets loaded")
    return prs, tickets


def run_review(
    config: dict,
    reviewer: str | None = None,
    with_dependencies: bool = False,
    now: datetime | None = None,
    sources: tuple[list[PullRequest], TicketStore] | None = None,
) -> ReviewQueue:
    """Full review run against the configured snapshots and git clone."""
    prs, tickets = sources or load_sources(config)

    oracle = None
    if with_dependencies:
        repo_cfg = config["repo"]
        console.print("\n[bold blue]Step 3:[/] Analyzing branch dependencies...")
        if repo_cfg.get("refresh", True):
            refresh_remote_refs(repo_cfg["dir"])
        oracle = GitAncestryOracle(repo_cfg["dir"], remote=repo_cfg.get("remote", "origin"))

    console.print("\n[bold blue]Step 4:[/] Scoring and ordering PRs...")
    queue = build_review_queue(
        prs,
        tickets,
        now=now,
        reviewer=reviewer,
        oracle=oracle,
        policy=ScoringPolicy.from_config(config.get("scoring")),
        max_workers=int(config.get("dependencies", {}).get("max_workers", 1)),
    )
    console.print(f"  → {len(queue.entries)} PRs queued")
    return queue


def run_missing_check(
    config: dict,
    now: datetime | None = None,
    sources: tuple[list[PullRequest], TicketStore] | None = None,
    refresh: bool | None = None,
) -> list[MissingPR]:
    """Tickets due soon without an open PR, skipping ones already merged.

    ``refresh`` overrides ``repo.refresh``; pass False when refs were just
    fetched by the same command.
    """
    prs, tickets = sources or load_sources(config)
    repo_cfg = config["repo"]
    missing_cfg = config.get("missing", {})

    if refresh is None:
        refresh = repo_cfg.get("refresh", True)
    if refresh:
        refresh_remote_refs(repo_cfg["dir"])
    is_merged = partial(
        is_ticket_merged,
        repo_dir=repo_cfg["dir"],
        branches=repo_cfg.get("merged_branches", ["master", "test", "next"]),
        remote=repo_cfg.get("remote", "origin"),
    )

    return find_missing_prs(
        tickets.all(),
        prs,
        now=now,
        window_days=int(missing_cfg.get("window_days", 28)),
        is_merged=is_merged,
        skip_issue_types=missing_cfg.get("skip_issue_types", ["sub-task", "subtask"]),
    )
