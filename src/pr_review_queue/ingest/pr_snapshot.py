"""Load open pull requests from an ingest snapshot and filter them by reviewer."""

import json
from pathlib import Path
from typing import Any, Iterable

from rich.console import Console

from ..models import MalformedRecordError, PullRequest

console = Console()


def parse_pull_requests(rows: Iterable[Any]) -> list[PullRequest]:
    """Convert raw PR rows, skipping malformed ones with a warning."""
    prs = []
    for idx, row in enumerate(rows, start=1):
        try:
            prs.append(PullRequest.from_record(row))
        except MalformedRecordError as exc:
            console.print(f"[yellow]Warning: skipping PR row {idx}: {exc}[/]")
    return prs


def load_pull_requests(path: str | Path) -> list[PullRequest]:
    """Read PRs from a JSONL snapshot (one PR per line) or a JSON array file."""
    path = Path(path)
    if path.suffix == ".json":
        with open(path) as f:
            data = json.load(f)
        return parse_pull_requests(data if isinstance(data, list) else [])

    rows = []
    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError:
                console.print(f"[yellow]Warning: skipping malformed PR JSONL row {line_number}[/]")
    return parse_pull_requests(rows)


def awaiting_review(prs: Iterable[PullRequest], reviewer: str) -> list[PullRequest]:
    """Non-draft PRs where ``reviewer`` is a reviewer who has not approved yet."""
    result = []
    for pr in prs:
        if pr.draft:
            continue
        participant = next(
            (p for p in pr.participants if p.is_reviewer and p.name == reviewer),
            None,
        )
        if participant is not None and not participant.approved:
            result.append(pr)
    return result


def reviewer_names(prs: Iterable[PullRequest]) -> list[str]:
    """Unique reviewer names across ``prs``, sorted."""
    return sorted({p.name for pr in prs for p in pr.participants if p.is_reviewer and p.name})
