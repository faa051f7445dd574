"""Build the PR dependency graph from branch ancestry. No network calls."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from rich.console import Console

from ..ingest.git_refs import AncestryOracle
from ..models import DependencyRecord, PullRequest

console = Console()


def build_dependency_graph(
    prs: Iterable[PullRequest],
    oracle: AncestryOracle,
    max_workers: int = 1,
) -> dict[int, DependencyRecord]:
    """Link every PR to the unmerged PRs its branch is built on.

    Q is a prerequisite of P when Q's source branch is an ancestor of P's
    source branch but not yet of P's target branch. Every ordered pair is
    checked once, so up to 2·n·(n−1) oracle queries are issued.

    Returns one record per PR, in input order.
    """
    records: dict[int, DependencyRecord] = {}
    for pr in prs:
        if pr.id in records:
            console.print(f"[yellow]Warning: duplicate PR #{pr.id} ignored in dependency analysis[/]")
            continue
        records[pr.id] = DependencyRecord(pr=pr)

    ordered = [record.pr for record in records.values()]
    pairs = [(pr, other) for pr in ordered for other in ordered if pr.id != other.id]

    if max_workers > 1 and len(pairs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            answers = list(executor.map(lambda pair: _is_pending_prerequisite(oracle, *pair), pairs))
    else:
        answers = [_is_pending_prerequisite(oracle, pr, other) for pr, other in pairs]

    # Adjacency lists are only written here, in pair order, whatever the worker count.
    for (pr, other), depends in zip(pairs, answers):
        if depends:
            records[pr.id].depends_on.append(other.id)
            records[other.id].blocked_by.append(pr.id)

    edge_count = sum(len(record.depends_on) for record in records.values())
    console.print(f"  [dim]{len(records)} PRs, {len(pairs)} pairs checked, {edge_count} dependencies[/]")
    return records


def _is_pending_prerequisite(oracle: AncestryOracle, pr: PullRequest, other: PullRequest) -> bool:
    """True when ``other`` carries commits ``pr`` builds on that have not landed yet."""
    if not oracle.is_ancestor(other.source_branch, pr.source_branch):
        return False
    # Already in the target branch means it is merged, not a pending dependency.
    return not oracle.is_ancestor(other.source_branch, pr.target_branch)
