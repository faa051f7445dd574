"""Dependency analysis: which PRs must be reviewed before which."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..ingest.git_refs import AncestryOracle
from ..models import DependencyRecord, PullRequest
from .chains import DependencyChain, build_dependency_chains, independent_prs
from .graph import build_dependency_graph
from .ordering import CycleReport, VisitState, assign_review_order


@dataclass
class DependencyAnalysis:
    records: dict[int, DependencyRecord]
    chains: list[DependencyChain] = field(default_factory=list)
    independent: list[int] = field(default_factory=list)
    cycles: list[CycleReport] = field(default_factory=list)

    def get(self, pr_id: int) -> DependencyRecord | None:
        return self.records.get(pr_id)


def analyze_dependencies(
    prs: Iterable[PullRequest],
    oracle: AncestryOracle,
    max_workers: int = 1,
) -> DependencyAnalysis:
    """Build the graph, order it, then extract chains and independent PRs."""
    records = build_dependency_graph(prs, oracle, max_workers=max_workers)
    cycles = assign_review_order(records)
    return DependencyAnalysis(
        records=records,
        chains=build_dependency_chains(records),
        independent=independent_prs(records),
        cycles=cycles,
    )


__all__ = [
    "CycleReport",
    "DependencyAnalysis",
    "DependencyChain",
    "VisitState",
    "analyze_dependencies",
    "assign_review_order",
    "build_dependency_chains",
    "build_dependency_graph",
    "independent_prs",
]
