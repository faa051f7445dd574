"""Group the dependency graph into readable review chains."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from ..models import DependencyRecord


@dataclass(frozen=True)
class DependencyChain:
    pr_ids: tuple[int, ...]
    labels: tuple[str, ...]

    def __str__(self) -> str:
        return " → ".join(self.labels)


def build_dependency_chains(records: dict[int, DependencyRecord]) -> list[DependencyChain]:
    """Breadth-first walks from each root toward the PRs that build on it.

    Each PR lands in at most one chain. Walks that never leave their root
    are the independent PRs and are not returned here.
    """
    by_order = sorted(records.values(), key=lambda record: record.review_order)
    roots = [record for record in by_order if not record.depends_on]
    processed: set[int] = set()
    chains = []

    for root in roots:
        if root.pr.id in processed:
            continue

        chain: list[DependencyRecord] = []
        queue = deque([root])
        while queue:
            current = queue.popleft()
            if current.pr.id in processed:
                continue
            processed.add(current.pr.id)
            chain.append(current)

            dependents = sorted(
                (records[pr_id] for pr_id in current.blocked_by if pr_id in records),
                key=lambda record: record.review_order,
            )
            queue.extend(dependents)

        if len(chain) > 1:
            chains.append(
                DependencyChain(
                    pr_ids=tuple(record.pr.id for record in chain),
                    labels=tuple(record.pr.label for record in chain),
                )
            )

    return chains


def independent_prs(records: dict[int, DependencyRecord]) -> list[int]:
    """PRs with neither prerequisites nor dependents, in review order."""
    return [
        record.pr.id
        for record in sorted(records.values(), key=lambda record: record.review_order)
        if not record.depends_on and not record.blocked_by
    ]
