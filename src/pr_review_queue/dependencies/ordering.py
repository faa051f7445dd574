"""Assign a review order that puts prerequisites first, tolerating cycles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from rich.console import Console

from ..models import DependencyRecord

console = Console()


class VisitState(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


@dataclass(frozen=True)
class CycleReport:
    pr_id: int  # PR reached again while still in progress
    via_pr_id: int  # PR whose dependency closed the loop
    path: tuple[int, ...]  # from pr_id back around to pr_id


def assign_review_order(records: dict[int, DependencyRecord]) -> list[CycleReport]:
    """Depth-first post-order over ``depends_on`` using an explicit stack.

    Roots are taken in ``records`` order. A back-edge to a PR that is still
    in progress is reported and skipped, so every PR still receives exactly
    one ``review_order`` in ``0..n-1``. Returns the detected cycles.
    """
    state = {pr_id: VisitState.UNVISITED for pr_id in records}
    sequence: list[int] = []
    cycles: list[CycleReport] = []

    for root in records:
        if state[root] is not VisitState.UNVISITED:
            continue
        state[root] = VisitState.IN_PROGRESS
        stack: list[tuple[int, int]] = [(root, 0)]

        while stack:
            node, next_dep = stack[-1]
            depends_on = records[node].depends_on
            if next_dep >= len(depends_on):
                stack.pop()
                state[node] = VisitState.DONE
                sequence.append(node)
                continue

            stack[-1] = (node, next_dep + 1)
            dep = depends_on[next_dep]
            dep_state = state.get(dep)
            if dep_state is VisitState.UNVISITED:
                state[dep] = VisitState.IN_PROGRESS
                stack.append((dep, 0))
            elif dep_state is VisitState.IN_PROGRESS:
                on_stack = [pr_id for pr_id, _ in stack]
                path = tuple(on_stack[on_stack.index(dep):]) + (dep,)
                cycles.append(CycleReport(pr_id=dep, via_pr_id=node, path=path))
                loop = " -> ".join(f"#{pr_id}" for pr_id in path)
                console.print(f"[yellow]Warning: circular dependency detected involving PR #{dep} ({loop})[/]")

    for index, pr_id in enumerate(sequence):
        record = records[pr_id]
        record.review_order = index
        record.is_blocked = len(record.depends_on) > 0

    return cycles
