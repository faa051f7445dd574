from datetime import datetime, timezone

from pr_review_queue.dependencies import analyze_dependencies, build_dependency_graph
from pr_review_queue.ingest.git_refs import StaticAncestryOracle
from pr_review_queue.models import PullRequest


def _pr(pr_id, branch, target="test", title=None):
    return PullRequest(
        id=pr_id,
        title=title or f"Change {pr_id}",
        author="dev",
        source_branch=branch,
        target_branch=target,
        created_at=datetime(2024, 12, 1, tzinfo=timezone.utc),
    )


class CountingOracle(StaticAncestryOracle):
    def __init__(self, pairs=()):
        super().__init__(pairs)
        self.calls = []

    def is_ancestor(self, candidate_ref, descendant_ref):
        self.calls.append((candidate_ref, descendant_ref))
        return super().is_ancestor(candidate_ref, descendant_ref)


def test_stacked_branch_creates_dependency_edge():
    prs = [_pr(10, "feat/APP-1"), _pr(11, "feat/APP-2")]
    oracle = StaticAncestryOracle({("feat/APP-1", "feat/APP-2")})

    analysis = analyze_dependencies(prs, oracle)

    assert analysis.records[11].depends_on == [10]
    assert analysis.records[10].blocked_by == [11]
    assert analysis.records[10].depends_on == []
    assert analysis.records[11].is_blocked is True
    assert analysis.records[10].is_blocked is False
    assert analysis.records[10].review_order < analysis.records[11].review_order
    assert [chain.labels for chain in analysis.chains] == [("APP-1", "APP-2")]
    assert analysis.independent == []
    assert analysis.cycles == []


def test_prerequisite_already_in_target_is_not_a_dependency():
    prs = [_pr(1, "feat/base"), _pr(2, "feat/top")]
    oracle = StaticAncestryOracle({("feat/base", "feat/top"), ("feat/base", "test")})

    records = build_dependency_graph(prs, oracle)

    assert records[2].depends_on == []
    assert records[1].blocked_by == []


def test_target_check_only_runs_after_source_ancestry_matches():
    prs = [_pr(1, "feat/a"), _pr(2, "feat/b")]
    oracle = CountingOracle({("feat/a", "feat/b")})

    build_dependency_graph(prs, oracle)

    assert oracle.calls == [
        ("feat/b", "feat/a"),
        ("feat/a", "feat/b"),
        ("feat/a", "test"),
    ]


def test_no_self_edges_even_with_duplicate_ids_or_shared_branches():
    prs = [_pr(1, "feat/shared"), _pr(1, "feat/shared"), _pr(2, "feat/shared")]
    oracle = StaticAncestryOracle()

    records = build_dependency_graph(prs, oracle)

    assert list(records) == [1, 2]
    for pr_id, record in records.items():
        assert pr_id not in record.depends_on
        assert pr_id not in record.blocked_by
    # Same branch means each is an ancestor of the other.
    assert records[1].depends_on == [2]
    assert records[2].depends_on == [1]


def test_failed_oracle_answers_leave_pr_independent():
    prs = [_pr(1, "feat/a"), _pr(2, "feat/unknown-ref")]

    analysis = analyze_dependencies(prs, StaticAncestryOracle())

    assert analysis.independent == [1, 2]
    assert analysis.chains == []
    assert sorted(r.review_order for r in analysis.records.values()) == [0, 1]


def test_concurrent_build_matches_sequential_build():
    prs = [_pr(i, f"feat/{i}") for i in range(1, 7)]
    pairs = {
        ("feat/1", "feat/2"),
        ("feat/1", "feat/3"),
        ("feat/2", "feat/3"),
        ("feat/4", "feat/5"),
        ("feat/4", "test"),
        ("feat/6", "feat/5"),
    }

    sequential = build_dependency_graph(prs, StaticAncestryOracle(pairs))
    concurrent = build_dependency_graph(prs, StaticAncestryOracle(pairs), max_workers=4)

    assert {k: (v.depends_on, v.blocked_by) for k, v in sequential.items()} == {
        k: (v.depends_on, v.blocked_by) for k, v in concurrent.items()
    }
    assert sequential[3].depends_on == [1, 2]
    assert sequential[5].depends_on == [6]
