import json
import subprocess
from pathlib import Path

import yaml
from click.testing import CliRunner

from pr_review_queue.cli import main


def _write_snapshots(root: Path, refresh=False):
    prs = [
        {
            "number": 10,
            "title": "APP-1 base change",
            "author": {"display_name": "Grace Hopper"},
            "headRefName": "feat/APP-1",
            "baseRefName": "test",
            "createdAt": "2024-12-17T00:00:00Z",
            "participants": [{"user": {"display_name": "Ada"}, "role": "REVIEWER", "approved": False}],
        },
        {
            "number": 11,
            "title": "APP-2 stacked change",
            "author": {"display_name": "Alan Turing"},
            "headRefName": "feat/APP-2",
            "baseRefName": "test",
            "createdAt": "2024-12-18T00:00:00Z",
            "participants": [{"user": {"display_name": "Ada"}, "role": "REVIEWER", "approved": False}],
        },
        {
            "number": 12,
            "title": "Untracked tweak",
            "author": {"display_name": "Linus"},
            "headRefName": "chore/tweak",
            "baseRefName": "test",
            "createdAt": "2024-12-19T00:00:00Z",
            "participants": [{"user": {"display_name": "Bob"}, "role": "REVIEWER", "approved": False}],
        },
    ]
    (root / "prs.jsonl").write_text("\n".join(json.dumps(pr) for pr in prs))
    (root / "tickets.yaml").write_text(
        yaml.safe_dump(
            {
                "APP-1": {
                    "summary": "Base",
                    "status": "In Review",
                    "fixVersions": [{"name": "2025.01", "released": False, "releaseDate": "2025-01-01"}],
                },
                "APP-2": {
                    "summary": "Stacked",
                    "status": "In Review",
                    "fixVersions": [{"name": "2025.01", "released": False, "releaseDate": "2025-01-01"}],
                },
                "APP-3": {
                    "summary": "Nobody started this",
                    "status": "To Do",
                    "fixVersions": [{"name": "2025.01", "released": False, "releaseDate": "2025-01-01"}],
                },
            }
        )
    )
    (root / "pr-review-queue.yaml").write_text(
        yaml.safe_dump(
            {
                "repo": {"dir": str(root), "refresh": refresh},
                "sources": {"prs_file": str(root / "prs.jsonl"), "tickets_file": str(root / "tickets.yaml")},
            }
        )
    )


def _fake_git(cmd, **kwargs):
    if cmd[:3] == ["git", "merge-base", "--is-ancestor"]:
        answer = cmd[3:] == ["origin/feat/APP-1", "origin/feat/APP-2"]
        return subprocess.CompletedProcess(cmd, 0 if answer else 1, stdout="", stderr="")
    if cmd[:2] == ["git", "log"]:
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
    raise AssertionError(f"Unexpected command: {cmd}")


def test_cli_exposes_review_reviewers_and_missing():
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    for command in ("review", "reviewers", "missing"):
        assert command in result.output


def test_cli_review_with_dependencies(monkeypatch):
    monkeypatch.setattr("pr_review_queue.ingest.git_refs.subprocess.run", _fake_git)

    runner = CliRunner()
    with runner.isolated_filesystem() as fs:
        _write_snapshots(Path(fs))
        result = runner.invoke(
            main,
            ["review", "--reviewer", "Ada", "--deps", "--as-of", "2024-12-20T00:00:00Z"],
        )

    assert result.exit_code == 0, result.output
    output = " ".join(result.output.split())
    assert "Chain 1: APP-1 → APP-2" in output
    assert "Jan 01, 2025 - 2025.01" in output
    assert output.index("#10") < output.index("#11")
    assert "#12" not in output
    assert "APP-3" in output
    assert "Total: 2 PRs awaiting review" in output


def test_cli_reviewers_lists_unique_names():
    runner = CliRunner()
    with runner.isolated_filesystem() as fs:
        _write_snapshots(Path(fs))
        result = runner.invoke(main, ["reviewers"])

    assert result.exit_code == 0
    assert result.output.index("Ada") < result.output.index("Bob")


def test_cli_missing_reports_tickets_without_prs(monkeypatch):
    monkeypatch.setattr("pr_review_queue.ingest.git_refs.subprocess.run", _fake_git)

    runner = CliRunner()
    with runner.isolated_filesystem() as fs:
        _write_snapshots(Path(fs))
        result = runner.invoke(main, ["missing", "--as-of", "2024-12-20"])

    assert result.exit_code == 0, result.output
    assert "APP-3" in result.output
    assert "APP-1" not in result.output


def test_cli_review_fails_cleanly_without_snapshot():
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, ["review", "--reviewer", "Ada"])

    assert result.exit_code != 0
    assert "PR snapshot not found" in result.output


def test_cli_rejects_bad_as_of():
    runner = CliRunner()
    with runner.isolated_filesystem() as fs:
        _write_snapshots(Path(fs))
        result = runner.invoke(main, ["review", "--reviewer", "Ada", "--as-of", "soon"])

    assert result.exit_code == 2


def test_cli_review_fetches_refs_once_with_deps_and_missing(monkeypatch):
    fetches = []

    def counting_git(cmd, **kwargs):
        if cmd[:2] == ["git", "fetch"]:
            fetches.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        return _fake_git(cmd, **kwargs)

    monkeypatch.setattr("pr_review_queue.ingest.git_refs.subprocess.run", counting_git)

    runner = CliRunner()
    with runner.isolated_filesystem() as fs:
        _write_snapshots(Path(fs), refresh=True)
        result = runner.invoke(
            main,
            ["review", "--reviewer", "Ada", "--deps", "--missing", "--as-of", "2024-12-20"],
        )

    assert result.exit_code == 0, result.output
    assert fetches == [["git", "fetch", "--all", "--prune"]]
    assert "APP-3" in result.output
