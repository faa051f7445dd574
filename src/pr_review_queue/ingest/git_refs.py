"""Answer branch ancestry questions against a local clone's remote refs."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable, Protocol

from rich.console import Console

console = Console()

GIT_TIMEOUT_SECONDS = 30


class AncestryOracle(Protocol):
    def is_ancestor(self, candidate_ref: str, descendant_ref: str) -> bool:
        ...


class GitAncestryOracle:
    """Ask ``git merge-base --is-ancestor`` about ``<remote>/<branch>`` refs.

    Any failure (unknown ref, git missing, timeout) is answered with ``False``
    so one bad branch cannot abort a whole dependency analysis. Refs are only
    as fresh as the last ``refresh_remote_refs`` call.
    """

    def __init__(self, repo_dir: str | Path, remote: str = "origin"):
        self.repo_dir = Path(repo_dir)
        self.remote = remote

    def _ref(self, branch: str) -> str:
        return f"{self.remote}/{branch}" if self.remote else branch

    def is_ancestor(self, candidate_ref: str, descendant_ref: str) -> bool:
        cmd = [
            "git",
            "merge-base",
            "--is-ancestor",
            self._ref(candidate_ref),
            self._ref(descendant_ref),
        ]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_dir,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except OSError as exc:
            console.print(f"[dim]Could not run git in {self.repo_dir}: {exc}; treating refs as unrelated[/]")
            return False
        except subprocess.TimeoutExpired:
            console.print(f"[dim]git merge-base timed out for {candidate_ref} -> {descendant_ref}[/]")
            return False

        if result.returncode == 0:
            return True
        # Exit 1 is a clean "no"; anything else means a ref did not resolve.
        if result.returncode != 1:
            stderr = (result.stderr or "").strip() or f"exit {result.returncode}"
            console.print(f"[dim]Could not compare {candidate_ref} -> {descendant_ref}: {stderr}[/]")
        return False


class StaticAncestryOracle:
    """Ancestry answers from a literal ``{(candidate, descendant)}`` table."""

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()):
        self.pairs = set(pairs)

    def is_ancestor(self, candidate_ref: str, descendant_ref: str) -> bool:
        return candidate_ref == descendant_ref or (candidate_ref, descendant_ref) in self.pairs


def refresh_remote_refs(repo_dir: str | Path) -> bool:
    """Run ``git fetch --all --prune``; stale refs only under-report dependencies."""
    try:
        subprocess.run(
            ["git", "fetch", "--all", "--prune"],
            cwd=Path(repo_dir),
            check=True,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS * 4,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        console.print(
            f"[yellow]Warning: failed to fetch latest git refs ({exc}). "
            "Dependency analysis may be incomplete.[/]"
        )
        return False
    return True


def is_ticket_merged(
    ticket_key: str,
    repo_dir: str | Path,
    branches: Iterable[str] = ("master", "test", "next"),
    remote: str = "origin",
) -> bool:
    """Return True when any commit on one of ``branches`` mentions ``ticket_key``."""
    for branch in branches:
        ref = f"{remote}/{branch}" if remote else branch
        try:
            result = subprocess.run(
                ["git", "log", ref, f"--grep={ticket_key}", "--oneline"],
                cwd=Path(repo_dir),
                capture_output=True,
                text=True,
                check=True,
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
            console.print(f"[dim]Failed to check {ref} for {ticket_key}: {exc}[/]")
            continue

        output = result.stdout.strip()
        if output:
            console.print(f"[dim]Found {ticket_key} in {ref}: {output.splitlines()[0]}[/]")
            return True
    return False
