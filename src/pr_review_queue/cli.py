"""CLI entry point for pr-review-queue."""

from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .config import load_config
from .models import parse_timestamp

console = Console()


def _as_of(value):
    if not value:
        return datetime.now(timezone.utc)
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--as-of")


def _require_prs_file(config):
    prs_file = Path(config["sources"]["prs_file"])
    if not prs_file.exists():
        raise click.ClickException(f"PR snapshot not found: {prs_file}")


def _short_name(full_name: str) -> str:
    parts = full_name.split()
    if len(parts) < 2:
        return full_name
    return f"{parts[0]} {parts[-1][0]}."


def _review_hint(entry, queue) -> str:
    record = entry.dependency
    if record is None:
        return ""
    if record.is_blocked:
        blockers = ", ".join(queue.analysis.records[pr_id].pr.label for pr_id in record.depends_on)
        return f"[yellow]Wait for {blockers}[/]"
    if record.blocked_by:
        return "[green]Review first[/]"
    return "[blue]Ready[/]"


@click.group()
@click.option("--config", "-c", default="pr-review-queue.yaml", help="Config file path")
@click.pass_context
def main(ctx, config):
    """Dependency-aware, deadline-ranked pull request review queue."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config)


@main.command()
@click.option("--reviewer", required=True, help="Reviewer name as it appears on PR participants")
@click.option("--deps/--no-deps", "with_deps", default=False, help="Analyze PR branch dependencies")
@click.option("--missing/--no-missing", "with_missing", default=True, help="Also list tickets without PRs")
@click.option("--as-of", help="Evaluate ages and deadlines at this ISO timestamp")
@click.pass_context
def review(ctx, reviewer, with_deps, with_missing, as_of):
    """Show PRs awaiting review, most urgent first."""
    from .pipeline import load_sources, run_missing_check, run_review

    cfg = ctx.obj["config"]
    _require_prs_file(cfg)
    now = _as_of(as_of)
    sources = load_sources(cfg)

    queue = run_review(cfg, reviewer=reviewer, with_dependencies=with_deps, now=now, sources=sources)
    console.print(f"\n[bold]Pull Requests Awaiting Review by {reviewer}[/]\n")

    if queue.analysis is not None:
        chains = queue.chains
        if chains or queue.independent:
            console.print("[bold]Dependency Chains (Review Order):[/]")
            for idx, chain in enumerate(chains, start=1):
                console.print(f"  Chain {idx}: {chain}")
            if queue.independent:
                labels = [queue.analysis.records[pr_id].pr.label for pr_id in queue.independent]
                console.print(f"  Independent: {', '.join(labels)}")

    for group in queue.groups:
        table = Table(title=group.title, title_justify="left")
        table.add_column("PR")
        table.add_column("Title", max_width=60)
        table.add_column("Author")
        table.add_column("Age")
        table.add_column("Ticket Status")
        if queue.analysis is not None:
            table.add_column("Review Priority")
        for entry in group.entries:
            row = [
                f"#{entry.pr.id}",
                entry.pr.title,
                _short_name(entry.pr.author),
                f"{entry.priority.pr_age_days}d",
                entry.ticket.status if entry.ticket else "Unknown",
            ]
            if queue.analysis is not None:
                row.append(_review_hint(entry, queue))
            table.add_row(*row)
        console.print(table)

    console.print(f"\n[dim]Total: {len(queue.entries)} PRs awaiting review[/]")
    summary = queue.issue_summary()
    if any(summary.values()):
        console.print("\n[yellow]Issues found:[/]")
        if summary["no_ticket"]:
            console.print(f"[yellow]  • {summary['no_ticket']} PRs without tickets[/]")
        if summary["no_fix_version"]:
            console.print(f"[yellow]  • {summary['no_fix_version']} PRs with tickets missing fix version[/]")
        if summary["missing_release_date"]:
            console.print(
                f"[yellow]  • {summary['missing_release_date']} PRs with fix versions missing release date[/]"
            )

    if with_missing:
        # run_review already fetched refs when dependencies were analyzed.
        refresh = False if with_deps else None
        _print_missing(run_missing_check(cfg, now=now, sources=sources, refresh=refresh), cfg)


@main.command()
@click.pass_context
def reviewers(ctx):
    """List every reviewer name found on open PRs."""
    from .ingest import load_pull_requests, reviewer_names

    cfg = ctx.obj["config"]
    _require_prs_file(cfg)
    names = reviewer_names(load_pull_requests(cfg["sources"]["prs_file"]))
    if not names:
        console.print("No reviewers assigned on any open PR.")
        return
    for name in names:
        console.print(f"  - [cyan]{name}[/]")
    console.print('\n[dim]Use one of these names with --reviewer "Name"[/]')


@main.command()
@click.option("--as-of", help="Evaluate deadlines at this ISO timestamp")
@click.pass_context
def missing(ctx, as_of):
    """List tickets due soon that have no open PR."""
    from .pipeline import run_missing_check

    cfg = ctx.obj["config"]
    _require_prs_file(cfg)
    _print_missing(run_missing_check(cfg, now=_as_of(as_of)), cfg)


def _print_missing(missing_prs, cfg):
    window = cfg["missing"]["window_days"]
    if not missing_prs:
        console.print(f"\nNo missing PRs found for releases in the next {window} days.")
        return

    table = Table(title="Missing PRs (tickets without pull requests)", title_justify="left")
    for column in ("Ticket", "Summary", "Status", "Fix Version", "Days Left"):
        table.add_column(column)
    for item in missing_prs:
        days = f"{item.days_until_release}d"
        table.add_row(
            f"[red]{item.ticket.key}[/]",
            item.ticket.summary,
            item.ticket.status,
            item.fix_version.name,
            f"[red]{days}[/]" if item.days_until_release <= 7 else f"[yellow]{days}[/]",
        )
    console.print(table)
    console.print(f"\n[yellow]Total: {len(missing_prs)} tickets without PRs due in the next {window} days[/]")


if __name__ == "__main__":
    main()
