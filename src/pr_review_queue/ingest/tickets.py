"""Ticket snapshots keyed by issue key, with fail-soft lookups."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Protocol

import yaml
from rich.console import Console

from ..models import MalformedRecordError, Ticket

console = Console()


class TicketSource(Protocol):
    def get(self, key: str) -> Ticket | None:
        ...


class TicketStore:
    """In-memory ticket lookup built from a YAML or JSON snapshot."""

    def __init__(self, tickets: Iterable[Ticket] = ()):
        self._tickets: dict[str, Ticket] = {}
        for ticket in tickets:
            self._tickets[ticket.key] = ticket

    def get(self, key: str) -> Ticket | None:
        return self._tickets.get(key)

    def all(self) -> list[Ticket]:
        return list(self._tickets.values())

    def __len__(self) -> int:
        return len(self._tickets)

    @classmethod
    def from_records(cls, records: Any) -> "TicketStore":
        """Accept a list of ticket records or a ``{key: record}`` mapping."""
        if isinstance(records, dict):
            if isinstance(records.get("issues"), list):
                records = records["issues"]
            else:
                records = [
                    {"key": key, **value} if isinstance(value, dict) else value
                    for key, value in records.items()
                ]
        tickets = []
        for idx, record in enumerate(records or [], start=1):
            try:
                tickets.append(Ticket.from_record(record))
            except MalformedRecordError as exc:
                console.print(f"[yellow]Warning: skipping ticket record {idx}: {exc}[/]")
        return cls(tickets)

    @classmethod
    def load(cls, path: str | Path) -> "TicketStore":
        path = Path(path)
        if not path.exists():
            console.print(f"[yellow]Warning: ticket snapshot {path} not found; no tickets available[/]")
            return cls()
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            console.print(f"[yellow]Warning: failed to load ticket snapshot {path}: {exc}[/]")
            return cls()
        return cls.from_records(data)


def lookup_ticket(source: TicketSource | None, key: str | None) -> Ticket | None:
    """Look a ticket up, degrading any failure to "no ticket"."""
    if source is None or not key:
        return None
    try:
        return source.get(key)
    except Exception as exc:
        console.print(f"[yellow]Warning: failed to fetch ticket {key}: {exc}[/]")
        return None
