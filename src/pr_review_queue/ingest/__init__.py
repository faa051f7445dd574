"""Ingest layer: PR snapshots, ticket snapshots and git ref queries."""

from .git_refs import (
    AncestryOracle,
    GitAncestryOracle,
    StaticAncestryOracle,
    is_ticket_merged,
    refresh_remote_refs,
)
from .pr_snapshot import awaiting_review, load_pull_requests, parse_pull_requests, reviewer_names
from .tickets import TicketSource, TicketStore, lookup_ticket

__all__ = [
    "AncestryOracle",
    "GitAncestryOracle",
    "StaticAncestryOracle",
    "TicketSource",
    "TicketStore",
    "awaiting_review",
    "is_ticket_merged",
    "load_pull_requests",
    "lookup_ticket",
    "parse_pull_requests",
    "refresh_remote_refs",
    "reviewer_names",
]
