"""Dependency-aware, deadline-ranked pull request review queue."""
