"""Configuration loader."""

import copy
from pathlib import Path

import yaml


DEFAULT_CONFIG = {
    "repo": {
        "dir": ".",
        "remote": "origin",
        "refresh": True,
        "merged_branches": ["master", "test", "next"],
    },
    "sources": {
        "prs_file": ".pr-review-queue/prs/all_prs.jsonl",
        "tickets_file": ".pr-review-queue/tickets.yaml",
    },
    "scoring": {
        "no_ticket": -1000,
        "no_fix_version": -900,
        "missing_release_date": -800,
        "days_weight": 1000,
    },
    "dependencies": {
        "max_workers": 1,
    },
    "missing": {
        "window_days": 28,
        "skip_issue_types": ["sub-task", "subtask"],
    },
}


def load_config(path: str) -> dict:
    """Load config from YAML file, falling back to defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = Path(path)

    if config_path.exists():
        with open(config_path) as f:
            user_config = yaml.safe_load(f) or {}
        _deep_merge(config, user_config)

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base
