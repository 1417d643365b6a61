"""YAML configuration loading."""

import logging
import os

import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "tenant": {
        "root_domain": "bloggish.io",
        "reserved_subdomains": ["www", "bloggish"],
    },
    "supabase": {
        "timeout": 30,
        "retries": 3,
    },
    "migration": {
        "batch_size": 50,
        "migrate_unmatched": False,
        "state_path": "data/migration_state.yaml",
    },
    "logging": {
        "dir": "logs",
        "level": "INFO",
    },
}


def load_config(path="config.yaml") -> dict:
    """Load config.yaml, filling any missing section keys from DEFAULT_CONFIG."""
    loaded = {}
    if os.path.exists(path):
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
    else:
        log.warning(f"Config file not found: {path}, using defaults")

    config = {}
    for section, defaults in DEFAULT_CONFIG.items():
        overrides = loaded.get(section) or {}
        config[section] = {**defaults, **overrides}
    # Unknown top-level sections pass through untouched
    for section, value in loaded.items():
        config.setdefault(section, value)
    return config
