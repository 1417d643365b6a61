#!/usr/bin/env python3
"""Back-fill template_data for legacy posts that embed their header in HTML.

Usage:
    python scripts/migrate_legacy_headers.py [--dry-run]
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.legacy_migration import LegacyHeaderMigrator
from src.supabase_client import SupabaseClient
from src.utils.config import load_config
from src.utils.logger import setup_logging


def write_last_run(project_root: Path, success: bool, message: str = ""):
    """Write logs/last_migration.txt with the outcome of this run."""
    last_run_path = project_root / "logs" / "last_migration.txt"
    last_run_path.parent.mkdir(parents=True, exist_ok=True)
    status = "SUCCESS" if success else "FAILURE"
    timestamp = datetime.now(timezone.utc).isoformat()
    last_run_path.write_text(f"{status}\n{timestamp}\n{message}\n")


def main(argv: list[str]) -> int:
    unknown = [arg for arg in argv if arg != "--dry-run"]
    if unknown:
        print(__doc__)
        return 1
    dry_run = "--dry-run" in argv

    config = load_config(str(PROJECT_ROOT / "config.yaml"))
    setup_logging(log_dir=str(PROJECT_ROOT / config["logging"]["dir"]), level=config["logging"]["level"])
    log = logging.getLogger("migrate_legacy_headers")

    try:
        client = SupabaseClient.from_config(config)
        migrator = LegacyHeaderMigrator.from_config(client, config, dry_run=dry_run)
        report = migrator.run()
    except Exception as e:
        log.error(f"Migration aborted: {e}")
        write_last_run(PROJECT_ROOT, success=False, message=str(e))
        return 1

    summary = (
        f"{'Dry run: ' if dry_run else ''}{len(report.migrated)} migrated, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    )
    print(summary)
    for post_id, error in report.failed.items():
        print(f"   FAILED {post_id}: {error}")

    if not dry_run:
        write_last_run(PROJECT_ROOT, success=not report.failed, message=summary)
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
