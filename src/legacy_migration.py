"""Legacy Migration — back-fills template_data for posts with embedded headers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone

import yaml

from src.legacy_header import split_template_from_html

log = logging.getLogger(__name__)


class MigrationState:
    """Tracks which legacy posts have already been migrated."""

    def __init__(self, state_path="data/migration_state.yaml"):
        self.state_path = state_path
        self.state = self._load()

    def _load(self) -> dict:
        if os.path.exists(self.state_path):
            with open(self.state_path) as f:
                return yaml.safe_load(f) or {}
        return {"migrated": [], "last_run": None}

    def _save(self):
        os.makedirs(os.path.dirname(self.state_path) or ".", exist_ok=True)
        with open(self.state_path, "w") as f:
            yaml.dump(self.state, f, default_flow_style=False, sort_keys=False)

    def get_migrated_ids(self) -> set[str]:
        return {
            str(entry["post_id"])
            for entry in self.state.get("migrated", [])
            if isinstance(entry, dict) and "post_id" in entry
        }

    def is_migrated(self, post_id: str) -> bool:
        return str(post_id) in self.get_migrated_ids()

    def record_migration(self, post_id: str, header_found: bool):
        """Record a post whose template_data was written."""
        self.state.setdefault("migrated", []).append({
            "post_id": str(post_id),
            "header_found": header_found,
            "migrated_at": datetime.now(timezone.utc).isoformat(),
        })
        self._save()
        log.info(f"Recorded migration: post {post_id}", extra={"post_id": str(post_id)})

    def record_run(self):
        """Record that the migration ran, even if nothing changed."""
        self.state["last_run"] = datetime.now(timezone.utc).isoformat()
        self._save()

    def get_last_run(self) -> str | None:
        return self.state.get("last_run")


@dataclass
class MigrationReport:
    migrated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def total(self) -> int:
        return len(self.migrated) + len(self.skipped) + len(self.failed)


class LegacyHeaderMigrator:
    """Moves headers out of legacy post HTML into the template_data column.

    Rows whose body has no recognizable header are skipped unless
    ``migrate_unmatched`` is set, in which case they get an empty
    template_data so they stop being re-parsed on every read.
    """

    def __init__(self, client, state: MigrationState, dry_run=False,
                 migrate_unmatched=False, batch_size=50):
        self.client = client
        self.state = state
        self.dry_run = dry_run
        self.migrate_unmatched = migrate_unmatched
        self.batch_size = batch_size

    @classmethod
    def from_config(cls, client, config: dict, dry_run=False) -> "LegacyHeaderMigrator":
        migration_cfg = config.get("migration", {})
        return cls(
            client=client,
            state=MigrationState(migration_cfg.get("state_path", "data/migration_state.yaml")),
            dry_run=dry_run,
            migrate_unmatched=bool(migration_cfg.get("migrate_unmatched", False)),
            batch_size=int(migration_cfg.get("batch_size", 50)),
        )

    def build_update(self, row: dict) -> dict | None:
        """Return the column values to write for a legacy row, or None to leave it."""
        split = split_template_from_html(row.get("content"), row.get("created_at"))
        if split.header_found:
            return {"template_data": split.template.to_json(), "content": split.body}
        if self.migrate_unmatched:
            return {"template_data": {}}
        return None

    def run(self) -> MigrationReport:
        """Migrate every legacy post, one batch at a time."""
        report = MigrationReport(dry_run=self.dry_run)
        seen: set[str] = set()
        offset = 0

        while True:
            rows = self.client.get_legacy_posts(limit=self.batch_size, offset=offset)
            if not rows:
                break

            fresh = [row for row in rows if str(row.get("id", "")) not in seen]
            if not fresh:
                break

            remaining = 0
            for row in fresh:
                seen.add(str(row.get("id", "")))
                if not self._migrate_row(row, report):
                    remaining += 1

            # Migrated rows drop out of the legacy query; page past the rest
            offset += len(rows) if self.dry_run else remaining
            if len(rows) < self.batch_size:
                break

        if not self.dry_run:
            self.state.record_run()

        log.info(
            f"Migration {'dry run ' if self.dry_run else ''}complete: "
            f"{len(report.migrated)} migrated, {len(report.skipped)} skipped, "
            f"{len(report.failed)} failed"
        )
        return report

    def _migrate_row(self, row: dict, report: MigrationReport) -> bool:
        """Process one row. Returns True when the row was written."""
        post_id = str(row.get("id", ""))

        if self.state.is_migrated(post_id):
            log.debug(f"Skipping already-migrated post {post_id}")
            report.skipped.append(post_id)
            return False

        update = self.build_update(row)
        if update is None:
            log.debug(f"No legacy header in post {post_id}")
            report.skipped.append(post_id)
            return False

        if self.dry_run:
            log.info(f"[dry run] Would update post {post_id}: {', '.join(sorted(update))}",
                     extra={"post_id": post_id})
            report.migrated.append(post_id)
            return False

        try:
            self.client.update_post(post_id, update)
        except Exception as e:
            log.error(f"Failed to migrate post {post_id}: {e}", extra={"post_id": post_id})
            report.failed[post_id] = str(e)
            return False

        self.state.record_migration(post_id, header_found="content" in update)
        report.migrated.append(post_id)
        return True
