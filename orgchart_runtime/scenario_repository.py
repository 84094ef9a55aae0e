"""
Scenario Repository - sqlite3-backed ScenarioStore.

Each row holds the canonical scenario JSON (see orgchart_kernel.snapshot)
plus a few denormalized columns for listing. Scenarios are immutable:
rows are inserted or deleted, never updated. Every read re-verifies the
content hash, so a tampered row fails loudly instead of loading.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

from orgchart_kernel.domain_types import ScenarioSnapshot
from orgchart_kernel.snapshot import encode_scenario, restore_scenario

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class SqliteScenarioRepository:
    """ScenarioStore backed by sqlite3."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        schema_sql = _SCHEMA_PATH.read_text(encoding="utf-8")
        self._conn.executescript(schema_sql)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, snapshot: ScenarioSnapshot) -> None:
        """Insert a new scenario. Raises ValueError if the id exists."""
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO scenarios
                        (id, name, description, created_at, created_by,
                         employee_count, content_hash, payload)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        snapshot.id,
                        snapshot.name,
                        snapshot.description,
                        snapshot.created_at,
                        snapshot.created_by,
                        len(snapshot.employees),
                        snapshot.content_hash,
                        encode_scenario(snapshot),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Scenario {snapshot.id!r} already exists") from exc
        logger.info(
            "Saved scenario %r (%s, %d employees)",
            snapshot.name, snapshot.id, len(snapshot.employees),
        )

    def delete(self, scenario_id: str) -> bool:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM scenarios WHERE id = ?", (scenario_id,),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted scenario %s", scenario_id)
        return deleted

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, scenario_id: str) -> Optional[ScenarioSnapshot]:
        """Load and verify one scenario. None if absent."""
        row = self._conn.execute(
            "SELECT payload FROM scenarios WHERE id = ?", (scenario_id,),
        ).fetchone()
        if row is None:
            return None
        return restore_scenario(row[0])

    def list(self) -> List[ScenarioSnapshot]:
        """All scenarios, oldest first."""
        cursor = self._conn.execute(
            "SELECT payload FROM scenarios ORDER BY created_at, rowid"
        )
        return [restore_scenario(payload) for (payload,) in cursor.fetchall()]

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM scenarios").fetchone()[0]

    def close(self) -> None:
        self._conn.close()
