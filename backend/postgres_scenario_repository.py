"""
PostgreSQL Scenario Repository.

Same interface as the sqlite SqliteScenarioRepository, PostgreSQL storage
via pg8000.

Stateless: no in-memory caching. Every read hits the DB and re-verifies
the scenario content hash.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import pg8000.native

from orgchart_kernel.domain_types import ScenarioSnapshot
from orgchart_kernel.snapshot import encode_scenario, restore_scenario

logger = logging.getLogger(__name__)

_INIT_SQL = """
CREATE TABLE IF NOT EXISTS scenarios (
    id             TEXT PRIMARY KEY,
    name           TEXT NOT NULL,
    description    TEXT NOT NULL DEFAULT '',
    created_at     TEXT NOT NULL,
    created_by     TEXT NOT NULL DEFAULT '',
    employee_count INTEGER NOT NULL,
    content_hash   TEXT NOT NULL,
    payload        TEXT NOT NULL,
    inserted_at    TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_scenarios_created_at
    ON scenarios(created_at);
"""


def parse_database_url(database_url: str) -> dict:
    """
    Split a postgres URL into pg8000 connection arguments.

    Manual parser: urlparse chokes on special chars ([], @) in passwords.
    """
    url = database_url.split("://", 1)[1]
    # Split at LAST @ to separate credentials from host (password may contain @)
    at_idx = url.rfind("@")
    credentials = url[:at_idx]
    host_part = url[at_idx + 1:]
    colon_idx = credentials.find(":")
    user = credentials[:colon_idx]
    password = credentials[colon_idx + 1:]
    host_port, _, database = host_part.partition("/")
    database = database.split("?", 1)[0]
    if ":" in host_port:
        host, port_str = host_port.rsplit(":", 1)
    else:
        host, port_str = host_port, "5432"
    return {
        "user": user,
        "password": password,
        "host": host,
        "port": int(port_str),
        "database": database or "postgres",
    }


class PostgresScenarioRepository:
    """
    PostgreSQL-backed ScenarioStore.

    Thread-safe via connection-per-operation pattern.
    """

    def __init__(self, database_url: str) -> None:
        self._conn_args = parse_database_url(database_url)
        self._ensure_schema()

    def _get_conn(self) -> pg8000.native.Connection:
        return pg8000.native.Connection(ssl_context=True, **self._conn_args)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            for stmt in _INIT_SQL.split(";"):
                if stmt.strip():
                    conn.run(stmt)
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, snapshot: ScenarioSnapshot) -> None:
        """Insert a new scenario. Raises ValueError if the id exists."""
        conn = self._get_conn()
        try:
            rows = conn.run(
                """
                INSERT INTO scenarios
                    (id, name, description, created_at, created_by,
                     employee_count, content_hash, payload)
                VALUES (:id, :name, :descr, :created_at, :created_by,
                        :count, :hash, :payload)
                ON CONFLICT (id) DO NOTHING
                RETURNING id
                """,
                id=snapshot.id,
                name=snapshot.name,
                descr=snapshot.description,
                created_at=snapshot.created_at,
                created_by=snapshot.created_by,
                count=len(snapshot.employees),
                hash=snapshot.content_hash,
                payload=encode_scenario(snapshot),
            )
        finally:
            conn.close()
        if not rows:
            raise ValueError(f"Scenario {snapshot.id!r} already exists")
        logger.info("Saved scenario %r (%s) to PostgreSQL", snapshot.name, snapshot.id)

    def delete(self, scenario_id: str) -> bool:
        conn = self._get_conn()
        try:
            rows = conn.run(
                "DELETE FROM scenarios WHERE id = :id RETURNING id", id=scenario_id,
            )
        finally:
            conn.close()
        return bool(rows)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, scenario_id: str) -> Optional[ScenarioSnapshot]:
        conn = self._get_conn()
        try:
            rows = conn.run(
                "SELECT payload FROM scenarios WHERE id = :id", id=scenario_id,
            )
        finally:
            conn.close()
        if not rows:
            return None
        return restore_scenario(rows[0][0])

    def list(self) -> List[ScenarioSnapshot]:
        """All scenarios, oldest first."""
        conn = self._get_conn()
        try:
            rows = conn.run(
                "SELECT payload FROM scenarios ORDER BY created_at, inserted_at"
            )
        finally:
            conn.close()
        return [restore_scenario(r[0]) for r in rows]
