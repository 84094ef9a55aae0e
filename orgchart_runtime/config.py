"""Runtime configuration and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from orgchart_kernel.constants import CONTEXT_MAX_DEPTH, SEARCH_RESULT_LIMIT


@dataclass(frozen=True)
class RuntimeConfig:
    database_url: Optional[str]
    db_path: str
    context_max_depth: int
    search_limit: int
    log_level: str
    frontend_url: str


def load_config(env: Optional[Mapping[str, str]] = None) -> RuntimeConfig:
    """
    Build a RuntimeConfig from environment variables.

    Callers that use a ``.env`` file run ``load_dotenv()`` first.
    """
    env = os.environ if env is None else env
    return RuntimeConfig(
        database_url=env.get("DATABASE_URL") or None,
        db_path=env.get("ORGCHART_DB_PATH", "orgchart.db"),
        context_max_depth=_int(env, "ORGCHART_CONTEXT_MAX_DEPTH", CONTEXT_MAX_DEPTH),
        search_limit=_int(env, "ORGCHART_SEARCH_LIMIT", SEARCH_RESULT_LIMIT),
        log_level=env.get("ORGCHART_LOG_LEVEL", "INFO").upper(),
        frontend_url=env.get("FRONTEND_URL", "http://localhost:5173"),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value
