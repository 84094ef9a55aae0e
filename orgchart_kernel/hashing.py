"""
Org Chart Kernel - Canonical Hashing

Deterministic canonical serialization + SHA-256 hashing of an employee
collection. Identical collections hash identically regardless of input
order.

Rules:
  - Employees sorted by id (UTF-8 byte order)
  - Employee fields in fixed declaration order
  - UTF-8 JSON, no whitespace, ASCII-escaped
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Iterable, List

from .domain_types import Employee


def canonical_serialize(employees: Iterable[Employee]) -> bytes:
    """Canonical UTF-8 JSON bytes. No whitespace. Deterministic order."""
    obj = _build_canonical_list(employees)
    return json.dumps(obj, ensure_ascii=True, separators=(",", ":"), sort_keys=False).encode("utf-8")


def canonical_hash(employees: Iterable[Employee]) -> str:
    """SHA-256 of canonical serialization. Lowercase hex string."""
    return hashlib.sha256(canonical_serialize(employees)).hexdigest()


def _build_canonical_list(employees: Iterable[Employee]) -> List[Dict[str, Any]]:
    return [
        {
            "id": e.id,
            "name": e.name,
            "title": e.title,
            "department": e.department,
            "email": e.email,
            "phone": e.phone,
            "location": e.location,
            "avatar": e.avatar,
            "manager_id": e.manager_id,
            "account_enabled": e.account_enabled,
        }
        for e in sorted(employees, key=lambda e: e.id.encode("utf-8"))
    ]
