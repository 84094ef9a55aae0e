"""
Org Chart Kernel - Scenario Encoder / Decoder

Canonical JSON serialization and strict deserialization of
ScenarioSnapshot, plus file export/import.

Rules:
  - Employees serialized in snapshot order (the hash is order independent).
  - Keys sorted. No whitespace.
  - Decoding fails on missing or unknown fields and on wrong types.
  - No defaults injected. No silent repair.
  - Integrity (content hash) checked via restore_scenario only.
"""

from __future__ import annotations

import hashlib
import json
import pathlib
from typing import List

from .domain_types import Employee, ScenarioSnapshot
from .hashing import canonical_hash


# ══════════════════════════════════════════════════════════════
# Exception Hierarchy
# ══════════════════════════════════════════════════════════════

class SnapshotError(Exception):
    """Base exception for all scenario snapshot operations."""


class SerializationError(SnapshotError):
    """Raised when encoding a ScenarioSnapshot to JSON fails."""


class DeserializationError(SnapshotError):
    """Raised when decoding JSON to a ScenarioSnapshot fails."""


class ScenarioIntegrityError(SnapshotError):
    """Raised when a scenario's stored hash does not match its employees."""

    def __init__(self, scenario_id: str, expected: str, actual: str) -> None:
        self.scenario_id = scenario_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Scenario {scenario_id!r} failed integrity check: "
            f"stored hash {expected[:12]}... != computed {actual[:12]}..."
        )


# ══════════════════════════════════════════════════════════════
# Encoder
# ══════════════════════════════════════════════════════════════

def encode_scenario(snapshot: ScenarioSnapshot) -> str:
    """
    Serialize a ScenarioSnapshot into a canonical JSON string.

    Byte-for-byte identical output for identical snapshots.
    """
    try:
        obj = snapshot.to_dict()
        return json.dumps(
            obj,
            ensure_ascii=False,
            separators=(",", ":"),
            sort_keys=True,
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"Failed to encode scenario: {exc}") from exc


# ══════════════════════════════════════════════════════════════
# Decoder
# ══════════════════════════════════════════════════════════════

# -- Field whitelists (exact sets, no extras, no omissions) --

_SCENARIO_FIELDS = frozenset({
    "content_hash", "created_at", "created_by", "description",
    "employees", "id", "name",
})

_EMPLOYEE_FIELDS = frozenset({
    "account_enabled", "avatar", "department", "email", "id",
    "location", "manager_id", "name", "phone", "title",
})

_SCENARIO_STR_FIELDS = (
    "content_hash", "created_at", "created_by", "description", "id", "name",
)
_EMPLOYEE_STR_FIELDS = ("department", "email", "id", "name", "title")
_EMPLOYEE_OPTIONAL_STR_FIELDS = ("avatar", "location", "manager_id", "phone")


def decode_scenario(json_str: str) -> ScenarioSnapshot:
    """
    Strict deserialization of canonical JSON to a ScenarioSnapshot.

    Fails on: invalid JSON, missing fields, unknown fields, wrong types,
    duplicate employee ids.
    """
    try:
        raw = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise DeserializationError(f"Invalid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise DeserializationError(
            f"Top-level JSON must be object, got {type(raw).__name__}"
        )
    _check_fields(raw, _SCENARIO_FIELDS, "scenario")
    for fname in _SCENARIO_STR_FIELDS:
        _require_type(raw, fname, str, "scenario")

    raw_employees = raw["employees"]
    if not isinstance(raw_employees, list):
        raise DeserializationError("'employees' must be a JSON array")

    employees: List[Employee] = []
    seen_ids: set = set()
    for i, edata in enumerate(raw_employees):
        context = f"employee [{i}]"
        if not isinstance(edata, dict):
            raise DeserializationError(f"{context.capitalize()} must be a JSON object")
        _check_fields(edata, _EMPLOYEE_FIELDS, context)
        for fname in _EMPLOYEE_STR_FIELDS:
            _require_type(edata, fname, str, context)
        for fname in _EMPLOYEE_OPTIONAL_STR_FIELDS:
            if edata[fname] is not None:
                _require_type(edata, fname, str, context)
        _require_type(edata, "account_enabled", bool, context)

        if edata["id"] in seen_ids:
            raise DeserializationError(f"Duplicate employee ID: {edata['id']!r}")
        seen_ids.add(edata["id"])
        employees.append(Employee(**edata))

    return ScenarioSnapshot(
        id=raw["id"],
        name=raw["name"],
        description=raw["description"],
        created_at=raw["created_at"],
        created_by=raw["created_by"],
        employees=tuple(employees),
        content_hash=raw["content_hash"],
    )


# ══════════════════════════════════════════════════════════════
# Restore (decode + verify)
# ══════════════════════════════════════════════════════════════

def verify_scenario(snapshot: ScenarioSnapshot) -> None:
    """Raise ScenarioIntegrityError if content_hash does not match."""
    actual = canonical_hash(snapshot.employees)
    if actual != snapshot.content_hash:
        raise ScenarioIntegrityError(snapshot.id, snapshot.content_hash, actual)


def restore_scenario(json_str: str) -> ScenarioSnapshot:
    """Decode a scenario and immediately verify its content hash."""
    snapshot = decode_scenario(json_str)
    verify_scenario(snapshot)
    return snapshot


# ══════════════════════════════════════════════════════════════
# File I/O
# ══════════════════════════════════════════════════════════════

def export_scenario_to_file(snapshot: ScenarioSnapshot, path: pathlib.Path) -> None:
    """Write canonical scenario JSON to *path* (UTF-8)."""
    path.write_text(encode_scenario(snapshot), encoding="utf-8")


def import_scenario_from_file(path: pathlib.Path) -> ScenarioSnapshot:
    """Read and restore a scenario from *path*. Fails if malformed or tampered."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeserializationError(
            f"Failed to read scenario file {path}: {exc}"
        ) from exc
    return restore_scenario(text)


# ══════════════════════════════════════════════════════════════
# Integrity Hash
# ══════════════════════════════════════════════════════════════

def scenario_hash(snapshot: ScenarioSnapshot) -> str:
    """SHA-256 of the full canonical scenario JSON, metadata included."""
    return hashlib.sha256(encode_scenario(snapshot).encode("utf-8")).hexdigest()


# ══════════════════════════════════════════════════════════════
# Internal Validation Helpers
# ══════════════════════════════════════════════════════════════

def _check_fields(data: dict, expected: frozenset, context: str) -> None:
    """Fail if data has missing or unknown fields vs expected set."""
    actual = set(data.keys())
    missing = expected - actual
    unknown = actual - expected
    if missing:
        raise DeserializationError(
            f"Missing fields in {context}: {sorted(missing)}"
        )
    if unknown:
        raise DeserializationError(
            f"Unknown fields in {context}: {sorted(unknown)}"
        )


def _require_type(data: dict, fname: str, expected: type, context: str) -> None:
    value = data[fname]
    if not isinstance(value, expected):
        raise DeserializationError(
            f"Field '{fname}' in {context} must be {expected.__name__}, "
            f"got {type(value).__name__}"
        )
