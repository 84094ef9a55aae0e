"""
JSON Organization Exporter.

Exports a generated employee list + metadata to a JSON file, and reads it
back for seeding a session or a directory.
"""

from __future__ import annotations

import json
from typing import List

from orgchart_kernel.domain_types import Employee

from .template_spec import OrgTemplateSpec


def export_employees(
    employees: List[Employee],
    path: str,
    spec: OrgTemplateSpec,
    seed: int,
    manifest: dict | None = None,
) -> None:
    """
    Write employees + metadata to a JSON file.

    Output format:
    {
        "metadata": {"seed": int, "template": {...}, "faults": {...}},
        "employees": [employee.to_dict(), ...]
    }
    """
    doc = {
        "metadata": {
            "seed": seed,
            "template": spec.to_dict(),
            "faults": manifest or {},
        },
        "employees": [e.to_dict() for e in employees],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(doc, f, ensure_ascii=True, indent=2)


def load_employees(path: str) -> List[Employee]:
    """Read the ``employees`` array of an exported file."""
    with open(path, "r", encoding="utf-8") as f:
        doc = json.load(f)
    return [Employee.from_dict(row) for row in doc["employees"]]
