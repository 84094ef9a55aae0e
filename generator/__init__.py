"""
Deterministic Organization Generator.

Produces seeded synthetic employee sets, optionally with injected data
faults, plus the 25-person sample organization.
"""

from .compiler import compile_org, GeneratorInvariantError
from .deterministic_rng import DeterministicRNG
from .exporter import export_employees, load_employees
from .sample_data import sample_employees
from .template_spec import OrgTemplateSpec
from .verification import verify_generated_org

__all__ = [
    "compile_org",
    "GeneratorInvariantError",
    "DeterministicRNG",
    "export_employees",
    "load_employees",
    "sample_employees",
    "OrgTemplateSpec",
    "verify_generated_org",
]
