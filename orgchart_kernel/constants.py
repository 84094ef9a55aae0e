"""
Org Chart Kernel - Threshold Constants (Default Values)

All magic numbers live here as module-level defaults. Runtime overrides
come from orgchart_runtime.config.RuntimeConfig.
"""

# --- Context loading ---
# Levels of direct reports pulled below a context anchor.
CONTEXT_MAX_DEPTH: int = 10

# --- Search ---
SEARCH_RESULT_LIMIT: int = 20

# --- Diagnostics ---
# Direct reports above which a manager is flagged as over-extended.
WIDE_SPAN_THRESHOLD: int = 15

# Hierarchy depth above which the structure is flagged as tall.
DEEP_HIERARCHY_THRESHOLD: int = 8
