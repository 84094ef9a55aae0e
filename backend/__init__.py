"""FastAPI backend for the org chart planner."""
