"""HTTP API for the task planner."""
