"""
Role-based authorization feature module.

Implements the permission taxonomy, the static role table, coarse and
resource-scoped access decisions, and the FastAPI dependencies that enforce them.
"""
