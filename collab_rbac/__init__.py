"""
Role-based, resource-aware authorization for the collaboration platform.
"""
