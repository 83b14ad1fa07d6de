"""Pydantic Schemas: request validation for API endpoints.

Invariants:
    - Schemas validate shape at the system boundary
    - Scoring rules (zones, ranges) are checked by core/scoring_rules, not here
"""
