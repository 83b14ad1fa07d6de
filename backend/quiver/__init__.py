"""Quiver: archery club round scoring service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
