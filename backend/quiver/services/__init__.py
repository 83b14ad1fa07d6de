"""Services Layer: async orchestration of the round lifecycle.

Invariants:
    - Services talk to persistence only through core/repository_protocols
    - Domain rules live in core/; services sequence IO around them
"""
