"""Infrastructure Layer: database access, repositories and logging.

Invariants:
    - SQLAlchemy exceptions never escape as-is (mapped to DatabaseError)
    - Repositories translate ORM rows to core dataclasses and back
"""
