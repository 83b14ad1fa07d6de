"""Database package: SQLAlchemy declarative Base shared by models and migrations.

Invariants:
    - Single async engine per process (initialized via infrastructure.database.init_db)
"""
