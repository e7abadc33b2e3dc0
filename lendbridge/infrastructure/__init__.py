"""Infrastructure Layer — database sessions, store implementations, logging.

Invariants:
    - Infrastructure implements core/repository_protocols.py; core never imports from here
    - All SQLAlchemy failures mapped to DatabaseError before reaching routes

Design Decisions:
    - Two store backends (SQL, in-memory) behind the same protocols
"""
