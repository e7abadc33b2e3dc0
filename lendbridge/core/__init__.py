"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or models/
    - Planner and matcher functions are pure (ids and timestamps are the only
      generated values)

Design Decisions:
    - Functional core separated from imperative shell
"""
