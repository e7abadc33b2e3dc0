"""Services Layer — imperative shell: negotiation, recommendation, listings, timeline.

Invariants:
    - Services talk to storage only through core/repository_protocols.py
    - Decisions are made by core/ pure functions; services fetch, delegate, write

Design Decisions:
    - One service per concern for locality
"""
