"""Core Layer — domain types, errors, contracts, and pure rules. No DB, no network.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions here are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: the startup transition table
      and markdown transform are testable without any running infrastructure
"""
