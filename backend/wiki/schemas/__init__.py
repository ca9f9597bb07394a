"""Pydantic Schemas — page payloads and page-service message envelopes.

Invariants:
    - Everything crossing the page-service boundary is one of these models
    - Models serialize to JSON text for the bus (no shared objects between sides)

Design Decisions:
    - Separate from models: schemas are service contracts, models are persistence
"""
