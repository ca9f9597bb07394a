"""Infrastructure Layer — database, message bus, templates, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Failures are mapped to core/errors.py types before leaving this layer
"""
