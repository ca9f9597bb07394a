"""Services Layer — page store, page service implementations, startup orchestration.

Invariants:
    - The store is the only code that issues SQL
    - Page service implementations are interchangeable behind core/service_protocols.PageService
"""
