"""API Layer — HTTP front routes and error handlers.

Invariants:
    - Routes registered explicitly in main.create_app (no auto-discovery)
    - Routes reach pages only through the PageService contract

Design Decisions:
    - Thin routes: one page-service call, then render or redirect
"""
