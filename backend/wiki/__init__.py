"""Wiki Application Package — markdown pages behind an async page service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
