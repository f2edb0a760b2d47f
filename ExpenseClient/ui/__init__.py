"""
UI-facing package: the signal hub and colour palettes consumed by presentation code.

This package provides:

- :mod:`ExpenseClient.ui.actions` – Application-wide Qt signals (notices, navigation, config changes).
- :mod:`ExpenseClient.ui.palette` – Palette definitions and deterministic position-to-colour assignment.
"""
