"""
Settings package: configuration API and formatting helpers.

This package provides:

- :mod:`ExpenseClient.settings.lib` – Client configuration (api address, endpoints, metadata) and schema validation.
- :mod:`ExpenseClient.settings.locale` – Babel-based amount and currency formatting.
"""
