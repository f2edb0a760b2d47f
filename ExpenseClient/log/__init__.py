"""
Logging subsystem.

Modules:

- :mod:`ExpenseClient.log.log` – Root logger setup, Qt message bridge and the in-memory ``TankHandler``.
"""
