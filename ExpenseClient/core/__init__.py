"""
Core package for ExpenseClient providing the session and synchronization logic.

This package includes:

- :mod:`ExpenseClient.core.models` – Session, expense record and category types.
- :mod:`ExpenseClient.core.service` – REST client for the remote expense store and the threaded ``start_asynchronous`` runner.
- :mod:`ExpenseClient.core.session` – Persisted session lifecycle and route gating.
- :mod:`ExpenseClient.core.auth` – Sign-in, sign-up and profile flows.
- :mod:`ExpenseClient.core.sync` – Expense list synchronization with a full re-fetch after every mutation.
- :mod:`ExpenseClient.core.context` – The application context wiring the components together.
"""
