"""
ExpenseClient data package: server-computed summaries reshaped for charts.

This package provides:

- :mod:`ExpenseClient.data.data` – :class:`ExpenseClient.data.data.AnalyticsAggregator` for loading the category and monthly summaries, and the pure :func:`ExpenseClient.data.data.to_series` / :func:`ExpenseClient.data.data.to_frame` transforms.
"""
