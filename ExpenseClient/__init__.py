"""
ExpenseClient: client-side session and data synchronization for a personal expense tracker.

This package provides:

- :mod:`ExpenseClient.core` – Session lifecycle, account flows, the REST client and expense synchronization.
- :mod:`ExpenseClient.data` – Category and monthly summaries reshaped into chart-ready series.
- :mod:`ExpenseClient.ui` – The application-wide signal hub and colour palettes.
- :mod:`ExpenseClient.settings` – Client configuration with schema validation, and locale formatting.
- :mod:`ExpenseClient.log` – In-app logging.

Use :class:`ExpenseClient.core.context.AppContext` to create and start the components.
"""

import sys

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('ExpenseClient requires Python 3.11 or higher.')

__version__ = '0.1.0'
__license__ = 'GPL-3.0'
__description__ = 'ExpenseClient: session and data synchronization for a personal expense tracker.'

from .log import log

log.setup_logging()
