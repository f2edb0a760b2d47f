"""Application-wide Qt signals for ExpenseClient.

The presentation layer connects to these to show transient notices, switch
views and react to configuration changes. Components owning state (session,
expense list, summaries) expose their own signals; this hub only carries
cross-cutting events.
"""
import logging

from PySide6 import QtCore


class Signals(QtCore.QObject):
    """Centralized Qt signals for notices, navigation and configuration events."""
    configSectionChanged = QtCore.Signal(str)  # Section name

    navigationRequested = QtCore.Signal(str)  # Route path

    # Transient notices
    error = QtCore.Signal(str)
    notice = QtCore.Signal(str)

    showLogs = QtCore.Signal()

    def __init__(self):
        super().__init__()
        self._connect_signals()

    def _connect_signals(self):
        self.navigationRequested.connect(lambda r: logging.debug(f'Navigation requested: {r}'))
        self.notice.connect(lambda m: logging.debug(f'Notice: {m}'))


signals = Signals()
