"""Analytics API for the server-computed expense summaries.

The remote store aggregates expenses by category and by month. This module
fetches both mappings and reshapes them into ordered series for charts. No
totals are derived from the cached expense list.

Series order is the iteration order of the mapping the store returned. It is
not sorted client-side, so month series are only chronological if the store
sends them that way.
"""
import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from PySide6 import QtCore

from ..core import service
from ..core.session import SessionStore
from ..settings import locale
from ..status import status
from ..ui import palette

SERIES_COLUMNS: List[str] = ['key', 'value', 'weight', 'color', 'label']


class SummaryState(enum.StrEnum):
    """Load state of the summaries."""
    Uninitialized = 'summaries are not loaded'
    Empty = 'no data yet'
    Error = 'summaries failed to load'
    Valid = 'summaries are valid'


@dataclass(frozen=True)
class SummaryEntry:
    """One labelled amount of a summary series."""
    key: str
    value: float

    def as_dict(self) -> Dict[str, Any]:
        return {'key': self.key, 'value': self.value}


def to_series(mapping: Optional[Mapping[str, Any]]) -> List[SummaryEntry]:
    """Reshape a label -> amount mapping into an ordered series.

    The mapping's iteration order is kept; keys are not sorted or renamed.

    Args:
        mapping: The summary mapping. None or empty yields an empty series.

    Raises:
        ValueError: If an amount is not a finite number.
    """
    if not mapping:
        return []

    series = []
    for key, value in mapping.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError(f'Summary amount for "{key}" is not a number: {value!r}')
        series.append(SummaryEntry(key=str(key), value=value))
    return series


def to_frame(series: List[SummaryEntry], palette_name: Optional[str] = None,
             locale_name: Optional[str] = None) -> pd.DataFrame:
    """Return a chart-ready DataFrame of a series.

    Columns:
        key, value: the entry.
        weight: the entry's share of the series total, 0.0 when the total is 0.
        color: palette colour by position.
        label: the amount formatted as currency.
    """
    if not series:
        return pd.DataFrame(columns=SERIES_COLUMNS)

    df = pd.DataFrame([e.as_dict() for e in series], columns=['key', 'value'])
    total = df['value'].sum()
    df['weight'] = df['value'] / total if total else 0.0
    df['color'] = palette.assign_colors(series, palette_name)
    df['label'] = df['value'].apply(lambda v: locale.format_currency_value(v, locale_name))
    return df[SERIES_COLUMNS]


class AnalyticsAggregator(QtCore.QObject):
    """Fetches the category and monthly summaries of the signed-in user.

    Each successful fetch replaces its series wholesale. Any failure clears
    both series, so views show an explicit empty state instead of stale data.

    Signals:
        categorySummaryChanged (list): The new category series.
        monthlyReportChanged (list): The new monthly series.
        stateChanged (str): The new :class:`SummaryState`.
    """
    categorySummaryChanged = QtCore.Signal(list)
    monthlyReportChanged = QtCore.Signal(list)
    stateChanged = QtCore.Signal(str)

    def __init__(self, session: SessionStore, api: 'service.ExpenseService',
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.api = api

        self.category_summary: List[SummaryEntry] = []
        self.monthly_report: List[SummaryEntry] = []
        self.state: SummaryState = SummaryState.Uninitialized

        self._user_id: Optional[str] = None
        self.session.sessionChanged.connect(self.on_session_changed)

    @QtCore.Slot(object)
    def on_session_changed(self, session: Any) -> None:
        user_id = session.user_id if session else None
        if user_id == self._user_id:
            return
        self._user_id = user_id

        self.clear()
        if user_id:
            self.load()

    def _set_state(self, state: SummaryState) -> None:
        self.state = state
        self.stateChanged.emit(state.value)

    def _update_state(self) -> None:
        if self.category_summary or self.monthly_report:
            self._set_state(SummaryState.Valid)
        else:
            self._set_state(SummaryState.Empty)

    def clear(self) -> None:
        self.category_summary = []
        self.monthly_report = []
        self.categorySummaryChanged.emit([])
        self.monthlyReportChanged.emit([])
        self._set_state(SummaryState.Uninitialized)

    def _fail(self) -> None:
        self.category_summary = []
        self.monthly_report = []
        self.categorySummaryChanged.emit([])
        self.monthlyReportChanged.emit([])
        self._set_state(SummaryState.Error)

    def _fetch_series(self, func) -> Optional[List[SummaryEntry]]:
        user_id = self.session.user_id
        if not user_id:
            logging.debug('No user id yet, waiting for a session.')
            return None
        series = None
        try:
            mapping = service.start_asynchronous(func, user_id)
            try:
                series = to_series(mapping)
            except ValueError as ex:
                raise status.RequestFailedException('The server returned an invalid summary.') from ex
        except status.BaseStatusException as ex:
            logging.debug(f'Summary fetch failed: {ex}')

        # The session may change while a request is in flight
        if self.session.user_id != user_id:
            logging.debug(f'Dropping the summary for user "{user_id}", the session has changed.')
            return None
        if series is None:
            self._fail()
        return series

    def load_category_summary(self) -> bool:
        series = self._fetch_series(self.api.fetch_category_summary)
        if series is None:
            return False
        self.category_summary = series
        self.categorySummaryChanged.emit(list(series))
        self._update_state()
        return True

    def load_monthly_report(self) -> bool:
        series = self._fetch_series(self.api.fetch_monthly_report)
        if series is None:
            return False
        self.monthly_report = series
        self.monthlyReportChanged.emit(list(series))
        self._update_state()
        return True

    def load(self) -> bool:
        """Load both summaries. Stops at the first failure."""
        return self.load_category_summary() and self.load_monthly_report()

    def category_frame(self) -> pd.DataFrame:
        return to_frame(self.category_summary)

    def monthly_frame(self) -> pd.DataFrame:
        return to_frame(self.monthly_report)
