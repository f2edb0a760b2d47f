# tests/test_log.py
"""
Tests for ExpenseClient.log.log
(covers TankHandler, the Qt message bridge and the level helpers).

Run:
    python -m unittest tests.test_log
"""
import logging
from typing import List

from PySide6.QtCore import QtMsgType

from ExpenseClient.log.log import (
    TankHandler,
    qt_message_handler,
    set_logging_level,
    setup_logging,
)
from ExpenseClient.status import status
from ExpenseClient.ui.actions import signals
from tests.base import BaseTestCase


class LogModuleTests(BaseTestCase):
    """
    Each test starts with a fresh root logger configured by
    setup_logging(enable_stream_handler=False).
    """

    def setUp(self) -> None:
        super().setUp()
        logging.disable(logging.NOTSET)

        setup_logging(enable_stream_handler=False,
                      enable_qt_handler=False,
                      log_level=logging.DEBUG)

        self.root_logger = logging.getLogger()
        self.tank: TankHandler = next(
            h for h in self.root_logger.handlers if isinstance(h, TankHandler)
        )

    def test_setup_logging_installs_tank_handler_only(self):
        self.assertEqual(
            [type(h) for h in self.root_logger.handlers],
            [TankHandler],
        )

    def test_tank_handler_stores_and_filters(self):
        logging.debug('dbg message')
        logging.error('err message')
        self.assertEqual(len(self.tank.tank), 2)
        errs: List[str] = self.tank.get_logs(logging.ERROR)
        self.assertEqual(len(errs), 1)
        self.assertIn('err message', errs[0])
        self.tank.clear_logs()
        self.assertEqual(self.tank.tank, [])

    def test_error_emits_show_logs(self):
        shown = self.collect(signals.showLogs)
        logging.warning('just a warning')
        self.assertEqual(shown, [])
        logging.error('should emit signal')
        self.assertEqual(len(shown), 1)

    def test_status_exception_is_logged(self):
        status.ServiceUnavailableException('connection refused')
        errs = self.tank.get_logs(logging.ERROR)
        self.assertTrue(any('connection refused' in m for m in errs))

    def test_set_logging_level_accepts_valid_levels(self):
        set_logging_level(logging.ERROR)
        self.assertEqual(self.root_logger.level, logging.ERROR)
        for h in self.root_logger.handlers:
            self.assertEqual(h.level, logging.ERROR)

    def test_set_logging_level_rejects_invalid(self):
        for level in ('INFO', True, 1234):
            with self.assertRaises(ValueError):
                set_logging_level(level)  # type: ignore[arg-type]

    def test_qt_message_handler_maps_to_logging(self):
        qt_message_handler(QtMsgType.QtInfoMsg, None, 'Qt info')
        qt_message_handler(QtMsgType.QtWarningMsg, None, 'Qt warn ')
        msgs = self.tank.get_logs(logging.INFO)
        self.assertTrue(any('Qt info' in m for m in msgs))
        self.assertTrue(any(m.endswith('Qt warn') for m in msgs))

    def test_qt_message_handler_fatal_exits(self):
        with self.assertRaises(SystemExit):
            qt_message_handler(QtMsgType.QtFatalMsg, None, 'fatal')
