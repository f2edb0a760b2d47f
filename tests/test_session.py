"""Tests for ExpenseClient.core.session.

Run:
    python -m unittest tests.test_session
"""
from PySide6 import QtCore

from ExpenseClient.core.models import Session
from ExpenseClient.core.session import (
    Route,
    SessionStorage,
    SessionStore,
    TOKEN_KEY,
    USER_DATA_KEY,
)
from ExpenseClient.settings import lib
from ExpenseClient.status import status
from ExpenseClient.ui.actions import signals
from tests.base import BaseTestCase


class SessionStorageTest(BaseTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.path = self.temp_dir / 'session.ini'
        self.storage = SessionStorage(self.path)

    def test_defaults_to_usersettings_path(self):
        self.assertEqual(SessionStorage().path, lib.settings.usersettings_path)

    def test_empty_storage(self):
        self.assertIsNone(self.storage.read_token())
        self.assertEqual(self.storage.read_profile(), {})

    def test_write_and_read(self):
        self.storage.write('tok', {'user_id': '7', 'username': 'alice'})
        other = SessionStorage(self.path)
        self.assertEqual(other.read_token(), 'tok')
        self.assertEqual(other.read_profile(), {'user_id': '7', 'username': 'alice'})

    def test_corrupt_profile_is_treated_as_absent(self):
        raw = QtCore.QSettings(str(self.path), QtCore.QSettings.IniFormat)
        raw.setValue(TOKEN_KEY, 'tok')
        raw.setValue(USER_DATA_KEY, '{not json')
        raw.sync()

        storage = SessionStorage(self.path)
        with self.assertLogs(level='WARNING'):
            self.assertEqual(storage.read_profile(), {})
        self.assertEqual(storage.read_token(), 'tok')

    def test_non_object_profile_is_treated_as_absent(self):
        raw = QtCore.QSettings(str(self.path), QtCore.QSettings.IniFormat)
        raw.setValue(USER_DATA_KEY, '[1, 2, 3]')
        raw.sync()
        with self.assertLogs(level='WARNING'):
            self.assertEqual(SessionStorage(self.path).read_profile(), {})

    def test_clear_removes_both_keys(self):
        self.storage.write('tok', {'user_id': '7'})
        self.storage.clear()
        other = SessionStorage(self.path)
        self.assertIsNone(other.read_token())
        self.assertEqual(other.read_profile(), {})


class SessionStoreTest(BaseTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.store = self.make_session_store()
        self.changes = self.collect(self.store.sessionChanged)
        self.routes = self.collect(signals.navigationRequested)

    def test_restore_with_nothing_persisted(self):
        self.assertIsNone(self.store.restore())
        self.assertFalse(self.store.is_authenticated)
        self.assertEqual(self.changes, [])

    def test_restore_activates_persisted_session(self):
        self.store.storage.write('tok', {'user_id': '7', 'username': 'alice', 'email': 'a@example.com'})

        store = self.make_session_store()
        session = store.restore()

        self.assertTrue(store.is_authenticated)
        self.assertEqual(session, Session('tok', '7', 'alice', 'a@example.com'))
        self.assertEqual(store.user_id, '7')
        self.assertEqual(store.credential, 'tok')

    def test_restore_with_corrupt_profile_keeps_credential(self):
        self.store.storage.write('tok')
        raw = QtCore.QSettings(str(self.store.storage.path), QtCore.QSettings.IniFormat)
        raw.setValue(USER_DATA_KEY, '{broken')
        raw.sync()

        store = self.make_session_store()
        with self.assertLogs(level='WARNING'):
            session = store.restore()
        self.assertTrue(store.is_authenticated)
        self.assertEqual(session.credential, 'tok')
        self.assertIsNone(session.user_id)

    def test_login_persists_and_navigates(self):
        session = self.store.login('tok', {'user_id': 7, 'username': 'alice', 'ignored': 'x'})

        self.assertTrue(self.store.is_authenticated)
        self.assertEqual(session.user_id, '7')
        self.assertEqual(self.changes, [session])
        self.assertEqual(self.routes, [Route.Dashboard.value])

        other = SessionStorage(self.store.storage.path)
        self.assertEqual(other.read_token(), 'tok')
        self.assertEqual(other.read_profile(), {'user_id': '7', 'username': 'alice'})

    def test_login_without_profile(self):
        session = self.store.login('tok')
        self.assertIsNone(session.user_id)
        self.assertEqual(self.routes, [Route.Dashboard.value])

    def test_login_requires_credential(self):
        with self.assertRaises(status.InvalidInputException):
            self.store.login('')
        self.assertFalse(self.store.is_authenticated)
        self.assertEqual(self.routes, [])

    def test_logout_clears_storage_and_navigates(self):
        self.store.login('tok', {'user_id': '7'})
        self.store.logout()

        self.assertFalse(self.store.is_authenticated)
        self.assertIsNone(self.store.user_id)
        self.assertEqual(self.changes[-1], None)
        self.assertEqual(self.routes[-1], Route.Login.value)
        self.assertIsNone(SessionStorage(self.store.storage.path).read_token())

    def test_logout_is_idempotent(self):
        self.store.logout()
        self.store.logout()
        self.assertEqual(self.changes, [])
        self.assertEqual(self.routes, [Route.Login.value, Route.Login.value])

    def test_update_profile(self):
        self.store.login('tok', {'user_id': '7', 'username': 'alice'})
        session = self.store.update_profile(username='bob', email='bob@example.com')

        self.assertEqual(session, Session('tok', '7', 'bob', 'bob@example.com'))
        self.assertEqual(SessionStorage(self.store.storage.path).read_profile()['username'], 'bob')

    def test_update_profile_without_session_is_noop(self):
        self.assertIsNone(self.store.update_profile(username='bob'))
        self.assertEqual(self.changes, [])

    def test_guard_unauthenticated(self):
        self.assertEqual(self.store.guard('/login'), Route.Login)
        self.assertEqual(self.store.guard('/signup'), Route.Signup)
        self.assertEqual(self.store.guard('/dashboard'), Route.Login)
        self.assertEqual(self.store.guard(Route.Analytics), Route.Login)

    def test_guard_authenticated(self):
        self.store.login('tok', {'user_id': '7'})
        self.assertEqual(self.store.guard('/dashboard'), Route.Dashboard)
        self.assertEqual(self.store.guard('/settings'), Route.Settings)
        self.assertEqual(self.store.guard('/login'), Route.Dashboard)
        self.assertEqual(self.store.guard('/signup'), Route.Dashboard)

    def test_guard_unknown_route(self):
        with self.assertRaises(ValueError):
            self.store.guard('/nowhere')
