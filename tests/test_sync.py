"""Tests for ExpenseClient.core.sync.

Remote calls run synchronously against an in-memory store.

Run:
    python -m unittest tests.test_sync
"""
import math

from ExpenseClient.core.models import Category, ExpenseRecord
from ExpenseClient.core.sync import ExpenseSyncController
from ExpenseClient.status import status
from ExpenseClient.ui.actions import signals
from tests.base import BaseControllerTestCase, make_records


class SyncTestBase(BaseControllerTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.confirmed = []
        self.answer = True
        self.controller = ExpenseSyncController(self.session, self.api, confirm=self._confirm)

    def _confirm(self, record_id: int) -> bool:
        self.confirmed.append(record_id)
        return self.answer

    def sign_in(self, user_id: str = '7') -> None:
        self.session.login('tok', {'user_id': user_id})


class SessionTriggerTest(SyncTestBase):

    def test_no_remote_calls_without_user_id(self):
        self.assertFalse(self.controller.load_all())
        self.assertFalse(self.controller.create('Lunch', 10.0, 'Food'))
        self.assertFalse(self.controller.delete(1))
        self.assertEqual(self.api.calls, [])
        self.assertEqual(self.confirmed, [])

    def test_session_without_user_id_waits(self):
        self.session.login('tok')
        self.assertEqual(self.api.calls, [])

    def test_login_triggers_load(self):
        self.api.records = make_records(3)
        changes = self.collect(self.controller.expensesChanged)

        self.sign_in()

        self.assertEqual(self.controller.expenses, make_records(3))
        self.assertEqual(self.controller.total, 60.0)
        self.assertEqual(changes[-1], make_records(3))
        self.assertEqual(self.api.calls[0], ('fetch_expenses', ('7',)))

    def test_restore_triggers_load(self):
        self.session.storage.write('tok', {'user_id': '7'})
        self.api.records = make_records(2)

        self.session.restore()
        self.assertEqual(len(self.controller.expenses), 2)

    def test_logout_clears_caches(self):
        self.api.records = make_records(3)
        self.sign_in()
        totals = self.collect(self.controller.totalChanged)

        self.session.logout()

        self.assertEqual(self.controller.expenses, [])
        self.assertEqual(self.controller.total, 0.0)
        self.assertEqual(totals, [0.0])

    def test_profile_update_does_not_reload(self):
        self.sign_in()
        n = len(self.api.calls)
        self.session.update_profile(username='bob')
        self.assertEqual(len(self.api.calls), n)


class LoadTest(SyncTestBase):

    def test_loading_flag(self):
        self.sign_in()
        loading = self.collect(self.controller.loadingChanged)
        self.controller.load_all()
        self.assertEqual(loading, [True, False])
        self.assertFalse(self.controller.loading)

    def test_empty_store(self):
        self.sign_in()
        self.assertTrue(self.controller.load_all())
        self.assertEqual(self.controller.expenses, [])
        self.assertEqual(self.controller.total, 0.0)

    def test_failed_first_load_leaves_empty_list(self):
        self.api.fail('fetch_expenses')
        errors = self.collect(signals.error)

        self.sign_in()

        self.assertEqual(self.controller.expenses, [])
        self.assertTrue(errors)
        self.assertFalse(self.controller.loading)

    def test_failed_reload_keeps_previous_list(self):
        self.api.records = make_records(5)
        self.sign_in()

        self.api.fail('fetch_expenses')
        self.assertFalse(self.controller.load_all())
        self.assertEqual(self.controller.expenses, make_records(5))

    def test_list_and_total_are_independent(self):
        self.api.records = make_records(2)
        self.sign_in()

        self.api.records = make_records(3)
        self.api.fail('fetch_total')
        self.assertFalse(self.controller.load_all())

        self.assertEqual(len(self.controller.expenses), 3)
        self.assertEqual(self.controller.total, 30.0)


class SessionChangeDuringLoadTest(SyncTestBase):

    def test_logout_during_list_fetch(self):
        self.api.records = make_records(3)
        self.sign_in()
        self.api.before('fetch_expenses', self.session.logout)

        self.assertFalse(self.controller.load_all())

        self.assertEqual(self.controller.expenses, [])
        self.assertEqual(self.controller.total, 0.0)
        self.assertEqual(self.api.called('fetch_total'), 1)
        self.assertFalse(self.controller.loading)

    def test_logout_during_total_fetch(self):
        self.api.records = make_records(3)
        self.sign_in()
        self.api.before('fetch_total', self.session.logout)

        self.assertFalse(self.controller.load_all())

        self.assertEqual(self.controller.expenses, [])
        self.assertEqual(self.controller.total, 0.0)

    def test_failure_after_logout_keeps_caches_empty(self):
        self.api.records = make_records(3)
        self.sign_in()
        self.api.fail('fetch_expenses')
        self.api.before('fetch_expenses', self.session.logout)

        self.assertFalse(self.controller.load_all())
        self.assertEqual(self.controller.expenses, [])

    def test_user_switch_during_fetch(self):
        self.sign_in('7')
        self.api.records = make_records(2)
        self.api.before('fetch_expenses', lambda: self.session.login('tok2', {'user_id': '8'}))
        totals = self.collect(self.controller.totalChanged)

        self.assertFalse(self.controller.load_all())

        self.assertEqual(self.controller.expenses, make_records(2))
        self.assertEqual(totals, [0.0, 30.0])
        self.assertEqual(self.api.calls[2:], [
            ('fetch_expenses', ('7',)),
            ('fetch_expenses', ('8',)),
            ('fetch_total', ('8',)),
        ])


class CreateTest(SyncTestBase):

    def setUp(self) -> None:
        super().setUp()
        self.sign_in()

    def test_create_refetches(self):
        finished = self.collect(self.controller.createFinished)
        notices = self.collect(signals.notice)

        self.assertTrue(self.controller.create('Lunch', 12.5, 'Food'))

        self.assertEqual(self.controller.expenses, [ExpenseRecord(1, 'Lunch', 12.5, Category.Food)])
        self.assertEqual(self.controller.total, 12.5)
        self.assertEqual(len(finished), 1)
        self.assertIn('Expense added.', notices)

        names = [c[0] for c in self.api.calls]
        self.assertEqual(names[-3:], ['create_expense', 'fetch_expenses', 'fetch_total'])

    def test_create_sends_parsed_category(self):
        self.controller.create('Gift', 5, 'Unknown')
        _, args = next(c for c in self.api.calls if c[0] == 'create_expense')
        self.assertEqual(args, ('7', 'Gift', 5, Category.Other))

    def test_create_failure_keeps_cache(self):
        self.api.records = make_records(5)
        self.controller.load_all()
        self.api.fail('create_expense', status.RequestFailedException, 'Nope.')
        failed = self.collect(self.controller.createFailed)

        self.assertFalse(self.controller.create('Lunch', 12.5, 'Food'))

        self.assertEqual(len(self.controller.expenses), 5)
        self.assertEqual(failed, ['Nope.'])
        self.assertFalse(self.controller.submitting)

    def test_create_rejects_invalid_amount(self):
        failed = self.collect(self.controller.createFailed)
        for amount in ('12', True, math.nan, math.inf, None):
            self.assertFalse(self.controller.create('Lunch', amount, 'Food'))
        self.assertEqual(len(failed), 5)
        self.assertEqual(failed[0], 'Amount must be a number, got "12".')
        self.assertEqual(self.api.called('create_expense'), 0)

    def test_create_ignored_while_submitting(self):
        self.controller.submitting = True
        self.assertFalse(self.controller.create('Lunch', 1.0, 'Food'))
        self.assertEqual(self.api.called('create_expense'), 0)

    def test_submitting_flag(self):
        submitting = self.collect(self.controller.submittingChanged)
        self.controller.create('Lunch', 1.0, 'Food')
        self.assertEqual(submitting, [True, False])


class DeleteTest(SyncTestBase):

    def setUp(self) -> None:
        super().setUp()
        self.api.records = make_records(2)
        self.sign_in()

    def test_delete_refetches(self):
        finished = self.collect(self.controller.deleteFinished)

        self.assertTrue(self.controller.delete(1))

        self.assertEqual([r.id for r in self.controller.expenses], [2])
        self.assertEqual(self.controller.total, 20.0)
        self.assertEqual(finished, [1])
        self.assertEqual(self.confirmed, [1])

    def test_declined_delete_makes_no_call(self):
        self.answer = False
        self.assertFalse(self.controller.delete(1))
        self.assertEqual(self.api.called('delete_expense'), 0)
        self.assertEqual(len(self.controller.expenses), 2)

    def test_delete_without_gate_is_refused(self):
        controller = ExpenseSyncController(self.session, self.api)
        with self.assertLogs(level='WARNING'):
            self.assertFalse(controller.delete(1))
        self.assertEqual(self.api.called('delete_expense'), 0)

    def test_delete_failure_keeps_cache(self):
        self.api.fail('delete_expense', status.RequestFailedException, 'Not found.')
        failed = self.collect(self.controller.deleteFailed)

        self.assertFalse(self.controller.delete(2))

        self.assertEqual([r.id for r in self.controller.expenses], [1, 2])
        self.assertEqual(failed, [(2, 'Not found.')])
