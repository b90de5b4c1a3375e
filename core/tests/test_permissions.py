from datetime import date

from django.test import SimpleTestCase, TestCase

from core.models import Customer, FeaturePermission, Loan, Payment, User
from core.permissions import (
    ALL_AGENTS, DEFAULT_FEATURES, FeatureKeys, PermissionChecker,
    has_permission, load_permission_table, resolve_visible_agent_ids, seed_default_features,
)
from core.session import CollectorSession
from core.tests.fixtures import CollectionFixtures


class ResolverTests(SimpleTestCase):

    def test_admin_sees_everything(self):
        ids = resolve_visible_agent_ids('admin-1', 'admin')
        self.assertIs(ids, ALL_AGENTS)
        self.assertIn('anyone', ids)

    def test_manager_sees_self_and_reports(self):
        ids = resolve_visible_agent_ids('m1', 'manager', report_ids=['a1', 'a2'])
        self.assertEqual(ids, frozenset({'m1', 'a1', 'a2'}))

    def test_manager_without_reports(self):
        self.assertEqual(resolve_visible_agent_ids('m1', 'manager', report_ids=[]), frozenset({'m1'}))

    def test_agent_sees_self(self):
        self.assertEqual(resolve_visible_agent_ids('a1', 'agent'), frozenset({'a1'}))

    def test_unknown_role_sees_nothing(self):
        self.assertEqual(resolve_visible_agent_ids('x', 'auditor'), frozenset())


class HasPermissionTests(SimpleTestCase):

    table = {
        'customer_create': {'admin': True, 'manager': True, 'agent': True},
        'customer_delete': {'admin': True, 'manager': False, 'agent': False},
    }

    def test_lookup(self):
        self.assertTrue(has_permission('agent', 'customer_create', self.table))
        self.assertFalse(has_permission('agent', 'customer_delete', self.table))

    def test_missing_feature_fails_closed(self):
        self.assertFalse(has_permission('agent', 'nonexistent_feature', self.table))
        self.assertFalse(has_permission('admin', 'nonexistent_feature', self.table))

    def test_unknown_role_fails_closed(self):
        self.assertFalse(has_permission('auditor', 'customer_create', self.table))
        self.assertFalse(has_permission(None, 'customer_create', self.table))

    def test_empty_table_fails_closed(self):
        self.assertFalse(has_permission('admin', 'customer_create', {}))


class FeatureTableTests(TestCase):

    def test_defaults_are_seeded(self):
        table = load_permission_table()
        self.assertEqual(set(table), set(DEFAULT_FEATURES))
        self.assertTrue(table[FeatureKeys.PAYMENT_CREATE]['agent'])
        self.assertFalse(table[FeatureKeys.CUSTOMER_DELETE]['manager'])

    def test_seeding_leaves_edits_alone(self):
        FeaturePermission.objects.filter(feature_key=FeatureKeys.CUSTOMER_DELETE).update(manager_access=True)
        created, updated = seed_default_features()
        self.assertEqual((created, updated), (0, 0))
        self.assertTrue(FeaturePermission.objects.get(feature_key=FeatureKeys.CUSTOMER_DELETE).manager_access)

    def test_reset_restores_defaults(self):
        FeaturePermission.objects.filter(feature_key=FeatureKeys.CUSTOMER_DELETE).update(manager_access=True)
        created, updated = seed_default_features(overwrite=True)
        self.assertEqual(created, 0)
        self.assertEqual(updated, len(DEFAULT_FEATURES))
        self.assertFalse(FeaturePermission.objects.get(feature_key=FeatureKeys.CUSTOMER_DELETE).manager_access)


class PermissionCheckerTests(CollectionFixtures, TestCase):

    def checker(self, user):
        return PermissionChecker(user, CollectorSession.for_user(user))

    def test_customer_scope_by_role(self):
        all_ids = set(Customer.objects.values_list('id', flat=True))

        admin = set(self.checker(self.admin).filter_customers(Customer.objects.all()).values_list('id', flat=True))
        self.assertEqual(admin, all_ids)

        manager = set(self.checker(self.manager).filter_customers(Customer.objects.all()).values_list('id', flat=True))
        self.assertEqual(manager, {self.customer_a.id, self.customer_b.id, self.customer_c.id})

        agent = set(self.checker(self.agent_one).filter_customers(Customer.objects.all()).values_list('id', flat=True))
        self.assertEqual(agent, {self.customer_a.id, self.customer_b.id})

    def test_view_all_customers_widens_scope(self):
        FeaturePermission.objects.filter(feature_key=FeatureKeys.VIEW_ALL_CUSTOMERS).update(agent_access=True)
        checker = self.checker(self.agent_one)
        self.assertIs(checker.customer_scope, ALL_AGENTS)
        self.assertTrue(checker.can_view_customer(self.customer_d))

    def test_payments_scoped_through_customer_and_collector(self):
        own = self.make_payment(self.customer_a, self.agent_one, date(2024, 1, 2))
        # collected for a customer outside agent_one's list
        covering = self.make_payment(self.customer_d, self.agent_one, date(2024, 1, 2))
        foreign = self.make_payment(self.customer_d, self.other_agent, date(2024, 1, 2))

        visible = set(self.checker(self.agent_one).filter_payments(Payment.objects.all()).values_list('id', flat=True))
        self.assertEqual(visible, {own.id, covering.id})
        self.assertNotIn(foreign.id, visible)

    def test_loans_scoped_through_customer(self):
        self.fund('100000', created_by=self.admin)
        loan = Loan.open_for_customer(self.customer_d, self.admin, 1000, date(2024, 1, 1), daily_amount=50)
        self.assertFalse(self.checker(self.manager).filter_loans(Loan.objects.all()).filter(pk=loan.pk).exists())
        self.assertTrue(self.checker(self.other_agent).filter_loans(Loan.objects.all()).filter(pk=loan.pk).exists())

    def test_users_visible(self):
        visible = set(self.checker(self.manager).filter_users(User.objects.all()).values_list('id', flat=True))
        self.assertEqual(visible, {self.manager.id, self.agent_one.id, self.agent_two.id})

    def test_managers_may_only_create_agents(self):
        checker = self.checker(self.manager)
        self.assertTrue(checker.can_create_user_with_role('agent'))
        self.assertFalse(checker.can_create_user_with_role('manager'))
        self.assertFalse(checker.can_create_user_with_role('admin'))
        self.assertFalse(self.checker(self.agent_one).can_create_users())

    def test_agent_edits_own_payments_on_the_same_day(self):
        today = date(2024, 6, 1)
        todays = self.make_payment(self.customer_a, self.agent_one, today)
        yesterdays = self.make_payment(self.customer_a, self.agent_one, date(2024, 5, 31))
        someone_elses = self.make_payment(self.customer_a, self.manager, today)

        checker = self.checker(self.agent_one)
        self.assertTrue(checker.can_edit_payment(todays, today=today))
        self.assertFalse(checker.can_edit_payment(yesterdays, today=today))
        self.assertFalse(checker.can_edit_payment(someone_elses, today=today))

    def test_manager_edits_any_visible_payment(self):
        today = date(2024, 6, 1)
        old = self.make_payment(self.customer_a, self.agent_one, date(2024, 5, 1))
        checker = self.checker(self.manager)
        self.assertTrue(checker.can_edit_payment(old, today=today))
        self.assertFalse(checker.can_delete_payment(old))

    def test_loans_opened_by_admin_and_manager_only(self):
        self.assertTrue(self.checker(self.admin).can_open_loan(self.customer_a))
        self.assertTrue(self.checker(self.manager).can_open_loan(self.customer_a))
        self.assertFalse(self.checker(self.manager).can_open_loan(self.customer_d))
        self.assertFalse(self.checker(self.agent_one).can_open_loan(self.customer_a))

    def test_assign_within_scope(self):
        checker = self.checker(self.manager)
        self.assertTrue(checker.can_assign_to_agent(self.agent_two))
        self.assertFalse(checker.can_assign_to_agent(self.other_agent))
        self.assertFalse(self.checker(self.agent_one).can_assign_customers())

    def test_user_without_role_sees_nothing(self):
        nobody = User(mobile='9999999999', name='No Role', user_role='')
        checker = PermissionChecker(nobody)
        self.assertEqual(checker.visible_agent_ids, frozenset())
        self.assertFalse(checker.filter_customers(Customer.objects.all()).exists())
        self.assertFalse(checker.has_feature(FeatureKeys.VIEW_DASHBOARD))
