from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from core.forms.fund_forms import FundTransactionForm
from core.forms.loan_forms import LoanChargesForm
from core.forms.payment_forms import PaymentForm
from core.forms.user_forms import UserCreateForm, validate_strong_password
from core.utils.error_messages import (
    DUPLICATE_MOBILE_MESSAGE, GENERIC_ERROR_MESSAGE, NOT_PERMITTED_MESSAGE, get_user_friendly_error,
)


class PasswordPolicyTests(SimpleTestCase):

    def test_strong_password_passes(self):
        self.assertEqual(validate_strong_password('Collect2024'), [])

    def test_each_rule(self):
        self.assertIn('Password must be at least 8 characters', validate_strong_password('Ab1'))
        self.assertIn('Password must contain an uppercase letter', validate_strong_password('abcdefg1'))
        self.assertIn('Password must contain a lowercase letter', validate_strong_password('ABCDEFG1'))
        self.assertIn('Password must contain a number', validate_strong_password('Abcdefgh'))

    def test_common_passwords_rejected(self):
        for password in ['password', 'Admin123', 'ABCD1234']:
            self.assertIn('Password is too common. Choose a stronger one.', validate_strong_password(password))


class ErrorMessageTests(SimpleTestCase):

    def test_duplicate_mobile(self):
        self.assertEqual(
            get_user_friendly_error(Exception('UNIQUE constraint failed: core_user.mobile')),
            DUPLICATE_MOBILE_MESSAGE,
        )
        self.assertEqual(
            get_user_friendly_error('A user with this phone has already been registered'),
            DUPLICATE_MOBILE_MESSAGE,
        )

    def test_constraint_and_permission_errors(self):
        self.assertEqual(
            get_user_friendly_error('null value violates not-null constraint "name"'),
            'A required field is missing. Please fill in all required fields.',
        )
        self.assertEqual(get_user_friendly_error('permission denied for table payments'), NOT_PERMITTED_MESSAGE)

    def test_unknown_error_is_generic(self):
        self.assertEqual(get_user_friendly_error(Exception('segfault in core_customer')), GENERIC_ERROR_MESSAGE)
        self.assertEqual(get_user_friendly_error(None), GENERIC_ERROR_MESSAGE)


class LoanChargesFormTests(SimpleTestCase):

    def test_preview_figures(self):
        form = LoanChargesForm({
            'loan_amount': '10000',
            'interest_rate': '12',
            'processing_fee_rate': '2',
            'start_date': '2024-01-01',
            'end_date': '2024-02-29',
        })
        self.assertTrue(form.is_valid(), form.errors)
        charges = form.charges()
        self.assertEqual(charges['disbursal_amount'], Decimal('8600'))
        self.assertEqual(charges['tenure_days'], 60)
        self.assertEqual(charges['daily_amount'], Decimal('166.67'))

    def test_interest_defaults_from_settings(self):
        form = LoanChargesForm({'loan_amount': '1000', 'daily_amount': '50'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['interest_rate'], Decimal('12.5'))
        self.assertEqual(form.charges()['daily_amount'], Decimal('50.00'))

    def test_nothing_left_to_disburse(self):
        form = LoanChargesForm({'loan_amount': '1000', 'interest_rate': '60', 'processing_fee_rate': '40'})
        self.assertFalse(form.is_valid())


class PaymentFormTests(TestCase):

    def test_paid_needs_amount(self):
        form = PaymentForm({'status': 'paid', 'date': '2024-01-02'})
        self.assertFalse(form.is_valid())
        self.assertIn('amount', form.errors)

    def test_not_paid_needs_remarks(self):
        form = PaymentForm({'status': 'not_paid', 'date': '2024-01-02'})
        self.assertFalse(form.is_valid())
        self.assertIn('remarks', form.errors)

    def test_not_paid_with_promise(self):
        form = PaymentForm({
            'status': 'not_paid', 'date': '2024-01-02', 'remarks': 'salary on Friday',
            'promised_date': '2024-01-05',
        })
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['amount'], Decimal('0.00'))
        self.assertEqual(form.cleaned_data['promised_date'], date(2024, 1, 5))

    def test_promise_before_visit_rejected(self):
        form = PaymentForm({
            'status': 'not_paid', 'date': '2024-01-05', 'remarks': 'later',
            'promised_date': '2024-01-02',
        })
        self.assertFalse(form.is_valid())
        self.assertIn('promised_date', form.errors)

    def test_paid_clears_promise_and_defaults(self):
        form = PaymentForm({'amount': '100', 'promised_date': '2024-01-05'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['status'], 'paid')
        self.assertEqual(form.cleaned_data['mode'], 'cash')
        self.assertIsNone(form.cleaned_data['promised_date'])


class FundTransactionFormTests(TestCase):

    def test_only_manual_types(self):
        form = FundTransactionForm({'transaction_type': 'loan_disbursement', 'amount': '100'})
        self.assertFalse(form.is_valid())
        self.assertIn('transaction_type', form.errors)

    def test_amount_positive(self):
        form = FundTransactionForm({'transaction_type': 'credit', 'amount': '0'})
        self.assertFalse(form.is_valid())
        self.assertIn('amount', form.errors)


class UserCreateFormTests(TestCase):

    def test_unknown_role_becomes_agent(self):
        form = UserCreateForm({'name': 'Ravi', 'mobile': '9123456780', 'password': 'secret1', 'role': 'boss'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['role'], 'agent')

    def test_field_rules(self):
        form = UserCreateForm({'name': 'R', 'mobile': '12345', 'password': '123'})
        self.assertFalse(form.is_valid())
        self.assertEqual(set(form.errors), {'name', 'mobile', 'password'})
