from datetime import date
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from core.exceptions import (
    ActiveLoanExists, ConflictError, InsufficientFunds, LoanAlreadyClosed, OutstandingBalanceRemaining,
)
from core.models import AuditLog, Customer, FundTransaction, Loan, Payment
from core.tests.fixtures import CollectionFixtures


class LoanLifecycleTests(CollectionFixtures, TestCase):

    def setUp(self):
        self.fund('20000', created_by=self.admin)

    def open_loan(self, customer=None, **kwargs):
        params = {
            'loan_amount': Decimal('10000'),
            'start_date': date(2024, 1, 1),
            'end_date': date(2024, 2, 29),
            'interest_rate': Decimal('12'),
            'processing_fee_rate': Decimal('2'),
        }
        params.update(kwargs)
        return Loan.open_for_customer(customer or self.customer_a, self.manager, **params)

    def test_open_records_charges_and_disbursal(self):
        loan = self.open_loan()

        self.assertEqual(loan.status, 'active')
        self.assertTrue(loan.fund_linked)
        self.assertEqual(loan.disbursal_amount, Decimal('8600'))
        self.assertEqual(loan.outstanding_amount, Decimal('10000'))
        self.assertEqual(loan.daily_amount, Decimal('166.67'))

        entry = FundTransaction.objects.get(reference_table='loans', reference_id=str(loan.id))
        self.assertEqual(entry.transaction_type, 'loan_disbursement')
        self.assertEqual(entry.amount, Decimal('8600'))
        self.assertEqual(FundTransaction.objects.balance(), Decimal('11400'))

        customer = Customer.objects.get(pk=self.customer_a.pk)
        self.assertEqual(customer.status, 'active')
        self.assertEqual(customer.loan_amount, Decimal('10000'))
        self.assertEqual(customer.daily_amount, Decimal('166.67'))
        self.assertEqual(customer.end_date, date(2024, 2, 29))

    def test_supplied_daily_amount_used_without_end_date(self):
        loan = self.open_loan(end_date=None, daily_amount=Decimal('250'))
        self.assertEqual(loan.daily_amount, Decimal('250.00'))

    def test_second_open_loan_rejected(self):
        self.open_loan(loan_amount=Decimal('1000'))
        with self.assertRaises(ActiveLoanExists):
            self.open_loan(loan_amount=Decimal('1000'))
        self.assertEqual(Loan.objects.filter(customer=self.customer_a).count(), 1)

    def test_disbursal_above_fund_balance_rejected(self):
        with self.assertRaises(InsufficientFunds) as ctx:
            self.open_loan(loan_amount=Decimal('50000'))
        self.assertEqual(ctx.exception.available, Decimal('20000'))
        self.assertFalse(Loan.objects.exists())

    def test_failed_fund_write_leaves_loan_pending(self):
        with mock.patch.object(Loan, 'link_fund_disbursement', side_effect=DatabaseError('connection reset')):
            loan = self.open_loan()

        loan.refresh_from_db()
        self.assertEqual(loan.status, 'pending_fund_link')
        self.assertFalse(loan.fund_linked)
        self.assertFalse(FundTransaction.objects.filter(transaction_type='loan_disbursement').exists())

        # a pending loan still blocks another one
        with self.assertRaises(ActiveLoanExists):
            self.open_loan()

        loan.link_fund_disbursement()
        loan.refresh_from_db()
        self.assertEqual(loan.status, 'active')
        self.assertTrue(loan.fund_linked)

        # linking again writes nothing
        self.assertIsNone(loan.link_fund_disbursement())
        self.assertEqual(FundTransaction.objects.filter(transaction_type='loan_disbursement').count(), 1)

    def test_close_requires_outstanding_collected(self):
        loan = self.open_loan(loan_amount=Decimal('1000'), interest_rate=0, processing_fee_rate=0,
                              end_date=date(2024, 1, 10))
        Payment.objects.create(customer=self.customer_a, loan=loan, agent=self.agent_one,
                               date=date(2024, 1, 2), amount=Decimal('600'))

        with self.assertRaises(OutstandingBalanceRemaining) as ctx:
            loan.close(closed_by=self.manager)
        self.assertEqual(ctx.exception.remaining, Decimal('400'))

        Payment.objects.create(customer=self.customer_a, loan=loan, agent=self.agent_one,
                               date=date(2024, 1, 3), amount=Decimal('400'))
        loan.close(closed_by=self.manager)

        loan.refresh_from_db()
        self.assertEqual(loan.status, 'closed')
        self.assertEqual(loan.closed_by, self.manager)
        self.assertIsNotNone(loan.closed_at)
        self.assertEqual(Customer.objects.get(pk=self.customer_a.pk).status, 'closed')

        with self.assertRaises(LoanAlreadyClosed):
            loan.close(closed_by=self.manager)

    def test_pending_loan_cannot_be_closed(self):
        with mock.patch.object(Loan, 'link_fund_disbursement', side_effect=DatabaseError('timeout')):
            loan = self.open_loan(loan_amount=Decimal('1000'))
        with self.assertRaises(ConflictError):
            loan.close(closed_by=self.manager)

    def test_new_loan_after_close(self):
        loan = self.open_loan(loan_amount=Decimal('1000'), interest_rate=0, processing_fee_rate=0)
        Payment.objects.create(customer=self.customer_a, loan=loan, agent=self.agent_one,
                               date=date(2024, 1, 2), amount=Decimal('1000'))
        loan.close(closed_by=self.admin)

        second = self.open_loan(loan_amount=Decimal('2000'))
        self.assertEqual(second.status, 'active')


class SoftDeleteTests(CollectionFixtures, TestCase):

    def test_deleted_rows_hidden_from_default_manager(self):
        payment = self.make_payment(self.customer_a, self.agent_one, date(2024, 1, 2))
        payment.delete()

        self.assertFalse(Payment.objects.filter(pk=payment.pk).exists())
        self.assertTrue(Payment.all_objects.filter(pk=payment.pk).exists())
        self.assertEqual(self.customer_a.total_paid(), Decimal('0'))

        payment.restore()
        self.assertEqual(self.customer_a.total_paid(), Decimal('100.00'))

    def test_customer_balance(self):
        self.customer_b.loan_amount = Decimal('1000')
        self.customer_b.save()
        self.make_payment(self.customer_b, self.agent_one, date(2024, 1, 2), amount='150')
        self.make_payment(self.customer_b, self.agent_one, date(2024, 1, 3), amount='0', status='not_paid',
                          remarks='shop closed')
        self.assertEqual(self.customer_b.balance(), Decimal('850'))

    def test_kyc_absent_versus_empty(self):
        self.assertFalse(self.customer_a.has_kyc())
        self.customer_a.aadhaar_number = ''
        self.assertTrue(self.customer_a.has_kyc())


class AuditLogTests(CollectionFixtures, TestCase):

    def test_record(self):
        entry = AuditLog.record(self.admin, 'admin_password_reset', 'auth.users', self.agent_one.id,
                                new_data={'target_user': str(self.agent_one.id)})
        self.assertEqual(entry.record_id, str(self.agent_one.id))
        self.assertIsNone(entry.ip_address)
