"""
Daily Collection CRM - Consolidated Models
==========================================

Users (admin / manager / agent), customers, loans, daily payments, the
operator's fund ledger, feature permissions and the audit trail.
"""

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models, transaction as db_transaction, DatabaseError
from django.utils import timezone
from django.core.validators import RegexValidator, MinValueValidator
from django.core.exceptions import ValidationError
from cloudinary.models import CloudinaryField
from decimal import Decimal
import uuid
import logging

from .base import BaseModel, AuditedModel, StatusTrackingMixin
from core.exceptions import (
    ActiveLoanExists, ConflictError, InsufficientFunds,
    LoanAlreadyClosed, OutstandingBalanceRemaining,
)
from core.managers import (
    CustomerManager, LoanManager, PaymentManager, FundTransactionManager,
)
from core.utils.money import MoneyCalculator, LoanChargeCalculator

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

DEFAULT_INTEREST_RATE = Decimal('12.5')

mobile_validator = RegexValidator(
    regex=r'^\d{10}$',
    message='Mobile must be 10 digits'
)


# =============================================================================
# USER MODEL & MANAGER
# =============================================================================

class UserManager(BaseUserManager):
    """Custom user manager for mobile-number authentication"""

    def create_user(self, mobile, password=None, **extra_fields):
        if not mobile:
            raise ValueError('Mobile number is required')
        extra_fields.setdefault('user_role', 'agent')
        user = self.model(mobile=mobile, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, mobile, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('user_role', 'admin')
        return self.create_user(mobile, password, **extra_fields)

    def reporting_to(self, user_id):
        """Users whose reports_to is user_id"""
        return self.filter(reports_to_id=user_id)


class User(AbstractUser, StatusTrackingMixin):
    """
    Staff account: admin at the root, managers under admin, agents under
    managers. Deactivated with a soft flag, never deleted.
    """

    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('manager', 'Manager'),
        ('agent', 'Collection Agent'),
    ]

    username = None
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    mobile = models.CharField(
        max_length=10,
        unique=True,
        validators=[mobile_validator],
        help_text="10-digit mobile number, used to log in"
    )
    whatsapp_number = models.CharField(max_length=15, blank=True)
    user_role = models.CharField(max_length=20, choices=ROLE_CHOICES, db_index=True)

    reports_to = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='direct_reports'
    )

    profile_photo = CloudinaryField(
        'profile_photo',
        folder='staff/profile_photos',
        null=True,
        blank=True,
        resource_type='image'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()
    USERNAME_FIELD = 'mobile'
    REQUIRED_FIELDS = ['name']

    class Meta:
        ordering = ['name']
        indexes = [
            models.Index(fields=['user_role', 'is_active'], name='user_role_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_user_role_display()})"

    def get_full_name(self):
        return self.name

    def get_short_name(self):
        return self.name.split(' ')[0] if self.name else self.mobile

    @property
    def is_admin(self):
        return self.user_role == 'admin'

    @property
    def is_manager(self):
        return self.user_role == 'manager'

    @property
    def is_agent(self):
        return self.user_role == 'agent'


# =============================================================================
# CUSTOMER
# =============================================================================

class Customer(AuditedModel):
    """
    Borrower visited daily by an agent

    KYC columns are nullable on purpose: NULL means "never captured",
    an empty string means "captured as blank".
    """

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('closed', 'Closed'),
        ('defaulted', 'Defaulted'),
    ]

    name = models.CharField(max_length=100)
    mobile = models.CharField(max_length=10, validators=[mobile_validator], db_index=True)
    area = models.CharField(max_length=100)

    loan_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    daily_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)

    assigned_agent = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_customers'
    )

    # KYC
    address = models.TextField(null=True, blank=True)
    aadhaar_number = models.CharField(max_length=12, null=True, blank=True)
    pan_number = models.CharField(max_length=10, null=True, blank=True)
    photo_key = models.CharField(max_length=255, null=True, blank=True)
    kyc_document_key = models.CharField(max_length=255, null=True, blank=True)

    objects = CustomerManager()

    class Meta:
        ordering = ['name']
        indexes = [
            models.Index(fields=['assigned_agent', 'status'], name='customer_agent_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=['closed', 'defaulted']) | models.Q(daily_amount__gt=0),
                name='customer_active_daily_amount_positive'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.mobile})"

    def total_paid(self):
        return self.payments.paid().total_amount()

    def balance(self):
        """Lifetime loan amount minus everything collected"""
        return self.loan_amount - self.total_paid()

    def open_loan(self):
        return self.loans.open().first()

    def has_kyc(self):
        return self.aadhaar_number is not None or self.kyc_document_key is not None


# =============================================================================
# LOAN
# =============================================================================

class Loan(AuditedModel):
    """
    A disbursed loan with its charges frozen at creation

    Lifecycle:
        pending_fund_link -> active    (fund ledger entry written)
        active            -> closed    (outstanding collected, closed by admin/manager)
    """

    STATUS_CHOICES = [
        ('pending_fund_link', 'Pending Fund Link'),
        ('active', 'Active'),
        ('closed', 'Closed'),
    ]

    OPEN_STATUSES = ('pending_fund_link', 'active')

    customer = models.ForeignKey('Customer', on_delete=models.PROTECT, related_name='loans')

    loan_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Gross loan amount"
    )
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2, default=DEFAULT_INTEREST_RATE)
    processing_fee_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    other_deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    other_deduction_remarks = models.CharField(max_length=255, null=True, blank=True)
    include_charges_in_outstanding = models.BooleanField(default=False)

    # Computed once at creation, never recomputed on read
    disbursal_amount = models.DecimalField(max_digits=12, decimal_places=2)
    outstanding_amount = models.DecimalField(max_digits=12, decimal_places=2)

    daily_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending_fund_link', db_index=True)
    fund_linked = models.BooleanField(default=False)

    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='closed_loans'
    )

    objects = LoanManager()

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['customer'],
                condition=models.Q(status__in=['pending_fund_link', 'active'], deleted_at__isnull=True),
                name='one_open_loan_per_customer'
            ),
        ]

    def __str__(self):
        return f"Loan {self.loan_amount} for {self.customer.name} ({self.status})"

    # -------------------------------------------------------------------------
    # OPENING
    # -------------------------------------------------------------------------

    @classmethod
    def open_for_customer(cls, customer, created_by, loan_amount, start_date, end_date=None,
                          daily_amount=None, interest_rate=DEFAULT_INTEREST_RATE,
                          processing_fee_rate=Decimal('0'), other_deductions=Decimal('0'),
                          other_deduction_remarks=None, include_charges_in_outstanding=False):
        """
        Create a loan for customer and record its disbursal in the fund

        The loan and the fund entry are two separate writes. The loan is
        stored as pending_fund_link first; it only becomes active once the
        fund entry exists. If the fund write fails the loan stays pending
        and link_fund_disbursement() can be retried.

        Raises:
            ActiveLoanExists: customer already has an open loan
            InsufficientFunds: disbursal exceeds the fund balance
        """
        charges = LoanChargeCalculator.compute_loan_charges(
            loan_amount, interest_rate, processing_fee_rate,
            other_deductions, include_charges_in_outstanding,
        )

        daily = LoanChargeCalculator.daily_amount_for_tenure(
            charges['outstanding_amount'], start_date, end_date,
            fallback=MoneyCalculator.to_decimal(daily_amount),
        )
        daily = MoneyCalculator.round_money(daily)
        if daily <= 0:
            raise ValidationError({'daily_amount': 'Daily amount must be greater than zero.'})

        with db_transaction.atomic():
            # One open attempt per customer at a time
            customer = Customer.objects.select_for_update().get(pk=customer.pk)

            if cls.objects.filter(customer=customer).open().exists():
                raise ActiveLoanExists()

            available = FundTransaction.objects.balance()
            if charges['disbursal_amount'] > available:
                raise InsufficientFunds(available=available, required=charges['disbursal_amount'])

            loan = cls.objects.create(
                customer=customer,
                loan_amount=MoneyCalculator.to_decimal(loan_amount),
                interest_rate=MoneyCalculator.to_decimal(interest_rate),
                processing_fee_rate=MoneyCalculator.to_decimal(processing_fee_rate),
                other_deductions=MoneyCalculator.to_decimal(other_deductions),
                other_deduction_remarks=other_deduction_remarks or None,
                include_charges_in_outstanding=include_charges_in_outstanding,
                disbursal_amount=charges['disbursal_amount'],
                outstanding_amount=charges['outstanding_amount'],
                daily_amount=daily,
                start_date=start_date,
                end_date=end_date,
                status='pending_fund_link',
                created_by=created_by,
            )

            customer.status = 'active'
            customer.loan_amount = loan.loan_amount
            customer.daily_amount = daily
            customer.start_date = start_date
            customer.end_date = end_date
            customer.save(update_fields=[
                'status', 'loan_amount', 'daily_amount', 'start_date', 'end_date', 'updated_at'
            ])

        logger.info(
            f"Loan {loan.id} opened for customer {customer.id}: "
            f"gross={loan.loan_amount} disbursal={loan.disbursal_amount} outstanding={loan.outstanding_amount}"
        )

        try:
            loan.link_fund_disbursement()
        except DatabaseError as e:
            logger.warning(f"Loan {loan.id} created but fund entry failed, left pending: {e}")

        return loan

    def link_fund_disbursement(self):
        """
        Write the loan_disbursement fund entry and activate the loan

        Safe to call again on a pending loan; a linked loan is left alone.
        """
        if self.fund_linked:
            return None

        with db_transaction.atomic():
            fund_entry = FundTransaction.objects.create(
                transaction_type='loan_disbursement',
                amount=self.disbursal_amount,
                description=f"Loan disbursed to {self.customer.name}",
                reference_table='loans',
                reference_id=str(self.id),
                created_by=self.created_by,
            )
            self.fund_linked = True
            if self.status == 'pending_fund_link':
                self.status = 'active'
            self.save(update_fields=['fund_linked', 'status', 'updated_at'])

        logger.info(f"Fund entry {fund_entry.id} linked to loan {self.id}")
        return fund_entry

    # -------------------------------------------------------------------------
    # COLLECTION & CLOSING
    # -------------------------------------------------------------------------

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    def amount_collected(self):
        return self.payments.paid().total_amount()

    def remaining_outstanding(self):
        return self.outstanding_amount - self.amount_collected()

    def close(self, closed_by):
        """
        Close a fully collected loan

        Raises:
            LoanAlreadyClosed: loan is already closed
            ConflictError: disbursal not yet recorded in the fund
            OutstandingBalanceRemaining: money is still owed
        """
        if self.status == 'closed':
            raise LoanAlreadyClosed()
        if self.status != 'active':
            raise ConflictError('Loan disbursal has not been recorded in the fund yet.')

        remaining = self.remaining_outstanding()
        if remaining > 0:
            raise OutstandingBalanceRemaining(remaining=remaining)

        with db_transaction.atomic():
            self.status = 'closed'
            self.closed_at = timezone.now()
            self.closed_by = closed_by
            self.save(update_fields=['status', 'closed_at', 'closed_by', 'updated_at'])

            customer = self.customer
            customer.status = 'closed'
            customer.save(update_fields=['status', 'updated_at'])

        logger.info(f"Loan {self.id} closed by {closed_by.id}")


# =============================================================================
# PAYMENT
# =============================================================================

class Payment(BaseModel):
    """
    One collection visit: paid, or not paid (optionally with a promised date)

    agent is the authenticated collector and is never changed afterwards.
    """

    MODE_CHOICES = [
        ('cash', 'Cash'),
        ('online', 'Online'),
    ]

    STATUS_CHOICES = [
        ('paid', 'Paid'),
        ('not_paid', 'Not Paid'),
    ]

    customer = models.ForeignKey('Customer', on_delete=models.PROTECT, related_name='payments')
    loan = models.ForeignKey(
        'Loan',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    agent = models.ForeignKey('User', on_delete=models.PROTECT, related_name='collected_payments')

    date = models.DateField(default=timezone.localdate, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    mode = models.CharField(max_length=10, choices=MODE_CHOICES, default='cash')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='paid', db_index=True)
    remarks = models.TextField(null=True, blank=True)
    promised_date = models.DateField(null=True, blank=True, db_index=True)

    objects = PaymentManager()

    class Meta:
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['customer', 'date'], name='payment_customer_date_idx'),
            models.Index(fields=['agent', 'date'], name='payment_agent_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status='not_paid') | models.Q(amount__gt=0),
                name='payment_paid_amount_positive'
            ),
        ]

    def __str__(self):
        return f"{self.customer.name} {self.date} {self.status} {self.amount}"


# =============================================================================
# FUND LEDGER
# =============================================================================

class FundTransaction(AuditedModel):
    """
    Entry in the operator's cash pool

    transaction_type is free text on purpose: balance calculations skip
    types they do not know instead of failing.
    """

    TYPE_CHOICES = [
        ('credit', 'Credit'),
        ('debit', 'Debit'),
        ('loan_disbursement', 'Loan Disbursement'),
        ('loan_repayment', 'Loan Repayment'),
        ('collection', 'Collection'),
    ]

    transaction_type = models.CharField(max_length=30, choices=TYPE_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.CharField(max_length=255, null=True, blank=True)
    reference_table = models.CharField(max_length=50, null=True, blank=True)
    reference_id = models.CharField(max_length=64, null=True, blank=True)

    objects = FundTransactionManager()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.transaction_type} {self.amount}"


# =============================================================================
# FEATURE PERMISSIONS
# =============================================================================

class FeaturePermission(models.Model):
    """Per-role on/off switch for a UI feature"""

    ROLE_FIELDS = {
        'admin': 'admin_access',
        'manager': 'manager_access',
        'agent': 'agent_access',
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    feature_key = models.CharField(max_length=50, unique=True)
    feature_name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, null=True, blank=True)
    admin_access = models.BooleanField(default=True)
    manager_access = models.BooleanField(default=False)
    agent_access = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['feature_name']

    def __str__(self):
        return self.feature_key

    def access_for(self, role):
        field = self.ROLE_FIELDS.get(role)
        if field is None:
            return False
        return getattr(self, field)


# =============================================================================
# AUDIT LOG
# =============================================================================

class AuditLog(models.Model):
    """Append-only record of privileged actions"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='audit_logs'
    )
    table_name = models.CharField(max_length=50)
    action = models.CharField(max_length=50, db_index=True)
    record_id = models.CharField(max_length=64, null=True, blank=True)
    old_data = models.JSONField(null=True, blank=True)
    new_data = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} on {self.table_name} by {self.user_id}"

    @classmethod
    def record(cls, user, action, table_name, record_id=None, new_data=None, old_data=None, request=None):
        ip_address = None
        user_agent = None
        if request is not None:
            ip_address = request.META.get('REMOTE_ADDR') or None
            user_agent = (request.META.get('HTTP_USER_AGENT') or '')[:255] or None
        return cls.objects.create(
            user=user,
            action=action,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            new_data=new_data,
            old_data=old_data,
            ip_address=ip_address,
            user_agent=user_agent,
        )
