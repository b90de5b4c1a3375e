"""
Custom QuerySets and Managers
==============================

Reusable filters for role scoping, date ranges and status. Every manager
here hides soft-deleted rows.
"""

from django.db import models
from django.db.models import Sum
from decimal import Decimal

from core.permissions import ALL_AGENTS
from core.stats import fund_balance


class AgentScopedQuerySet(models.QuerySet):
    """QuerySet that can be narrowed to a visible set of agent ids"""

    agent_lookup = None

    def for_agents(self, agent_ids):
        """Filter to rows owned by agent_ids (ALL_AGENTS means no filter)"""
        if agent_ids is ALL_AGENTS:
            return self
        return self.filter(**{f'{self.agent_lookup}__in': list(agent_ids)})


class SoftDeleteManager(models.Manager):
    """Manager that excludes soft-deleted records"""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerQuerySet(AgentScopedQuerySet):
    agent_lookup = 'assigned_agent_id'

    def active(self):
        return self.filter(status='active')

    def search(self, term):
        if not term:
            return self
        return self.filter(models.Q(name__icontains=term) | models.Q(mobile__contains=term))


class CustomerManager(SoftDeleteManager.from_queryset(CustomerQuerySet)):
    pass


# =============================================================================
# LOANS
# =============================================================================

class LoanQuerySet(AgentScopedQuerySet):
    agent_lookup = 'customer__assigned_agent_id'

    def open(self):
        return self.filter(status__in=['pending_fund_link', 'active'])

    def pending_fund_link(self):
        return self.filter(status='pending_fund_link')


class LoanManager(SoftDeleteManager.from_queryset(LoanQuerySet)):
    pass


# =============================================================================
# PAYMENTS
# =============================================================================

class PaymentQuerySet(AgentScopedQuerySet):
    agent_lookup = 'agent_id'

    def paid(self):
        return self.filter(status='paid')

    def on_date(self, day):
        return self.filter(date=day)

    def between(self, date_from, date_to):
        return self.filter(date__gte=date_from, date__lte=date_to)

    def on_dates(self, days):
        return self.filter(date__in=list(days))

    def total_amount(self):
        return self.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')


class PaymentManager(SoftDeleteManager.from_queryset(PaymentQuerySet)):
    pass


# =============================================================================
# FUND LEDGER
# =============================================================================

class FundTransactionQuerySet(models.QuerySet):

    def between_dates(self, date_from=None, date_to=None):
        qs = self
        if date_from:
            qs = qs.filter(created_at__date__gte=date_from)
        if date_to:
            qs = qs.filter(created_at__date__lte=date_to)
        return qs

    def of_type(self, transaction_type):
        return self.filter(transaction_type=transaction_type)

    def balance(self):
        """Running fund balance over these rows"""
        return fund_balance(self.only('transaction_type', 'amount'))


class FundTransactionManager(SoftDeleteManager.from_queryset(FundTransactionQuerySet)):
    pass
