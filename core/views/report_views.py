"""
Report Views
============

Agent performance and the fund report
"""

from datetime import timedelta

from django.core.exceptions import PermissionDenied
from django.http import JsonResponse

from core.models import Customer, FundTransaction, Payment, User
from core.permissions import Roles
from core.stats import agent_performance, fund_report
from core.utils.helpers import first_of_month, local_today, parse_date
from core.views.api import BadRequest, api_view


def _date_range(request, default_from, default_to):
    date_from = parse_date(request.GET.get('date_from'), default=default_from)
    date_to = parse_date(request.GET.get('date_to'), default=default_to)
    if date_from > date_to:
        raise BadRequest('date_from must be on or before date_to.')
    return date_from, date_to


@api_view()
def agent_performance_view(request):
    """
    Collected vs target per agent for ?date_from=&date_to=

    Defaults to the current month up to today.
    """
    checker = request.checker
    if not checker.can_view_agent_report():
        raise PermissionDenied

    today = local_today()
    date_from, date_to = _date_range(request, first_of_month(today), today)

    agents = checker.filter_users(User.objects.filter(user_role=Roles.AGENT, is_active=True)).order_by('name')
    agent_ids = list(agents.values_list('id', flat=True))

    customers = Customer.objects.filter(assigned_agent_id__in=agent_ids).only(
        'id', 'status', 'daily_amount', 'assigned_agent'
    )
    payments = Payment.objects.filter(agent_id__in=agent_ids).between(date_from, date_to).only(
        'customer', 'agent', 'date', 'amount', 'status', 'promised_date'
    )

    rows = agent_performance(agents, customers, payments, date_from, date_to)
    return JsonResponse({
        'date_from': date_from,
        'date_to': date_to,
        'agents': rows,
        'total_collected': sum((r['total_collected'] for r in rows), 0),
        'total_target': sum((r['total_target'] for r in rows), 0),
    })


@api_view()
def fund_report_view(request):
    """Money in and out of the fund for ?date_from=&date_to= (default last 30 days)"""
    if not request.checker.can_view_funds():
        raise PermissionDenied

    today = local_today()
    date_from, date_to = _date_range(request, today - timedelta(days=29), today)

    transactions = FundTransaction.objects.between_dates(date_from, date_to).only('transaction_type', 'amount')
    report = fund_report(transactions)
    report.update({
        'date_from': date_from,
        'date_to': date_to,
        'current_balance': FundTransaction.objects.balance(),
    })
    return JsonResponse(report)
