"""
Dashboard Views
===============

Role-scoped headline numbers. Every query goes through the caller's
PermissionChecker first; the numbers come from core.stats.
"""

from django.core.exceptions import PermissionDenied
from django.db.models import Q
from django.http import JsonResponse

from core.models import Customer, Payment
from core.stats import (
    collection_days, daily_collections, dashboard_stats, follow_ups, today_summary,
)
from core.utils.helpers import local_today, parse_date
from core.views.api import BadRequest, api_view


def _scoped_rows(checker):
    customers = checker.filter_customers(Customer.objects.all())
    payments = checker.filter_payments(Payment.objects.all())
    return customers, payments


@api_view()
def dashboard_view(request):
    """
    Totals for the dashboard cards

    today_collection / monthly_collection use today's date; pending_balance
    is the lifetime back-book for the caller's customers.
    """
    checker = request.checker
    if not checker.can_view_dashboard():
        raise PermissionDenied

    today = local_today()
    customers, payments = _scoped_rows(checker)

    stats = dashboard_stats(
        customers.only('status', 'loan_amount'),
        payments.paid().only('date', 'amount', 'status'),
        today,
    )
    stats['as_of'] = today
    return JsonResponse(stats)


@api_view()
def daily_collections_view(request):
    """Paid total per day for ?period=today|week|month (default week)"""
    checker = request.checker
    if not checker.can_view_dashboard():
        raise PermissionDenied

    period = request.GET.get('period', 'week')
    try:
        days = collection_days(period, local_today())
    except ValueError as e:
        raise BadRequest(str(e))

    _, payments = _scoped_rows(checker)
    payments = payments.paid().on_dates(days).only('date', 'amount', 'status')

    return JsonResponse({
        'period': period,
        'days': daily_collections(payments, days, period),
    })


@api_view()
def today_summary_view(request):
    checker = request.checker
    day = parse_date(request.GET.get('date'), default=local_today())
    customers, payments = _scoped_rows(checker)

    summary = today_summary(
        customers.only('id', 'status', 'daily_amount'),
        payments.on_date(day).only('customer', 'date', 'amount', 'status'),
        day,
    )
    summary['date'] = day
    return JsonResponse(summary)


@api_view()
def follow_ups_view(request):
    """Customers yet to pay today, and those who promised today"""
    checker = request.checker
    day = parse_date(request.GET.get('date'), default=local_today())
    customers, payments = _scoped_rows(checker)

    customers = list(customers.active().only('id', 'name', 'mobile', 'area', 'status', 'daily_amount'))
    relevant = payments.filter(customer__in=customers).filter(
        Q(date=day, status='paid') | Q(promised_date=day)
    )

    result = follow_ups(customers, relevant.only('customer', 'date', 'status', 'promised_date'), day)

    def brief(customer):
        return {
            'id': customer.id,
            'name': customer.name,
            'mobile': customer.mobile,
            'area': customer.area,
            'daily_amount': customer.daily_amount,
        }

    return JsonResponse({
        'date': day,
        'pending': [brief(c) for c in result['pending']],
        'promised': [brief(c) for c in result['promised']],
    })
