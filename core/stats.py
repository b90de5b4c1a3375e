"""
Collection Statistics
=====================

Pure aggregation over rows already fetched and scoped by the caller.
Rows may be model instances or plain dicts with the same field names.
Nothing in here touches the database; empty input gives zeros.
"""

from decimal import Decimal

from core.utils.helpers import each_day, first_of_month, inclusive_day_count, last_n_days
from core.utils.money import MoneyCalculator

ZERO = Decimal('0')

PERIOD_LENGTHS = {
    'today': 1,
    'week': 7,
    'month': 30,
}

FUND_INFLOW_TYPES = ('credit', 'loan_repayment')
FUND_OUTFLOW_TYPES = ('debit', 'loan_disbursement')

# Fund report totals follow the cash book view
REPORT_IN_TYPES = ('credit', 'collection')
REPORT_OUT_TYPES = ('debit', 'loan_disbursement')

LEDGER_PAID = 'paid'
LEDGER_PROMISED = 'promised'
LEDGER_NOT_PAID = 'not_paid'
LEDGER_PENDING = 'pending'


def _field(row, name, default=None):
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def _amount(row, name='amount'):
    return MoneyCalculator.to_decimal(_field(row, name))


def _is_paid(payment):
    return _field(payment, 'status') == 'paid'


def _is_active(customer):
    return _field(customer, 'status') == 'active'


# =============================================================================
# DASHBOARD
# =============================================================================

def dashboard_stats(customers, payments, as_of):
    """
    Headline numbers for the dashboard

    monthly_collection counts every paid payment dated on or after the
    first of as_of's month. pending_balance is lifetime: all loan amounts
    minus all paid amounts.
    """
    month_start = first_of_month(as_of)

    total_customers = 0
    total_loans = ZERO
    for customer in customers:
        if _is_active(customer):
            total_customers += 1
        total_loans += _amount(customer, 'loan_amount')

    today_collection = ZERO
    monthly_collection = ZERO
    total_paid = ZERO
    for payment in payments:
        if not _is_paid(payment):
            continue
        amount = _amount(payment)
        total_paid += amount
        day = _field(payment, 'date')
        if day == as_of:
            today_collection += amount
        if day >= month_start:
            monthly_collection += amount

    return {
        'total_customers': total_customers,
        'today_collection': today_collection,
        'monthly_collection': monthly_collection,
        'pending_balance': total_loans - total_paid,
    }


def collection_days(period, today):
    """Days covered by a dashboard period, oldest first"""
    if period not in PERIOD_LENGTHS:
        raise ValueError(f"Unknown period '{period}'")
    return last_n_days(PERIOD_LENGTHS[period], today)


def collection_label(day, period):
    if period == 'month':
        return f"{day:%b} {day.day}"
    return f"{day:%a}"


def daily_collections(payments, days, period='week'):
    """
    Paid total per day over days (dense, zero-filled)

    Returns a list of {'date', 'label', 'amount'} in the order of days.
    """
    totals = {day: ZERO for day in days}
    for payment in payments:
        day = _field(payment, 'date')
        if day in totals and _is_paid(payment):
            totals[day] += _amount(payment)

    return [
        {'date': day, 'label': collection_label(day, period), 'amount': totals[day]}
        for day in days
    ]


def today_summary(customers, payments, day):
    """Target vs collected for one day"""
    active = [c for c in customers if _is_active(c)]
    todays = [p for p in payments if _field(p, 'date') == day]

    paid_ids = set()
    not_paid_ids = set()
    collected = ZERO
    pending = ZERO
    for payment in todays:
        if _is_paid(payment):
            collected += _amount(payment)
            paid_ids.add(_field(payment, 'customer_id'))
        elif _field(payment, 'status') == 'not_paid':
            pending += _amount(payment)
            not_paid_ids.add(_field(payment, 'customer_id'))

    return {
        'target': MoneyCalculator.sum_amounts(_field(c, 'daily_amount') for c in active),
        'collected': collected,
        'pending': pending,
        'paid_count': len(paid_ids),
        'not_paid_count': len(not_paid_ids),
        'total_customers': len(active),
    }


def follow_ups(customers, payments, day):
    """
    Active customers still to chase on day

    pending:  no paid payment dated day
    promised: some payment promised for day
    """
    paid_today = set()
    promised_today = set()
    for payment in payments:
        customer_id = _field(payment, 'customer_id')
        if _field(payment, 'date') == day and _is_paid(payment):
            paid_today.add(customer_id)
        if _field(payment, 'promised_date') == day:
            promised_today.add(customer_id)

    active = [c for c in customers if _is_active(c)]
    return {
        'pending': [c for c in active if _field(c, 'id') not in paid_today],
        'promised': [c for c in active if _field(c, 'id') in promised_today],
    }


# =============================================================================
# AGENTS
# =============================================================================

def agent_performance(agents, customers, payments, date_from, date_to):
    """
    Per-agent collection against target for [date_from, date_to]

    Payments are attributed to the agent who collected them. Paid and
    not-paid customer counts are distinct customer ids among the agent's
    active customers; one customer can land in both on a day with a
    correction entry. promised_count is the agent's payments in the
    period whose promised date also falls in the period.
    """
    period_days = inclusive_day_count(date_from, date_to)

    customers_by_agent = {}
    for customer in customers:
        if not _is_active(customer):
            continue
        customers_by_agent.setdefault(_field(customer, 'assigned_agent_id'), []).append(customer)

    payments_by_agent = {}
    for payment in payments:
        day = _field(payment, 'date')
        if date_from <= day <= date_to:
            payments_by_agent.setdefault(_field(payment, 'agent_id'), []).append(payment)

    results = []
    for agent in agents:
        agent_id = _field(agent, 'id')
        own_customers = customers_by_agent.get(agent_id, [])
        own_ids = {_field(c, 'id') for c in own_customers}
        own_payments = payments_by_agent.get(agent_id, [])

        collected = ZERO
        paid_ids = set()
        not_paid_ids = set()
        promised_count = 0
        for payment in own_payments:
            customer_id = _field(payment, 'customer_id')
            if _is_paid(payment):
                collected += _amount(payment)
                if customer_id in own_ids:
                    paid_ids.add(customer_id)
            elif _field(payment, 'status') == 'not_paid' and customer_id in own_ids:
                not_paid_ids.add(customer_id)

            promised = _field(payment, 'promised_date')
            if promised is not None and date_from <= promised <= date_to:
                promised_count += 1

        daily_target = MoneyCalculator.sum_amounts(_field(c, 'daily_amount') for c in own_customers)
        target = daily_target * period_days

        results.append({
            'agent_id': agent_id,
            'agent_name': _field(agent, 'name'),
            'customer_count': len(own_customers),
            'total_target': target,
            'total_collected': collected,
            'total_pending': max(ZERO, target - collected),
            'paid_count': len(paid_ids),
            'not_paid_count': len(not_paid_ids),
            'promised_count': promised_count,
        })

    return results


# =============================================================================
# CUSTOMER LEDGER
# =============================================================================

def customer_ledger(start_date, end_date, payments, today):
    """
    One row per day from start_date to end_date (today when open-ended)

    A day is paid if any payment that day is paid, otherwise promised if
    any carries a promised date, otherwise not_paid if one was recorded,
    otherwise pending. Days after today are flagged is_future.
    """
    if start_date is None:
        return []
    end = end_date or today
    if start_date > end:
        return []

    by_day = {}
    for payment in payments:
        by_day.setdefault(_field(payment, 'date'), []).append(payment)

    rows = []
    for day in each_day(start_date, end):
        day_payments = by_day.get(day, [])
        paid = [p for p in day_payments if _is_paid(p)]
        promised = next((p for p in day_payments if _field(p, 'promised_date')), None)
        not_paid = next((p for p in day_payments if _field(p, 'status') == 'not_paid'), None)

        amount = ZERO
        remarks = ''
        if paid:
            status = LEDGER_PAID
            amount = MoneyCalculator.sum_amounts(_field(p, 'amount') for p in paid)
            remarks = '; '.join(r for r in (_field(p, 'remarks') for p in paid) if r)
        elif promised is not None:
            status = LEDGER_PROMISED
            remarks = _field(promised, 'remarks') or ''
        elif not_paid is not None:
            status = LEDGER_NOT_PAID
            remarks = _field(not_paid, 'remarks') or ''
        else:
            status = LEDGER_PENDING

        rows.append({
            'date': day,
            'status': status,
            'amount': amount,
            'remarks': remarks,
            'is_future': day > today,
        })

    return rows


def ledger_summary(rows, daily_amount):
    paid_days = sum(1 for r in rows if r['status'] == LEDGER_PAID)
    not_paid_days = sum(1 for r in rows if r['status'] == LEDGER_NOT_PAID)
    promised_days = sum(1 for r in rows if r['status'] == LEDGER_PROMISED)
    pending_days = sum(1 for r in rows if r['status'] == LEDGER_PENDING and not r['is_future'])

    daily = MoneyCalculator.to_decimal(daily_amount)
    return {
        'paid_days': paid_days,
        'not_paid_days': not_paid_days,
        'promised_days': promised_days,
        'pending_days': pending_days,
        'total_collected': MoneyCalculator.sum_amounts(r['amount'] for r in rows),
        'total_expected': (paid_days + not_paid_days + pending_days) * daily,
    }


def customer_balance(customer, payments):
    total_paid = MoneyCalculator.sum_amounts(_field(p, 'amount') for p in payments if _is_paid(p))
    return {
        'loan_amount': _amount(customer, 'loan_amount'),
        'total_paid': total_paid,
        'balance': _amount(customer, 'loan_amount') - total_paid,
    }


# =============================================================================
# FUND LEDGER
# =============================================================================

def fund_balance(transactions):
    """
    credits + repayments − debits − disbursals

    Types outside those four are skipped. The result may be negative.
    """
    balance = ZERO
    for txn in transactions:
        kind = _field(txn, 'transaction_type')
        if kind in FUND_INFLOW_TYPES:
            balance += _amount(txn)
        elif kind in FUND_OUTFLOW_TYPES:
            balance -= _amount(txn)
    return balance


def fund_report(transactions):
    transactions = list(transactions)
    by_type = {}
    for txn in transactions:
        kind = _field(txn, 'transaction_type')
        by_type[kind] = by_type.get(kind, ZERO) + _amount(txn)

    total_in = sum((by_type.get(kind, ZERO) for kind in REPORT_IN_TYPES), ZERO)
    total_out = sum((by_type.get(kind, ZERO) for kind in REPORT_OUT_TYPES), ZERO)
    return {
        'total_in': total_in,
        'total_out': total_out,
        'net': total_in - total_out,
        'balance': fund_balance(transactions),
        'by_type': by_type,
    }
