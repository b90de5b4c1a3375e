"""
Fund Views
==========

Operator's cash pool: balance, ledger and manual credits/debits
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import JsonResponse

from core.forms.fund_forms import FundTransactionForm
from core.models import AuditLog, FundTransaction
from core.utils.helpers import parse_date
from core.views.api import api_view, form_errors, fund_transaction_to_dict, paginate, read_payload

logger = logging.getLogger(__name__)


@api_view()
def fund_balance_view(request):
    if not request.checker.can_view_funds():
        raise PermissionDenied
    return JsonResponse({'balance': FundTransaction.objects.balance()})


@api_view()
def fund_transaction_list(request):
    """Ledger entries, newest first; ?type= ?date_from= ?date_to="""
    if not request.checker.can_view_funds():
        raise PermissionDenied

    transactions = FundTransaction.objects.between_dates(
        parse_date(request.GET.get('date_from')),
        parse_date(request.GET.get('date_to')),
    )
    kind = request.GET.get('type')
    if kind:
        transactions = transactions.of_type(kind)

    return JsonResponse(paginate(request, transactions.order_by('-created_at'), fund_transaction_to_dict))


@api_view(methods=('POST',))
def fund_transaction_create(request):
    """Manual credit or debit. The balance may go negative."""
    if not request.checker.can_manage_funds():
        raise PermissionDenied

    form = FundTransactionForm(read_payload(request))
    if not form.is_valid():
        return form_errors(form)

    txn = form.save(commit=False)
    txn.created_by = request.user
    txn.save()

    AuditLog.record(request.user, 'fund_' + txn.transaction_type, 'fund_transactions', txn.id,
                    new_data={'amount': str(txn.amount), 'description': txn.description}, request=request)
    logger.info(f"Fund {txn.transaction_type} of {txn.amount} by {request.user.id}")

    data = fund_transaction_to_dict(txn)
    data['balance'] = FundTransaction.objects.balance()
    return JsonResponse(data, status=201)
