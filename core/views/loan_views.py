"""
Loan Views
==========

Charge preview, opening, closing and the fund-link retry for loans
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from core.exceptions import ConflictError
from core.forms.loan_forms import LoanChargesForm, LoanOpenForm
from core.models import AuditLog, Loan
from core.views.api import api_view, form_errors, loan_to_dict, paginate, read_payload
from core.views.customer_views import get_visible_customer

logger = logging.getLogger(__name__)


def get_visible_loan(request, loan_id):
    loan = get_object_or_404(Loan.objects.select_related('customer'), pk=loan_id)
    if not request.checker.can_view_customer(loan.customer):
        raise PermissionDenied
    return loan


@api_view()
def loan_list(request):
    """Loans visible to the caller, filter with ?status= and ?customer="""
    loans = request.checker.filter_loans(Loan.objects.select_related('customer'))

    status = request.GET.get('status')
    if status:
        loans = loans.filter(status=status)

    customer_id = request.GET.get('customer')
    if customer_id:
        loans = loans.filter(customer_id=customer_id)

    return JsonResponse(paginate(request, loans.order_by('-created_at'), loan_to_dict))


@api_view()
def loan_detail(request, loan_id):
    loan = get_visible_loan(request, loan_id)
    data = loan_to_dict(loan)
    data['amount_collected'] = loan.amount_collected()
    data['remaining_outstanding'] = loan.remaining_outstanding()
    return JsonResponse(data)


@api_view(methods=('POST',))
def loan_preview(request):
    """Charges, disbursal, outstanding and daily amount without saving anything"""
    form = LoanChargesForm(read_payload(request))
    if not form.is_valid():
        return form_errors(form)
    return JsonResponse(form.charges())


@api_view(methods=('POST',))
def loan_open(request, customer_id):
    """
    Open a loan for a customer

    Returns 201 with the loan. If the fund entry could not be written the
    loan comes back as pending_fund_link with a warning.
    """
    customer = get_visible_customer(request, customer_id)
    if not request.checker.can_open_loan(customer):
        raise PermissionDenied

    form = LoanOpenForm(read_payload(request))
    if not form.is_valid():
        return form_errors(form)

    loan = Loan.open_for_customer(customer, created_by=request.user, **form.loan_kwargs())

    AuditLog.record(
        request.user, 'loan_create', 'loans', loan.id,
        new_data={
            'customer': str(customer.id),
            'loan_amount': str(loan.loan_amount),
            'disbursal_amount': str(loan.disbursal_amount),
            'outstanding_amount': str(loan.outstanding_amount),
        },
        request=request,
    )

    data = loan_to_dict(loan)
    if not loan.fund_linked:
        data['warning'] = 'Loan saved but the fund entry failed. Retry linking the disbursal.'
    return JsonResponse(data, status=201)


@api_view(methods=('POST',))
def loan_close(request, loan_id):
    loan = get_visible_loan(request, loan_id)
    if not request.checker.can_close_loan(loan):
        raise PermissionDenied

    loan.close(closed_by=request.user)

    AuditLog.record(request.user, 'loan_close', 'loans', loan.id,
                    old_data={'status': 'active'}, new_data={'status': 'closed'}, request=request)
    return JsonResponse(loan_to_dict(loan))


@api_view(methods=('POST',))
def loan_link_fund(request, loan_id):
    """Retry the disbursal fund entry for a pending loan"""
    loan = get_visible_loan(request, loan_id)
    if not request.checker.can_open_loan(loan.customer):
        raise PermissionDenied

    if loan.fund_linked:
        raise ConflictError('This loan is already linked to the fund.')

    loan.link_fund_disbursement()
    return JsonResponse(loan_to_dict(loan))
