"""
Customer Views
==============

Customer CRUD, agent assignment, balance, day-by-day ledger and KYC uploads
"""

import logging

from django.core.exceptions import PermissionDenied
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from core.exceptions import ConflictError, OutstandingBalanceRemaining
from core.forms.customer_forms import CustomerAssignForm, CustomerDocumentForm, CustomerForm
from core.models import AuditLog, Customer, Loan, Payment
from core.stats import customer_balance, customer_ledger, ledger_summary
from core.utils.helpers import local_today
from core.utils.storage import document_key, upload_document
from core.views.api import (
    api_view, customer_to_dict, form_errors, loan_to_dict, paginate, read_payload,
)

logger = logging.getLogger(__name__)


def get_visible_customer(request, customer_id):
    customer = get_object_or_404(Customer.objects.select_related('assigned_agent'), pk=customer_id)
    if not request.checker.can_view_customer(customer):
        raise PermissionDenied
    return customer


# =============================================================================
# LIST / DETAIL
# =============================================================================

@api_view()
def customer_list(request):
    """
    Customers visible to the caller

    Filters: ?search= (name or mobile), ?status=, ?agent=<user id>
    """
    customers = request.checker.filter_customers(Customer.objects.all())

    customers = customers.search(request.GET.get('search', '').strip())

    status = request.GET.get('status')
    if status:
        customers = customers.filter(status=status)

    agent_id = request.GET.get('agent')
    if agent_id:
        customers = customers.filter(assigned_agent_id=agent_id)

    return JsonResponse(paginate(request, customers.order_by('name'), customer_to_dict))


@api_view()
def customer_detail(request, customer_id):
    customer = get_visible_customer(request, customer_id)

    data = customer_to_dict(customer, include_kyc=True)
    data['balance'] = customer_balance(customer, customer.payments.paid().only('amount', 'status'))
    open_loan = customer.open_loan()
    data['open_loan'] = loan_to_dict(open_loan) if open_loan else None
    return JsonResponse(data)


# =============================================================================
# CREATE / UPDATE / DELETE
# =============================================================================

@api_view(methods=('POST',))
def customer_create(request):
    checker = request.checker
    if not checker.can_create_customer():
        raise PermissionDenied

    payload = read_payload(request)
    if checker.is_agent() or (not checker.is_admin() and not payload.get('assigned_agent')):
        # Agents own what they create; managers default to themselves
        payload['assigned_agent'] = str(request.user.id)

    form = CustomerForm(payload, checker=checker)
    if not form.is_valid():
        return form_errors(form)

    customer = form.save(commit=False)
    customer.created_by = request.user
    customer.save()

    AuditLog.record(request.user, 'customer_create', 'customers', customer.id,
                    new_data={'name': customer.name, 'mobile': customer.mobile}, request=request)
    logger.info(f"Customer {customer.id} created by {request.user.id}")
    return JsonResponse(customer_to_dict(customer, include_kyc=True), status=201)


def ensure_nothing_outstanding(customer):
    """A customer can only be closed once their loan is settled"""
    loan = customer.open_loan()
    if loan is not None:
        remaining = loan.remaining_outstanding()
        if remaining > 0:
            raise OutstandingBalanceRemaining(remaining=remaining)
        raise ConflictError("Close the customer's loan before closing the customer.")
    remaining = customer.balance()
    if remaining > 0:
        raise OutstandingBalanceRemaining(remaining=remaining)


@api_view(methods=('POST',))
def customer_update(request, customer_id):
    """Partial update: fields left out of the payload keep their values"""
    checker = request.checker
    customer = get_visible_customer(request, customer_id)
    if not checker.can_edit_customer(customer):
        raise PermissionDenied

    previous_status = customer.status
    current = model_to_dict(customer, fields=CustomerForm.Meta.fields)
    payload = {**current, **read_payload(request)}
    if checker.is_agent():
        payload['assigned_agent'] = customer.assigned_agent_id

    form = CustomerForm(payload, instance=customer, checker=checker)
    if not form.is_valid():
        return form_errors(form)

    if form.cleaned_data['status'] == 'closed' and previous_status != 'closed':
        ensure_nothing_outstanding(customer)

    customer = form.save()
    logger.info(f"Customer {customer.id} updated by {request.user.id}")
    return JsonResponse(customer_to_dict(customer, include_kyc=True))


@api_view(methods=('POST',))
def customer_delete(request, customer_id):
    customer = get_visible_customer(request, customer_id)
    if not request.checker.can_delete_customer(customer):
        raise PermissionDenied

    if Loan.objects.filter(customer=customer).open().exists():
        raise ConflictError("Close the customer's loan before deleting the customer.")

    customer.delete()
    AuditLog.record(request.user, 'customer_delete', 'customers', customer.id, request=request)
    logger.info(f"Customer {customer.id} soft-deleted by {request.user.id}")
    return JsonResponse({'detail': 'Customer deleted.'})


@api_view(methods=('POST',))
def customer_assign(request, customer_id):
    checker = request.checker
    customer = get_visible_customer(request, customer_id)
    if not checker.can_assign_customers():
        raise PermissionDenied

    form = CustomerAssignForm(read_payload(request), checker=checker)
    if not form.is_valid():
        return form_errors(form)

    previous = customer.assigned_agent_id
    customer.assigned_agent = form.cleaned_data['agent']
    customer.save(update_fields=['assigned_agent', 'updated_at'])

    AuditLog.record(
        request.user, 'customer_assign', 'customers', customer.id,
        old_data={'assigned_agent': str(previous) if previous else None},
        new_data={'assigned_agent': str(customer.assigned_agent_id) if customer.assigned_agent_id else None},
        request=request,
    )
    logger.info(f"Customer {customer.id} assigned to {customer.assigned_agent_id} by {request.user.id}")
    return JsonResponse(customer_to_dict(customer))


# =============================================================================
# BALANCE / LEDGER
# =============================================================================

@api_view()
def customer_balance_view(request, customer_id):
    customer = get_visible_customer(request, customer_id)
    balance = customer_balance(customer, customer.payments.paid().only('amount', 'status'))
    balance['customer'] = customer.id
    return JsonResponse(balance)


@api_view()
def customer_ledger_view(request, customer_id):
    """
    Day-by-day ledger for a customer, or for one of their loans (?loan=<id>)

    Open-ended ranges run to today.
    """
    customer = get_visible_customer(request, customer_id)
    if not request.checker.can_view_customer_ledger(customer):
        raise PermissionDenied

    payments = Payment.objects.filter(customer=customer)
    loan_id = request.GET.get('loan')
    if loan_id:
        loan = get_object_or_404(Loan, pk=loan_id, customer=customer)
        start, end, daily = loan.start_date, loan.end_date, loan.daily_amount
        payments = payments.filter(loan=loan)
    else:
        start, end, daily = customer.start_date, customer.end_date, customer.daily_amount

    today = local_today()
    rows = customer_ledger(
        start, end,
        payments.only('date', 'amount', 'status', 'remarks', 'promised_date'),
        today,
    )
    return JsonResponse({
        'customer': customer.id,
        'loan': loan_id or None,
        'start_date': start,
        'end_date': end or today,
        'days': rows,
        'summary': ledger_summary(rows, daily),
    })


# =============================================================================
# KYC DOCUMENTS
# =============================================================================

@api_view(methods=('POST',))
def customer_upload_document(request, customer_id):
    """Store a photo or KYC document and remember its key on the customer"""
    customer = get_visible_customer(request, customer_id)
    if not request.checker.can_edit_customer(customer):
        raise PermissionDenied

    form = CustomerDocumentForm(request.POST, request.FILES)
    if not form.is_valid():
        return form_errors(form)

    kind = form.cleaned_data['kind']
    upload = form.cleaned_data['file']
    key = upload_document(upload, document_key(customer.id, kind, upload.name))

    field = 'photo_key' if kind == 'photo' else 'kyc_document_key'
    setattr(customer, field, key)
    customer.save(update_fields=[field, 'updated_at'])

    logger.info(f"{kind} stored for customer {customer.id}")
    return JsonResponse(customer_to_dict(customer, include_kyc=True), status=201)
