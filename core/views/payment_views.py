"""
Payment Views
=============

Recording and correcting daily collection visits
"""

import logging

from django.core.exceptions import PermissionDenied
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from core.forms.payment_forms import PaymentForm
from core.models import AuditLog, Payment
from core.utils.helpers import local_today, parse_date
from core.views.api import api_view, form_errors, paginate, payment_to_dict, read_payload
from core.views.customer_views import get_visible_customer

logger = logging.getLogger(__name__)


def get_visible_payment(request, payment_id):
    payment = get_object_or_404(Payment.objects.select_related('customer'), pk=payment_id)
    if not request.checker.can_view_payment(payment):
        raise PermissionDenied
    return payment


@api_view()
def payment_list(request):
    """
    Payments visible to the caller

    Filters: ?date_from= ?date_to= ?status= ?customer= ?agent=
    """
    payments = request.checker.filter_payments(Payment.objects.all())

    date_from = parse_date(request.GET.get('date_from'))
    date_to = parse_date(request.GET.get('date_to'))
    if date_from:
        payments = payments.filter(date__gte=date_from)
    if date_to:
        payments = payments.filter(date__lte=date_to)

    status = request.GET.get('status')
    if status:
        payments = payments.filter(status=status)

    customer_id = request.GET.get('customer')
    if customer_id:
        payments = payments.filter(customer_id=customer_id)

    agent_id = request.GET.get('agent')
    if agent_id:
        payments = payments.filter(agent_id=agent_id)

    return JsonResponse(paginate(request, payments.order_by('-date', '-created_at'), payment_to_dict))


@api_view(methods=('POST',))
def payment_create(request, customer_id):
    """
    Record a visit for a customer

    The collector is always the signed-in user. The payment is tied to the
    customer's open loan when there is one.
    """
    customer = get_visible_customer(request, customer_id)
    if not request.checker.can_record_payment(customer):
        raise PermissionDenied

    form = PaymentForm(read_payload(request))
    if not form.is_valid():
        return form_errors(form)

    payment = form.save(commit=False)
    payment.customer = customer
    payment.agent = request.user
    payment.loan = customer.open_loan()
    payment.save()

    logger.info(
        f"Payment {payment.id} ({payment.status} {payment.amount}) for customer {customer.id} "
        f"by {request.user.id}"
    )
    return JsonResponse(payment_to_dict(payment), status=201)


@api_view(methods=('POST',))
def payment_update(request, payment_id):
    """Correct a payment; customer, loan and collector stay as recorded"""
    payment = get_visible_payment(request, payment_id)
    if not request.checker.can_edit_payment(payment, today=local_today()):
        raise PermissionDenied

    old = payment_to_dict(payment)
    current = model_to_dict(payment, fields=PaymentForm.Meta.fields)
    form = PaymentForm({**current, **read_payload(request)}, instance=payment)
    if not form.is_valid():
        return form_errors(form)

    payment = form.save()

    AuditLog.record(
        request.user, 'payment_update', 'payments', payment.id,
        old_data={'status': old['status'], 'amount': str(old['amount']), 'date': str(old['date'])},
        new_data={'status': payment.status, 'amount': str(payment.amount), 'date': str(payment.date)},
        request=request,
    )
    return JsonResponse(payment_to_dict(payment))


@api_view(methods=('POST',))
def payment_delete(request, payment_id):
    payment = get_visible_payment(request, payment_id)
    if not request.checker.can_delete_payment(payment):
        raise PermissionDenied

    payment.delete()
    AuditLog.record(request.user, 'payment_delete', 'payments', payment.id,
                    old_data={'amount': str(payment.amount), 'status': payment.status}, request=request)
    logger.info(f"Payment {payment.id} soft-deleted by {request.user.id}")
    return JsonResponse({'detail': 'Payment deleted.'})
