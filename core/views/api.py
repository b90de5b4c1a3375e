"""
JSON View Helpers
=================

api_view wraps every endpoint:
    * method check                        → 405
    * login check                         → 401
    * request.collector_session / checker built for the caller
    * PermissionDenied                    → 403
    * Http404                             → 404
    * ConflictError                       → 409
    * ValidationError (model level)       → 400
    * DatabaseError                       → logged, friendly message, 503
"""

import json
import logging
from functools import wraps

from django.core.exceptions import PermissionDenied, ValidationError
from django.core.paginator import Paginator
from django.db import DatabaseError
from django.http import Http404, JsonResponse

from core.exceptions import ConflictError
from core.permissions import PermissionChecker
from core.session import CollectorSession, SessionStateError
from core.utils.error_messages import NOT_PERMITTED_MESSAGE, get_user_friendly_error
from core.utils.storage import profile_photo_url, signed_document_url

logger = logging.getLogger(__name__)

PAGE_SIZE = 25


class BadRequest(Exception):
    """Malformed request body"""


def error_response(message, status, **extra):
    return JsonResponse({'error': message, **extra}, status=status)


def form_errors(form):
    errors = {field: list(messages) for field, messages in form.errors.items()}
    return JsonResponse({'errors': errors}, status=400)


def api_view(methods=('GET',), login=True):
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                return error_response('Method not allowed.', 405)

            if login:
                if not request.user.is_authenticated:
                    return error_response('Please log in to continue.', 401)
                try:
                    request.collector_session = CollectorSession.for_user(request.user)
                except SessionStateError as e:
                    return error_response(str(e), 403)
                request.checker = PermissionChecker(request.user, request.collector_session)

            try:
                return view_func(request, *args, **kwargs)
            except BadRequest as e:
                return error_response(str(e), 400)
            except PermissionDenied:
                return error_response(NOT_PERMITTED_MESSAGE, 403)
            except Http404:
                return error_response('Not found.', 404)
            except ConflictError as e:
                return error_response(str(e), 409)
            except ValidationError as e:
                if hasattr(e, 'error_dict'):
                    return JsonResponse({'errors': e.message_dict}, status=400)
                return error_response('; '.join(e.messages), 400)
            except DatabaseError as e:
                logger.error(f"{view_func.__name__} failed: {e}")
                return error_response(get_user_friendly_error(e), 503)
        return wrapper
    return decorator


def read_payload(request):
    """JSON body as a dict, or form data for multipart/urlencoded posts"""
    if request.content_type == 'application/json':
        if not request.body:
            return {}
        try:
            payload = json.loads(request.body)
        except (ValueError, UnicodeDecodeError):
            raise BadRequest('Request body is not valid JSON.')
        if not isinstance(payload, dict):
            raise BadRequest('Request body must be a JSON object.')
        return payload
    return request.POST.dict()


def paginate(request, queryset, serializer):
    paginator = Paginator(queryset, PAGE_SIZE)
    page_obj = paginator.get_page(request.GET.get('page'))
    return {
        'results': [serializer(obj) for obj in page_obj],
        'page': page_obj.number,
        'pages': paginator.num_pages,
        'count': paginator.count,
    }


# =============================================================================
# SERIALIZERS
# =============================================================================

def user_to_dict(user):
    return {
        'id': user.id,
        'name': user.name,
        'mobile': user.mobile,
        'whatsapp_number': user.whatsapp_number,
        'role': user.user_role,
        'is_active': user.is_active,
        'reports_to': user.reports_to_id,
        'profile_photo_url': profile_photo_url(user.profile_photo),
        'created_at': user.created_at,
    }


def customer_to_dict(customer, include_kyc=False):
    data = {
        'id': customer.id,
        'name': customer.name,
        'mobile': customer.mobile,
        'area': customer.area,
        'loan_amount': customer.loan_amount,
        'daily_amount': customer.daily_amount,
        'start_date': customer.start_date,
        'end_date': customer.end_date,
        'status': customer.status,
        'assigned_agent': customer.assigned_agent_id,
        'has_kyc': customer.has_kyc(),
        'created_at': customer.created_at,
    }
    if include_kyc:
        data.update({
            'address': customer.address,
            'aadhaar_number': customer.aadhaar_number,
            'pan_number': customer.pan_number,
            'photo_url': signed_document_url(customer.photo_key),
            'kyc_document_url': signed_document_url(customer.kyc_document_key),
        })
    return data


def loan_to_dict(loan):
    return {
        'id': loan.id,
        'customer': loan.customer_id,
        'loan_amount': loan.loan_amount,
        'interest_rate': loan.interest_rate,
        'processing_fee_rate': loan.processing_fee_rate,
        'other_deductions': loan.other_deductions,
        'other_deduction_remarks': loan.other_deduction_remarks,
        'include_charges_in_outstanding': loan.include_charges_in_outstanding,
        'disbursal_amount': loan.disbursal_amount,
        'outstanding_amount': loan.outstanding_amount,
        'daily_amount': loan.daily_amount,
        'start_date': loan.start_date,
        'end_date': loan.end_date,
        'status': loan.status,
        'fund_linked': loan.fund_linked,
        'is_open': loan.is_open,
        'closed_at': loan.closed_at,
        'closed_by': loan.closed_by_id,
        'created_at': loan.created_at,
    }


def payment_to_dict(payment):
    return {
        'id': payment.id,
        'customer': payment.customer_id,
        'loan': payment.loan_id,
        'agent': payment.agent_id,
        'date': payment.date,
        'amount': payment.amount,
        'mode': payment.mode,
        'status': payment.status,
        'remarks': payment.remarks,
        'promised_date': payment.promised_date,
        'created_at': payment.created_at,
    }


def fund_transaction_to_dict(txn):
    return {
        'id': txn.id,
        'type': txn.transaction_type,
        'amount': txn.amount,
        'description': txn.description,
        'reference_table': txn.reference_table,
        'reference_id': txn.reference_id,
        'created_by': txn.created_by_id,
        'created_at': txn.created_at,
    }


def feature_to_dict(feature):
    return {
        'id': feature.id,
        'feature_key': feature.feature_key,
        'feature_name': feature.feature_name,
        'description': feature.description,
        'admin_access': feature.admin_access,
        'manager_access': feature.manager_access,
        'agent_access': feature.agent_access,
    }


def audit_log_to_dict(entry):
    return {
        'id': entry.id,
        'user': entry.user_id,
        'action': entry.action,
        'table_name': entry.table_name,
        'record_id': entry.record_id,
        'old_data': entry.old_data,
        'new_data': entry.new_data,
        'ip_address': entry.ip_address,
        'created_at': entry.created_at,
    }
