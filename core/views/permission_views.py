"""
Feature Permission & Audit Log Views
====================================
"""

import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from core.forms.user_forms import FeaturePermissionForm
from core.models import AuditLog, FeaturePermission
from core.permissions import Permissions, role_required
from core.views.api import (
    BadRequest, api_view, audit_log_to_dict, feature_to_dict, form_errors, paginate, read_payload,
)

logger = logging.getLogger(__name__)


@api_view()
def feature_list(request):
    """Every feature row; any signed-in user may read the table"""
    features = FeaturePermission.objects.order_by('feature_name')
    return JsonResponse({'features': [feature_to_dict(f) for f in features]})


@api_view(methods=('POST',))
@role_required(Permissions.CAN_MANAGE_FEATURES)
def feature_update(request, feature_key):
    """Change which roles have a feature; fields left out keep their values"""
    feature = get_object_or_404(FeaturePermission, feature_key=feature_key)
    old = feature_to_dict(feature)

    payload = read_payload(request)
    data = {
        field: payload.get(field, old[field])
        for field in FeaturePermissionForm.Meta.fields
    }

    form = FeaturePermissionForm(data, instance=feature)
    if not form.is_valid():
        return form_errors(form)
    feature = form.save()

    request.collector_session.invalidate_permissions()

    AuditLog.record(
        request.user, 'feature_update', 'feature_permissions', feature.id,
        old_data={f: old[f] for f in FeaturePermissionForm.Meta.fields},
        new_data={f: getattr(feature, f) for f in FeaturePermissionForm.Meta.fields},
        request=request,
    )
    logger.info(f"Feature {feature.feature_key} updated by {request.user.id}")
    return JsonResponse(feature_to_dict(feature))


@api_view()
def feature_check(request):
    """?feature=<key> → whether the caller's role has it"""
    key = request.GET.get('feature')
    if not key:
        raise BadRequest('feature is required.')
    return JsonResponse({'feature': key, 'allowed': request.checker.has_feature(key)})


@api_view()
@role_required(Permissions.CAN_VIEW_AUDIT_LOGS)
def audit_log_list(request):
    """Newest first; ?action= ?table= ?user="""
    logs = AuditLog.objects.all()

    action = request.GET.get('action')
    if action:
        logs = logs.filter(action=action)

    table = request.GET.get('table')
    if table:
        logs = logs.filter(table_name=table)

    user_id = request.GET.get('user')
    if user_id:
        logs = logs.filter(user_id=user_id)

    return JsonResponse(paginate(request, logs.order_by('-created_at'), audit_log_to_dict))
