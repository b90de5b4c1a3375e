"""
User/Staff Management Views
============================

Staff accounts: list, create, edit, own profile photo, admin password
reset, activate/deactivate
"""

import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.db import IntegrityError, transaction
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from core.forms.user_forms import PasswordResetForm, ProfilePhotoForm, UserCreateForm, UserUpdateForm
from core.models import AuditLog, User
from core.permissions import Permissions, Roles, role_required
from core.utils.error_messages import DUPLICATE_MOBILE_MESSAGE, get_user_friendly_error
from core.utils.rate_limit import hit_rate_limit
from core.utils.storage import upload_profile_photo
from core.views.api import api_view, error_response, form_errors, paginate, read_payload, user_to_dict

logger = logging.getLogger(__name__)


# =============================================================================
# STAFF LIST
# =============================================================================

@api_view()
def user_list(request):
    """
    Staff the caller can see: admins everyone, managers their team, agents
    themselves. Filters: ?role= ?active=true|false ?search=
    """
    users = request.checker.filter_users(User.objects.all())

    role = request.GET.get('role')
    if role:
        users = users.filter(user_role=role)

    active = request.GET.get('active')
    if active in ('true', 'false'):
        users = users.filter(is_active=(active == 'true'))

    search = request.GET.get('search', '').strip()
    if search:
        users = users.filter(name__icontains=search) | users.filter(mobile__icontains=search)

    return JsonResponse(paginate(request, users.order_by('name'), user_to_dict))


@api_view()
def user_detail(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    if not request.checker.can_view_user(user):
        raise PermissionDenied
    return JsonResponse(user_to_dict(user))


# =============================================================================
# CREATE
# =============================================================================

@api_view(methods=('POST',))
def user_create(request):
    """
    Create a staff account

    Admins may create any role, and an unknown role becomes agent. Managers
    must ask for an agent explicitly. Duplicate mobile → 409.
    """
    checker = request.checker
    if not checker.can_create_users():
        raise PermissionDenied

    payload = read_payload(request)
    requested_role = str(payload.get('role') or '').strip().lower()
    if checker.is_manager() and requested_role != Roles.AGENT:
        logger.warning(f"{request.user.id} (manager) tried to create a user with role {requested_role!r}")
        raise PermissionDenied

    form = UserCreateForm(payload)
    if not form.is_valid():
        return form_errors(form)

    role = form.cleaned_data['role']
    if not checker.can_create_user_with_role(role):
        logger.warning(f"{request.user.id} ({checker.role}) tried to create a {role}")
        raise PermissionDenied

    if User.objects.filter(mobile=form.cleaned_data['mobile']).exists():
        return error_response(DUPLICATE_MOBILE_MESSAGE, 409)

    try:
        with transaction.atomic():
            user = form.save(created_by=request.user)
    except IntegrityError as e:
        # Lost a race on the unique mobile
        logger.error(f"Creating user failed: {e}")
        return error_response(get_user_friendly_error(e), 409)

    AuditLog.record(
        request.user, 'admin_create_user', 'auth.users', user.id,
        new_data={'name': user.name, 'mobile': user.mobile, 'role': user.user_role,
                  'reports_to': str(user.reports_to_id) if user.reports_to_id else None},
        request=request,
    )
    logger.info(f"User {user.id} ({user.user_role}) created by {request.user.id}")
    return JsonResponse(user_to_dict(user), status=201)


# =============================================================================
# UPDATE
# =============================================================================

@api_view(methods=('POST',))
def user_update(request, user_id):
    """
    Edit a staff member's name, mobile, WhatsApp number, manager and role

    Partial update. Admins may edit anyone; managers may edit themselves
    and their agents, cannot move anyone to another manager and cannot
    promote. Nobody changes their own role.
    """
    checker = request.checker
    target = get_object_or_404(User, pk=user_id)
    if not checker.can_update_user(target):
        raise PermissionDenied

    before = {**model_to_dict(target, fields=UserUpdateForm.Meta.fields), 'role': target.user_role}
    payload = {**before, **read_payload(request)}
    if checker.is_manager():
        payload['reports_to'] = target.reports_to_id

    mobile = str(payload.get('mobile') or '').strip()
    if mobile and User.objects.filter(mobile=mobile).exclude(pk=target.pk).exists():
        return error_response(DUPLICATE_MOBILE_MESSAGE, 409)

    form = UserUpdateForm(payload, instance=target)
    if not form.is_valid():
        return form_errors(form)

    role = form.cleaned_data['role']
    if role != before['role']:
        if target.pk == request.user.pk:
            return error_response('You cannot change your own role.', 400)
        if not checker.can_create_user_with_role(role):
            logger.warning(f"{request.user.id} ({checker.role}) tried to make {target.id} a {role}")
            raise PermissionDenied

    try:
        with transaction.atomic():
            user = form.save()
    except IntegrityError as e:
        logger.error(f"Updating user {target.id} failed: {e}")
        return error_response(get_user_friendly_error(e), 409)

    after = {**model_to_dict(user, fields=UserUpdateForm.Meta.fields), 'role': user.user_role}
    changed = [field for field in after if after[field] != before[field]]
    AuditLog.record(
        request.user, 'user_update', 'auth.users', user.id,
        old_data={field: str(before[field]) if before[field] is not None else None for field in changed},
        new_data={field: str(after[field]) if after[field] is not None else None for field in changed},
        request=request,
    )
    logger.info(f"User {user.id} updated by {request.user.id}: {', '.join(changed) or 'no changes'}")
    return JsonResponse(user_to_dict(user))


# =============================================================================
# PROFILE PHOTO (self service)
# =============================================================================

@api_view(methods=('POST',))
def profile_photo_upload(request):
    """Replace the caller's own profile photo. Images only, 2 MB at most."""
    form = ProfilePhotoForm(request.POST, request.FILES)
    if not form.is_valid():
        return form_errors(form)

    user = request.user
    user.profile_photo = upload_profile_photo(form.cleaned_data['photo'], user.id)
    user.save(update_fields=['profile_photo', 'updated_at'])

    AuditLog.record(user, 'profile_photo_update', 'auth.users', user.id, request=request)
    logger.info(f"Profile photo updated for {user.id}")
    return JsonResponse(user_to_dict(user))


# =============================================================================
# PASSWORD RESET (admin only)
# =============================================================================

@api_view(methods=('POST',))
@role_required(Permissions.CAN_RESET_PASSWORDS)
def user_reset_password(request, user_id):
    """
    Set a new password for a staff member

    Limited to COLLECT_PASSWORD_RESET_LIMIT resets per admin per
    COLLECT_PASSWORD_RESET_WINDOW seconds.
    """
    target = get_object_or_404(User, pk=user_id)

    limit = getattr(settings, 'COLLECT_PASSWORD_RESET_LIMIT', 10)
    window = getattr(settings, 'COLLECT_PASSWORD_RESET_WINDOW', 3600)
    if hit_rate_limit(f'password_reset:{request.user.id}', limit, window):
        logger.warning(f"Password reset rate limit hit by {request.user.id}")
        return error_response('Too many password resets. Please try again later.', 429)

    form = PasswordResetForm(read_payload(request))
    if not form.is_valid():
        return form_errors(form)

    target.set_password(form.cleaned_data['new_password'])
    target.save(update_fields=['password'])

    AuditLog.record(request.user, 'admin_password_reset', 'auth.users', target.id,
                    new_data={'target_user': str(target.id)}, request=request)
    logger.info(f"Password for {target.id} reset by {request.user.id}")
    return JsonResponse({'detail': 'Password updated.'})


# =============================================================================
# ACTIVATE / DEACTIVATE (admin only)
# =============================================================================

@api_view(methods=('POST',))
def user_toggle_active(request, user_id):
    """Flip the active flag. Admins cannot deactivate themselves."""
    if not request.checker.can_deactivate_users():
        raise PermissionDenied
    target = get_object_or_404(User, pk=user_id)
    if target.pk == request.user.pk:
        return error_response('You cannot deactivate your own account.', 400)

    was_active = target.is_active
    if was_active:
        target.deactivate()
    else:
        target.activate()

    AuditLog.record(
        request.user, 'user_deactivate' if was_active else 'user_activate', 'auth.users', target.id,
        old_data={'is_active': was_active}, new_data={'is_active': target.is_active},
        request=request,
    )
    logger.info(f"User {target.id} is_active={target.is_active} (by {request.user.id})")
    return JsonResponse(user_to_dict(target))
