"""
Authentication Views
====================

Login, Logout, current user
"""

import logging

from django import forms
from django.contrib.auth import login, logout, authenticate
from django.http import JsonResponse
from django.views.decorators.csrf import ensure_csrf_cookie

from core.models import mobile_validator
from core.session import CollectorSession, SessionStateError
from core.views.api import api_view, error_response, form_errors, read_payload, user_to_dict

logger = logging.getLogger(__name__)


class LoginForm(forms.Form):
    mobile = forms.CharField(max_length=10, validators=[mobile_validator])
    password = forms.CharField(strip=False)


@ensure_csrf_cookie
@api_view(methods=('POST',), login=False)
def login_view(request):
    """
    Sign in with mobile number and password

    Inactive accounts and accounts without a role are refused.
    """
    form = LoginForm(read_payload(request))
    if not form.is_valid():
        return form_errors(form)

    session = CollectorSession()
    session.begin_authentication()

    user = authenticate(
        request,
        mobile=form.cleaned_data['mobile'],
        password=form.cleaned_data['password'],
    )
    if user is None:
        logger.warning(f"Failed login for mobile ending {form.cleaned_data['mobile'][-4:]}")
        return error_response('Invalid mobile number or password.', 401)

    try:
        session.authenticate(user)
    except SessionStateError as e:
        return error_response(str(e), 403)

    login(request, user)
    logger.info(f"User {user.id} logged in as {user.user_role}")

    return JsonResponse({
        'user': user_to_dict(user),
        'permissions': _role_permissions(session),
    })


@api_view(methods=('POST',))
def logout_view(request):
    request.collector_session.sign_out()
    logout(request)
    return JsonResponse({'detail': 'Logged out.'})


@api_view()
def me_view(request):
    """Signed-in user with their feature flags"""
    return JsonResponse({
        'user': user_to_dict(request.user),
        'permissions': _role_permissions(request.collector_session),
    })


def _role_permissions(session):
    """{feature_key: bool} for the session's role"""
    return {
        key: bool(access.get(session.role, False))
        for key, access in session.permission_table().items()
    }
