"""
User Management Forms
=====================

Staff account creation and edits, profile photos, password resets and
feature permission edits
"""

from django import forms

from core.models import User, FeaturePermission, mobile_validator
from core.permissions import Roles


COMMON_PASSWORDS = ['password', '12345678', 'qwerty12', 'admin123', 'abcd1234']


def validate_strong_password(password):
    """
    Password policy for admin resets

    Returns a list of problems, empty when the password is acceptable.
    """
    errors = []
    if len(password) < 8:
        errors.append('Password must be at least 8 characters')
    if not any(ch.islower() for ch in password):
        errors.append('Password must contain a lowercase letter')
    if not any(ch.isupper() for ch in password):
        errors.append('Password must contain an uppercase letter')
    if not any(ch.isdigit() for ch in password):
        errors.append('Password must contain a number')
    if password.lower() in COMMON_PASSWORDS:
        errors.append('Password is too common. Choose a stronger one.')
    return errors


# =============================================================================
# USER CREATE FORM
# =============================================================================

class UserCreateForm(forms.Form):
    """
    Create a staff account

    An unknown or missing role becomes agent. reports_to defaults to the
    creating manager for agents they create.
    """

    name = forms.CharField(min_length=2, max_length=100, strip=True)
    mobile = forms.CharField(max_length=10, validators=[mobile_validator])
    password = forms.CharField(min_length=6, strip=False)
    role = forms.CharField(required=False)
    whatsapp_number = forms.CharField(max_length=15, required=False)
    reports_to = forms.ModelChoiceField(
        queryset=User.objects.filter(user_role__in=[Roles.ADMIN, Roles.MANAGER], is_active=True),
        required=False,
    )

    def clean_role(self):
        role = (self.cleaned_data.get('role') or '').strip().lower()
        if role not in Roles.ALL:
            return Roles.AGENT
        return role

    def save(self, created_by):
        data = self.cleaned_data
        reports_to = data.get('reports_to')
        if reports_to is None and created_by.is_manager and data['role'] == Roles.AGENT:
            reports_to = created_by

        return User.objects.create_user(
            mobile=data['mobile'],
            password=data['password'],
            name=data['name'],
            user_role=data['role'],
            whatsapp_number=data.get('whatsapp_number') or '',
            reports_to=reports_to,
        )


# =============================================================================
# USER UPDATE FORM
# =============================================================================

class UserUpdateForm(forms.ModelForm):
    """Profile, role and manager of an existing staff account"""

    name = forms.CharField(min_length=2, max_length=100, strip=True)
    role = forms.ChoiceField(choices=User.ROLE_CHOICES)

    class Meta:
        model = User
        fields = ['name', 'mobile', 'whatsapp_number', 'reports_to']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        managers = User.objects.filter(user_role__in=[Roles.ADMIN, Roles.MANAGER], is_active=True)
        if self.instance.pk:
            managers = managers.exclude(pk=self.instance.pk)
        self.fields['reports_to'].queryset = managers
        self.fields['reports_to'].required = False

    def validate_unique(self):
        # Duplicate mobiles are answered with a conflict by the view
        pass

    def save(self, commit=True):
        self.instance.user_role = self.cleaned_data['role']
        return super().save(commit=commit)


# =============================================================================
# PROFILE PHOTO
# =============================================================================

class ProfilePhotoForm(forms.Form):
    photo = forms.FileField()

    def clean_photo(self):
        upload = self.cleaned_data['photo']
        content_type = getattr(upload, 'content_type', '') or ''
        if not content_type.startswith('image/'):
            raise forms.ValidationError('Please upload an image file.')
        if upload.size > 2 * 1024 * 1024:
            raise forms.ValidationError('Image must be 2 MB or smaller.')
        return upload


# =============================================================================
# PASSWORD RESET (admin only)
# =============================================================================

class PasswordResetForm(forms.Form):
    new_password = forms.CharField(strip=False)

    def clean_new_password(self):
        password = self.cleaned_data['new_password']
        problems = validate_strong_password(password)
        if problems:
            raise forms.ValidationError(problems)
        return password


# =============================================================================
# FEATURE PERMISSIONS
# =============================================================================

class FeaturePermissionForm(forms.ModelForm):

    class Meta:
        model = FeaturePermission
        fields = ['admin_access', 'manager_access', 'agent_access']
