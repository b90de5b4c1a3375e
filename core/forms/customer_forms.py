"""
Customer Forms
==============

Customer create/edit, agent assignment and KYC uploads
"""

from decimal import Decimal

from django import forms

from core.models import Customer, User
from core.permissions import ALL_AGENTS, Roles


KYC_FIELDS = ['address', 'aadhaar_number', 'pan_number']


class CustomerForm(forms.ModelForm):
    """
    Create or edit a customer

    checker limits assigned_agent to agents in the caller's scope.
    """

    class Meta:
        model = Customer
        fields = [
            'name', 'mobile', 'area',
            'loan_amount', 'daily_amount', 'start_date', 'end_date',
            'status', 'assigned_agent',
            'address', 'aadhaar_number', 'pan_number',
        ]

    def __init__(self, *args, checker=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['loan_amount'].required = False
        self.fields['start_date'].required = False
        self.fields['status'].required = False
        self.fields['assigned_agent'].required = False

        agents = User.objects.filter(is_active=True).exclude(user_role=Roles.ADMIN)
        if checker is not None:
            scope = checker.visible_agent_ids
            if scope is not ALL_AGENTS:
                agents = agents.filter(id__in=list(scope))
        self.fields['assigned_agent'].queryset = agents

    def clean_aadhaar_number(self):
        value = self.cleaned_data.get('aadhaar_number')
        if value and (not value.isdigit() or len(value) != 12):
            raise forms.ValidationError('Aadhaar number must be 12 digits')
        return value

    def clean_pan_number(self):
        value = self.cleaned_data.get('pan_number')
        if value:
            value = value.upper()
            if len(value) != 10:
                raise forms.ValidationError('PAN must be 10 characters')
        return value

    def clean(self):
        cleaned = super().clean()
        status = cleaned.get('status') or self.instance.status or 'active'
        cleaned['status'] = status
        if cleaned.get('loan_amount') is None:
            cleaned['loan_amount'] = self.instance.loan_amount or Decimal('0.00')
        if cleaned.get('start_date') is None and self.instance.start_date:
            cleaned['start_date'] = self.instance.start_date

        daily = cleaned.get('daily_amount')
        if status == 'active' and (daily is None or daily <= 0):
            self.add_error('daily_amount', 'Daily amount must be greater than zero for an active customer.')

        start = cleaned.get('start_date')
        end = cleaned.get('end_date')
        if start and end and end < start:
            self.add_error('end_date', 'End date cannot be before the start date.')
        return cleaned


class CustomerAssignForm(forms.Form):
    """Assign (or unassign with a blank agent) a customer"""

    agent = forms.ModelChoiceField(
        queryset=User.objects.filter(is_active=True).exclude(user_role=Roles.ADMIN),
        required=False,
    )

    def __init__(self, *args, checker=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.checker = checker

    def clean_agent(self):
        agent = self.cleaned_data.get('agent')
        if agent is not None and self.checker is not None and not self.checker.can_assign_to_agent(agent):
            raise forms.ValidationError('You cannot assign customers to this agent.')
        return agent


class CustomerDocumentForm(forms.Form):
    KIND_CHOICES = [
        ('photo', 'Photo'),
        ('kyc_document', 'KYC Document'),
    ]

    kind = forms.ChoiceField(choices=KIND_CHOICES)
    file = forms.FileField()

    def clean_file(self):
        upload = self.cleaned_data['file']
        if upload.size > 5 * 1024 * 1024:
            raise forms.ValidationError('File must be 5 MB or smaller.')
        return upload
