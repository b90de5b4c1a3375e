"""
Payment Forms
=============

Daily collection entries. The collecting agent is never taken from
input; views set it to the signed-in user.
"""

from decimal import Decimal

from django import forms
from django.utils import timezone

from core.models import Payment


class PaymentForm(forms.ModelForm):

    class Meta:
        model = Payment
        fields = ['date', 'amount', 'mode', 'status', 'remarks', 'promised_date']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['amount'].required = False
        self.fields['mode'].required = False
        self.fields['status'].required = False
        self.fields['date'].required = False

    def clean(self):
        cleaned = super().clean()
        status = cleaned.get('status') or 'paid'
        cleaned['status'] = status
        cleaned['mode'] = cleaned.get('mode') or 'cash'
        if cleaned.get('date') is None:
            cleaned['date'] = timezone.localdate()
        amount = cleaned.get('amount')

        if status == 'paid':
            if amount is None or amount <= 0:
                self.add_error('amount', 'Amount must be greater than zero for a paid entry.')
            cleaned['promised_date'] = None
        else:
            if not (cleaned.get('remarks') or '').strip():
                self.add_error('remarks', 'Please add remarks when the customer did not pay.')
            if amount is None:
                cleaned['amount'] = Decimal('0.00')

        day = cleaned.get('date')
        promised = cleaned.get('promised_date')
        if day and promised and promised < day:
            self.add_error('promised_date', 'Promised date cannot be before the visit date.')
        return cleaned
