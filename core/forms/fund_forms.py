"""
Fund Forms
==========

Manual entries in the fund ledger. Disbursals and collections are
written by the loan and payment flows, not through this form.
"""

from decimal import Decimal

from django import forms

from core.models import FundTransaction


class FundTransactionForm(forms.ModelForm):
    MANUAL_TYPES = [
        ('credit', 'Credit'),
        ('debit', 'Debit'),
    ]

    transaction_type = forms.ChoiceField(choices=MANUAL_TYPES)

    class Meta:
        model = FundTransaction
        fields = ['transaction_type', 'amount', 'description']

    def clean_amount(self):
        amount = self.cleaned_data.get('amount')
        if amount is None or amount <= Decimal('0'):
            raise forms.ValidationError('Amount must be greater than zero.')
        return amount
