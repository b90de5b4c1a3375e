"""
Loan Forms
==========

Input for loan charge previews and for opening a loan
"""

from decimal import Decimal

from django import forms
from django.conf import settings
from django.utils import timezone

from core.utils.money import LoanChargeCalculator, MoneyCalculator


def default_interest_rate():
    return Decimal(str(getattr(settings, 'COLLECT_DEFAULT_INTEREST_RATE', '12.5')))


class LoanChargesForm(forms.Form):
    """Everything needed to price a loan"""

    loan_amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    interest_rate = forms.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100'), required=False
    )
    processing_fee_rate = forms.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100'), required=False
    )
    other_deductions = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    include_charges_in_outstanding = forms.BooleanField(required=False)
    start_date = forms.DateField(required=False)
    end_date = forms.DateField(required=False)
    daily_amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)

    def clean_interest_rate(self):
        value = self.cleaned_data.get('interest_rate')
        return default_interest_rate() if value is None else value

    def clean_processing_fee_rate(self):
        return self.cleaned_data.get('processing_fee_rate') or Decimal('0')

    def clean_other_deductions(self):
        return self.cleaned_data.get('other_deductions') or Decimal('0')

    def clean_start_date(self):
        return self.cleaned_data.get('start_date') or timezone.localdate()

    def clean(self):
        cleaned = super().clean()
        amount = cleaned.get('loan_amount')
        if amount is None:
            return cleaned

        charges = LoanChargeCalculator.compute_loan_charges(
            amount,
            cleaned.get('interest_rate'),
            cleaned.get('processing_fee_rate'),
            cleaned.get('other_deductions'),
            cleaned.get('include_charges_in_outstanding', False),
        )
        if charges['disbursal_amount'] <= 0:
            raise forms.ValidationError('Charges and deductions leave nothing to disburse.')
        return cleaned

    def charges(self):
        """Charge breakdown plus the daily installment for the cleaned input"""
        data = self.cleaned_data
        charges = LoanChargeCalculator.compute_loan_charges(
            data['loan_amount'],
            data['interest_rate'],
            data['processing_fee_rate'],
            data['other_deductions'],
            data['include_charges_in_outstanding'],
        )
        charges['tenure_days'] = LoanChargeCalculator.tenure_days(data['start_date'], data.get('end_date'))
        charges['daily_amount'] = LoanChargeCalculator.daily_amount_for_tenure(
            charges['outstanding_amount'], data['start_date'], data.get('end_date'),
            fallback=data.get('daily_amount'),
        )
        if charges['daily_amount'] is not None:
            charges['daily_amount'] = MoneyCalculator.round_money(charges['daily_amount'])
        return charges


class LoanOpenForm(LoanChargesForm):
    other_deduction_remarks = forms.CharField(max_length=255, required=False)

    def loan_kwargs(self):
        """Keyword arguments for Loan.open_for_customer"""
        data = self.cleaned_data
        return {
            'loan_amount': data['loan_amount'],
            'start_date': data['start_date'],
            'end_date': data.get('end_date'),
            'daily_amount': data.get('daily_amount'),
            'interest_rate': data['interest_rate'],
            'processing_fee_rate': data['processing_fee_rate'],
            'other_deductions': data['other_deductions'],
            'other_deduction_remarks': data.get('other_deduction_remarks') or None,
            'include_charges_in_outstanding': data['include_charges_in_outstanding'],
        }
