"""
Decimal and Money Calculation Utilities
========================================

Provides consistent rounding and the loan charge arithmetic used when a
loan is opened.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation


class MoneyCalculator:
    """
    Consistent money calculations with proper rounding

    Usage:
        total = MoneyCalculator.round_money(123.456)  # 123.46
        whole = MoneyCalculator.round_whole(1200.5)    # 1201
    """

    TWO_PLACES = Decimal('0.01')
    WHOLE = Decimal('1')

    @staticmethod
    def to_decimal(value, default=Decimal('0')):
        """Coerce int/float/str/None to Decimal (blank and junk give default)"""
        if value is None or value == '':
            return default
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return default

    @staticmethod
    def round_money(amount, places=None, rounding=ROUND_HALF_UP):
        """
        Round amount to specified decimal places

        Args:
            amount: Amount to round (can be Decimal, int, float, str)
            places: Decimal precision (default: 2 places)
            rounding: Rounding mode (default: ROUND_HALF_UP)

        Returns:
            Decimal: Rounded amount
        """
        if amount is None:
            return Decimal('0.00')

        if places is None:
            places = MoneyCalculator.TWO_PLACES

        return Decimal(str(amount)).quantize(places, rounding=rounding)

    @staticmethod
    def round_whole(amount):
        """Round half-up to the nearest whole currency unit"""
        return MoneyCalculator.round_money(amount, MoneyCalculator.WHOLE)

    @staticmethod
    def calculate_percentage(amount, rate_pct):
        """
        Percentage of amount, rounded to a whole unit

        Example:
            >>> MoneyCalculator.calculate_percentage(10000, 12)
            Decimal('1200')
        """
        amount = MoneyCalculator.to_decimal(amount)
        rate_pct = MoneyCalculator.to_decimal(rate_pct)
        if not amount or not rate_pct:
            return Decimal('0')
        return MoneyCalculator.round_whole(amount * rate_pct / Decimal('100'))

    @staticmethod
    def sum_amounts(amounts):
        """Sum an iterable of amounts, skipping None"""
        total = Decimal('0')
        for amount in amounts:
            if amount:
                total += Decimal(str(amount))
        return total

    @staticmethod
    def format_currency(amount, symbol='₹'):
        """
        Format amount as currency string

        Example:
            >>> MoneyCalculator.format_currency(1234567.89)
            '₹1,234,567.89'
        """
        amount = MoneyCalculator.round_money(amount)
        return f"{symbol}{amount:,.2f}"


class LoanChargeCalculator:
    """
    Charges, disbursal and outstanding figures for a new loan
    """

    @staticmethod
    def compute_loan_charges(gross_amount, interest_rate_pct, processing_fee_rate_pct,
                             other_deductions=0, include_charges_in_outstanding=False):
        """
        Split a gross loan into charges, cash paid out and amount owed

        Interest and processing fee are percentages of the gross amount,
        each rounded half-up to a whole unit before being added up.

        Returns:
            dict: interest_amount, processing_amount, total_charges,
                  disbursal_amount, outstanding_amount
        """
        gross = MoneyCalculator.to_decimal(gross_amount)
        interest_amount = MoneyCalculator.calculate_percentage(gross, interest_rate_pct)
        processing_amount = MoneyCalculator.calculate_percentage(gross, processing_fee_rate_pct)
        other = MoneyCalculator.to_decimal(other_deductions)

        total_charges = interest_amount + processing_amount + other

        if include_charges_in_outstanding:
            disbursal_amount = gross
            outstanding_amount = gross + total_charges
        else:
            disbursal_amount = gross - total_charges
            outstanding_amount = gross

        return {
            'interest_amount': interest_amount,
            'processing_amount': processing_amount,
            'total_charges': total_charges,
            'disbursal_amount': disbursal_amount,
            'outstanding_amount': outstanding_amount,
        }

    @staticmethod
    def tenure_days(start_date, end_date):
        """Days in the tenure window, counting both endpoints"""
        if not start_date or not end_date:
            return 0
        return (end_date - start_date).days + 1

    @staticmethod
    def daily_amount_for_tenure(outstanding_amount, start_date, end_date, fallback=None):
        """
        Installment that clears outstanding_amount over the tenure

        A non-positive tenure (or missing end date) leaves the daily amount
        alone: fallback is returned unchanged.
        """
        days = LoanChargeCalculator.tenure_days(start_date, end_date)
        if days <= 0:
            return fallback
        daily = MoneyCalculator.to_decimal(outstanding_amount) / Decimal(days)
        daily = MoneyCalculator.round_money(daily)
        if daily <= 0:
            return fallback
        return daily


def compute_loan_charges(gross_amount, interest_rate_pct, processing_fee_rate_pct,
                         other_deductions=0, include_charges_in_outstanding=False):
    """Shortcut for LoanChargeCalculator.compute_loan_charges"""
    return LoanChargeCalculator.compute_loan_charges(
        gross_amount, interest_rate_pct, processing_fee_rate_pct,
        other_deductions, include_charges_in_outstanding,
    )
