"""
Domain Errors
=============

Conflict errors raised by model operations when a request is well-formed
but clashes with the current state of the books. Views translate these to
HTTP 409 with the message below.
"""

from core.utils.money import MoneyCalculator


class ConflictError(ValueError):
    """Request conflicts with current state"""

    default_message = 'This action conflicts with the current state of the record.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class ActiveLoanExists(ConflictError):
    default_message = 'Close the current loan before creating a new one.'


class InsufficientFunds(ConflictError):

    def __init__(self, available=None, required=None):
        self.available = available
        self.required = required
        if available is not None:
            message = f'Insufficient funds. Available: {MoneyCalculator.format_currency(available)}'
        else:
            message = 'Insufficient funds for this disbursal.'
        super().__init__(message)


class OutstandingBalanceRemaining(ConflictError):

    def __init__(self, remaining=None):
        self.remaining = remaining
        if remaining is not None:
            message = f'Loan still has {MoneyCalculator.format_currency(remaining)} outstanding and cannot be closed.'
        else:
            message = 'Loan still has an outstanding balance and cannot be closed.'
        super().__init__(message)


class LoanAlreadyClosed(ConflictError):
    default_message = 'This loan is already closed.'
