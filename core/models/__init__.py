"""
Daily Collection CRM - Models Package
=====================================

This file imports and exposes all models for Django.
"""

from .base import (
    BaseModel,
    AuditedModel,
    StatusTrackingMixin,
)

from .all_models import (
    # Constants
    DEFAULT_INTEREST_RATE,
    mobile_validator,

    # People
    User,
    UserManager,

    # Lending
    Customer,
    Loan,
    Payment,

    # Funds
    FundTransaction,

    # Administration
    FeaturePermission,
    AuditLog,
)

__all__ = [
    'BaseModel',
    'AuditedModel',
    'StatusTrackingMixin',
    'DEFAULT_INTEREST_RATE',
    'mobile_validator',
    'User',
    'UserManager',
    'Customer',
    'Loan',
    'Payment',
    'FundTransaction',
    'FeaturePermission',
    'AuditLog',
]
