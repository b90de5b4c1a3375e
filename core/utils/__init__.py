"""
Core Utilities Package
======================

Provides utility functions for:
- Money and loan charge arithmetic
- Date helpers (local today, day ranges)
- Friendly error messages
- Rate limiting on the Django cache
- KYC document storage (Cloudinary)

Import directly from submodules to avoid circular imports:
    from core.utils.money import compute_loan_charges
    from core.utils.storage import signed_document_url
"""
