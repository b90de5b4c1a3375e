from .auth_views import (
    login_view,
    logout_view,
    me_view,
)

from .dashboard import (
    dashboard_view,
    daily_collections_view,
    today_summary_view,
    follow_ups_view,
)

from .customer_views import (
    customer_list,
    customer_detail,
    customer_create,
    customer_update,
    customer_delete,
    customer_assign,
    customer_balance_view,
    customer_ledger_view,
    customer_upload_document,
)

from .loan_views import (
    loan_list,
    loan_detail,
    loan_preview,
    loan_open,
    loan_close,
    loan_link_fund,
)

from .payment_views import (
    payment_list,
    payment_create,
    payment_update,
    payment_delete,
)


__all__ = [
    "login_view",
    "logout_view",
    "me_view",
    # Dashboard
    "dashboard_view",
    "daily_collections_view",
    "today_summary_view",
    "follow_ups_view",
    # Customers
    "customer_list",
    "customer_detail",
    "customer_create",
    "customer_update",
    "customer_delete",
    "customer_assign",
    "customer_balance_view",
    "customer_ledger_view",
    "customer_upload_document",
    # Loans
    "loan_list",
    "loan_detail",
    "loan_preview",
    "loan_open",
    "loan_close",
    "loan_link_fund",
    # Payments
    "payment_list",
    "payment_create",
    "payment_update",
    "payment_delete",
]
