from django.urls import path

from core.views import (
    login_view,
    logout_view,
    me_view,
    dashboard_view,
    daily_collections_view,
    today_summary_view,
    follow_ups_view,
)

from core.views.customer_views import (
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

from core.views.loan_views import (
    loan_list,
    loan_detail,
    loan_preview,
    loan_open,
    loan_close,
    loan_link_fund,
)

from core.views.payment_views import (
    payment_list,
    payment_create,
    payment_update,
    payment_delete,
)

from core.views.report_views import (
    agent_performance_view,
    fund_report_view,
)

from core.views.fund_views import (
    fund_balance_view,
    fund_transaction_list,
    fund_transaction_create,
)

from core.views.user_views import (
    user_list,
    user_detail,
    user_create,
    user_update,
    user_reset_password,
    user_toggle_active,
    profile_photo_upload,
)

from core.views.permission_views import (
    feature_list,
    feature_update,
    feature_check,
    audit_log_list,
)


app_name = "core"

urlpatterns = [
    # =========================================================================
    # AUTHENTICATION
    # =========================================================================
    path('auth/login/', login_view, name='login'),
    path('auth/logout/', logout_view, name='logout'),
    path('auth/me/', me_view, name='me'),
    path('auth/me/photo/', profile_photo_upload, name='profile_photo_upload'),

    # =========================================================================
    # DASHBOARD
    # =========================================================================
    path('dashboard/', dashboard_view, name='dashboard'),
    path('dashboard/daily-collections/', daily_collections_view, name='daily_collections'),
    path('dashboard/today/', today_summary_view, name='today_summary'),
    path('dashboard/follow-ups/', follow_ups_view, name='follow_ups'),

    # =========================================================================
    # CUSTOMERS
    # =========================================================================
    path('customers/', customer_list, name='customer_list'),
    path('customers/create/', customer_create, name='customer_create'),
    path('customers/<uuid:customer_id>/', customer_detail, name='customer_detail'),
    path('customers/<uuid:customer_id>/edit/', customer_update, name='customer_update'),
    path('customers/<uuid:customer_id>/delete/', customer_delete, name='customer_delete'),
    path('customers/<uuid:customer_id>/assign/', customer_assign, name='customer_assign'),
    path('customers/<uuid:customer_id>/balance/', customer_balance_view, name='customer_balance'),
    path('customers/<uuid:customer_id>/ledger/', customer_ledger_view, name='customer_ledger'),
    path('customers/<uuid:customer_id>/documents/', customer_upload_document, name='customer_upload_document'),

    # Loans and payments opened against a customer
    path('customers/<uuid:customer_id>/loans/open/', loan_open, name='loan_open'),
    path('customers/<uuid:customer_id>/payments/create/', payment_create, name='payment_create'),

    # =========================================================================
    # LOANS
    # =========================================================================
    path('loans/', loan_list, name='loan_list'),
    path('loans/preview/', loan_preview, name='loan_preview'),
    path('loans/<uuid:loan_id>/', loan_detail, name='loan_detail'),
    path('loans/<uuid:loan_id>/close/', loan_close, name='loan_close'),
    path('loans/<uuid:loan_id>/link-fund/', loan_link_fund, name='loan_link_fund'),

    # =========================================================================
    # PAYMENTS
    # =========================================================================
    path('payments/', payment_list, name='payment_list'),
    path('payments/<uuid:payment_id>/edit/', payment_update, name='payment_update'),
    path('payments/<uuid:payment_id>/delete/', payment_delete, name='payment_delete'),

    # =========================================================================
    # REPORTS
    # =========================================================================
    path('reports/agents/', agent_performance_view, name='agent_performance'),
    path('reports/funds/', fund_report_view, name='fund_report'),

    # =========================================================================
    # FUNDS
    # =========================================================================
    path('funds/balance/', fund_balance_view, name='fund_balance'),
    path('funds/transactions/', fund_transaction_list, name='fund_transaction_list'),
    path('funds/transactions/create/', fund_transaction_create, name='fund_transaction_create'),

    # =========================================================================
    # STAFF
    # =========================================================================
    path('users/', user_list, name='user_list'),
    path('users/create/', user_create, name='user_create'),
    path('users/<uuid:user_id>/', user_detail, name='user_detail'),
    path('users/<uuid:user_id>/edit/', user_update, name='user_update'),
    path('users/<uuid:user_id>/reset-password/', user_reset_password, name='user_reset_password'),
    path('users/<uuid:user_id>/toggle-active/', user_toggle_active, name='user_toggle_active'),

    # =========================================================================
    # FEATURE PERMISSIONS & AUDIT
    # =========================================================================
    path('permissions/', feature_list, name='feature_list'),
    path('permissions/check/', feature_check, name='feature_check'),
    path('permissions/<str:feature_key>/edit/', feature_update, name='feature_update'),
    path('audit-logs/', audit_log_list, name='audit_log_list'),
]
