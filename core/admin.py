from django.contrib import admin
from .models import (
    User, Customer, Loan, Payment,
    FundTransaction, FeaturePermission, AuditLog,
)

# ==============================================================================
# STAFF
# ==============================================================================

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['name', 'mobile', 'user_role', 'reports_to', 'is_active', 'created_at']
    list_filter = ['user_role', 'is_active']
    search_fields = ['name', 'mobile', 'whatsapp_number']
    readonly_fields = ['created_at', 'updated_at', 'deactivated_at', 'last_login']

    fieldsets = (
        ('Authentication', {
            'fields': ('mobile', 'password')
        }),
        ('Personal Info', {
            'fields': ('name', 'whatsapp_number', 'profile_photo')
        }),
        ('Hierarchy', {
            'fields': ('user_role', 'reports_to')
        }),
        ('Permissions', {
            'fields': ('is_active', 'deactivated_at', 'is_staff', 'is_superuser')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',)
        }),
    )


# ==============================================================================
# CUSTOMERS & LOANS
# ==============================================================================

@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'mobile', 'area', 'assigned_agent', 'loan_amount',
                   'daily_amount', 'status', 'start_date']
    list_filter = ['status', 'area', 'assigned_agent']
    search_fields = ['name', 'mobile', 'area']
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']

    fieldsets = (
        ('Customer', {
            'fields': ('name', 'mobile', 'area', 'assigned_agent', 'status')
        }),
        ('Collection', {
            'fields': ('loan_amount', 'daily_amount', 'start_date', 'end_date')
        }),
        ('KYC', {
            'fields': ('address', 'aadhaar_number', 'pan_number', 'photo_key', 'kyc_document_key'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Loan)
class LoanAdmin(admin.ModelAdmin):
    list_display = ['customer', 'loan_amount', 'disbursal_amount',
                   'outstanding_amount', 'daily_amount', 'status', 'fund_linked', 'start_date']
    list_filter = ['status', 'fund_linked', 'include_charges_in_outstanding']
    search_fields = ['customer__name', 'customer__mobile']
    readonly_fields = ['disbursal_amount', 'outstanding_amount', 'fund_linked',
                      'closed_at', 'closed_by', 'created_at']

    fieldsets = (
        ('Loan Details', {
            'fields': ('customer', 'loan_amount', 'start_date', 'end_date', 'daily_amount')
        }),
        ('Charges', {
            'fields': ('interest_rate', 'processing_fee_rate', 'other_deductions',
                      'other_deduction_remarks', 'include_charges_in_outstanding')
        }),
        ('Amounts', {
            'fields': ('disbursal_amount', 'outstanding_amount'),
        }),
        ('Status', {
            'fields': ('status', 'fund_linked', 'closed_at', 'closed_by')
        }),
    )


# ==============================================================================
# COLLECTIONS & FUND
# ==============================================================================

@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['customer', 'agent', 'date', 'amount', 'mode', 'status', 'promised_date']
    list_filter = ['status', 'mode', 'agent']
    search_fields = ['customer__name', 'customer__mobile', 'remarks']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'date'


@admin.register(FundTransaction)
class FundTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_type', 'amount', 'description', 'reference_table',
                   'created_by', 'created_at']
    list_filter = ['transaction_type']
    search_fields = ['description', 'reference_id']
    readonly_fields = ['created_at']
    date_hierarchy = 'created_at'


# ==============================================================================
# ADMINISTRATION
# ==============================================================================

@admin.register(FeaturePermission)
class FeaturePermissionAdmin(admin.ModelAdmin):
    list_display = ['feature_key', 'feature_name', 'admin_access', 'manager_access', 'agent_access']
    list_editable = ['admin_access', 'manager_access', 'agent_access']
    search_fields = ['feature_key', 'feature_name']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'table_name', 'record_id', 'user', 'ip_address', 'created_at']
    list_filter = ['action', 'table_name']
    search_fields = ['record_id', 'user__name', 'user__mobile']
    readonly_fields = ['user', 'action', 'table_name', 'record_id', 'old_data',
                      'new_data', 'ip_address', 'user_agent', 'created_at']
