"""
Permission System – Role-based Access Control
==============================================

Roles (lowest → highest):   agent  →  manager  →  admin

Two layers:
    * role scope   – which agents' data a caller may see (resolve_visible_agent_ids)
    * feature keys – per-role on/off switches stored in FeaturePermission

Every view that mutates state should:
    checker = PermissionChecker(request.user)
    if not checker.<method>(...):  raise PermissionDenied
"""

import logging
from functools import wraps

from django.core.exceptions import PermissionDenied
from django.db.models import Q
from django.http import JsonResponse

from core.utils.error_messages import NOT_PERMITTED_MESSAGE

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

class Roles:
    ADMIN   = 'admin'
    MANAGER = 'manager'
    AGENT   = 'agent'

    ALL = (ADMIN, MANAGER, AGENT)


class Permissions:
    """Single source of truth.  Views must never hard-code role lists."""

    # ── people ───────────────────────────────────────────────────────
    CAN_CREATE_USERS     = [Roles.ADMIN, Roles.MANAGER]
    CAN_MANAGE_USERS     = [Roles.ADMIN]
    CAN_RESET_PASSWORDS  = [Roles.ADMIN]

    # ── customers & loans ────────────────────────────────────────────
    CAN_ASSIGN_CUSTOMERS = [Roles.ADMIN, Roles.MANAGER]
    CAN_OPEN_LOANS       = [Roles.ADMIN, Roles.MANAGER]
    CAN_CLOSE_LOANS      = [Roles.ADMIN, Roles.MANAGER]

    # ── administration ───────────────────────────────────────────────
    CAN_MANAGE_FEATURES  = [Roles.ADMIN]
    CAN_VIEW_AUDIT_LOGS  = [Roles.ADMIN]


class FeatureKeys:
    CUSTOMER_CREATE       = 'customer_create'
    CUSTOMER_UPDATE       = 'customer_update'
    CUSTOMER_DELETE       = 'customer_delete'
    PAYMENT_CREATE        = 'payment_create'
    PAYMENT_UPDATE        = 'payment_update'
    PAYMENT_DELETE        = 'payment_delete'
    PAYMENT_UPDATE_OWN    = 'payment_update_own'
    PAYMENT_SAME_DAY_ONLY = 'payment_same_day_only'
    USER_CREATE           = 'user_create'
    USER_UPDATE           = 'user_update'
    USER_DELETE           = 'user_delete'
    VIEW_DASHBOARD        = 'view_dashboard'
    VIEW_AGENT_REPORT     = 'view_agent_report'
    VIEW_CUSTOMER_LEDGER  = 'view_customer_ledger'
    VIEW_ALL_CUSTOMERS    = 'view_all_customers'
    FUND_MANAGE           = 'fund_manage'
    FUND_VIEW             = 'fund_view'


# =============================================================================
# ROLE SCOPE
# =============================================================================

class _AllAgents:
    """Sentinel for 'no agent filter'; contains every id"""

    def __contains__(self, item):
        return True

    def __repr__(self):
        return 'ALL_AGENTS'


ALL_AGENTS = _AllAgents()


def resolve_visible_agent_ids(caller_id, role, report_ids=None):
    """
    Agent ids whose data the caller may see

    admin   → ALL_AGENTS
    manager → the manager plus everyone reporting to them
    agent   → the agent alone
    other   → nothing

    report_ids can be passed in to avoid the lookup (tests, cached sessions).
    """
    if role == Roles.ADMIN:
        return ALL_AGENTS
    if role == Roles.MANAGER:
        if report_ids is None:
            from core.models import User
            report_ids = User.objects.reporting_to(caller_id).values_list('id', flat=True)
        return frozenset([caller_id, *report_ids])
    if role == Roles.AGENT:
        return frozenset([caller_id])
    return frozenset()


# =============================================================================
# FEATURE PERMISSIONS
# =============================================================================

def load_permission_table():
    """{feature_key: {'admin': bool, 'manager': bool, 'agent': bool}}"""
    from core.models import FeaturePermission
    table = {}
    for row in FeaturePermission.objects.all():
        table[row.feature_key] = {role: row.access_for(role) for role in Roles.ALL}
    return table


def has_permission(role, feature_key, table):
    """Missing feature key or unknown role → False"""
    if not role or not table:
        return False
    entry = table.get(feature_key)
    if entry is None:
        return False
    return bool(entry.get(role, False))


# =============================================================================
# PERMISSION CHECKER
# =============================================================================

class PermissionChecker:

    def __init__(self, user, session=None):
        self.user    = user
        self.session = session
        self.role    = user.user_role if user is not None and user.is_authenticated else None
        self._agent_ids = None

    # ── role helpers ─────────────────────────────────────────────────
    def is_admin(self):   return self.role == Roles.ADMIN
    def is_manager(self): return self.role == Roles.MANAGER
    def is_agent(self):   return self.role == Roles.AGENT

    @property
    def visible_agent_ids(self):
        if self.session is not None:
            return self.session.visible_agent_ids
        if self._agent_ids is None:
            if self.role is None:
                self._agent_ids = frozenset()
            else:
                self._agent_ids = resolve_visible_agent_ids(self.user.id, self.role)
        return self._agent_ids

    def permission_table(self):
        if self.session is not None:
            return self.session.permission_table()
        return load_permission_table()

    def has_feature(self, feature_key):
        return has_permission(self.role, feature_key, self.permission_table())

    # =========================================================================
    # PEOPLE
    # =========================================================================

    def can_create_users(self):
        return self.role in Permissions.CAN_CREATE_USERS and self.has_feature(FeatureKeys.USER_CREATE)

    def can_create_user_with_role(self, role):
        """Managers may only create agents"""
        if self.is_admin():
            return True
        if self.is_manager():
            return role == Roles.AGENT
        return False

    def can_view_user(self, user):
        if self.is_admin():
            return True
        return user.id in self.visible_agent_ids

    def can_update_user(self, user):
        """Admins edit anyone; managers edit themselves and their agents"""
        if not self.has_feature(FeatureKeys.USER_UPDATE):
            return False
        if self.is_admin():
            return True
        if self.is_manager():
            if user.pk == self.user.pk:
                return True
            return user.user_role == Roles.AGENT and user.id in self.visible_agent_ids
        return False

    def can_deactivate_users(self):
        return self.role in Permissions.CAN_MANAGE_USERS and self.has_feature(FeatureKeys.USER_DELETE)

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    @property
    def customer_scope(self):
        """Agent ids whose customers are visible; view_all_customers widens it"""
        if self.role is None:
            return frozenset()
        if self.is_admin() or self.has_feature(FeatureKeys.VIEW_ALL_CUSTOMERS):
            return ALL_AGENTS
        return self.visible_agent_ids

    def can_view_customer(self, customer):
        return customer.assigned_agent_id in self.customer_scope

    def can_create_customer(self):
        return self.has_feature(FeatureKeys.CUSTOMER_CREATE)

    def can_edit_customer(self, customer):
        return self.can_view_customer(customer) and self.has_feature(FeatureKeys.CUSTOMER_UPDATE)

    def can_delete_customer(self, customer):
        return self.can_view_customer(customer) and self.has_feature(FeatureKeys.CUSTOMER_DELETE)

    def can_assign_customers(self):
        return self.role in Permissions.CAN_ASSIGN_CUSTOMERS

    def can_assign_to_agent(self, agent):
        if not self.can_assign_customers():
            return False
        if agent is None:
            return True
        return agent.id in self.visible_agent_ids

    # =========================================================================
    # LOANS
    # =========================================================================

    def can_open_loan(self, customer):
        if self.role not in Permissions.CAN_OPEN_LOANS:
            return False
        return self.can_view_customer(customer)

    def can_close_loan(self, loan):
        if self.role not in Permissions.CAN_CLOSE_LOANS:
            return False
        return self.can_view_customer(loan.customer)

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    def can_record_payment(self, customer):
        return self.can_view_customer(customer) and self.has_feature(FeatureKeys.PAYMENT_CREATE)

    def can_edit_payment(self, payment, today=None):
        """
        payment_update covers any visible payment; payment_update_own only
        the caller's own collections. payment_same_day_only further limits
        either to payments dated today.
        """
        if self.role is None:
            return False
        table = self.permission_table()
        if has_permission(self.role, FeatureKeys.PAYMENT_UPDATE, table):
            allowed = self.can_view_payment(payment)
        elif has_permission(self.role, FeatureKeys.PAYMENT_UPDATE_OWN, table):
            allowed = payment.agent_id == self.user.id
        else:
            allowed = False

        if allowed and today is not None and has_permission(self.role, FeatureKeys.PAYMENT_SAME_DAY_ONLY, table):
            allowed = payment.date == today
        return allowed

    def can_delete_payment(self, payment):
        return self.can_view_payment(payment) and self.has_feature(FeatureKeys.PAYMENT_DELETE)

    def can_view_payment(self, payment):
        if self.role is None:
            return False
        if payment.agent_id in self.visible_agent_ids:
            return True
        return payment.customer.assigned_agent_id in self.customer_scope

    # =========================================================================
    # FUNDS / REPORTS / ADMIN
    # =========================================================================

    def can_view_funds(self):     return self.has_feature(FeatureKeys.FUND_VIEW)
    def can_manage_funds(self):   return self.has_feature(FeatureKeys.FUND_MANAGE)
    def can_view_dashboard(self): return self.has_feature(FeatureKeys.VIEW_DASHBOARD)
    def can_view_agent_report(self): return self.has_feature(FeatureKeys.VIEW_AGENT_REPORT)

    def can_view_customer_ledger(self, customer):
        return self.can_view_customer(customer) and self.has_feature(FeatureKeys.VIEW_CUSTOMER_LEDGER)

    # =========================================================================
    # QUERYSET FILTERS
    # =========================================================================

    def filter_customers(self, queryset):
        if self.role is None:
            return queryset.none()
        return queryset.for_agents(self.customer_scope)

    def filter_loans(self, queryset):
        if self.role is None:
            return queryset.none()
        return queryset.for_agents(self.customer_scope)

    def filter_payments(self, queryset):
        if self.role is None:
            return queryset.none()
        scope = self.customer_scope
        if scope is ALL_AGENTS:
            return queryset
        return queryset.filter(
            Q(customer__assigned_agent_id__in=list(scope)) | Q(agent_id__in=list(self.visible_agent_ids))
        )

    def filter_users(self, queryset):
        if self.role is None:
            return queryset.none()
        ids = self.visible_agent_ids
        if ids is ALL_AGENTS:
            return queryset
        return queryset.filter(id__in=list(ids))


# =============================================================================
# DECORATORS
# =============================================================================

def role_required(allowed_roles):
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({'error': 'Please log in to continue.'}, status=401)
            if request.user.user_role not in allowed_roles:
                logger.warning(
                    f"{request.user.id} ({request.user.user_role}) refused {view_func.__name__}"
                )
                raise PermissionDenied(NOT_PERMITTED_MESSAGE)
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


# =============================================================================
# DEFAULT FEATURE TABLE
# =============================================================================

# key: (name, description, admin, manager, agent)
DEFAULT_FEATURES = {
    FeatureKeys.CUSTOMER_CREATE:       ('Create Customers', 'Add new customers', True, True, True),
    FeatureKeys.CUSTOMER_UPDATE:       ('Edit Customers', 'Change customer details', True, True, False),
    FeatureKeys.CUSTOMER_DELETE:       ('Delete Customers', 'Remove customers', True, False, False),
    FeatureKeys.PAYMENT_CREATE:        ('Record Payments', 'Record collection visits', True, True, True),
    FeatureKeys.PAYMENT_UPDATE:        ('Edit Payments', 'Edit any visible payment', True, True, False),
    FeatureKeys.PAYMENT_DELETE:        ('Delete Payments', 'Remove payments', True, False, False),
    FeatureKeys.PAYMENT_UPDATE_OWN:    ('Edit Own Payments', 'Edit payments you collected', True, True, True),
    FeatureKeys.PAYMENT_SAME_DAY_ONLY: ('Same Day Edits Only', 'Payments can only be edited on the day they are dated', False, False, True),
    FeatureKeys.USER_CREATE:           ('Create Users', 'Add staff accounts', True, True, False),
    FeatureKeys.USER_UPDATE:           ('Edit Users', 'Change staff accounts', True, True, False),
    FeatureKeys.USER_DELETE:           ('Deactivate Users', 'Deactivate staff accounts', True, False, False),
    FeatureKeys.VIEW_DASHBOARD:        ('Dashboard', 'See dashboard totals', True, True, True),
    FeatureKeys.VIEW_AGENT_REPORT:     ('Agent Report', 'See agent performance', True, True, False),
    FeatureKeys.VIEW_CUSTOMER_LEDGER:  ('Customer Ledger', 'See day-by-day customer ledger', True, True, True),
    FeatureKeys.VIEW_ALL_CUSTOMERS:    ('All Customers', 'See customers outside your team', True, False, False),
    FeatureKeys.FUND_MANAGE:           ('Manage Funds', 'Add fund credits and debits', True, False, False),
    FeatureKeys.FUND_VIEW:             ('View Funds', 'See fund balance and report', True, True, False),
}


def seed_default_features(model=None, overwrite=False):
    """
    Create missing FeaturePermission rows from DEFAULT_FEATURES

    Existing rows are left untouched unless overwrite=True.
    Returns (created, updated).
    """
    if model is None:
        from core.models import FeaturePermission as model

    created = updated = 0
    for key, (name, description, admin, manager, agent) in DEFAULT_FEATURES.items():
        values = {
            'feature_name': name,
            'description': description,
            'admin_access': admin,
            'manager_access': manager,
            'agent_access': agent,
        }
        if overwrite:
            _, was_created = model.objects.update_or_create(feature_key=key, defaults=values)
            if was_created:
                created += 1
            else:
                updated += 1
        else:
            _, was_created = model.objects.get_or_create(feature_key=key, defaults=values)
            if was_created:
                created += 1
    return created, updated
