"""
Collector Session
=================

Explicit caller context handed to scope resolution and permission checks
instead of reading request globals.

    anonymous → authenticating → authenticated → signed_out

The visible agent ids and the feature-permission table are resolved once
per session and kept until invalidate_permissions() or sign_out().
"""

import logging

from core.permissions import Roles, load_permission_table, resolve_visible_agent_ids

logger = logging.getLogger(__name__)


class SessionStateError(RuntimeError):
    """Transition not allowed from the current state"""


class CollectorSession:

    ANONYMOUS = 'anonymous'
    AUTHENTICATING = 'authenticating'
    AUTHENTICATED = 'authenticated'
    SIGNED_OUT = 'signed_out'

    def __init__(self, table_loader=None):
        self.state = self.ANONYMOUS
        self.user = None
        self.role = None
        self._table_loader = table_loader or load_permission_table
        self._permission_table = None
        self._visible_agent_ids = None

    @classmethod
    def for_user(cls, user, **kwargs):
        """Session already authenticated as user (one per request)"""
        session = cls(**kwargs)
        session.begin_authentication()
        session.authenticate(user)
        return session

    @property
    def is_authenticated(self):
        return self.state == self.AUTHENTICATED

    def begin_authentication(self):
        if self.state == self.AUTHENTICATED:
            raise SessionStateError('Already signed in.')
        self.state = self.AUTHENTICATING

    def authenticate(self, user):
        if self.state != self.AUTHENTICATING:
            raise SessionStateError(f"Cannot authenticate from state '{self.state}'.")
        if user is None or not user.is_active:
            self.state = self.ANONYMOUS
            raise SessionStateError('Account is inactive.')
        if user.user_role not in Roles.ALL:
            self.state = self.ANONYMOUS
            raise SessionStateError('Account has no role assigned.')

        self.user = user
        self.role = user.user_role
        self.state = self.AUTHENTICATED
        self._permission_table = None
        self._visible_agent_ids = None

    def sign_out(self):
        if self.user is not None:
            logger.info(f"Session closed for {self.user.id}")
        self.user = None
        self.role = None
        self._permission_table = None
        self._visible_agent_ids = None
        self.state = self.SIGNED_OUT

    @property
    def visible_agent_ids(self):
        if not self.is_authenticated:
            return frozenset()
        if self._visible_agent_ids is None:
            self._visible_agent_ids = resolve_visible_agent_ids(self.user.id, self.role)
        return self._visible_agent_ids

    def permission_table(self):
        if not self.is_authenticated:
            return {}
        if self._permission_table is None:
            self._permission_table = self._table_loader()
        return self._permission_table

    def invalidate_permissions(self):
        self._permission_table = None
        self._visible_agent_ids = None
