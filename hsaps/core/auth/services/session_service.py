"""Session context: authenticate, load the profile's context, notification actions, logout.

A session moves UNAUTHENTICATED -> LOADING -> AUTHENTICATED -> UNAUTHENTICATED.
It is LOADING between a successful credential check and a successful load
of the role's permission list; protected endpoints answer 503 meanwhile.
"""

import logging
from enum import Enum

from core import hooks
from core.auth.repositories import ProfileRepository
from core.notifications import notify
from core.notifications.repositories import NotificationRepository
from core.roles.repositories import PermissionRepository
from core.utils.service_result import ServiceResult

logger = logging.getLogger('hsaps.core.auth.session_service')

BACKLOG_SIZE = 20
INVALID_CREDENTIALS_MESSAGE = 'Email hoặc mật khẩu không đúng.'
LOADING_FAILED_MESSAGE = 'Không thể tải quyền truy cập. Vui lòng thử lại.'


class SessionState(str, Enum):
    UNAUTHENTICATED = 'UNAUTHENTICATED'
    LOADING = 'LOADING'
    AUTHENTICATED = 'AUTHENTICATED'


def state_of(user) -> SessionState:
    if user is None or not user.is_authenticated:
        return SessionState.UNAUTHENTICATED
    if getattr(user, 'is_loading', False):
        return SessionState.LOADING
    return SessionState.AUTHENTICATED


class SessionService:

    def __init__(self, profile_repo=None, permission_repo=None, notification_repo=None):
        self._profiles = profile_repo or ProfileRepository()
        self._permissions = permission_repo or PermissionRepository()
        self._notifications = notification_repo or NotificationRepository()

    def authenticate(self, email, password) -> ServiceResult:
        """Check credentials. On success returns the profile row and stamps last_login."""
        profile = self._profiles.authenticate(email, password)
        if not profile:
            return ServiceResult(success=False, error=INVALID_CREDENTIALS_MESSAGE, status_code=401)
        try:
            self._profiles.update_last_login(profile['id'])
        except Exception as e:
            logger.error(f'Failed to update last_login for profile {profile["id"]}: {e}')
        return ServiceResult(success=True, data=profile)

    def load_context(self, profile_id, role) -> ServiceResult:
        """Load the permission list and the notification backlog.

        Failure keeps the session LOADING (503 with loading=True).
        """
        try:
            permissions = self._permissions.get_role_permissions(role)
        except Exception as e:
            logger.error(f'Failed to load permissions for profile {profile_id}: {e}')
            return ServiceResult(success=False, error=LOADING_FAILED_MESSAGE, status_code=503)

        try:
            backlog = self._notifications.get_for_user(profile_id, limit=BACKLOG_SIZE)
            unread = self._notifications.get_unread_count(profile_id)
        except Exception as e:
            logger.error(f'Failed to load notifications for profile {profile_id}: {e}')
            backlog, unread = [], 0

        hooks.fire('session.logged_in', {'user_id': profile_id})
        return ServiceResult(success=True, data={
            'permissions': permissions,
            'notifications': backlog,
            'unread_count': unread,
        })

    # ── Notification actions ──

    def mark_notification_as_read(self, user_id, notification_id) -> bool:
        return self._notifications.mark_read(notification_id, user_id)

    def clear_all_notifications(self, user_id) -> int:
        """Mark every unread notification of the user as read."""
        return self._notifications.mark_all_read(user_id)

    def create_notification(self, user_id, message, link=None):
        return notify.notify_user(user_id, message, link=link)

    def notify_admins(self, message, link=None):
        return notify.notify_admins(message, link=link)

    def logout(self, user_id):
        hooks.fire('session.logged_out', {'user_id': user_id})
        logger.info(f'Profile {user_id} logged out')
