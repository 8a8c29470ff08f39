"""Universal in-app notification helper.

Simple API for any module to send in-app notifications:

    from core.notifications.notify import notify_user, notify_admins

    notify_user(user_id, 'Bạn được giao công việc: "Chuẩn bị hội trường"', link='/tasks')
    notify_admins('Có đăng ký mới từ "Nguyễn Văn A".', link='/submissions')

Every successful insert fires `notifications.created` so realtime and push
handlers can fan the rows out.
"""

import logging

from core import hooks
from core.auth.repositories import ProfileRepository
from .repositories import NotificationRepository

logger = logging.getLogger('hsaps.core.notifications.notify')

_repo = NotificationRepository()
_profile_repo = ProfileRepository()


def _announce(rows, message, link):
    if rows:
        hooks.fire('notifications.created', {
            'rows': rows,
            'user_ids': [r['user_id'] for r in rows],
            'message': message,
            'link': link,
        })


def notify_user(user_id, message, link=None):
    """Send an in-app notification to a single user."""
    try:
        row = _repo.create(user_id=user_id, message=message, link=link)
    except Exception as e:
        logger.error(f'Failed to create notification for user {user_id}: {e}')
        return None
    _announce([row] if row else [], message, link)
    return row


def notify_users(user_ids, message, link=None, strict=False):
    """Send the same in-app notification to multiple users.

    With strict=True database errors propagate instead of being logged.
    """
    if not user_ids:
        return []
    try:
        rows = _repo.create_bulk(user_ids=user_ids, message=message, link=link)
    except Exception as e:
        if strict:
            raise
        logger.error(f'Failed to create notifications for {len(user_ids)} users: {e}')
        return []
    _announce(rows, message, link)
    return rows


def notify_admins(message, link=None, strict=False):
    """Look up every Admin profile, then insert one notification each.

    Two sequential calls; an Admin created in between is not notified.
    """
    try:
        admin_ids = _profile_repo.get_admin_ids()
    except Exception as e:
        if strict:
            raise
        logger.error(f'Failed to look up admins for notification: {e}')
        return []
    if not admin_ids:
        logger.info('notify_admins: no Admin profiles found')
        return []
    return notify_users(admin_ids, message, link=link, strict=strict)
