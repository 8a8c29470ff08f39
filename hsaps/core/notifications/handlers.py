"""Notification fan-out handlers: realtime stream and OneSignal push.

Registered at app startup via register_notification_hooks(push_handle).
"""

import logging

from .realtime import hub

logger = logging.getLogger('hsaps.core.notifications.handlers')

_push_handle = None


def register_notification_hooks(push_handle=None):
    """Register notification and session handlers. Call once at app startup."""
    global _push_handle
    from core.hooks import on

    _push_handle = push_handle
    on('notifications.created', _publish_realtime)
    on('notifications.created', _send_push)
    on('session.logged_in', _associate_push)
    on('session.logged_out', _dissociate)

    logger.info('Notification hooks registered')


def _publish_realtime(payload):
    for row in payload.get('rows', []):
        hub.publish(row['user_id'], row)


def _send_push(payload):
    """Best-effort push to the same users that received the rows."""
    if _push_handle is None or not _push_handle.enabled:
        return
    try:
        _push_handle.send(payload.get('user_ids', []), payload.get('message', ''),
                          link=payload.get('link'))
    except Exception as e:
        logger.warning(f'Push delivery failed: {e}')


def _associate_push(payload):
    if _push_handle is not None:
        _push_handle.login(payload['user_id'])


def _dissociate(payload):
    user_id = payload['user_id']
    if _push_handle is not None:
        _push_handle.logout(user_id)
    closed = hub.close_user(user_id)
    if closed:
        logger.debug(f'Closed {closed} realtime streams for user {user_id}')
