"""In-app notification repository.

Handles CRUD for the `notifications` table, shared by every module that
notifies users (submissions, speakers, sponsors, tasks).
"""

import logging
from core.base_repository import BaseRepository

logger = logging.getLogger('hsaps.core.notifications.notification_repository')

_COLUMNS = 'id, user_id, message, link, read, created_at'


class NotificationRepository(BaseRepository):

    def create(self, user_id, message, link=None):
        """Create a notification for a user. Returns the row."""
        return self.execute(f'''
            INSERT INTO notifications (user_id, message, link)
            VALUES (%s, %s, %s)
            RETURNING {_COLUMNS}
        ''', (user_id, message, link), returning=True)

    def create_bulk(self, user_ids, message, link=None):
        """Create the same notification for multiple users. Returns the rows."""
        if not user_ids:
            return []

        def _work(cursor):
            rows = []
            for uid in user_ids:
                cursor.execute(f'''
                    INSERT INTO notifications (user_id, message, link)
                    VALUES (%s, %s, %s)
                    RETURNING {_COLUMNS}
                ''', (uid, message, link))
                rows.append(dict(cursor.fetchone()))
            return rows
        return self.execute_many(_work)

    def get_for_user(self, user_id, limit=20, offset=0, unread_only=False):
        """Get notifications for a user, newest first."""
        where = 'WHERE user_id = %s'
        params = [user_id]
        if unread_only:
            where += ' AND read = FALSE'
        params.extend([limit, offset])
        return self.query_all(f'''
            SELECT {_COLUMNS} FROM notifications
            {where}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
        ''', params)

    def list_for_user(self, user_id, limit, offset):
        """One page of a user's notifications plus the total count."""
        return self.paginate(
            f'SELECT {_COLUMNS} FROM notifications WHERE user_id = %s',
            'SELECT COUNT(*) AS total FROM notifications WHERE user_id = %s',
            [user_id], 'created_at DESC', limit, offset,
        )

    def get_unread_count(self, user_id):
        row = self.query_one(
            'SELECT COUNT(*) as cnt FROM notifications WHERE user_id = %s AND read = FALSE',
            (user_id,)
        )
        return row['cnt'] if row else 0

    def mark_read(self, notification_id, user_id):
        """Mark a single notification as read. Returns True if updated."""
        return self.execute(
            'UPDATE notifications SET read = TRUE WHERE id = %s AND user_id = %s',
            (notification_id, user_id)
        ) > 0

    def mark_all_read(self, user_id):
        """Mark all unread notifications as read for a user. Returns count updated."""
        return self.execute(
            'UPDATE notifications SET read = TRUE WHERE user_id = %s AND read = FALSE',
            (user_id,)
        )

    def delete_old(self, days=30):
        """Delete notifications older than N days. Returns count deleted."""
        return self.execute(
            "DELETE FROM notifications WHERE created_at < NOW() - INTERVAL '%s days'",
            (days,)
        )
