"""Repository for the submissions table."""

import logging
import os
import time

from core.base_repository import BaseRepository
from core.status import Status, to_storage
from core.utils.listing import build_where
from database import dict_from_row

logger = logging.getLogger('hsaps.submissions.submission_repository')

ATTENDANCE_ID_PREFIX = os.environ.get('ATTENDANCE_ID_PREFIX', 'HSAPS25')

SUBMISSION_FIELDS = (
    'full_name', 'email', 'phone', 'dob', 'workplace', 'address', 'attendee_type',
    'cme', 'gala_dinner', 'payment_amount', 'payment_image_url', 'status',
)

_SEARCH_COLUMNS = ('full_name', 'email', 'attendance_id')


def format_attendance_id(submission_id, prefix=None):
    """id 7 -> 'HSAPS25-0007'."""
    return f'{prefix or ATTENDANCE_ID_PREFIX}-{int(submission_id):04d}'


def placeholder_attendance_id(now_ms=None):
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f'PENDING_ID_{now_ms}'


def _enqueue(cursor, submission_id, effects, actor_id):
    """Insert outbox rows for `effects` using the caller's transaction."""
    rows = []
    for position, effect in enumerate(effects):
        cursor.execute('''
            INSERT INTO submission_side_effects (submission_id, effect, position, actor_id)
            VALUES (%s, %s, %s, %s)
            RETURNING *
        ''', (submission_id, effect, position, actor_id))
        rows.append(dict_from_row(cursor.fetchone()))
    return rows


class SubmissionRepository(BaseRepository):

    def get_by_id(self, submission_id):
        return self.query_one('SELECT * FROM submissions WHERE id = %s', (submission_id,))

    def list_submissions(self, query):
        """One page of submissions, newest registration first. Returns (rows, total)."""
        where_clause, params = build_where(query, _SEARCH_COLUMNS, {'status': 'status'})
        return self.paginate(
            f'SELECT * FROM submissions{where_clause}',
            f'SELECT COUNT(*) AS total FROM submissions{where_clause}',
            params, 'registration_time DESC', query.limit, query.offset,
        )

    def get_by_status(self, status):
        return self.query_all(
            'SELECT * FROM submissions WHERE status = %s ORDER BY registration_time DESC',
            (to_storage('submission', status),))

    def create(self, data, plan_effects=None, actor_id=None):
        """Insert with a placeholder attendance id, then replace it with the derived one.

        Both phases run in one transaction so no reader sees the placeholder.
        `plan_effects(old, new)` returns the outbox effects to enqueue.
        Returns (submission, effect_rows).
        """
        fields = [f for f in SUBMISSION_FIELDS if f in data]

        def _work(cursor):
            columns = fields + ['attendance_id', 'registration_time']
            placeholders = ', '.join(['%s'] * len(fields) + ['%s', 'CURRENT_TIMESTAMP'])
            cursor.execute(f'''
                INSERT INTO submissions ({', '.join(columns)})
                VALUES ({placeholders})
                RETURNING id
            ''', [data[f] for f in fields] + [placeholder_attendance_id()])
            new_id = cursor.fetchone()['id']

            cursor.execute('''
                UPDATE submissions SET attendance_id = %s
                WHERE id = %s
                RETURNING *
            ''', (format_attendance_id(new_id), new_id))
            submission = dict_from_row(cursor.fetchone())

            effects = plan_effects(None, submission) if plan_effects else []
            return submission, _enqueue(cursor, new_id, effects, actor_id)

        submission, effect_rows = self.execute_many(_work)
        logger.info(f'Submission created: id={submission["id"]} attendance_id={submission["attendance_id"]}')
        return submission, effect_rows

    def update(self, submission_id, data, plan_effects=None, actor_id=None):
        """Update fields; outbox rows are enqueued in the same transaction.

        Returns (old, new, effect_rows), or (None, None, []) when the row does not exist.
        """
        fields = [f for f in SUBMISSION_FIELDS if f in data]

        def _work(cursor):
            cursor.execute('SELECT * FROM submissions WHERE id = %s FOR UPDATE', (submission_id,))
            old = cursor.fetchone()
            if not old:
                return None, None, []
            old = dict_from_row(old)
            if fields:
                assignments = ', '.join(f'{f} = %s' for f in fields)
                cursor.execute(f'''
                    UPDATE submissions SET {assignments}, updated_at = CURRENT_TIMESTAMP
                    WHERE id = %s
                    RETURNING *
                ''', [data[f] for f in fields] + [submission_id])
                new = dict_from_row(cursor.fetchone())
            else:
                new = old
            effects = plan_effects(old, new) if plan_effects else []
            return old, new, _enqueue(cursor, submission_id, effects, actor_id)

        return self.execute_many(_work)

    def set_badge_url(self, submission_id, badge_url):
        return self.execute('''
            UPDATE submissions SET badge_url = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
            RETURNING *
        ''', (badge_url, submission_id), returning=True)

    def delete(self, submission_id):
        return self.execute('DELETE FROM submissions WHERE id = %s', (submission_id,)) > 0

    def count_by_status(self):
        rows = self.query_all('SELECT status, COUNT(*) AS cnt FROM submissions GROUP BY status')
        return {r['status'] or Status.PENDING.value: r['cnt'] for r in rows}

    def get_latest(self, limit=5):
        return self.query_all('''
            SELECT id, full_name, registration_time, status, attendee_type
            FROM submissions
            ORDER BY registration_time DESC
            LIMIT %s
        ''', (limit,))
