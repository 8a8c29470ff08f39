"""Repository for the submission_side_effects outbox.

One row per effect per status transition. Status moves
pending -> done | skipped | failed. Failed rows are retried until
MAX_ATTEMPTS is reached; pending rows past STALE_PENDING_MINUTES are
picked up by the same retry.
"""

import logging

from core.base_repository import BaseRepository
from database import dict_from_row

logger = logging.getLogger('hsaps.submissions.side_effect_repository')

MAX_ATTEMPTS = 3

STATUS_PENDING = 'pending'
STATUS_DONE = 'done'
STATUS_SKIPPED = 'skipped'
STATUS_FAILED = 'failed'

# Pending rows older than this were left behind by a run that never finished
STALE_PENDING_MINUTES = 5
_STALE_PENDING = "status = %s AND created_at < CURRENT_TIMESTAMP - make_interval(mins => %s)"


class SideEffectRepository(BaseRepository):

    def get_for_submission(self, submission_id):
        return self.query_all('''
            SELECT * FROM submission_side_effects
            WHERE submission_id = %s
            ORDER BY created_at, position
        ''', (submission_id,))

    def get_retryable(self, max_attempts=MAX_ATTEMPTS, limit=100):
        """Failed effects below the attempt cap plus stale pending ones, oldest first."""
        return self.query_all(f'''
            SELECT * FROM submission_side_effects
            WHERE (status = %s AND attempts < %s)
               OR ({_STALE_PENDING})
            ORDER BY created_at, position
            LIMIT %s
        ''', (STATUS_FAILED, max_attempts, STATUS_PENDING, STALE_PENDING_MINUTES, limit))

    def get_failed_for_submission(self, submission_id):
        """Failed and stale pending effects of one submission."""
        return self.query_all(f'''
            SELECT * FROM submission_side_effects
            WHERE submission_id = %s AND (status = %s OR ({_STALE_PENDING}))
            ORDER BY created_at, position
        ''', (submission_id, STATUS_FAILED, STATUS_PENDING, STALE_PENDING_MINUTES))

    def mark_done(self, effect_id, note=None):
        return self._finish(effect_id, STATUS_DONE, note)

    def mark_skipped(self, effect_id, note=None):
        return self._finish(effect_id, STATUS_SKIPPED, note)

    def _finish(self, effect_id, status, note):
        return self.execute('''
            UPDATE submission_side_effects
            SET status = %s, attempts = attempts + 1, last_error = %s,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
            RETURNING *
        ''', (status, note, effect_id), returning=True)

    def mark_failed(self, effect_id, error):
        return self.execute('''
            UPDATE submission_side_effects
            SET status = %s, attempts = attempts + 1, last_error = %s,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
            RETURNING *
        ''', (STATUS_FAILED, str(error)[:1000], effect_id), returning=True)

    def complete_with_finance_transaction(self, effect_id, transaction):
        """Insert the income transaction and mark the effect done atomically.

        A retried effect that already completed inserts nothing.
        """
        def _work(cursor):
            cursor.execute('''
                SELECT status FROM submission_side_effects WHERE id = %s FOR UPDATE
            ''', (effect_id,))
            row = cursor.fetchone()
            if row and row['status'] == STATUS_DONE:
                return None
            cursor.execute('''
                INSERT INTO finance_transactions
                    (title, type, amount, transaction_date, handler_id, notes,
                     payment_method, account, receipt_url)
                VALUES (%s, %s, %s, CURRENT_TIMESTAMP, %s, %s, %s, %s, NULL)
                RETURNING *
            ''', (transaction['title'], transaction['type'], transaction['amount'],
                  transaction.get('handler_id'), transaction.get('notes'),
                  transaction['payment_method'], transaction['account']))
            created = dict_from_row(cursor.fetchone())
            cursor.execute('''
                UPDATE submission_side_effects
                SET status = %s, attempts = attempts + 1, last_error = NULL,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = %s
            ''', (STATUS_DONE, effect_id))
            return created
        return self.execute_many(_work)
