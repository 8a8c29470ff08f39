"""Runs submission outbox effects.

Effects are enqueued by the repository in the same transaction as the status
write, then executed here right after commit. Each effect is recorded as
done, skipped or failed on its own row; a failure never stops the next effect
and never rolls back the status change.
"""

import logging

from core.notifications import notify
from core.settings.repositories import EmailTemplateRepository
from core.settings.services import MessagingService
from core.settings.services.templates import render_template_text, to_html
from core.utils.logging_config import LogContext
from ..repositories import SubmissionRepository, SideEffectRepository
from ..repositories.side_effect_repository import (
    MAX_ATTEMPTS, STATUS_DONE, STATUS_SKIPPED, STATUS_FAILED,
)
from . import badge_service
from .workflow import (
    EFFECT_NOTIFY_ADMINS, EFFECT_CONFIRMATION_EMAIL,
    EFFECT_FINANCE_TRANSACTION, EFFECT_BADGE,
)

logger = logging.getLogger('hsaps.submissions.side_effects')

CONFIRMATION_TEMPLATE = 'payment_confirmed'
FINANCE_ACCOUNT = 'TK Hội Nghị'
FINANCE_PAYMENT_METHOD = 'Chuyển khoản'
FINANCE_INCOME = 'Thu'


class SkipEffect(Exception):
    """Raised by a handler when there is nothing to do for this submission."""


def payment_confirmed_message(submission):
    return (f'Thanh toán cho đăng ký #{submission.get("attendance_id")} '
            f'({submission.get("full_name")}) đã được xác nhận.')


def finance_transaction_for(submission, handler_id):
    attendance_id = submission.get('attendance_id')
    return {
        'title': f'Phí đăng ký - {submission.get("full_name")} - {attendance_id}',
        'type': FINANCE_INCOME,
        'amount': submission.get('payment_amount'),
        'handler_id': handler_id,
        'notes': f'Giao dịch tự động từ đăng ký #{attendance_id}.',
        'payment_method': FINANCE_PAYMENT_METHOD,
        'account': FINANCE_ACCOUNT,
    }


class SideEffectRunner:
    """Executes outbox rows against the current submission row."""

    def __init__(self, submission_repo=None, effect_repo=None, messaging=None,
                 template_repo=None, render_badge=None):
        self.submission_repo = submission_repo or SubmissionRepository()
        self.effect_repo = effect_repo or SideEffectRepository()
        self.messaging = messaging or MessagingService()
        self.template_repo = template_repo or EmailTemplateRepository()
        self.render_badge = render_badge or badge_service.generate_and_store
        self._handlers = {
            EFFECT_NOTIFY_ADMINS: self._notify_admins,
            EFFECT_CONFIRMATION_EMAIL: self._confirmation_email,
            EFFECT_FINANCE_TRANSACTION: self._finance_transaction,
            EFFECT_BADGE: self._badge,
        }

    # ============== Public Methods ==============

    def run(self, effect_rows, submission):
        """Execute `effect_rows` in position order. Returns one report dict per effect."""
        results = []
        for row in sorted(effect_rows, key=lambda r: r.get('position', 0)):
            results.append(self._run_one(row, submission))
        return results

    def retry_failed(self, max_attempts=MAX_ATTEMPTS):
        """Re-run failed effects still below the attempt cap. Returns the number retried."""
        rows = self.effect_repo.get_retryable(max_attempts=max_attempts)
        by_submission = {}
        for row in rows:
            by_submission.setdefault(row['submission_id'], []).append(row)

        for submission_id, effect_rows in by_submission.items():
            submission = self.submission_repo.get_by_id(submission_id)
            if not submission:
                for row in effect_rows:
                    self.effect_repo.mark_skipped(row['id'], 'Đăng ký không còn tồn tại.')
                continue
            for result in self.run(effect_rows, submission):
                logger.info(f'Retried effect {result["effect"]} for submission {submission_id}: '
                            f'{result["status"]}')
        return len(rows)

    def retrigger(self, submission_id):
        """Operator retry of every failed effect of one submission, ignoring the attempt cap.

        Returns (submission, results); submission is None when it does not exist.
        """
        submission = self.submission_repo.get_by_id(submission_id)
        if not submission:
            return None, []
        failed = self.effect_repo.get_failed_for_submission(submission_id)
        results = self.run(failed, submission)
        return self.submission_repo.get_by_id(submission_id) or submission, results

    # ============== Execution ==============

    def _run_one(self, row, submission):
        effect = row['effect']
        handler = self._handlers.get(effect)
        report = {'id': row.get('id'), 'effect': effect}
        if handler is None:
            logger.warning(f'Unknown side effect {effect!r} on row {row.get("id")}')
            self.effect_repo.mark_skipped(row['id'], 'Unknown effect')
            report.update(status=STATUS_SKIPPED, error=None)
            return report
        try:
            with LogContext(submission_id=submission.get('id'), effect=effect):
                handler(row, submission)
        except SkipEffect as e:
            self.effect_repo.mark_skipped(row['id'], str(e) or None)
            report.update(status=STATUS_SKIPPED, error=None)
        except Exception as e:
            logger.error(f'Side effect {effect} failed for submission {submission.get("id")}: {e}')
            self.effect_repo.mark_failed(row['id'], e)
            report.update(status=STATUS_FAILED, error=str(e))
        else:
            report.update(status=STATUS_DONE, error=None)
        return report

    # ============== Handlers ==============

    def _notify_admins(self, row, submission):
        notify.notify_admins(payment_confirmed_message(submission), link='/submissions', strict=True)
        self.effect_repo.mark_done(row['id'])

    def _confirmation_email(self, row, submission):
        if not submission.get('email'):
            raise SkipEffect('Đăng ký không có email.')
        template = self.template_repo.get_by_name(CONFIRMATION_TEMPLATE)
        if not template:
            raise SkipEffect(f'Không có mẫu email {CONFIRMATION_TEMPLATE}.')
        variables = {
            'ho_ten': submission.get('full_name') or '',
            'id_tham_du': submission.get('attendance_id') or '',
        }
        body = render_template_text(template.get('body'), variables)
        result = self.messaging.send_email(submission['email'], template.get('subject'), to_html(body))
        if not result.success:
            raise RuntimeError(
                f'Đã lưu đăng ký, nhưng gửi email xác nhận tự động thất bại: {result.error}')
        self.effect_repo.mark_done(row['id'])

    def _finance_transaction(self, row, submission):
        try:
            amount = float(submission.get('payment_amount') or 0)
        except (TypeError, ValueError):
            amount = 0
        if amount <= 0:
            raise SkipEffect('Đăng ký miễn phí.')
        created = self.effect_repo.complete_with_finance_transaction(
            row['id'], finance_transaction_for(submission, row.get('actor_id')))
        if created:
            logger.info(f'Finance transaction {created.get("id")} created for submission {submission.get("id")}')

    def _badge(self, row, submission):
        if submission.get('badge_url'):
            raise SkipEffect('Thẻ đã được tạo.')
        url = self.render_badge(submission)
        self.submission_repo.set_badge_url(submission['id'], url)
        submission['badge_url'] = url
        self.effect_repo.mark_done(row['id'])
