"""Submission Service: registration CRUD, the guided workflow and badges.

Routes call this service. Every status write goes through the repository
together with its planned outbox rows; the rows are executed by the
SideEffectRunner after commit and reported back as `side_effects`.
"""

import logging

from core.notifications import notify
from core.settings.services import MessagingService
from core.settings.services.templates import submission_variables
from core.status import Status, parse_status
from core.utils.service_result import ServiceResult
from ..repositories import SubmissionRepository
from ..repositories.submission_repository import SUBMISSION_FIELDS
from . import workflow
from .side_effects import SideEffectRunner

logger = logging.getLogger('hsaps.submissions.service')

DEFAULT_ATTENDEE_TYPE = 'Đại biểu tự do'
REQUIRED_MESSAGE = 'Họ tên và email không được để trống.'
NOT_FOUND_MESSAGE = 'Không tìm thấy đăng ký.'
APPROVE_REQUIRED_MESSAGE = 'Bạn không có quyền thay đổi trạng thái đăng ký.'


def _not_found():
    return ServiceResult(success=False, error=NOT_FOUND_MESSAGE, status_code=404)


def _approve_required():
    return ServiceResult(success=False, error=APPROVE_REQUIRED_MESSAGE, status_code=403)


def _clean(data):
    """Keep known fields; empty strings for optional values become NULL."""
    cleaned = {}
    for key in SUBMISSION_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, str):
            value = value.strip()
            if value == '' and key not in ('full_name', 'email'):
                value = None
        cleaned[key] = value
    if 'payment_amount' in cleaned and cleaned['payment_amount'] is not None:
        try:
            cleaned['payment_amount'] = float(cleaned['payment_amount'])
        except (TypeError, ValueError):
            raise ValueError('Số tiền thanh toán không hợp lệ.')
    if 'status' in cleaned:
        cleaned['status'] = parse_status('submission', cleaned['status']).value
    return cleaned


class SubmissionService:
    """Orchestrates submission business logic."""

    def __init__(self, submission_repo=None, runner=None, messaging=None):
        self.submission_repo = submission_repo or SubmissionRepository()
        self.messaging = messaging or MessagingService()
        self.runner = runner or SideEffectRunner(submission_repo=self.submission_repo,
                                                 messaging=self.messaging)

    # ============== Queries ==============

    def list_submissions(self, query):
        return self.submission_repo.list_submissions(query)

    def get(self, submission_id):
        return self.submission_repo.get_by_id(submission_id)

    # ============== Mutations ==============

    def create(self, data, actor_id=None, can_approve=True) -> ServiceResult:
        """Without approval rights only the initial status may be given."""
        payload = {
            'status': Status.PAYMENT_PENDING.value,
            'attendee_type': DEFAULT_ATTENDEE_TYPE,
            'cme': False,
            'gala_dinner': False,
        }
        payload.update(_clean(data))
        if not payload.get('full_name') or not payload.get('email'):
            return ServiceResult(success=False, error=REQUIRED_MESSAGE, status_code=400)
        if not can_approve and payload['status'] != Status.PAYMENT_PENDING.value:
            return _approve_required()

        submission, effect_rows = self.submission_repo.create(
            payload, plan_effects=workflow.plan_effects, actor_id=actor_id)

        notify.notify_admins(f'Có đăng ký mới từ "{submission["full_name"]}".', link='/submissions')
        side_effects = self.runner.run(effect_rows, submission)
        return ServiceResult(success=True, status_code=201,
                             data={'submission': submission, 'side_effects': side_effects})

    def update(self, submission_id, data, actor_id=None, can_approve=True) -> ServiceResult:
        """Raw edit: any field, any status valid for a submission.

        Changing the status needs approval rights; resending the current
        status unchanged is allowed.
        """
        payload = _clean(data)
        if ('full_name' in payload and not payload['full_name']) or \
                ('email' in payload and not payload['email']):
            return ServiceResult(success=False, error=REQUIRED_MESSAGE, status_code=400)
        if not can_approve and 'status' in payload:
            current = self.submission_repo.get_by_id(submission_id)
            if not current:
                return _not_found()
            if current.get('status') != payload['status']:
                return _approve_required()
        return self._write(submission_id, payload, actor_id)

    def change_status(self, submission_id, new_status, actor_id=None) -> ServiceResult:
        """Guided transition. Setting the current status again is a no-op."""
        target = parse_status('submission', new_status)
        current = self.submission_repo.get_by_id(submission_id)
        if not current:
            return _not_found()
        if current.get('status') == target.value:
            return ServiceResult(success=True, data={'submission': current, 'side_effects': []})
        if not workflow.can_transition(current.get('status'), target):
            return ServiceResult(
                success=False, status_code=400,
                error=f'Không thể chuyển trạng thái từ "{current.get("status")}" sang "{target.value}".')
        return self._write(submission_id, {'status': target.value}, actor_id)

    def _write(self, submission_id, payload, actor_id):
        old, new, effect_rows = self.submission_repo.update(
            submission_id, payload, plan_effects=workflow.plan_effects, actor_id=actor_id)
        if new is None:
            return _not_found()
        if old.get('status') != new.get('status'):
            logger.info(f'Submission {submission_id} status: {old.get("status")} -> {new.get("status")}')
        side_effects = self.runner.run(effect_rows, new)
        return ServiceResult(success=True, data={'submission': new, 'side_effects': side_effects})

    def delete(self, submission_id) -> ServiceResult:
        if not self.submission_repo.delete(submission_id):
            return _not_found()
        return ServiceResult(success=True, data={'deleted': submission_id})

    # ============== Badges & Messaging ==============

    def regenerate_badge(self, submission_id) -> ServiceResult:
        """Always renders a fresh file and overwrites badge_url."""
        submission = self.submission_repo.get_by_id(submission_id)
        if not submission:
            return _not_found()
        try:
            url = self.runner.render_badge(submission)
            updated = self.submission_repo.set_badge_url(submission_id, url)
        except Exception as e:
            logger.error(f'Badge regeneration failed for submission {submission_id}: {e}')
            return ServiceResult(success=False, error=f'Lỗi khi tạo lại thẻ: {e}', status_code=500)
        return ServiceResult(success=True, data={'submission': updated, 'badge_url': url})

    def send_email(self, submission_id, subject, body) -> ServiceResult:
        """Manual email to the attendee with {{ho_ten}}, {{id_tham_du}}, {{email}}, {{loai_dai_bieu}}."""
        submission = self.submission_repo.get_by_id(submission_id)
        if not submission:
            return _not_found()
        return self.messaging.send_composed(submission.get('email'), subject, body,
                                            submission_variables(submission))

    def side_effect_history(self, submission_id) -> ServiceResult:
        """Every outbox row of the submission, oldest transition first."""
        if not self.submission_repo.get_by_id(submission_id):
            return _not_found()
        return ServiceResult(success=True, data=self.runner.effect_repo.get_for_submission(submission_id))

    def retry_side_effects(self, submission_id) -> ServiceResult:
        submission, results = self.runner.retrigger(submission_id)
        if submission is None:
            return _not_found()
        return ServiceResult(success=True, data={'submission': submission, 'side_effects': results})
