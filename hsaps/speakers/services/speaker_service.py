"""Speaker Service - business logic for speakers.

Internal CRUD, the public self-registration (always Pending, admins
notified), the optimistic quick status change and the manual templated
email.
"""
import logging

import psycopg2

from core.notifications import notify
from core.settings.services import MessagingService
from core.settings.services.templates import speaker_variables
from core.status import Status, parse_status
from core.storage import storage_service
from core.utils.service_result import ServiceResult
from ..repositories import SpeakerRepository
from ..repositories.speaker_repository import SPEAKER_FIELDS, SPEAKER_TYPES, FILE_FIELDS

logger = logging.getLogger('hsaps.speakers.service')

DEFAULT_SPEAKER_TYPE = 'Báo cáo viên'
PUBLIC_REQUIRED_FIELDS = ('full_name', 'email', 'academic_rank', 'workplace', 'report_title_vn')
PUBLIC_REQUIRED_MESSAGE = 'Vui lòng điền đầy đủ các trường bắt buộc (*).'
REQUIRED_MESSAGE = 'Họ tên và email không được để trống.'
DUPLICATE_EMAIL_MESSAGE = 'Email này đã được sử dụng để đăng ký. Vui lòng sử dụng email khác.'
NOT_FOUND_MESSAGE = 'Không tìm thấy báo cáo viên.'
UNIQUE_VIOLATION = '23505'


def _clean(data):
    cleaned = {}
    for key in SPEAKER_FIELDS:
        if key in data:
            value = data[key]
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value
    if cleaned.get('status'):
        cleaned['status'] = parse_status('speaker', cleaned['status']).value
    if cleaned.get('speaker_type') and cleaned['speaker_type'] not in SPEAKER_TYPES:
        raise ValueError(f'Loại báo cáo viên không hợp lệ: {cleaned["speaker_type"]}')
    return cleaned


def _is_duplicate(error):
    return isinstance(error, psycopg2.IntegrityError) and getattr(error, 'pgcode', None) == UNIQUE_VIOLATION


class SpeakerService:

    def __init__(self, speaker_repo=None, messaging=None):
        self.speaker_repo = speaker_repo or SpeakerRepository()
        self.messaging = messaging or MessagingService()

    def list_speakers(self, query):
        return self.speaker_repo.list_speakers(query)

    def get(self, speaker_id):
        return self.speaker_repo.get_by_id(speaker_id)

    def create(self, data) -> ServiceResult:
        payload = {'status': Status.PENDING.value, 'speaker_type': DEFAULT_SPEAKER_TYPE}
        payload.update({k: v for k, v in _clean(data).items() if v is not None})
        if not payload.get('full_name') or not payload.get('email'):
            return ServiceResult(success=False, error=REQUIRED_MESSAGE, status_code=400)
        return self._insert(payload)

    def register_public(self, data) -> ServiceResult:
        """Self-registration: required fields checked, status forced to Pending."""
        payload = _clean(data)
        if any(not payload.get(field) for field in PUBLIC_REQUIRED_FIELDS):
            return ServiceResult(success=False, error=PUBLIC_REQUIRED_MESSAGE, status_code=400)
        payload['status'] = Status.PENDING.value
        payload.setdefault('speaker_type', DEFAULT_SPEAKER_TYPE)
        result = self._insert(payload)
        if result.success:
            notify.notify_admins(f'Có Báo cáo viên mới đăng ký: {payload["full_name"]}.', link='/speakers')
        return result

    def _insert(self, payload) -> ServiceResult:
        try:
            speaker = self.speaker_repo.create(payload)
        except psycopg2.IntegrityError as e:
            if _is_duplicate(e):
                return ServiceResult(success=False, error=DUPLICATE_EMAIL_MESSAGE, status_code=400)
            raise
        logger.info(f'Speaker created: id={speaker["id"]}')
        return ServiceResult(success=True, data=speaker, status_code=201)

    def update(self, speaker_id, data) -> ServiceResult:
        payload = _clean(data)
        if ('full_name' in payload and not payload['full_name']) or \
                ('email' in payload and not payload['email']):
            return ServiceResult(success=False, error=REQUIRED_MESSAGE, status_code=400)
        try:
            speaker = self.speaker_repo.update(speaker_id, payload)
        except psycopg2.IntegrityError as e:
            if _is_duplicate(e):
                return ServiceResult(success=False, error=DUPLICATE_EMAIL_MESSAGE, status_code=400)
            raise
        if not speaker:
            return ServiceResult(success=False, error=NOT_FOUND_MESSAGE, status_code=404)
        return ServiceResult(success=True, data=speaker)

    def change_status(self, speaker_id, new_status) -> ServiceResult:
        """Quick status change. `data['previous_status']` always carries the pre-change
        status so a caller that already applied the change can revert it."""
        target = parse_status('speaker', new_status)
        current = self.speaker_repo.get_by_id(speaker_id)
        if not current:
            return ServiceResult(success=False, error=NOT_FOUND_MESSAGE, status_code=404)
        previous = current.get('status')
        try:
            speaker = self.speaker_repo.update_status(speaker_id, target.value)
        except Exception as e:
            logger.error(f'Speaker {speaker_id} status update failed: {e}')
            return ServiceResult(success=False, status_code=500,
                                 error=f'Lỗi khi cập nhật trạng thái: {e}',
                                 data={'previous_status': previous})
        return ServiceResult(success=True, data={'speaker': speaker, 'previous_status': previous})

    def delete(self, speaker_id) -> ServiceResult:
        if not self.speaker_repo.delete(speaker_id):
            return ServiceResult(success=False, error=NOT_FOUND_MESSAGE, status_code=404)
        return ServiceResult(success=True, data={'deleted': speaker_id})

    def send_email(self, speaker_id, subject, body) -> ServiceResult:
        """Manual email with {{ho_ten}}, {{hoc_ham}}, {{email}}, {{ten_bai_bao_cao}}."""
        speaker = self.speaker_repo.get_by_id(speaker_id)
        if not speaker:
            return ServiceResult(success=False, error=NOT_FOUND_MESSAGE, status_code=404)
        return self.messaging.send_composed(speaker.get('email'), subject, body,
                                            speaker_variables(speaker))

    def upload_file(self, field, file_bytes, filename, content_type=None) -> ServiceResult:
        """Store a speaker file under event_assets/speakers/<field>."""
        if field not in FILE_FIELDS:
            return ServiceResult(success=False, error=f'Trường tệp không hợp lệ: {field}', status_code=400)
        try:
            url = storage_service.upload(file_bytes, filename, f'speakers/{field}',
                                         content_type=content_type)
        except storage_service.StorageError as e:
            return ServiceResult(success=False, error=str(e), status_code=400)
        return ServiceResult(success=True, data={'field': field, 'url': url}, status_code=201)
