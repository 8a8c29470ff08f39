"""Speakers API routes.

Internal list/CRUD/quick status/email behind speakers:* permissions, and the
public registration form (no login, rate limited).
"""
from flask import jsonify, request

from . import speakers_bp
from .services import SpeakerService
from core.storage.storage_service import transformed_url
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
    service_response, message_response, RateLimiter,
)
from core.utils.listing import ListQuery

_service = SpeakerService()
_public_limiter = RateLimiter()

PAGE_SIZE = 20
THUMB_SIZE = 80


def _with_thumb(speaker):
    speaker['avatar_thumb_url'] = transformed_url(speaker.get('avatar_url'), THUMB_SIZE, THUMB_SIZE)
    return speaker


def _rate_limited(bucket, max_requests):
    allowed, retry_after = _public_limiter.is_allowed(
        f'{bucket}:{request.remote_addr}', max_requests=max_requests, window_seconds=300)
    if allowed:
        return None
    return jsonify({'success': False, 'error': 'Quá nhiều yêu cầu. Vui lòng thử lại sau.',
                    'retry_after': retry_after}), 429


# ============== Internal ==============

@speakers_bp.route('/api/speakers', methods=['GET'])
@permission_required('speakers:view')
@handle_api_errors
def api_list_speakers():
    query = ListQuery.from_args(request.args, filter_keys=('status', 'speaker_type'), page_size=PAGE_SIZE)
    rows, total = _service.list_speakers(query)
    body = query.envelope([_with_thumb(r) for r in rows], total, key='speakers')
    body['success'] = True
    return jsonify(body)


@speakers_bp.route('/api/speakers/<int:speaker_id>', methods=['GET'])
@permission_required('speakers:view')
def api_get_speaker(speaker_id):
    speaker = _service.get(speaker_id)
    if not speaker:
        return error_response('Không tìm thấy báo cáo viên.', 404)
    return jsonify({'success': True, 'speaker': _with_thumb(speaker)})


@speakers_bp.route('/api/speakers', methods=['POST'])
@permission_required('speakers:create')
@handle_api_errors
def api_create_speaker():
    data, error = get_json_or_error()
    if error:
        return error
    return service_response(_service.create(data))


@speakers_bp.route('/api/speakers/<int:speaker_id>', methods=['PUT'])
@permission_required('speakers:edit')
@handle_api_errors
def api_update_speaker(speaker_id):
    data, error = get_json_or_error()
    if error:
        return error
    return service_response(_service.update(speaker_id, data))


@speakers_bp.route('/api/speakers/<int:speaker_id>/status', methods=['POST'])
@permission_required('speakers:edit')
@handle_api_errors
def api_speaker_status(speaker_id):
    """Quick status change; failures include previous_status for the revert."""
    data, error = get_json_or_error()
    if error:
        return error
    if not data.get('status'):
        return error_response('Thiếu trạng thái mới.')
    result = _service.change_status(speaker_id, data['status'])
    if result.success or not result.data:
        return service_response(result)
    return service_response(result, previous_status=result.data.get('previous_status'))


@speakers_bp.route('/api/speakers/<int:speaker_id>', methods=['DELETE'])
@permission_required('speakers:delete')
def api_delete_speaker(speaker_id):
    return service_response(_service.delete(speaker_id))


@speakers_bp.route('/api/speakers/<int:speaker_id>/email', methods=['POST'])
@permission_required('speakers:edit')
def api_send_speaker_email(speaker_id):
    data, error = get_json_or_error()
    if error:
        return error
    return message_response(_service.send_email(speaker_id, data.get('subject'), data.get('body')))


@speakers_bp.route('/api/speakers/upload', methods=['POST'])
@permission_required('speakers:edit')
def api_upload_speaker_file():
    return _upload()


# ============== Public registration ==============

@speakers_bp.route('/api/public/speakers', methods=['POST'])
@handle_api_errors
def api_public_register():
    blocked = _rate_limited('speaker-register', 5)
    if blocked:
        return blocked
    data, error = get_json_or_error()
    if error:
        return error
    result = _service.register_public(data)
    if not result.success:
        return service_response(result)
    return jsonify({'success': True, 'message': 'Đăng ký thành công! Chúng tôi sẽ liên hệ với bạn sớm.'}), 201


@speakers_bp.route('/api/public/speakers/upload', methods=['POST'])
def api_public_upload():
    blocked = _rate_limited('speaker-upload', 20)
    if blocked:
        return blocked
    return _upload()


def _upload():
    file = request.files.get('file')
    field = request.form.get('field', '')
    if not file or not file.filename:
        return error_response('Không có tệp được tải lên.')
    result = _service.upload_file(field, file.read(), file.filename, file.mimetype)
    if not result.success:
        return service_response(result)
    return jsonify({'success': True, **result.data}), result.status_code
