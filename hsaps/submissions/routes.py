"""Submissions API routes.

List/search/filter, create, raw edit, guided status change, delete, badge
regeneration, manual templated email and outbox retry.
"""
from flask import jsonify, request
from flask_login import current_user

from . import submissions_bp
from .services import SubmissionService
from core.status import allowed_statuses
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
    service_response, message_response,
)
from core.utils.listing import ListQuery
from .services.workflow import next_statuses

_service = SubmissionService()

PAGE_SIZE = 20


@submissions_bp.route('/api/submissions', methods=['GET'])
@permission_required('submissions:view')
@handle_api_errors
def api_list_submissions():
    query = ListQuery.from_args(request.args, filter_keys=('status',), page_size=PAGE_SIZE)
    if query.filters.get('status') and query.filters['status'] not in [s.value for s in allowed_statuses('submission')]:
        return error_response(f'Trạng thái không hợp lệ: {query.filters["status"]}')
    rows, total = _service.list_submissions(query)
    body = query.envelope(rows, total, key='submissions')
    body['success'] = True
    return jsonify(body)


@submissions_bp.route('/api/submissions/<int:submission_id>', methods=['GET'])
@permission_required('submissions:view')
def api_get_submission(submission_id):
    submission = _service.get(submission_id)
    if not submission:
        return error_response('Không tìm thấy đăng ký.', 404)
    return jsonify({
        'success': True,
        'submission': submission,
        'next_statuses': [s.value for s in next_statuses(submission.get('status'))],
    })


@submissions_bp.route('/api/submissions', methods=['POST'])
@permission_required('submissions:create')
@handle_api_errors
def api_create_submission():
    data, error = get_json_or_error()
    if error:
        return error
    return service_response(_service.create(
        data, actor_id=current_user.id, can_approve=current_user.has_permission('submissions:approve')))


@submissions_bp.route('/api/submissions/<int:submission_id>', methods=['PUT'])
@permission_required('submissions:edit')
@handle_api_errors
def api_update_submission(submission_id):
    data, error = get_json_or_error()
    if error:
        return error
    return service_response(_service.update(
        submission_id, data, actor_id=current_user.id,
        can_approve=current_user.has_permission('submissions:approve')))


@submissions_bp.route('/api/submissions/<int:submission_id>/status', methods=['POST'])
@permission_required('submissions:approve')
@handle_api_errors
def api_change_status(submission_id):
    data, error = get_json_or_error()
    if error:
        return error
    if not data.get('status'):
        return error_response('Thiếu trạng thái mới.')
    return service_response(_service.change_status(submission_id, data['status'], actor_id=current_user.id))


@submissions_bp.route('/api/submissions/<int:submission_id>', methods=['DELETE'])
@permission_required('submissions:delete')
@handle_api_errors
def api_delete_submission(submission_id):
    return service_response(_service.delete(submission_id))


@submissions_bp.route('/api/submissions/<int:submission_id>/badge', methods=['POST'])
@permission_required('submissions:edit')
def api_regenerate_badge(submission_id):
    return service_response(_service.regenerate_badge(submission_id))


@submissions_bp.route('/api/submissions/<int:submission_id>/side-effects', methods=['GET'])
@permission_required('submissions:view')
@handle_api_errors
def api_list_side_effects(submission_id):
    return service_response(_service.side_effect_history(submission_id))


@submissions_bp.route('/api/submissions/<int:submission_id>/side-effects/retry', methods=['POST'])
@permission_required('submissions:edit')
@handle_api_errors
def api_retry_side_effects(submission_id):
    return service_response(_service.retry_side_effects(submission_id))


@submissions_bp.route('/api/submissions/<int:submission_id>/email', methods=['POST'])
@permission_required('submissions:edit')
def api_send_email(submission_id):
    data, error = get_json_or_error()
    if error:
        return error
    return message_response(_service.send_email(submission_id, data.get('subject'), data.get('body')))
