"""In-app notification center routes.

Paginated list, unread count, mark read / mark all read, the realtime SSE
stream and a push test for operators.
"""
from flask import jsonify, request, Response, stream_with_context, current_app
from flask_login import current_user

from . import notifications_bp
from .realtime import hub, stream
from .repositories import NotificationRepository
from core.integrations.exceptions import IntegrationError
from core.utils.api_helpers import (
    api_login_required, permission_required, error_response, get_json_or_error,
)
from core.utils.listing import ListQuery

_repo = NotificationRepository()
_session_service = None

PAGE_SIZE = 15


def _get_session_service():
    global _session_service
    if _session_service is None:
        from core.auth.services import SessionService
        _session_service = SessionService(notification_repo=_repo)
    return _session_service


@notifications_bp.route('/api/notifications', methods=['GET'])
@api_login_required
def api_list_notifications():
    query = ListQuery.from_args(request.args, page_size=PAGE_SIZE)
    rows, total = _repo.list_for_user(current_user.id, query.limit, query.offset)
    body = query.envelope(rows, total, key='notifications')
    body['success'] = True
    body['unread_count'] = _repo.get_unread_count(current_user.id)
    return jsonify(body)


@notifications_bp.route('/api/notifications/unread-count', methods=['GET'])
@api_login_required
def api_unread_count():
    return jsonify({'success': True, 'count': _repo.get_unread_count(current_user.id)})


@notifications_bp.route('/api/notifications/<int:notification_id>/read', methods=['POST'])
@api_login_required
def api_mark_read(notification_id):
    if _get_session_service().mark_notification_as_read(current_user.id, notification_id):
        return jsonify({'success': True})
    return error_response('Không tìm thấy thông báo.', 404)


@notifications_bp.route('/api/notifications/read-all', methods=['POST'])
@api_login_required
def api_mark_all_read():
    count = _get_session_service().clear_all_notifications(current_user.id)
    return jsonify({'success': True, 'count': count})


@notifications_bp.route('/api/notifications/stream', methods=['GET'])
@api_login_required
def api_notification_stream():
    """Server-Sent Events feed of new notification rows for the current user."""
    sub = hub.subscribe(current_user.id)
    return Response(
        stream_with_context(stream(sub)),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
            'Connection': 'keep-alive',
        },
    )


@notifications_bp.route('/api/notifications/push-test', methods=['POST'])
@permission_required('settings:edit')
def api_push_test():
    """Send a test push to the current user."""
    data, error = get_json_or_error()
    if error:
        return error
    message = (data.get('message') or '').strip()
    if not message:
        return error_response('Thiếu nội dung thông báo.')
    try:
        handle = current_app.extensions['push'].require_handle()
        if not handle.is_associated(current_user.id):
            return error_response('Tài khoản hiện tại chưa đăng ký nhận thông báo đẩy.')
        handle.send([current_user.id], message, link=data.get('link'))
    except IntegrationError as e:
        return error_response(e.message, 500)
    return jsonify({'success': True, 'message': 'Thông báo đã được gửi thành công.'})
