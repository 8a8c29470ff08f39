"""Event tasks API routes.

Statuses accept display labels or the legacy keys IN_PROGRESS / COMPLETED.
Assigning a task to someone new notifies that person.
"""
from flask import jsonify, request
from flask_login import current_user

from . import event_tasks_bp
from .repositories import TaskRepository
from core.notifications import notify
from core.status import Status, parse_status
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
)
from core.utils.listing import ListQuery

_repo = TaskRepository()

PAGE_SIZE = 20
TITLE_REQUIRED_MESSAGE = 'Tiêu đề công việc không được để trống.'


def _clean(data):
    cleaned = {}
    for key in ('title', 'description', 'status', 'due_date', 'assignee_id'):
        if key in data:
            value = data[key]
            if isinstance(value, str):
                value = value.strip()
                if key != 'title' and value == '':
                    value = None
            cleaned[key] = value
    if cleaned.get('status'):
        cleaned['status'] = parse_status('task', cleaned['status'])
    if cleaned.get('assignee_id') is not None:
        cleaned['assignee_id'] = int(cleaned['assignee_id'])
    return cleaned


def _notify_assignee(old, new):
    assignee_id = new.get('assignee_id')
    if assignee_id and (not old or old.get('assignee_id') != assignee_id):
        notify.notify_user(assignee_id, f'Bạn được giao công việc: "{new["title"]}"', link='/tasks')


@event_tasks_bp.route('/api/tasks', methods=['GET'])
@permission_required('tasks:view')
@handle_api_errors
def api_list_tasks():
    args = request.args.to_dict()
    if args.get('assignee') == 'me':
        args['assignee_id'] = str(current_user.id)
    elif args.get('assignee') and args['assignee'] != 'All':
        args['assignee_id'] = args['assignee']
    if args.get('status') and args['status'] != 'All':
        args['status'] = parse_status('task', args['status']).value

    query = ListQuery.from_args(args, filter_keys=('status', 'assignee_id'), page_size=PAGE_SIZE)
    rows, total = _repo.list_tasks(query)
    body = query.envelope(rows, total, key='tasks')
    body['success'] = True
    return jsonify(body)


@event_tasks_bp.route('/api/tasks/<int:task_id>', methods=['GET'])
@permission_required('tasks:view')
def api_get_task(task_id):
    task = _repo.get_by_id(task_id)
    if not task:
        return error_response('Không tìm thấy công việc.', 404)
    return jsonify({'success': True, 'task': task})


@event_tasks_bp.route('/api/tasks', methods=['POST'])
@permission_required('tasks:create')
@handle_api_errors
def api_create_task():
    data, error = get_json_or_error()
    if error:
        return error
    payload = {'status': Status.PENDING, 'assignee_id': current_user.id}
    payload.update({k: v for k, v in _clean(data).items() if v is not None})
    if not payload.get('title'):
        return error_response(TITLE_REQUIRED_MESSAGE)

    task = _repo.create(payload)
    _notify_assignee(None, task)
    return jsonify({'success': True, 'task': task}), 201


@event_tasks_bp.route('/api/tasks/<int:task_id>', methods=['PUT'])
@permission_required('tasks:edit')
@handle_api_errors
def api_update_task(task_id):
    data, error = get_json_or_error()
    if error:
        return error
    payload = _clean(data)
    if 'title' in payload and not payload['title']:
        return error_response(TITLE_REQUIRED_MESSAGE)

    old, new = _repo.update(task_id, payload)
    if not new:
        return error_response('Không tìm thấy công việc.', 404)
    _notify_assignee(old, new)
    return jsonify({'success': True, 'task': new})


@event_tasks_bp.route('/api/tasks/<int:task_id>', methods=['DELETE'])
@permission_required('tasks:delete')
@handle_api_errors
def api_delete_task(task_id):
    if not _repo.delete(task_id):
        return error_response('Không tìm thấy công việc.', 404)
    return jsonify({'success': True})
