"""Program schedule API routes.

A slot's `time` is stored as "start - end", or just "start" when there is no
end. Picking a speaker fills in the report titles that were left empty.
"""
from flask import jsonify, request

from . import program_bp
from .repositories import ProgramRepository
from speakers.repositories import SpeakerRepository
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
)
from core.utils.listing import ListQuery

_repo = ProgramRepository()
_speaker_repo = SpeakerRepository()

PAGE_SIZE = 20


def compose_time(start_time, end_time):
    start_time = (start_time or '').strip()
    end_time = (end_time or '').strip()
    if end_time:
        return f'{start_time} - {end_time}'.strip()
    return start_time


def split_time(value):
    """'08:00 - 09:30' -> ('08:00', '09:30'); '08:00' -> ('08:00', '')."""
    parts = (value or '').split(' - ', 1)
    return parts[0], (parts[1] if len(parts) > 1 else '')


def _with_times(item):
    item['start_time'], item['end_time'] = split_time(item.get('time'))
    return item


def _build_payload(data):
    payload = {}
    for key in ('date', 'session', 'category', 'report_title_vn', 'report_title_en'):
        if key in data:
            value = data[key]
            payload[key] = value.strip() if isinstance(value, str) else value
    if 'start_time' in data or 'end_time' in data:
        payload['time'] = compose_time(data.get('start_time'), data.get('end_time'))
    elif 'time' in data:
        payload['time'] = (data['time'] or '').strip()

    if 'speaker_id' in data:
        speaker_id = data['speaker_id']
        payload['speaker_id'] = int(speaker_id) if speaker_id not in (None, '') else None
        if payload['speaker_id']:
            speaker = _speaker_repo.get_by_id(payload['speaker_id'])
            if not speaker:
                raise ValueError('Không tìm thấy báo cáo viên.')
            for key in ('report_title_vn', 'report_title_en'):
                if not payload.get(key):
                    payload[key] = speaker.get(key) or ''
    return payload


@program_bp.route('/api/program', methods=['GET'])
@permission_required('program:view')
@handle_api_errors
def api_list_program():
    query = ListQuery.from_args(request.args, filter_keys=('date', 'category'), page_size=PAGE_SIZE)
    rows, total = _repo.list_items(query)
    body = query.envelope([_with_times(r) for r in rows], total, key='items')
    body['success'] = True
    return jsonify(body)


@program_bp.route('/api/program/speakers', methods=['GET'])
@permission_required('program:view')
def api_program_speakers():
    """Speaker picker options with their report titles."""
    return jsonify({'success': True, 'speakers': _speaker_repo.get_options()})


@program_bp.route('/api/program', methods=['POST'])
@permission_required('program:create')
@handle_api_errors
def api_create_program_item():
    data, error = get_json_or_error()
    if error:
        return error
    payload = _build_payload(data)
    if not payload.get('date'):
        return error_response('Ngày không được để trống.')
    return jsonify({'success': True, 'item': _with_times(_repo.create(payload))}), 201


@program_bp.route('/api/program/<int:item_id>', methods=['PUT'])
@permission_required('program:edit')
@handle_api_errors
def api_update_program_item(item_id):
    data, error = get_json_or_error()
    if error:
        return error
    item = _repo.update(item_id, _build_payload(data))
    if not item:
        return error_response('Không tìm thấy mục chương trình.', 404)
    return jsonify({'success': True, 'item': _with_times(item)})


@program_bp.route('/api/program/<int:item_id>', methods=['DELETE'])
@permission_required('program:delete')
@handle_api_errors
def api_delete_program_item(item_id):
    if not _repo.delete(item_id):
        return error_response('Không tìm thấy mục chương trình.', 404)
    return jsonify({'success': True})
