"""Sponsors API routes.

Reaching 'Đã thanh toán' (on create or on edit) notifies every Admin.
"""
import logging

from flask import jsonify, request

from . import sponsors_bp
from .repositories import SponsorRepository
from .repositories.sponsor_repository import SPONSOR_FIELDS, SPONSORSHIP_PACKAGES
from core.notifications import notify
from core.status import Status, parse_status
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
)
from core.utils.listing import ListQuery

logger = logging.getLogger('hsaps.sponsors.routes')

_repo = SponsorRepository()

PAGE_SIZE = 20
NAME_REQUIRED_MESSAGE = 'Tên nhà tài trợ không được để trống.'


def _clean(data):
    cleaned = {k: data[k] for k in SPONSOR_FIELDS if k in data}
    for key, value in cleaned.items():
        if isinstance(value, str):
            cleaned[key] = value.strip()
    if 'status' in cleaned:
        cleaned['status'] = parse_status('sponsor', cleaned['status']).value
    if cleaned.get('sponsorship_package') and cleaned['sponsorship_package'] not in SPONSORSHIP_PACKAGES:
        raise ValueError(f'Gói tài trợ không hợp lệ: {cleaned["sponsorship_package"]}')
    if 'amount' in cleaned:
        try:
            cleaned['amount'] = float(cleaned['amount'] or 0)
        except (TypeError, ValueError):
            raise ValueError('Số tiền tài trợ không hợp lệ.')
    return cleaned


def _notify_if_paid(old, new):
    paid = Status.PAYMENT_CONFIRMED.value
    if new and new.get('status') == paid and (not old or old.get('status') != paid):
        notify.notify_admins(f'Nhà tài trợ "{new["name"]}" đã xác nhận thanh toán.', link='/sponsors')


@sponsors_bp.route('/api/sponsors', methods=['GET'])
@permission_required('sponsors:view')
@handle_api_errors
def api_list_sponsors():
    query = ListQuery.from_args(request.args, filter_keys=('status',), page_size=PAGE_SIZE)
    rows, total = _repo.list_sponsors(query)
    body = query.envelope(rows, total, key='sponsors')
    body['success'] = True
    return jsonify(body)


@sponsors_bp.route('/api/sponsors/<int:sponsor_id>', methods=['GET'])
@permission_required('sponsors:view')
def api_get_sponsor(sponsor_id):
    sponsor = _repo.get_by_id(sponsor_id)
    if not sponsor:
        return error_response('Không tìm thấy nhà tài trợ.', 404)
    return jsonify({'success': True, 'sponsor': sponsor})


@sponsors_bp.route('/api/sponsors', methods=['POST'])
@permission_required('sponsors:create')
@handle_api_errors
def api_create_sponsor():
    data, error = get_json_or_error()
    if error:
        return error
    payload = {
        'sponsorship_package': 'Đồng',
        'status': Status.PENDING.value,
        'amount': 0,
    }
    payload.update(_clean(data))
    if not payload.get('name'):
        return error_response(NAME_REQUIRED_MESSAGE)

    sponsor = _repo.create(payload)
    logger.info(f'Sponsor created: id={sponsor["id"]}')
    _notify_if_paid(None, sponsor)
    return jsonify({'success': True, 'sponsor': sponsor}), 201


@sponsors_bp.route('/api/sponsors/<int:sponsor_id>', methods=['PUT'])
@permission_required('sponsors:edit')
@handle_api_errors
def api_update_sponsor(sponsor_id):
    data, error = get_json_or_error()
    if error:
        return error
    payload = _clean(data)
    if 'name' in payload and not payload['name']:
        return error_response(NAME_REQUIRED_MESSAGE)

    old, new = _repo.update(sponsor_id, payload)
    if not new:
        return error_response('Không tìm thấy nhà tài trợ.', 404)
    _notify_if_paid(old, new)
    return jsonify({'success': True, 'sponsor': new})


@sponsors_bp.route('/api/sponsors/<int:sponsor_id>', methods=['DELETE'])
@permission_required('sponsors:delete')
@handle_api_errors
def api_delete_sponsor(sponsor_id):
    if not _repo.delete(sponsor_id):
        return error_response('Không tìm thấy nhà tài trợ.', 404)
    return jsonify({'success': True})
