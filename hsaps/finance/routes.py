"""Finance API routes: ledger list with summary, create/update/delete."""
from datetime import date

from flask import jsonify, request
from flask_login import current_user

from . import finance_bp
from .repositories import TransactionRepository
from .repositories.transaction_repository import (
    TRANSACTION_FIELDS, TRANSACTION_TYPES, ACCOUNTS, PAYMENT_METHODS, TYPE_EXPENSE,
)
from core.utils.api_helpers import (
    permission_required, error_response, get_json_or_error, handle_api_errors,
)
from core.utils.listing import ListQuery

_repo = TransactionRepository()

PAGE_SIZE = 20


def _clean(data):
    cleaned = {}
    for key in TRANSACTION_FIELDS:
        if key in data:
            value = data[key]
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value
    if cleaned.get('type') and cleaned['type'] not in TRANSACTION_TYPES:
        raise ValueError(f'Loại giao dịch không hợp lệ: {cleaned["type"]}')
    if cleaned.get('account') and cleaned['account'] not in ACCOUNTS:
        raise ValueError(f'Tài khoản không hợp lệ: {cleaned["account"]}')
    if cleaned.get('payment_method') and cleaned['payment_method'] not in PAYMENT_METHODS:
        raise ValueError(f'Phương thức thanh toán không hợp lệ: {cleaned["payment_method"]}')
    if 'amount' in cleaned:
        try:
            cleaned['amount'] = float(cleaned['amount'] or 0)
        except (TypeError, ValueError):
            raise ValueError('Số tiền không hợp lệ.')
    return cleaned


@finance_bp.route('/api/finance/transactions', methods=['GET'])
@permission_required('finance:view')
@handle_api_errors
def api_list_transactions():
    query = ListQuery.from_args(request.args, filter_keys=('type', 'account'), page_size=PAGE_SIZE)
    rows, total = _repo.list_transactions(query)
    body = query.envelope(rows, total, key='transactions')
    body['success'] = True
    body['summary'] = _repo.summary(query)
    return jsonify(body)


@finance_bp.route('/api/finance/summary', methods=['GET'])
@permission_required('finance:view')
@handle_api_errors
def api_finance_summary():
    query = ListQuery.from_args(request.args, filter_keys=('account',))
    return jsonify({'success': True, 'summary': _repo.summary(query)})


@finance_bp.route('/api/finance/transactions/<int:transaction_id>', methods=['GET'])
@permission_required('finance:view')
def api_get_transaction(transaction_id):
    transaction = _repo.get_by_id(transaction_id)
    if not transaction:
        return error_response('Không tìm thấy giao dịch.', 404)
    return jsonify({'success': True, 'transaction': transaction})


@finance_bp.route('/api/finance/transactions', methods=['POST'])
@permission_required('finance:create')
@handle_api_errors
def api_create_transaction():
    data, error = get_json_or_error()
    if error:
        return error
    payload = {
        'type': TYPE_EXPENSE,
        'amount': 0,
        'transaction_date': date.today().isoformat(),
        'payment_method': 'Chuyển khoản',
        'account': 'TK Hội Nghị',
        'handler_id': current_user.id,
    }
    payload.update({k: v for k, v in _clean(data).items() if v is not None})
    if not payload.get('title'):
        return error_response('Nội dung giao dịch không được để trống.')
    return jsonify({'success': True, 'transaction': _repo.create(payload)}), 201


@finance_bp.route('/api/finance/transactions/<int:transaction_id>', methods=['PUT'])
@permission_required('finance:edit')
@handle_api_errors
def api_update_transaction(transaction_id):
    data, error = get_json_or_error()
    if error:
        return error
    payload = _clean(data)
    if 'title' in payload and not payload['title']:
        return error_response('Nội dung giao dịch không được để trống.')
    transaction = _repo.update(transaction_id, payload)
    if not transaction:
        return error_response('Không tìm thấy giao dịch.', 404)
    return jsonify({'success': True, 'transaction': transaction})


@finance_bp.route('/api/finance/transactions/<int:transaction_id>', methods=['DELETE'])
@permission_required('finance:delete')
@handle_api_errors
def api_delete_transaction(transaction_id):
    if not _repo.delete(transaction_id):
        return error_response('Không tìm thấy giao dịch.', 404)
    return jsonify({'success': True})
