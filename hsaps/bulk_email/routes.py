"""Bulk email API routes.

The send endpoint only requires a login; the email:send_bulk check happens
in BulkEmailService so the denial carries the provider-style error text.
"""
from flask import jsonify, request
from flask_login import current_user

from . import bulk_email_bp
from .recipients import (
    RecipientError, parse_csv, parse_manual, from_payload, predefined_list, PREDEFINED_LISTS,
)
from .service import BulkEmailService
from core.utils.api_helpers import (
    api_login_required, permission_required, error_response, get_json_or_error, message_response,
)
from speakers.repositories import SpeakerRepository
from submissions.repositories import SubmissionRepository

_service = BulkEmailService()
_submission_repo = SubmissionRepository()
_speaker_repo = SpeakerRepository()


def _recipients_response(recipients):
    return jsonify({
        'success': True,
        'count': len(recipients),
        'recipients': [r.to_dict() for r in recipients],
    })


@bulk_email_bp.route('/api/bulk-email/lists', methods=['GET'])
@permission_required('email:send_bulk')
def api_list_names():
    return jsonify({'success': True, 'lists': list(PREDEFINED_LISTS)})


@bulk_email_bp.route('/api/bulk-email/lists/<list_name>', methods=['GET'])
@permission_required('email:send_bulk')
def api_list_recipients(list_name):
    try:
        recipients = predefined_list(list_name, _submission_repo, _speaker_repo)
    except RecipientError as e:
        return error_response(str(e), 404)
    return _recipients_response(recipients)


@bulk_email_bp.route('/api/bulk-email/recipients/csv', methods=['POST'])
@permission_required('email:send_bulk')
def api_parse_csv():
    file = request.files.get('file')
    if not file:
        return error_response('Không có tệp được tải lên.')
    try:
        recipients = parse_csv(file.read().decode('utf-8-sig', errors='replace'))
    except RecipientError as e:
        return error_response(str(e))
    return _recipients_response(recipients)


@bulk_email_bp.route('/api/bulk-email/recipients/manual', methods=['POST'])
@permission_required('email:send_bulk')
def api_parse_manual():
    data, error = get_json_or_error()
    if error:
        return error
    return _recipients_response(parse_manual(data.get('text')))


@bulk_email_bp.route('/api/bulk-email/send', methods=['POST'])
@api_login_required
def api_send_bulk():
    """Body: {subject, html} plus one source: {list}, {text} or {recipients: [{email, name}]}."""
    data, error = get_json_or_error()
    if error:
        return error
    try:
        if data.get('list'):
            recipients = predefined_list(data['list'], _submission_repo, _speaker_repo)
        elif data.get('text') is not None:
            recipients = parse_manual(data['text'])
        else:
            recipients = from_payload(data.get('recipients'))
    except RecipientError as e:
        return jsonify({'error': str(e)}), 400
    return message_response(_service.send(current_user, recipients, data.get('subject'), data.get('html')))