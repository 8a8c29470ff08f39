"""HSAPS Core Settings Routes.

Email sender, Zalo OA and Abitstore configuration, email templates and the
messaging test actions. Viewing requires settings:view, changing requires
settings:edit.
"""
from flask import jsonify, request

from . import settings_bp
from .repositories import SettingsRepository, EmailTemplateRepository
from .repositories.email_template_repository import TEMPLATE_MODULES
from .services import MessagingService
from core.utils.api_helpers import (
    permission_required, error_response, safe_error_response, get_json_or_error, message_response,
)

_settings_repo = SettingsRepository()
_template_repo = EmailTemplateRepository()
_messaging = MessagingService(settings_repo=_settings_repo, template_repo=_template_repo)

_SECTIONS = {
    'email': ('sender_name', 'sender_email'),
    'zalo': ('oa_id', 'oa_secret_key', 'access_token'),
    'abitstore': ('abitstore_api_url',),
}


def _public_settings(row):
    """Settings row without the Zalo secret."""
    result = {key: row.get(key) for fields in _SECTIONS.values() for key in fields}
    result['oa_secret_key_set'] = bool(row.get('oa_secret_key'))
    result.pop('oa_secret_key', None)
    return result


# ============== SYSTEM SETTINGS ==============

@settings_bp.route('/api/settings', methods=['GET'])
@permission_required('settings:view')
def api_get_settings():
    return jsonify({'success': True, 'settings': _public_settings(_settings_repo.get())})


@settings_bp.route('/api/settings/<section>', methods=['PUT'])
@permission_required('settings:edit')
def api_save_settings(section):
    """Save one settings section (email, zalo or abitstore)."""
    fields = _SECTIONS.get(section)
    if not fields:
        return error_response('Not found', 404)
    data, error = get_json_or_error()
    if error:
        return error

    values = {key: (data.get(key) or '').strip() for key in fields if key in data}
    if section == 'zalo' and not values.get('oa_secret_key'):
        # Blank secret keeps the stored one
        values.pop('oa_secret_key', None)
    try:
        row = _settings_repo.update(**values)
    except Exception as e:
        return safe_error_response(e)
    return jsonify({'success': True, 'settings': _public_settings(row or {})})


# ============== EMAIL TEMPLATES ==============

@settings_bp.route('/api/email-templates', methods=['GET'])
@permission_required('settings:view')
def api_get_templates():
    module = request.args.get('module')
    if module and module not in TEMPLATE_MODULES:
        return error_response(f'Module không hợp lệ: {module}')
    return jsonify({'success': True, 'templates': _template_repo.get_all(module)})


@settings_bp.route('/api/email-templates/<int:template_id>', methods=['PUT'])
@permission_required('settings:edit')
def api_update_template(template_id):
    data, error = get_json_or_error()
    if error:
        return error
    subject = data.get('subject')
    body = data.get('body')
    if not subject or body is None:
        return error_response('Tiêu đề và nội dung mẫu không được để trống.')
    template = _template_repo.update(template_id, subject, body)
    if not template:
        return error_response('Không tìm thấy mẫu email.', 404)
    return jsonify({'success': True, 'template': template})


# ============== MESSAGING ACTIONS ==============

@settings_bp.route('/api/settings/email/test', methods=['POST'])
@permission_required('settings:edit')
def api_send_test_email():
    data, error = get_json_or_error()
    if error:
        return error
    result = _messaging.send_email(data.get('to'), data.get('subject'), data.get('html'))
    return message_response(result)


@settings_bp.route('/api/settings/zalo/refresh-token', methods=['POST'])
@permission_required('settings:edit')
def api_refresh_zalo_token():
    return message_response(_messaging.refresh_zalo_token())


@settings_bp.route('/api/settings/abitstore/test', methods=['POST'])
@permission_required('settings:edit')
def api_send_abitstore():
    data, error = get_json_or_error()
    if error:
        return error
    result = _messaging.send_abitstore(
        data.get('send_from_number'),
        data.get('send_to_number'),
        data.get('message'),
        data.get('action'),
    )
    return message_response(result)

