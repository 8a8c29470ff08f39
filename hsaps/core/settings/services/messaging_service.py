"""Messaging actions that depend on system settings.

send_email      single email through Resend, sender from settings
send_template   render a stored template for a record, then send_email
refresh_zalo_token  client-credentials grant, token saved to settings
send_abitstore  proxy a message to the configured Abitstore URL

Every action returns a ServiceResult; on failure `error` carries the
provider text verbatim.
"""

import logging

from core.integrations.abitstore_client import AbitstoreClient
from core.integrations.exceptions import IntegrationError
from core.integrations.resend_client import ResendClient, format_sender
from core.integrations.zalo_client import ZaloOAClient
from core.utils.service_result import ServiceResult
from ..repositories import SettingsRepository, EmailTemplateRepository
from .templates import render_template_text, to_html

logger = logging.getLogger('hsaps.core.settings.messaging')

SENDER_MISSING_MESSAGE = ("Thông tin 'Tên người gửi' và 'Email người gửi' chưa được cấu hình "
                          "trong Cài đặt Email.")
EMAIL_FIELDS_MISSING_MESSAGE = 'Thiếu thông tin người nhận, tiêu đề hoặc nội dung email.'
ZALO_MISSING_MESSAGE = 'Zalo OA ID and Secret Key are not configured in the settings.'
ABITSTORE_URL_MISSING_MESSAGE = 'URL API Abitstore chưa được cấu hình trong Cài đặt.'
ABITSTORE_PARAMS_MISSING_MESSAGE = 'Thiếu các tham số bắt buộc: SĐT gửi, SĐT nhận, và nội dung tin nhắn.'


def _failure(message, status_code=500):
    return ServiceResult(success=False, error=message, status_code=status_code)


class MessagingService:

    def __init__(self, settings_repo=None, template_repo=None,
                 resend_client=None, zalo_client=None, abitstore_client=None):
        self._settings = settings_repo or SettingsRepository()
        self._templates = template_repo or EmailTemplateRepository()
        self._resend = resend_client
        self._zalo = zalo_client
        self._abitstore = abitstore_client

    # Clients are created on first use so a missing API key only fails the action.
    def _resend_client(self):
        if self._resend is None:
            self._resend = ResendClient()
        return self._resend

    def _zalo_client(self):
        if self._zalo is None:
            self._zalo = ZaloOAClient()
        return self._zalo

    def _abitstore_client(self):
        if self._abitstore is None:
            self._abitstore = AbitstoreClient()
        return self._abitstore

    def sender_address(self):
        """'Name <email>' from settings, or None when either part is missing."""
        settings = self._settings.get()
        if not settings.get('sender_name') or not settings.get('sender_email'):
            return None
        return format_sender(settings['sender_name'], settings['sender_email'])

    def send_email(self, to, subject, html) -> ServiceResult:
        from_address = self.sender_address()
        if not from_address:
            return _failure(SENDER_MISSING_MESSAGE)
        if not to or not subject or not html:
            return _failure(EMAIL_FIELDS_MISSING_MESSAGE, 400)
        try:
            self._resend_client().send_email(from_address, to, subject, html)
        except IntegrationError as e:
            logger.error(f'Send email failed: to={to} error={e.message}')
            return _failure(e.message or 'Gửi email qua Resend thất bại.')
        return ServiceResult(success=True, data={'message': 'Email đã được gửi thành công qua Resend!'})

    def send_template(self, template_id, to, variables) -> ServiceResult:
        """Render a stored template (by id or name) with `variables` and send it."""
        if isinstance(template_id, int):
            template = self._templates.get_by_id(template_id)
        else:
            template = self._templates.get_by_name(template_id)
        if not template:
            return _failure('Không tìm thấy mẫu email.', 404)
        body = render_template_text(template.get('body'), variables)
        subject = render_template_text(template.get('subject'), variables)
        return self.send_email(to, subject, to_html(body))

    def send_composed(self, to, subject, body, variables) -> ServiceResult:
        """Send a hand-edited subject/body for one record; only the body is rendered."""
        if not to:
            return _failure('Không tìm thấy email người nhận.', 400)
        rendered = render_template_text(body, variables)
        return self.send_email(to, subject, to_html(rendered))

    def refresh_zalo_token(self) -> ServiceResult:
        settings = self._settings.get()
        oa_id = settings.get('oa_id')
        secret_key = settings.get('oa_secret_key')
        if not oa_id or not secret_key:
            return _failure(ZALO_MISSING_MESSAGE)
        try:
            token = self._zalo_client().fetch_access_token(oa_id, secret_key)
        except IntegrationError as e:
            logger.error(f'Zalo token refresh failed: {e.message}')
            return _failure(e.message)
        try:
            self._settings.save_access_token(token)
        except Exception as e:
            logger.error(f'Failed to save Zalo access token: {e}')
            return _failure('Failed to save the new Zalo access token to the database.')
        logger.info('Zalo access token refreshed')
        return ServiceResult(success=True,
                             data={'message': 'Zalo access token refreshed and updated successfully.'})

    def send_abitstore(self, send_from_number, send_to_number, message, action=None) -> ServiceResult:
        api_url = self._settings.get().get('abitstore_api_url')
        if not api_url:
            return _failure(ABITSTORE_URL_MISSING_MESSAGE)
        if not send_from_number or not send_to_number or not message:
            return _failure(ABITSTORE_PARAMS_MISSING_MESSAGE, 400)
        try:
            text = self._abitstore_client().send_message(
                api_url, send_from_number, send_to_number, message, action)
        except IntegrationError as e:
            logger.error(f'Abitstore send failed: {e.message}')
            return _failure(e.message)
        return ServiceResult(success=True, data={
            'message': 'Yêu cầu gửi tin nhắn đã được gửi đến Abitstore thành công.',
            'apiResponse': text,
        })
