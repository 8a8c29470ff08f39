"""Bulk email sending.

Recipients are sent in batches of RESEND_BATCH_SIZE through Resend's batch
endpoint, with {{name}} and {{email}} substituted per recipient. A failing
batch does not stop the remaining ones; the failures are aggregated into one
error at the end.
"""
import logging

from core.integrations.config import RESEND_BATCH_SIZE
from core.integrations.exceptions import IntegrationError
from core.integrations.resend_client import ResendClient
from core.roles.permissions import has_permission
from core.settings.services import MessagingService
from core.utils.service_result import ServiceResult

logger = logging.getLogger('hsaps.bulk_email.service')

BULK_PERMISSION = 'email:send_bulk'
PERMISSION_ERROR = "User does not have 'email:send_bulk' permission."
SENDER_MISSING_MESSAGE = 'Tên và email người gửi chưa được cấu hình trong Cài đặt.'
FIELDS_MISSING_MESSAGE = 'Thiếu các trường bắt buộc: recipients (mảng), subject, html.'


def personalize(html, recipient):
    return html.replace('{{name}}', recipient.name or '').replace('{{email}}', recipient.email)


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BulkEmailService:

    def __init__(self, messaging=None, resend_client=None, batch_size=RESEND_BATCH_SIZE):
        self.messaging = messaging or MessagingService()
        self._resend = resend_client
        self.batch_size = batch_size

    def _client(self):
        if self._resend is None:
            self._resend = ResendClient()
        return self._resend

    def send(self, user, recipients, subject, html) -> ServiceResult:
        """Permission check, sender lookup, then one provider call per batch."""
        if not has_permission(user.role, user.permissions, BULK_PERMISSION):
            logger.info(f'Bulk email denied for user {user.id}')
            return ServiceResult(success=False, error=PERMISSION_ERROR, status_code=403)

        from_address = self.messaging.sender_address()
        if not from_address:
            return ServiceResult(success=False, error=SENDER_MISSING_MESSAGE, status_code=500)
        if not recipients or not subject or not html:
            return ServiceResult(success=False, error=FIELDS_MISSING_MESSAGE, status_code=400)

        sent = 0
        errors = []
        for index, batch in enumerate(chunked(recipients, self.batch_size), start=1):
            payloads = [{
                'from': from_address,
                'to': [r.email],
                'subject': subject,
                'html': personalize(html, r),
            } for r in batch]
            try:
                self._client().send_batch(payloads)
            except IntegrationError as e:
                logger.error(f'Bulk email batch {index} failed: {e.message}')
                errors.append(e.message or f'Gửi lô {index} thất bại.')
                continue
            sent += len(batch)

        if errors:
            return ServiceResult(
                success=False, status_code=500,
                error=f'Hoàn thành với lỗi. Đã gửi: {sent}/{len(recipients)}. Lỗi: {", ".join(errors)}')
        logger.info(f'Bulk email sent by user {user.id}: {sent} recipients')
        return ServiceResult(success=True, data={
            'message': f'Đã đưa {len(recipients)} email vào hàng đợi để gửi thành công.',
        })
