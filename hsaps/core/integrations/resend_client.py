"""Resend email API client (single send and batch send)."""

import logging

from .config import RESEND_API_URL, RESEND_BATCH_SIZE, resend_api_key
from .exceptions import ConfigurationError
from .http_client import BaseHttpClient

logger = logging.getLogger('hsaps.core.integrations.resend')


def format_sender(sender_name, sender_email):
    return f'{sender_name} <{sender_email}>'


class ResendClient(BaseHttpClient):
    """POST /emails and POST /emails/batch with a Bearer API key."""

    provider = 'Resend'
    batch_size = RESEND_BATCH_SIZE

    def __init__(self, api_key=None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key or resend_api_key()

    def _headers(self):
        if not self.api_key:
            raise ConfigurationError('RESEND_API_KEY chưa được thiết lập.')
        return {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.api_key}',
        }

    def send_email(self, from_address, to, subject, html):
        """Send one email. Returns the provider response body."""
        resp = self._request('POST', f'{RESEND_API_URL}/emails', headers=self._headers(), json={
            'from': from_address,
            'to': to,
            'subject': subject,
            'html': html,
        })
        logger.info(f'Resend email sent: to={to}')
        return self._parse_json(resp)

    def send_batch(self, payloads):
        """Send up to `batch_size` prepared email payloads in one call."""
        if len(payloads) > self.batch_size:
            raise ValueError(f'Batch exceeds {self.batch_size} emails')
        resp = self._request('POST', f'{RESEND_API_URL}/emails/batch',
                             headers=self._headers(), json=payloads)
        return self._parse_json(resp)
