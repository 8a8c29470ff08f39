"""Abitstore Zalo messaging proxy client."""

import logging

from .http_client import BaseHttpClient

logger = logging.getLogger('hsaps.core.integrations.abitstore')

REQUEST_FAILED_MESSAGE = 'Yêu cầu đến Abitstore thất bại.'


class AbitstoreClient(BaseHttpClient):
    """POSTs a message request to the operator-configured Abitstore URL."""

    provider = 'Abitstore'

    def _error_message(self, resp):
        body = self._body_or_text(resp)
        if isinstance(body, dict):
            return body.get('message') or REQUEST_FAILED_MESSAGE
        return body or REQUEST_FAILED_MESSAGE

    def send_message(self, api_url, send_from_number, send_to_number, message, action=None):
        """Send a message; returns the raw response text."""
        resp = self._request('POST', api_url, json={
            'send_from_number': send_from_number,
            'send_to_number': send_to_number,
            'message': message,
            'action': action or '',
        })
        logger.info(f'Abitstore message sent: to={send_to_number}')
        return resp.text
