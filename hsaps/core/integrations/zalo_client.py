"""Zalo Official Account OAuth client."""

import logging

from .config import ZALO_TOKEN_URL
from .exceptions import APIError
from .http_client import BaseHttpClient

logger = logging.getLogger('hsaps.core.integrations.zalo')

TOKEN_ERROR_MESSAGE = 'Failed to fetch access token from Zalo.'


class ZaloOAClient(BaseHttpClient):
    """Client-credentials grant against the Zalo OA token endpoint."""

    provider = 'Zalo'

    def _error_message(self, resp):
        body = self._body_or_text(resp)
        if isinstance(body, dict):
            return body.get('error_description') or TOKEN_ERROR_MESSAGE
        return TOKEN_ERROR_MESSAGE

    def fetch_access_token(self, oa_id, secret_key):
        """Return a fresh access token. Raises APIError with the provider description."""
        resp = self._request(
            'POST', ZALO_TOKEN_URL,
            headers={'secret_key': secret_key},
            data={'app_id': oa_id, 'grant_type': 'client_credentials'},
        )
        body = self._parse_json(resp)
        token = body.get('access_token')
        if not token:
            raise APIError(body.get('error_description') or TOKEN_ERROR_MESSAGE,
                           status_code=resp.status_code)
        logger.info('Zalo access token fetched')
        return token
