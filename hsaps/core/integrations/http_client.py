"""Shared requests-based client for the integration providers.

Connection failures are retried with a linear backoff. Timeouts on POST are
not retried: the provider may already have accepted the message.
"""

import logging
import time

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import REQUEST_TIMEOUT, MAX_RETRIES, RETRY_BASE_DELAY
from .exceptions import NetworkError, TimeoutError, APIError, ParseError

logger = logging.getLogger('hsaps.core.integrations.http')


class BaseHttpClient:
    """requests.Session wrapper with retry and error mapping."""

    provider = 'provider'

    def __init__(self, timeout=REQUEST_TIMEOUT, max_retries=MAX_RETRIES):
        self.timeout = timeout
        self.max_retries = max_retries
        self._session = self._build_session()

    def _build_session(self):
        """Session that retries gateway errors on idempotent methods only."""
        session = requests.Session()
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=RETRY_BASE_DELAY,
            status_forcelist=[502, 503, 504],
            allowed_methods=['HEAD', 'GET'],
            raise_on_status=False,
        )
        session.mount('https://', HTTPAdapter(max_retries=retry_strategy))
        return session

    def _request(self, method, url, **kwargs):
        """Send a request; returns the response for 2xx, raises otherwise."""
        for attempt in range(self.max_retries):
            try:
                resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.exceptions.Timeout:
                if method.upper() == 'GET' and attempt < self.max_retries - 1:
                    time.sleep(RETRY_BASE_DELAY * (attempt + 1))
                    continue
                raise TimeoutError(f'{self.provider}: request timed out')
            except requests.exceptions.ConnectionError as e:
                if attempt < self.max_retries - 1:
                    logger.warning(f'{self.provider} connection error (attempt {attempt + 1}): {e}')
                    time.sleep(RETRY_BASE_DELAY * (attempt + 1))
                    continue
                raise NetworkError(f'{self.provider}: connection error: {e}')

            if resp.status_code >= 400:
                raise APIError(self._error_message(resp), status_code=resp.status_code)
            return resp

        raise NetworkError(f'{self.provider}: max retries exceeded')

    def _error_message(self, resp):
        """Provider error text; subclasses pick the field the provider uses."""
        body = self._body_or_text(resp)
        if isinstance(body, dict):
            return body.get('message') or f'HTTP {resp.status_code}'
        return body or f'HTTP {resp.status_code}'

    def _body_or_text(self, resp):
        try:
            return resp.json()
        except (ValueError, TypeError):
            return resp.text

    def _parse_json(self, resp):
        """Parse JSON response, raise ParseError on failure."""
        try:
            return resp.json()
        except (ValueError, TypeError) as e:
            raise ParseError(f'{self.provider}: invalid JSON response: {e}')

    def close(self):
        if self._session:
            self._session.close()
