"""OneSignal web push.

`PushService` is constructed once in app.py and stored as
`app.extensions['push']`. `init()` returns the ready `PushHandle`; calling it
again returns the same handle.

Device association lives in OneSignal under the external user id, so every
recipient is targeted. The handle only remembers ids that logged out on this
process (login clears the mark) and leaves those out.
"""

import logging
import threading
from urllib.parse import urlparse

from .config import ONESIGNAL_API_URL, onesignal_credentials
from .exceptions import ConfigurationError
from .http_client import BaseHttpClient

logger = logging.getLogger('hsaps.core.integrations.push')

DEFAULT_TITLE = 'HSAPS 2025'


class OneSignalClient(BaseHttpClient):

    provider = 'OneSignal'

    def __init__(self, app_id, rest_api_key, **kwargs):
        super().__init__(**kwargs)
        self.app_id = app_id
        self.rest_api_key = rest_api_key

    def _error_message(self, resp):
        body = self._body_or_text(resp)
        if isinstance(body, dict) and body.get('errors'):
            detail = body['errors']
        elif isinstance(body, str) and body:
            detail = body
        else:
            detail = f'Yêu cầu đến OneSignal thất bại với mã trạng thái {resp.status_code}.'
        return f'Lỗi từ OneSignal: {detail}'

    def send(self, external_user_ids, title, message, url=None):
        payload = {
            'app_id': self.app_id,
            'include_external_user_ids': [str(uid) for uid in external_user_ids],
            'channel_for_external_user_ids': 'push',
            'isAnyWeb': True,
            'headings': {'en': title},
            'contents': {'en': message},
            'url': url,
        }
        resp = self._request('POST', ONESIGNAL_API_URL, json=payload, headers={
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.rest_api_key}',
        })
        return self._parse_json(resp)


class PushHandle:
    """Ready-to-use push handle returned by PushService.init()."""

    def __init__(self, client=None, base_url=''):
        self._client = client
        self.base_url = base_url.rstrip('/')
        self._lock = threading.Lock()
        self._logged_out = set()

    @property
    def enabled(self):
        return self._client is not None

    def login(self, user_id):
        with self._lock:
            self._logged_out.discard(user_id)
        logger.debug(f'Push external id associated: {user_id}')

    def logout(self, user_id):
        with self._lock:
            self._logged_out.add(user_id)
        logger.debug(f'Push external id removed: {user_id}')

    def is_associated(self, user_id):
        with self._lock:
            return user_id not in self._logged_out

    def click_url(self, link):
        """Absolute URL opened when the push is clicked; the in-app path rides in the fragment."""
        if not link:
            return None
        return f'{self.base_url}/#{link}'

    def send(self, user_ids, message, link=None, title=DEFAULT_TITLE):
        """Push to user_ids except those logged out here. Returns the targeted ids."""
        if not self.enabled:
            return []
        with self._lock:
            targets = [uid for uid in user_ids if uid not in self._logged_out]
        if not targets:
            return []
        self._client.send(targets, title, message, url=self.click_url(link))
        logger.info(f'Push sent to {len(targets)} users')
        return targets


class PushService:

    def __init__(self, app_id=None, rest_api_key=None, base_url=''):
        env_app_id, env_key = onesignal_credentials()
        self.app_id = app_id or env_app_id
        self.rest_api_key = rest_api_key or env_key
        self.base_url = base_url
        self._handle = None
        self._lock = threading.Lock()

    @property
    def configured(self):
        return bool(self.app_id and self.rest_api_key)

    def init(self) -> PushHandle:
        """Create the handle once. Unconfigured services return a disabled handle."""
        with self._lock:
            if self._handle is None:
                client = None
                if self.configured:
                    client = OneSignalClient(self.app_id, self.rest_api_key)
                    logger.info('Push service initialized')
                else:
                    logger.info('Push service disabled: ONESIGNAL_APP_ID/ONESIGNAL_REST_API_KEY not set')
                self._handle = PushHandle(client, base_url=self.base_url)
            return self._handle

    def require_handle(self) -> PushHandle:
        handle = self.init()
        if not handle.enabled:
            raise ConfigurationError('OneSignal App ID hoặc REST API Key chưa được cấu hình.')
        return handle


def path_from_click_url(url):
    """In-app path carried in a click URL fragment, or None."""
    if not url:
        return None
    try:
        fragment = urlparse(url).fragment
    except ValueError:
        logger.warning(f'Unparseable push click URL: {url}')
        return None
    return fragment or None
