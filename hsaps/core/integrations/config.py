"""Integration endpoints and request tuning."""
import os

REQUEST_TIMEOUT = int(os.environ.get('INTEGRATION_TIMEOUT', '30'))
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1  # seconds

RESEND_API_URL = 'https://api.resend.com'
RESEND_BATCH_SIZE = 100

ZALO_TOKEN_URL = 'https://oauth.zaloapp.com/v4/oa/access_token'

ONESIGNAL_API_URL = 'https://onesignal.com/api/v1/notifications'


def resend_api_key():
    return os.environ.get('RESEND_API_KEY')


def onesignal_credentials():
    return os.environ.get('ONESIGNAL_APP_ID'), os.environ.get('ONESIGNAL_REST_API_KEY')
