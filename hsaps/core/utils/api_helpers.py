"""Shared API utilities: decorators, error helpers, rate limiter, request validation."""
import time
import logging
from collections import defaultdict
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

logger = logging.getLogger('hsaps.api')

PERMISSION_DENIED_MESSAGE = 'Bạn không có quyền thực hiện hành động này.'
SESSION_LOADING_MESSAGE = 'Phiên đăng nhập đang được tải, vui lòng thử lại.'


def _session_gate():
    """401 when unauthenticated, 503 while the session is still loading, else None."""
    if not current_user.is_authenticated:
        return jsonify({'success': False, 'error': 'Authentication required'}), 401
    if getattr(current_user, 'is_loading', False):
        return jsonify({'success': False, 'loading': True, 'error': SESSION_LOADING_MESSAGE}), 503
    return None


# ============== Decorators ==============

def api_login_required(f):
    """Like @login_required but returns JSON 401 instead of redirect."""
    @wraps(f)
    def decorated(*args, **kwargs):
        blocked = _session_gate()
        if blocked:
            return blocked
        return f(*args, **kwargs)
    return decorated


def permission_required(permission):
    """Require a "resource:action" permission on the current profile.

    Authorization goes through Profile.has_permission, which delegates to the
    single permission gate in core.roles.permissions.
    """
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            blocked = _session_gate()
            if blocked:
                return blocked
            if not current_user.has_permission(permission):
                logger.info(f'Permission denied: user={current_user.id} permission={permission}')
                return jsonify({
                    'success': False,
                    'error': PERMISSION_DENIED_MESSAGE,
                    'permission': permission,
                }), 403
            return f(*args, **kwargs)
        return decorated
    return decorator


def handle_api_errors(f):
    """Convert uncaught exceptions in a route into safe JSON error responses."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except Exception as e:
            return safe_error_response(e)
    return decorated


# ============== Request Validation ==============

def get_json_or_error():
    """Get JSON from request body with null check.

    Returns (data, error_response) tuple. Caller pattern:
        data, error = get_json_or_error()
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if data is None:
        return None, (jsonify({
            'success': False,
            'error': 'Invalid or missing JSON body',
        }), 400)
    return data, None


# ============== Error Handling ==============

def error_response(message, code=400):
    """Build a {'success': False, 'error': message} response tuple."""
    return jsonify({'success': False, 'error': message}), code


def safe_error_response(e, status_code=500):
    """Return error response without leaking DB internals.

    - ValueError/KeyError: returns str(e) as 400 (business validation, safe to expose)
    - Everything else: logs full exception, returns generic message
    """
    if isinstance(e, KeyError):
        return jsonify({'success': False, 'error': f'Missing field: {e.args[0]}' if e.args else 'Missing field'}), 400
    if isinstance(e, ValueError):
        return jsonify({'success': False, 'error': str(e)}), 400

    logger.exception('Unhandled error in API route')
    return jsonify({'success': False, 'error': 'An internal error occurred'}), status_code


def service_response(result, **extra):
    """Translate a ServiceResult into a JSON response tuple."""
    if result.success:
        body = {'success': True, 'data': result.data}
        body.update(extra)
        return jsonify(body), result.status_code
    body = {'success': False, 'error': result.error}
    body.update(extra)
    return jsonify(body), result.status_code


# ============== Rate Limiter ==============

class RateLimiter:
    """Simple in-memory rate limiter.

    Per-worker state; acceptable for the login and public registration forms.
    """

    def __init__(self):
        self._requests = defaultdict(list)

    def is_allowed(self, key, max_requests=10, window_seconds=60):
        """Check if request is allowed.

        Returns:
            (is_allowed: bool, retry_after: int) tuple
        """
        now = time.time()
        window_start = now - window_seconds

        self._requests[key] = [ts for ts in self._requests[key] if ts > window_start]

        if len(self._requests[key]) >= max_requests:
            oldest = min(self._requests[key])
            retry_after = int(oldest + window_seconds - now) + 1
            return False, max(1, retry_after)

        self._requests[key].append(now)
        return True, 0


def message_response(result):
    """Send-function contract: the result data ({message, ...}) on success,
    {error} with a non-2xx status on failure."""
    if result.success:
        return jsonify(result.data), result.status_code
    return jsonify({'error': result.error}), result.status_code
