import sys
import os
import time
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, request, jsonify, session

# Structured logging
from core.utils.logging_config import setup_logging, get_logger
logger = setup_logging()
app_logger = get_logger('hsaps.app')
app_logger.info('HSAPS app module loading...')
from flask_compress import Compress
from flask_login import LoginManager
from core.auth.models import Profile
from core.auth.repositories import ProfileRepository
from core.integrations.push_service import PushService
from core.notifications.handlers import register_notification_hooks
from database import ping_db

_profile_repo = ProfileRepository()


app = Flask(__name__)

# Secret key, required in production; dev fallback only when FLASK_DEBUG=true
_secret_key = os.environ.get('FLASK_SECRET_KEY', os.environ.get('SECRET_KEY'))
if not _secret_key:
    if os.environ.get('FLASK_DEBUG', 'false').lower() == 'true' or os.environ.get('TESTING'):
        _secret_key = 'dev-secret-key-for-local-only'
        app_logger.warning('Using development secret key, set FLASK_SECRET_KEY for production')
    else:
        raise RuntimeError('FLASK_SECRET_KEY environment variable is required')
app.secret_key = _secret_key
app.config['MAX_CONTENT_LENGTH'] = int(os.environ.get('MAX_UPLOAD_MB', '20')) * 1024 * 1024

compress = Compress()
compress.init_app(app)

login_manager = LoginManager()
login_manager.init_app(app)

from datetime import timedelta
app.config['REMEMBER_COOKIE_DURATION'] = timedelta(days=30)
app.config['REMEMBER_COOKIE_HTTPONLY'] = True
app.config['REMEMBER_COOKIE_SAMESITE'] = 'Lax'
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
if os.environ.get('PRODUCTION', '').lower() == 'true':
    app.config['REMEMBER_COOKIE_SECURE'] = True
    app.config['SESSION_COOKIE_SECURE'] = True

# ============== Push + Notification Hooks ==============

push_service = PushService(base_url=os.environ.get('APP_BASE_URL', ''))
app.extensions['push'] = push_service
register_notification_hooks(push_service.init())

# ============== Blueprint Registrations ==============

from core.auth import auth_bp
app.register_blueprint(auth_bp)

from core.roles import roles_bp
app.register_blueprint(roles_bp)

from core.notifications import notifications_bp
app.register_blueprint(notifications_bp)

from core.settings import settings_bp
app.register_blueprint(settings_bp)

from core.storage import storage_bp
app.register_blueprint(storage_bp)

from submissions import submissions_bp
app.register_blueprint(submissions_bp)

from speakers import speakers_bp
app.register_blueprint(speakers_bp)

from sponsors import sponsors_bp
app.register_blueprint(sponsors_bp)

from event_tasks import event_tasks_bp
app.register_blueprint(event_tasks_bp)

from finance import finance_bp
app.register_blueprint(finance_bp)

from documents import documents_bp
app.register_blueprint(documents_bp)

from program import program_bp
app.register_blueprint(program_bp)

from dashboard import dashboard_bp
app.register_blueprint(dashboard_bp)

from bulk_email import bulk_email_bp
app.register_blueprint(bulk_email_bp)

app_logger.info(f'HSAPS startup complete, {len(app.url_map._rules)} routes registered')

# ============== Global Error Handlers ==============

@app.errorhandler(404)
def handle_404(e):
    return jsonify({'success': False, 'error': 'Not found'}), 404

@app.errorhandler(405)
def handle_405(e):
    return jsonify({'success': False, 'error': 'Method not allowed'}), 405

@app.errorhandler(413)
def handle_413(e):
    return jsonify({'success': False, 'error': 'Tệp tải lên quá lớn.'}), 413

@app.errorhandler(500)
def handle_500(e):
    app_logger.exception('Unhandled 500 error')
    return jsonify({'success': False, 'error': 'An internal error occurred'}), 500

# ============== Database + Background Scheduler ==============

if not os.environ.get('TESTING'):
    from database import init_db
    init_db()
    try:
        from tasks.scheduler import start_scheduler
        start_scheduler()
    except Exception as e:
        app_logger.warning(f'Failed to start background scheduler: {e}')


# ============== After-Request Hook ==============

@app.after_request
def add_cache_headers(response):
    """Cache-Control per path: stored files are immutable, API responses are never cached."""
    if request.path.startswith('/storage/') and response.status_code == 200:
        response.headers['Cache-Control'] = 'public, max-age=31536000, immutable'
        return response

    if request.path.startswith('/api/'):
        response.headers['Cache-Control'] = 'no-store'
        return response

    if request.path == '/health':
        response.headers['Cache-Control'] = 'no-cache'

    return response


# ============== Flask-Login ==============

_profile_cache = {}
_PROFILE_CACHE_TTL = 60  # seconds

@login_manager.user_loader
def load_user(user_id):
    """Load the profile for Flask-Login (row cached per-worker, 60s TTL).

    Role and permissions come from the session as established at login; a
    session without permissions is LOADING. Only the other profile fields
    follow the database.
    """
    uid = int(user_id)
    now = time.time()
    cached = _profile_cache.get(uid)
    if cached and (now - cached[1]) < _PROFILE_CACHE_TTL:
        row = cached[0]
    else:
        row = _profile_repo.get_by_id(uid)
        if not row:
            _profile_cache.pop(uid, None)
            return None
        _profile_cache[uid] = (row, now)
    return Profile(row, session.get('permissions'), session_role=session.get('role'))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'Authentication required'}), 401


@app.route('/health')
def health():
    if ping_db():
        return jsonify({'status': 'ok'})
    return jsonify({'status': 'degraded', 'database': 'unreachable'}), 503


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=os.environ.get('FLASK_DEBUG', 'false').lower() == 'true')
