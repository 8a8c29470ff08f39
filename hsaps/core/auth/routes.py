"""Auth module routes.

Login/logout, the session context endpoint, password change and user
(profile) management.
"""
from flask import jsonify, request, session
from flask_login import login_user, logout_user, current_user

from . import auth_bp
from .models import Profile
from .repositories import ProfileRepository
from .services import SessionService
from .services.session_service import state_of, SessionState
from core.roles.permissions import ROLES, ROLE_ORGANIZER
from core.utils.api_helpers import (
    api_login_required, permission_required, error_response, safe_error_response,
    get_json_or_error, handle_api_errors, RateLimiter,
)
from core.utils.listing import ListQuery

_profile_repo = ProfileRepository()
_session_service = SessionService(profile_repo=_profile_repo)
_auth_limiter = RateLimiter()

MIN_PASSWORD_LENGTH = 6
USERS_PAGE_SIZE = 20


def _loading_response(message):
    return jsonify({
        'success': False,
        'loading': True,
        'state': SessionState.LOADING.value,
        'error': message,
    }), 503


def _complete_session(profile: Profile):
    """LOADING -> AUTHENTICATED: load permissions and backlog into the session."""
    result = _session_service.load_context(profile.id, profile.role)
    if not result.success:
        return _loading_response(result.error)

    session['permissions'] = result.data['permissions']
    session['role'] = profile.role
    return jsonify({
        'success': True,
        'state': SessionState.AUTHENTICATED.value,
        'profile': profile.to_dict(),
        'permissions': result.data['permissions'],
        'notifications': result.data['notifications'],
        'unread_count': result.data['unread_count'],
    })


# ============== AUTHENTICATION ==============

@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    allowed, retry_after = _auth_limiter.is_allowed(
        f'login:{request.remote_addr}', max_requests=10, window_seconds=300)
    if not allowed:
        return error_response(f'Quá nhiều lần đăng nhập. Thử lại sau {retry_after} giây.', 429)

    data, error = get_json_or_error()
    if error:
        return error
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return error_response('Vui lòng nhập email và mật khẩu.')

    result = _session_service.authenticate(email, password)
    if not result.success:
        return error_response(result.error, result.status_code)

    profile = Profile(result.data)
    session.pop('permissions', None)
    session.pop('role', None)
    login_user(profile, remember=bool(data.get('remember')))
    return _complete_session(profile)


@auth_bp.route('/api/auth/session', methods=['GET'])
def api_session():
    """Current session state; a LOADING session retries its context load."""
    state = state_of(current_user)
    if state == SessionState.UNAUTHENTICATED:
        return jsonify({'success': True, 'state': state.value})
    if state == SessionState.LOADING:
        return _complete_session(current_user)
    return jsonify({
        'success': True,
        'state': state.value,
        'profile': current_user.to_dict(),
        'permissions': current_user.permissions,
    })


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    if current_user.is_authenticated:
        _session_service.logout(current_user.id)
        logout_user()
    session.pop('permissions', None)
    session.pop('role', None)
    return jsonify({'success': True, 'state': SessionState.UNAUTHENTICATED.value})


@auth_bp.route('/api/auth/change-password', methods=['POST'])
@api_login_required
def api_change_password():
    data, error = get_json_or_error()
    if error:
        return error
    current_password = data.get('current_password') or ''
    new_password = data.get('new_password') or ''
    confirm_password = data.get('confirm_password', new_password)

    if not current_password or not new_password:
        return error_response('Vui lòng điền tất cả các trường.')
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return error_response('Mật khẩu mới phải có ít nhất 6 ký tự.')
    if new_password != confirm_password:
        return error_response('Mật khẩu mới và mật khẩu xác nhận không khớp.')
    if not _profile_repo.authenticate(current_user.email, current_password):
        return error_response('Mật khẩu hiện tại không đúng.')

    _profile_repo.update_password(current_user.id, new_password)
    return jsonify({'success': True, 'message': 'Đổi mật khẩu thành công.'})


# ============== USER MANAGEMENT ==============

@auth_bp.route('/api/users', methods=['GET'])
@permission_required('users:view')
@handle_api_errors
def api_get_users():
    query = ListQuery.from_args(request.args, filter_keys=('role',), page_size=USERS_PAGE_SIZE)
    if query.filters.get('role') and query.filters['role'] not in ROLES:
        return error_response(f'Vai trò không hợp lệ: {query.filters["role"]}')
    rows, total = _profile_repo.list_profiles(query)
    body = query.envelope(rows, total, key='users')
    body['success'] = True
    return jsonify(body)


@auth_bp.route('/api/users', methods=['POST'])
@permission_required('users:create')
def api_create_user():
    data, error = get_json_or_error()
    if error:
        return error
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return error_response('Email và mật khẩu là bắt buộc cho người dùng mới.')
    role = data.get('role') or ROLE_ORGANIZER
    if role not in ROLES:
        return error_response(f'Vai trò không hợp lệ: {role}')

    try:
        profile = _profile_repo.create(
            email=email,
            password=password,
            full_name=data.get('full_name'),
            role=role,
            avatar=data.get('avatar'),
        )
        return jsonify({'success': True, 'user': profile}), 201
    except Exception as e:
        return safe_error_response(e)


@auth_bp.route('/api/users/<int:user_id>', methods=['PUT'])
@permission_required('users:edit')
def api_update_user(user_id):
    data, error = get_json_or_error()
    if error:
        return error
    role = data.get('role')
    if role is not None and role not in ROLES:
        return error_response(f'Vai trò không hợp lệ: {role}')
    try:
        profile = _profile_repo.update(
            user_id,
            full_name=data.get('full_name'),
            role=role,
            avatar=data.get('avatar'),
        )
    except Exception as e:
        return safe_error_response(e)
    if not profile:
        return error_response('Không tìm thấy người dùng.', 404)
    return jsonify({'success': True, 'user': profile})


@auth_bp.route('/api/users/<int:user_id>', methods=['DELETE'])
@permission_required('users:delete')
def api_delete_user(user_id):
    if user_id == current_user.id:
        return error_response('Không thể xóa tài khoản đang đăng nhập.')
    if _profile_repo.delete(user_id):
        return jsonify({'success': True})
    return error_response('Không tìm thấy người dùng.', 404)
