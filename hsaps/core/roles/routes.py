"""Role management routes: permission catalog and per-role permission sets.

A saved set takes effect at each affected user's next login.
"""
from flask import jsonify

from . import roles_bp
from .permissions import ROLES, ROLE_ADMIN, catalog, validate_permissions
from .repositories import PermissionRepository
from core.utils.api_helpers import (
    permission_required, error_response, safe_error_response, get_json_or_error,
)

_perm_repo = PermissionRepository()


@roles_bp.route('/api/roles', methods=['GET'])
@permission_required('settings:view')
def api_get_roles():
    """Roles, the grouped catalog and the stored mapping."""
    mapping = _perm_repo.get_all()
    return jsonify({
        'success': True,
        'roles': list(ROLES),
        'catalog': catalog(),
        'permissions': {role: mapping.get(role, []) for role in ROLES},
    })


@roles_bp.route('/api/roles/<role>/permissions', methods=['PUT'])
@permission_required('settings:edit')
def api_save_role_permissions(role):
    if role not in ROLES:
        return error_response(f'Vai trò không hợp lệ: {role}', 404)
    if role == ROLE_ADMIN:
        return error_response('Quản trị viên luôn có toàn quyền, không thể chỉnh sửa.')

    data, error = get_json_or_error()
    if error:
        return error
    permissions = data.get('permissions')
    if not isinstance(permissions, list):
        return error_response('permissions phải là một mảng.')
    unknown = validate_permissions(permissions)
    if unknown:
        return error_response(f'Quyền không hợp lệ: {", ".join(unknown)}')

    try:
        count = _perm_repo.set_role_permissions(role, permissions)
    except Exception as e:
        return safe_error_response(e)
    return jsonify({
        'success': True,
        'message': f'Đã lưu quyền cho vai trò "{role}".',
        'count': count,
    })
