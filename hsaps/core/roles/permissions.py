"""Permission gate and permission catalog.

`has_permission` is the one place where the Admin bypass lives. Every
authorization decision (route decorator, Profile model, bulk email send)
goes through it.
"""

ROLE_ADMIN = 'Quản trị viên'
ROLE_ORGANIZER = 'Thành viên BTC'
ROLE_VOLUNTEER = 'Tình nguyện viên'

ROLES = (ROLE_ADMIN, ROLE_ORGANIZER, ROLE_VOLUNTEER)

PERMISSION_GROUPS = {
    'Chung': [
        ('dashboard:view', 'Xem Bảng điều khiển'),
    ],
    'Quản lý Người dùng': [
        ('users:view', 'Xem danh sách'),
        ('users:create', 'Tạo mới'),
        ('users:edit', 'Chỉnh sửa'),
        ('users:delete', 'Xóa'),
    ],
    'Quản lý Báo cáo viên': [
        ('speakers:view', 'Xem danh sách'),
        ('speakers:create', 'Tạo mới'),
        ('speakers:edit', 'Chỉnh sửa'),
        ('speakers:delete', 'Xóa'),
    ],
    'Quản lý Chương trình': [
        ('program:view', 'Xem lịch trình'),
        ('program:create', 'Thêm mục mới'),
        ('program:edit', 'Chỉnh sửa mục'),
        ('program:delete', 'Xóa mục'),
    ],
    'Quản lý Nhà tài trợ': [
        ('sponsors:view', 'Xem danh sách'),
        ('sponsors:create', 'Tạo mới'),
        ('sponsors:edit', 'Chỉnh sửa'),
        ('sponsors:delete', 'Xóa'),
    ],
    'Quản lý Đăng ký': [
        ('submissions:view', 'Xem danh sách'),
        ('submissions:create', 'Tạo mới'),
        ('submissions:edit', 'Chỉnh sửa'),
        ('submissions:delete', 'Xóa'),
        ('submissions:approve', 'Duyệt/Từ chối trạng thái'),
    ],
    'Quản lý Thu Chi': [
        ('finance:view', 'Xem báo cáo'),
        ('finance:create', 'Tạo giao dịch'),
        ('finance:edit', 'Chỉnh sửa'),
        ('finance:delete', 'Xóa'),
    ],
    'Quản lý Công việc': [
        ('tasks:view', 'Xem danh sách'),
        ('tasks:create', 'Tạo mới'),
        ('tasks:edit', 'Chỉnh sửa'),
        ('tasks:delete', 'Xóa'),
    ],
    'Quản lý Tài liệu': [
        ('documents:view', 'Xem danh sách'),
        ('documents:create', 'Tải lên'),
        ('documents:edit', 'Chỉnh sửa'),
        ('documents:delete', 'Xóa'),
    ],
    'Gửi Email': [
        ('email:send_bulk', 'Gửi email hàng loạt'),
    ],
    'Cài đặt hệ thống': [
        ('settings:view', 'Truy cập Cài đặt'),
        ('settings:edit', 'Chỉnh sửa Email/Zalo'),
    ],
}

ALL_PERMISSIONS = tuple(p for perms in PERMISSION_GROUPS.values() for p, _ in perms)

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: list(ALL_PERMISSIONS),
    ROLE_ORGANIZER: [
        'dashboard:view', 'speakers:view', 'speakers:create', 'speakers:edit', 'speakers:delete',
        'program:view', 'program:create', 'program:edit', 'program:delete', 'sponsors:view',
        'sponsors:create', 'sponsors:edit', 'sponsors:delete', 'submissions:view', 'submissions:create',
        'submissions:edit', 'submissions:delete', 'submissions:approve', 'finance:view',
        'finance:create', 'finance:edit', 'finance:delete', 'tasks:view', 'tasks:create', 'tasks:edit',
        'tasks:delete', 'documents:view', 'documents:create', 'documents:edit', 'documents:delete',
    ],
    ROLE_VOLUNTEER: ['dashboard:view', 'program:view', 'tasks:view'],
}


def is_admin(role) -> bool:
    return role == ROLE_ADMIN


def has_permission(role, permissions, permission) -> bool:
    """Authorize `permission` for a profile with `role` and its loaded permission set.

    Admin is always authorized, even when the mapping table is empty or
    could not be loaded.
    """
    if is_admin(role):
        return True
    if not permissions:
        return False
    return permission in permissions


def catalog():
    """Permission catalog grouped for the role editor."""
    return [
        {'group': group, 'permissions': [{'id': pid, 'label': label} for pid, label in perms]}
        for group, perms in PERMISSION_GROUPS.items()
    ]


def validate_permissions(permissions):
    """Return the unknown permission strings in `permissions`."""
    return [p for p in permissions if p not in ALL_PERMISSIONS]
