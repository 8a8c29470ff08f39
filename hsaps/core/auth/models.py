"""HSAPS Core Auth Models.

Profile model for Flask-Login authentication.
"""
from flask_login import UserMixin

from core.roles.permissions import has_permission, is_admin


class Profile(UserMixin):
    """Authenticated profile.

    `permissions` is the role's permission list loaded when the session was
    established. None means it has not been loaded yet (session LOADING).
    `session_role` pins the role to the one those permissions were loaded for.
    """

    def __init__(self, profile_data, permissions=None, session_role=None):
        self.id = profile_data['id']
        self.email = profile_data['email']
        self.full_name = profile_data.get('full_name')
        self.role = session_role or profile_data.get('role')
        self.avatar = profile_data.get('avatar')
        self.last_login = profile_data.get('last_login')
        self.permissions = list(permissions) if permissions is not None else None

    @property
    def is_loading(self):
        return self.permissions is None

    @property
    def is_admin(self):
        return is_admin(self.role)

    def has_permission(self, permission: str) -> bool:
        """Check a "resource:action" permission through the permission gate."""
        return has_permission(self.role, self.permissions, permission)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'avatar': self.avatar,
            'last_login': self.last_login,
        }
