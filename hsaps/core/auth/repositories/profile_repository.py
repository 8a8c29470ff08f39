"""Profile Repository - Data access layer for profiles (users).

This module handles all database operations related to profiles,
including authentication and the Admin lookup used by notify_admins.
"""
from typing import Optional, Dict, Any, List
from werkzeug.security import generate_password_hash, check_password_hash

from core.base_repository import BaseRepository
from core.utils.listing import build_where
from core.roles.permissions import ROLE_ADMIN, ROLE_ORGANIZER

_PUBLIC_COLUMNS = 'id, full_name, email, role, avatar, last_login, created_at'


def default_avatar(email: str) -> str:
    return f'https://i.pravatar.cc/150?u={email}'


class ProfileRepository(BaseRepository):
    """Repository for profile data access operations."""

    def get_by_id(self, profile_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one(f'SELECT {_PUBLIC_COLUMNS} FROM profiles WHERE id = %s', (profile_id,))

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get a profile by email, including the password hash."""
        return self.query_one('SELECT * FROM profiles WHERE LOWER(email) = LOWER(%s)', (email,))

    def list_profiles(self, query):
        """One page of profiles ordered by name, searchable by name and email. Returns (rows, total)."""
        where_clause, params = build_where(query, ('full_name', 'email'), {'role': 'role'})
        return self.paginate(
            f'SELECT {_PUBLIC_COLUMNS} FROM profiles{where_clause}',
            f'SELECT COUNT(*) AS total FROM profiles{where_clause}',
            params, 'full_name ASC, id ASC', query.limit, query.offset,
        )

    def get_admin_ids(self) -> List[int]:
        rows = self.query_all('SELECT id FROM profiles WHERE role = %s', (ROLE_ADMIN,))
        return [r['id'] for r in rows]

    def create(self, email: str, password: str, full_name: str = None,
               role: str = ROLE_ORGANIZER, avatar: str = None) -> Dict[str, Any]:
        """Create a profile. Raises ValueError when the email is taken."""
        if self.get_by_email(email):
            raise ValueError('Email này đã được sử dụng.')
        return self.execute(f'''
            INSERT INTO profiles (full_name, email, role, avatar, password_hash)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {_PUBLIC_COLUMNS}
        ''', (full_name or email, email, role or ROLE_ORGANIZER,
              avatar or default_avatar(email), generate_password_hash(password)),
            returning=True)

    def update(self, profile_id: int, full_name: str = None, role: str = None,
               avatar: str = None) -> Optional[Dict[str, Any]]:
        """Update profile fields. Only the provided (non-None) fields change."""
        updates = []
        params = []
        if full_name is not None:
            updates.append('full_name = %s')
            params.append(full_name)
        if role is not None:
            updates.append('role = %s')
            params.append(role)
        if avatar is not None:
            updates.append('avatar = %s')
            params.append(avatar)
        if not updates:
            return self.get_by_id(profile_id)

        params.append(profile_id)
        return self.execute(f'''
            UPDATE profiles SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
            RETURNING {_PUBLIC_COLUMNS}
        ''', params, returning=True)

    def delete(self, profile_id: int) -> bool:
        return self.execute('DELETE FROM profiles WHERE id = %s', (profile_id,)) > 0

    def update_password(self, profile_id: int, password: str) -> bool:
        password_hash = generate_password_hash(password)
        return self.execute('''
            UPDATE profiles SET password_hash = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        ''', (password_hash, profile_id)) > 0

    def update_last_login(self, profile_id: int) -> bool:
        return self.execute('''
            UPDATE profiles SET last_login = CURRENT_TIMESTAMP
            WHERE id = %s
        ''', (profile_id,)) > 0

    # --- Authentication ---

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Authenticate by email and password. Returns the profile without its hash."""
        profile = self.get_by_email(email)
        if not profile or not profile.get('password_hash'):
            return None
        if not check_password_hash(profile['password_hash'], password):
            return None
        profile.pop('password_hash', None)
        return profile
