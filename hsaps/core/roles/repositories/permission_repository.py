"""Role permission repository.

Handles the (role, permission) mapping table. Lookups are cached per role
for 5 minutes; writes clear the cache.
"""

import logging
import time

from core.base_repository import BaseRepository

logger = logging.getLogger('hsaps.core.roles.permission_repository')

_perm_cache = {}
_PERM_CACHE_TTL = 300  # 5 minutes


def _cache_get(key):
    cached = _perm_cache.get(key)
    if cached and (time.time() - cached[1]) < _PERM_CACHE_TTL:
        return cached[0]
    return None


def _cache_set(key, value):
    _perm_cache[key] = (value, time.time())


def _cache_clear():
    _perm_cache.clear()


class PermissionRepository(BaseRepository):

    def get_role_permissions(self, role: str) -> list[str]:
        """Permission strings granted to a role."""
        cache_key = f'role_perms_{role}'
        cached = _cache_get(cache_key)
        if cached is not None:
            return cached

        rows = self.query_all('''
            SELECT permission FROM role_permissions
            WHERE role = %s
            ORDER BY permission
        ''', (role,))
        result = [r['permission'] for r in rows]
        _cache_set(cache_key, result)
        return result

    def get_all(self) -> dict:
        """All mappings grouped as {role: [permission, ...]}."""
        rows = self.query_all('SELECT role, permission FROM role_permissions ORDER BY role, permission')
        grouped = {}
        for row in rows:
            grouped.setdefault(row['role'], []).append(row['permission'])
        return grouped

    def set_role_permissions(self, role: str, permissions: list[str]) -> int:
        """Replace a role's permission set (delete old rows, insert new ones)."""
        def _work(cursor):
            cursor.execute('DELETE FROM role_permissions WHERE role = %s', (role,))
            inserted = 0
            for perm in sorted(set(permissions)):
                cursor.execute('''
                    INSERT INTO role_permissions (role, permission)
                    VALUES (%s, %s)
                    ON CONFLICT (role, permission) DO NOTHING
                ''', (role, perm))
                inserted += 1
            return inserted

        count = self.execute_many(_work)
        _cache_clear()
        logger.info(f'Role permissions saved: role={role} count={count}')
        return count
