"""Roles repositories package."""
from .permission_repository import PermissionRepository

__all__ = ['PermissionRepository']
