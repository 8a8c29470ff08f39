"""Roles and permissions: the permission gate, catalog and role editor."""
from flask import Blueprint

roles_bp = Blueprint('roles', __name__)

from . import routes  # noqa: E402, F401
