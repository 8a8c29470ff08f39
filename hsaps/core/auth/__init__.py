"""HSAPS Core Authentication Module.

Handles login/logout, the session context and user (profile) management.
"""
from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from . import routes  # noqa: E402, F401
