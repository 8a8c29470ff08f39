"""HSAPS Core Settings Module.

System settings (sender, Zalo OA, Abitstore), email templates and the
messaging actions built on them.
"""
from flask import Blueprint

settings_bp = Blueprint('settings', __name__)

from . import routes  # noqa: E402, F401
