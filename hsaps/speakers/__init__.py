"""Speakers module.

Internal speaker management plus the public self-registration form.
"""
from flask import Blueprint

speakers_bp = Blueprint('speakers', __name__)

from . import routes  # noqa: E402, F401
