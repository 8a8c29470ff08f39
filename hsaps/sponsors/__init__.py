"""Sponsors module."""
from flask import Blueprint

sponsors_bp = Blueprint('sponsors', __name__)

from . import routes  # noqa: E402, F401
