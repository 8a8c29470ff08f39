"""Program schedule module."""
from flask import Blueprint

program_bp = Blueprint('program', __name__)

from . import routes  # noqa: E402, F401
