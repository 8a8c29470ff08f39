"""Event tasks module (organizing-committee to-do items)."""
from flask import Blueprint

event_tasks_bp = Blueprint('event_tasks', __name__)

from . import routes  # noqa: E402, F401
