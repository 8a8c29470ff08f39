"""Submissions (attendee registrations) module.

Registration CRUD, the guided status workflow, its side-effect outbox and
badge generation.
"""
from flask import Blueprint

submissions_bp = Blueprint('submissions', __name__)

from . import routes  # noqa: E402, F401
