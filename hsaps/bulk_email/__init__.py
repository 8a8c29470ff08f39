"""Bulk email module: recipient lists, CSV/manual parsing and batched sending."""
from flask import Blueprint

bulk_email_bp = Blueprint('bulk_email', __name__)

from . import routes  # noqa: E402, F401
