"""Event documents module (shared files: images, PDFs, videos, slides)."""
from flask import Blueprint

documents_bp = Blueprint('documents', __name__)

from . import routes  # noqa: E402, F401
