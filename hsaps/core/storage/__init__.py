"""HSAPS Core Storage Module.

Public object storage on the local filesystem: uploads, public URLs and
resized image delivery.
"""
from flask import Blueprint

storage_bp = Blueprint('storage', __name__)

from . import routes  # noqa: E402, F401
