"""Auth services package."""
from .session_service import SessionService, SessionState

__all__ = ['SessionService', 'SessionState']
