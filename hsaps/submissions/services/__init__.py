"""Submissions services package."""
from .side_effects import SideEffectRunner
from .submission_service import SubmissionService

__all__ = ['SideEffectRunner', 'SubmissionService']
