"""Submissions repositories package."""
from .submission_repository import SubmissionRepository
from .side_effect_repository import SideEffectRepository

__all__ = ['SubmissionRepository', 'SideEffectRepository']
