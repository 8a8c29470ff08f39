"""Speakers services package."""
from .speaker_service import SpeakerService

__all__ = ['SpeakerService']
