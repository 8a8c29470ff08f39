"""Speakers repositories package."""
from .speaker_repository import SpeakerRepository

__all__ = ['SpeakerRepository']
