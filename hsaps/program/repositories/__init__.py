"""Program repositories package."""
from .program_repository import ProgramRepository

__all__ = ['ProgramRepository']
