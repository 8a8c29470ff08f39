"""Sponsors repositories package."""
from .sponsor_repository import SponsorRepository

__all__ = ['SponsorRepository']
