"""Finance repositories package."""
from .transaction_repository import TransactionRepository

__all__ = ['TransactionRepository']
