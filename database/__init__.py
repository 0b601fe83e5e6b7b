"""
Database module for the quote journal.
Provides the SQLite-backed quote store.
"""

from .connection import DatabaseManager
from .models import Base, Quote, QuoteDB
from .operations import QuoteStore, open_store

__all__ = ['DatabaseManager', 'Base', 'Quote', 'QuoteDB', 'QuoteStore', 'open_store']
