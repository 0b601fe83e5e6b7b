"""
API module for the quote journal.
Provides a FastAPI-based REST API over the quote store.
"""

__all__ = ['app', 'routes', 'models', 'middleware']
