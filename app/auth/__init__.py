"""
Auth module: login, registration and request authentication
"""

from . import authentication

__all__ = ["authentication"]
