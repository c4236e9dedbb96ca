"""
Admin module: moderation settings and back-office endpoints
"""

from .models import AdminSettings

__all__ = ["AdminSettings"]
