# Import models for user
from .models import User

# Routers are imported by app.main to avoid circular imports
__all__ = ["User"]
