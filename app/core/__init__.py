# Basic core modules
from .database import get_db, Base, engine, SessionLocal
from .security import hash_password, verify_password

__all__ = [
    'Base', 'engine', 'get_db', 'SessionLocal',
    'verify_password', 'hash_password',
]

# Routers are not imported here to avoid circular imports.
# Other modules import directly from app.core.<module>.
