"""
Object storage: MinIO configurations, the storage gateway and file records
"""

from .models import MinIOConfig, FileObject

__all__ = ["MinIOConfig", "FileObject"]
