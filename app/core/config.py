import os
from pathlib import Path
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

# Load .env from the project root
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    logger.info(f"Loading environment variables from: {env_path}")
    load_dotenv(dotenv_path=env_path, override=True)
else:
    logger.warning(f".env file not found at: {env_path}")

# Basic settings
SECRET_KEY = os.getenv("SECRET_KEY", "design-ai-jwt-secret-key-2025")
API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
DEBUG = os.getenv("DEBUG", "False").lower() == "true"
PORT = int(os.getenv("PORT", "8080"))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Database settings
DB_PATH = os.getenv("DB_PATH", "design_ai.db")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")
# A bare file path in DATABASE_URL is treated as a SQLite database
if "://" not in DATABASE_URL:
    DATABASE_URL = f"sqlite:///{DATABASE_URL}"

# JWT settings
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ISSUER = os.getenv("JWT_ISSUER", "design-ai")
ACCESS_TOKEN_EXPIRE_HOURS = 24

# Bootstrap admin account, created only when the users table is empty
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@designai.com")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Password assigned by the admin reset endpoint
RESET_PASSWORD = os.getenv("RESET_PASSWORD", "Reset123456!")

# Object storage settings
MINIO_CONNECT_TIMEOUT = float(os.getenv("MINIO_CONNECT_TIMEOUT", "10"))
MINIO_UPLOAD_TIMEOUT = float(os.getenv("MINIO_UPLOAD_TIMEOUT", "600"))
SECRET_MASK = "******"

logger.info(f"Database URL scheme: {DATABASE_URL.split('://')[0]}")
