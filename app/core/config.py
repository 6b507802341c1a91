"""Environment-driven settings for the Databox service."""

import os
import secrets
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Generated endpoint settings
DATABOX_HOST = os.getenv("DATABOX_HOST", "databox.co")
DATABASE_SCHEME = os.getenv("DATABOX_DB_SCHEME", "mysql")
DATABASE_CREDENTIALS = os.getenv("DATABOX_DB_CREDENTIALS", "root:[password]")
DATABASE_PORT = int(os.getenv("DATABOX_DB_PORT", "3306"))

# Deployment regions a project may be created in
SUPPORTED_REGIONS = tuple(
    region.strip()
    for region in os.getenv(
        "DATABOX_REGIONS", "us-east-1,us-west-2,eu-west-1,ap-south-1"
    ).split(",")
    if region.strip()
)

# Persistence settings
STORAGE_BACKEND = os.getenv("DATABOX_STORAGE_BACKEND", "memory")
DATA_DIR = os.getenv("DATABOX_DATA_DIR", ".databox")
PERSISTENCE_TIMEOUT_SECONDS = float(os.getenv("PERSISTENCE_TIMEOUT_SECONDS", "5"))
PERSISTENCE_MAX_RETRIES = int(os.getenv("PERSISTENCE_MAX_RETRIES", "3"))
PERSISTENCE_BACKOFF_SECONDS = float(os.getenv("PERSISTENCE_BACKOFF_SECONDS", "0.2"))

# JWT settings
JWT_SECRET = os.getenv("JWT_SECRET", secrets.token_hex(32))
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# CORS settings
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
