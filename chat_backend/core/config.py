import os
from dotenv import load_dotenv

# Load .env before anything reads the environment
load_dotenv()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Session tokens
JWT_SECRET = os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY", "dev-secret-do-not-use-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

# Pusher (fan-out is disabled when any credential is missing)
PUSHER_APP_ID = os.getenv("PUSHER_APP_ID")
PUSHER_APP_KEY = os.getenv("PUSHER_APP_KEY")
PUSHER_APP_SECRET = os.getenv("PUSHER_APP_SECRET")
PUSHER_CLUSTER = os.getenv("PUSHER_CLUSTER", "ap1")
PUSHER_TIMEOUT = int(os.getenv("PUSHER_TIMEOUT", 5))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
