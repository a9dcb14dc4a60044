"""Garage configuration, read from the environment (and a .env file when present)."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent

# Client side
API_URL = os.getenv("GARAGE_API_URL", "http://localhost:3001")
TOKEN_FILE = Path(os.getenv("GARAGE_TOKEN_FILE", str(Path.home() / ".garage_token")))
REQUEST_TIMEOUT = float(os.getenv("GARAGE_REQUEST_TIMEOUT", "10"))

# Server side
DATA_DIR = Path(os.getenv("GARAGE_DATA_DIR", str(PROJECT_ROOT / "data")))
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-prod")
JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret-change-in-production-please")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXP_SECONDS = int(os.getenv("JWT_EXP_SECONDS", "3600"))
PORT = int(os.getenv("PORT", "3001"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
