import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

API_CONFIG = {
    "base_url": os.getenv("API_BASE_URL", "http://localhost:5000/api"),
    "token": os.getenv("API_TOKEN", ""),
    "timeout": float(os.getenv("API_TIMEOUT", "30")),
}

COMPANY_ID = os.getenv("COMPANY_ID", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEFAULT_START_TIME = os.getenv("DEFAULT_START_TIME", "09:00")
DEFAULT_END_TIME = os.getenv("DEFAULT_END_TIME", "18:00")

DEBUG = False
