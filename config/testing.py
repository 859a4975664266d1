SECRET_KEY = "test-secret"

API_CONFIG = {
    "base_url": "http://backend.test/api",
    "token": "test-token",
    "timeout": 5,
}

COMPANY_ID = "company-test"

LOG_LEVEL = "WARNING"

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "18:00"

DEBUG = False
TESTING = True
