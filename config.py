import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENVIRONMENT = data.get("ENVIRONMENT", "development")

    # Request guards
    CSRF_ALLOWED_ORIGINS = data.get("CSRF_ALLOWED_ORIGINS", [])
    # Honour X-Forwarded-Host/-Proto only behind a proxy that sets them
    TRUST_PROXY_HEADERS = bool(data.get("TRUST_PROXY_HEADERS", False))
    MAX_BODY_BYTES = int(data.get("MAX_BODY_BYTES", 8 * 1024))

    # Rate limiting: "memory" (single instance) or "redis"
    RATE_LIMIT_BACKEND = data.get("RATE_LIMIT_BACKEND", "memory")

    # Password reset policy
    RESET_OTP_LENGTH = data.get("RESET_OTP_LENGTH", 6)
    RESET_OTP_TTL_SECONDS = data.get("RESET_OTP_TTL_SECONDS", 600)
    RESET_VERIFIED_TTL_SECONDS = data.get("RESET_VERIFIED_TTL_SECONDS", 300)
    RESET_MAX_ATTEMPTS = data.get("RESET_MAX_ATTEMPTS", 5)
    RESET_START_RATE_LIMIT = data.get("RESET_START_RATE_LIMIT", 3)
    RESET_VERIFY_RATE_LIMIT = data.get("RESET_VERIFY_RATE_LIMIT", 5)
    RESET_RATE_LIMIT_WINDOW_SECONDS = data.get("RESET_RATE_LIMIT_WINDOW_SECONDS", 900)

    # Code delivery: "console" (logs the code, development only) or "http"
    NOTIFICATION_BACKEND = data.get("NOTIFICATION_BACKEND", "console")
    EMAIL_API_URL = data.get("EMAIL_API_URL", "")
    EMAIL_API_TOKEN = data.get("EMAIL_API_TOKEN", "")
    EMAIL_FROM_ADDRESS = data.get("EMAIL_FROM_ADDRESS", "no-reply@example.com")
    EMAIL_FROM_NAME = data.get("EMAIL_FROM_NAME", "")
    EMAIL_TIMEOUT_SECONDS = float(data.get("EMAIL_TIMEOUT_SECONDS", 5.0))
