import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
API_PREFIX = os.getenv("API_PREFIX", "/api")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./handyhub.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))  # 7 days

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
FRONTEND_ORIGINS = os.getenv("FRONTEND_ORIGINS", f"{FRONTEND_URL},http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "HandyHub <noreply@handyhub.app>")
# Upper bound for a single delivery attempt made by the notification dispatcher
EMAIL_SEND_TIMEOUT_SECONDS = float(os.getenv("EMAIL_SEND_TIMEOUT_SECONDS", "10"))

# Cloudflare R2 Configuration (worker documents)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "handyhub")
# Public base URL the bucket is served from (custom domain or r2.dev subdomain)
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", f"https://{R2_BUCKET_NAME}.r2.dev")
MAX_UPLOAD_SIZE_BYTES = int(os.getenv("MAX_UPLOAD_SIZE_BYTES", str(5 * 1024 * 1024)))

# OTP settings
OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))
# Expired codes stay this long so verification can still report them as expired
OTP_PURGE_GRACE_MINUTES = int(os.getenv("OTP_PURGE_GRACE_MINUTES", "60"))

# Bootstrap
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin User")
ADMIN_PHONE = os.getenv("ADMIN_PHONE", "+10000000000")
SEED_SERVICES = os.getenv("SEED_SERVICES", "true").lower() == "true"

# Rate limiting (Redis-backed); disable for local development and tests
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
