import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Password gate - CRITICAL: set APP_PASSWORD and SECRET_KEY in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

APP_PASSWORD = os.getenv("APP_PASSWORD")
if not APP_PASSWORD:
    import warnings

    warnings.warn(
        "APP_PASSWORD not set! Login will reject every attempt", RuntimeWarning, stacklevel=2
    )

# Session tokens expire after 12 hours by default
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", "43200"))

# Frontend base URL for redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
PUBLIC_API_URL = os.getenv("PUBLIC_API_URL", "http://localhost:3000")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# Constant Contact Configuration
CONSTANT_CONTACT_CLIENT_ID = os.getenv("CONSTANT_CONTACT_CLIENT_ID")
CONSTANT_CONTACT_CLIENT_SECRET = os.getenv("CONSTANT_CONTACT_CLIENT_SECRET")
CONSTANT_CONTACT_ACCESS_TOKEN = os.getenv("CONSTANT_CONTACT_ACCESS_TOKEN")
CONSTANT_CONTACT_REFRESH_TOKEN = os.getenv("CONSTANT_CONTACT_REFRESH_TOKEN")
CONSTANT_CONTACT_FROM_EMAIL = os.getenv("CONSTANT_CONTACT_FROM_EMAIL")
CONSTANT_CONTACT_FROM_NAME = os.getenv("CONSTANT_CONTACT_FROM_NAME", "Deal Dispo")
CONSTANT_CONTACT_LIST_ID = os.getenv("CONSTANT_CONTACT_LIST_ID", "8663e04a-d1c8-11ef-bde9-fa163e4037f6")
CONSTANT_CONTACT_REDIRECT_URI = os.getenv("CONSTANT_CONTACT_REDIRECT_URI", f"{PUBLIC_API_URL}/callback")

# Physical address shown in the campaign footer (CAN-SPAM)
BUSINESS_ADDRESS_LINE1 = os.getenv("BUSINESS_ADDRESS_LINE1")
BUSINESS_CITY = os.getenv("BUSINESS_CITY")
BUSINESS_STATE = os.getenv("BUSINESS_STATE")
BUSINESS_POSTAL_CODE = os.getenv("BUSINESS_POSTAL_CODE")
BUSINESS_COUNTRY_CODE = os.getenv("BUSINESS_COUNTRY_CODE", "US")

# Square Payments Configuration
SQUARE_ENVIRONMENT = os.getenv("SQUARE_ENVIRONMENT", "sandbox")  # sandbox or production
SQUARE_ACCESS_TOKEN = os.getenv("SQUARE_ACCESS_TOKEN")
SQUARE_APPLICATION_ID = os.getenv("SQUARE_APPLICATION_ID")
SQUARE_LOCATION_ID = os.getenv("SQUARE_LOCATION_ID")
# Amount in cents charged for one campaign send
PAYMENT_BASE_AMOUNT = int(os.getenv("PAYMENT_BASE_AMOUNT", "19900"))
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "USD")

# Image hosting: "r2" or "cloudinary"
IMAGE_HOST = os.getenv("IMAGE_HOST", "r2").lower()
# Between 1 and 5 MB
UPLOAD_MAX_BYTES = min(max(int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024))), 1024 * 1024), 5 * 1024 * 1024)

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "dealdispo")
# Public bucket URL; when unset, uploads return presigned URLs
R2_PUBLIC_BASE_URL = os.getenv("R2_PUBLIC_BASE_URL")

# Cloudinary Configuration (unsigned uploads)
CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_UPLOAD_PRESET = os.getenv("CLOUDINARY_UPLOAD_PRESET")

# Login rate limiting
REDIS_URL = os.getenv("REDIS_URL")
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
LOGIN_RATE_WINDOW = int(os.getenv("LOGIN_RATE_WINDOW", "300"))
