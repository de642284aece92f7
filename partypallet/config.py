import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./partypallet.db")

# Transaction retry policy for reservation and reconciliation units of work
TRANSACTION_MAX_ATTEMPTS = int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "3"))
TRANSACTION_RETRY_BACKOFF_SECONDS = float(os.getenv("TRANSACTION_RETRY_BACKOFF_SECONDS", "0.05"))

# Paystack Configuration
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
# Paystack signs webhooks with the secret key; a separate value is only needed behind a relay
PAYSTACK_WEBHOOK_SECRET = os.getenv("PAYSTACK_WEBHOOK_SECRET") or PAYSTACK_SECRET_KEY
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL")

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Party Pallet <bookings@partypallet.com>")
# Where new-booking and payment notices for the business are sent
ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", ADMIN_NOTIFICATION_EMAIL or "hello@partypallet.com")
WHATSAPP_NUMBER = os.getenv("WHATSAPP_NUMBER", "2348012345678")

# Admin identity - comma separated "actor_id:token" pairs
ADMIN_API_KEYS = os.getenv("ADMIN_API_KEYS", "")
if not ADMIN_API_KEYS:
    import warnings

    warnings.warn(
        "ADMIN_API_KEYS not set! Admin endpoints will reject every request",
        RuntimeWarning,
        stacklevel=2,
    )

# Pricing
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "NGN")
OVERNIGHT_SURCHARGE_RATE = float(os.getenv("OVERNIGHT_SURCHARGE_RATE", "0.2"))

# CORS - comma separated list of frontend origins
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]
