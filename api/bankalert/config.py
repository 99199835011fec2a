import os

from dotenv import load_dotenv

# Environment set by the deployment wins over .env
load_dotenv(override=False)

# Path to an alternative policy.yaml; the packaged one is used when unset
POLICY_PATH = os.getenv("BANKALERT_POLICY_PATH") or None

# Timezone used to stamp a batch when the caller does not pass a timestamp
ALERT_TIMEZONE = os.getenv("ALERT_TIMEZONE", "Asia/Kolkata")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() == "true"

# Format: comma-separated list of origins, e.g., "http://localhost:3000,https://yourdomain.com"
_cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
CORS_ORIGINS = [origin.strip() for origin in _cors_origins.split(",") if origin.strip()]
