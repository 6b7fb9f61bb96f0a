"""Environment configuration, loaded from the process env and an optional .env file."""

import os

from dotenv import load_dotenv

load_dotenv()

SERVICE_NAME: str = "SafeTrade Messaging API"
SERVICE_VERSION: str = "1.0.0"

API_KEY: str = os.getenv("API_KEY", "safetrade-dev-key")
APP_ENV: str = os.getenv("APP_ENV", "production").strip().lower()

FRAUD_RULESET: str = os.getenv("FRAUD_RULESET", "default")

# Unset means score in-process
FRAUD_SERVICE_URL: str = os.getenv("FRAUD_SERVICE_URL", "").strip()
FRAUD_SERVICE_TIMEOUT: float = float(os.getenv("FRAUD_SERVICE_TIMEOUT", "5"))

# Unset disables the JSON audit history file
FRAUD_LOG_FILE: str = os.getenv("FRAUD_LOG_FILE", "").strip()


def is_development() -> bool:
    return APP_ENV == "development"
