"""Configuration loaded from the environment (and a local .env file)."""

import os

from dotenv import load_dotenv

load_dotenv()

# Catalog / inventory REST API
API_BASE_URL = os.getenv("COSTING_API_URL", "http://localhost:3001/api")
API_TOKEN = os.getenv("COSTING_API_TOKEN", "")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

# Defaults offered to forms; conversion rates live in costing.currency
DEFAULT_VAT_RATE = os.getenv("DEFAULT_VAT_RATE", "7.5")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "5001"))
DEBUG = os.getenv("DEBUG", "False").lower() == "true"
