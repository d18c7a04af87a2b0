# app/core/config.py

import os
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv
from app.utils.logger import get_logger

logger = get_logger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    SQLITE_PATH = os.getenv("SQLITE_PATH", "./quotations.db")
    DATABASE_URL = f"sqlite+aiosqlite:///{SQLITE_PATH}"

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")


# =====================================================
# PRICING
# =====================================================
def _non_negative_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return float(value)


GST_RATE = _non_negative_float("GST_RATE", "0.18")
TRANSPORT_COST = _non_negative_float("TRANSPORT_COST", "1000")
LOADING_COST = _non_negative_float("LOADING_COST", "1000")

# =====================================================
# QUOTATIONS
# =====================================================
QUOTATION_PREFIX = os.getenv("QUOTATION_PREFIX", "QT")
QUOTATION_VALIDITY_DAYS = int(os.getenv("QUOTATION_VALIDITY_DAYS", 30))
GENERATED_PDF_DIR = os.getenv("GENERATED_PDF_DIR", "generated_pdfs")

# =====================================================
# COMPANY (letterhead defaults)
# =====================================================
COMPANY_NAME = os.getenv("COMPANY_NAME", "ADS SYSTEMS")
COMPANY_ADDRESS = os.getenv("COMPANY_ADDRESS", "")
COMPANY_PHONE = os.getenv("COMPANY_PHONE", "9574544012")
COMPANY_EMAIL = os.getenv("COMPANY_EMAIL", "support@adssystem.co.in")
COMPANY_WEBSITE = os.getenv("COMPANY_WEBSITE", "adssystem.co.in")
COMPANY_GSTIN = os.getenv("COMPANY_GSTIN", "24APJPP8011N1ZK")
