"""Environment-driven configuration."""

import os

# Currency whose totals are reported as the headline figures of a report.
DEFAULT_HEADLINE_CURRENCY = "GMD"
DEFAULT_REPORT_LIMIT = 1000
DEFAULT_REPORT_TIMEOUT_SECONDS = 30.0
DEFAULT_REPORT_RATE_LIMIT = "60/minute"


def get_database_url() -> str:
    """
    Get database URL from environment variable.
    Supports both sync and async URLs.
    """
    db_url = os.getenv("DATABASE_URL")
    if db_url:
        if db_url.startswith("postgresql://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif db_url.startswith("postgres://"):
            db_url = db_url.replace("postgres://", "postgresql+asyncpg://", 1)
        return db_url
    # Default to SQLite for local development/testing
    return "sqlite+aiosqlite:///./marketplace_admin.db"


def get_headline_currency() -> str:
    return os.getenv("HEADLINE_CURRENCY", DEFAULT_HEADLINE_CURRENCY)


def get_report_timeout() -> float:
    """Upper bound, in seconds, for the source fetches of one report."""
    return float(os.getenv("REPORT_TIMEOUT_SECONDS", DEFAULT_REPORT_TIMEOUT_SECONDS))


def get_report_default_limit() -> int:
    return int(os.getenv("REPORT_DEFAULT_LIMIT", DEFAULT_REPORT_LIMIT))


def get_report_rate_limit() -> str:
    return os.getenv("REPORT_RATE_LIMIT", DEFAULT_REPORT_RATE_LIMIT)
