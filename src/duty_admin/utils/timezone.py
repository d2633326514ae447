# src/duty_admin/utils/timezone.py
from __future__ import annotations

import logging
from datetime import datetime

import pytz

from src.duty_admin.config import settings

# -----------------------------------------------------------------------------
# Configure local timezone with fallback
# -----------------------------------------------------------------------------
try:
    LOCAL_TZ = pytz.timezone(settings.TIMEZONE)
except pytz.UnknownTimeZoneError as exc:
    logging.getLogger(__name__).warning(
        "Invalid TIMEZONE '%s' in environment; falling back to Asia/Karachi. Error: %s",
        settings.TIMEZONE,
        exc,
    )
    LOCAL_TZ = pytz.timezone("Asia/Karachi")

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------
def now_local() -> datetime:
    """
    Return the current time as a timezone-aware datetime in the configured local timezone.
    """
    return datetime.now(LOCAL_TZ)
