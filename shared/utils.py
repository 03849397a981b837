from typing import Any, Optional
import logging
import math
import re

from shared.constants import DEFAULT_COUNTRY_CODE
from shared.exceptions import InvalidPhoneNumberException

logger = logging.getLogger(__name__)

# 9999-12-31T23:59:59Z, the last second a datetime can hold
MAX_EPOCH_SECONDS = 253_402_300_799

def is_valid_phone_number(phone: str) -> bool:
    """Check if phone number is a valid E.164 number"""
    pattern = r'^\+[1-9]\d{7,14}$'
    return re.match(pattern, phone) is not None

def format_phone_number(phone: str) -> str:
    """Normalise a dialled number to E.164, assuming India when no country code is present"""
    # Remove all non-digits
    digits = re.sub(r'\D', '', (phone or '').strip())

    if not digits:
        raise InvalidPhoneNumberException("Phone number is empty after cleaning")

    if len(digits) == 10:
        formatted = f"+{DEFAULT_COUNTRY_CODE}{digits}"
    elif len(digits) == 12 and digits.startswith(DEFAULT_COUNTRY_CODE):
        formatted = f"+{digits}"
    elif len(digits) == 11:
        if digits.startswith(DEFAULT_COUNTRY_CODE):
            # 91 followed by nine digits is an incomplete number
            logger.warning("11-digit number starting with %s looks incomplete: %s", DEFAULT_COUNTRY_CODE, digits)
        formatted = f"+{DEFAULT_COUNTRY_CODE}{digits}"
    elif len(digits) > 12:
        formatted = f"+{digits}"
    else:
        logger.warning("Unusual phone number length (%d digits), prefixing +%s", len(digits), DEFAULT_COUNTRY_CODE)
        formatted = f"+{DEFAULT_COUNTRY_CODE}{digits}"

    logger.debug("Phone number formatting: %r -> %r", phone, formatted)
    return formatted

def parse_epoch_seconds(value: Any) -> Optional[float]:
    """Return a positive epoch-seconds value or None when missing/invalid/out of range"""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(seconds) or seconds <= 0 or seconds > MAX_EPOCH_SECONDS:
        return None
    return seconds
