"""Input validation utilities for the CMMS API."""
import re
from typing import Any, Optional, Tuple

from cmms.config_manager import DEFAULT_CONFIG

RECORD_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
MAX_RECORD_ID_LENGTH = 64
MAX_PERIOD_DAYS = 3650  # Ten years of history

# Upper bounds for configuration values, where the API enforces one
CONFIG_MAXIMUMS = {
    ("performance", "default_period_days"): MAX_PERIOD_DAYS,
}


def validate_record_id(record_id: Any, field_name: str = "ID") -> Tuple[bool, Optional[str]]:
    """
    Validate an asset / work order / contract identifier.
    Returns (is_valid, error_message).
    """
    if not record_id:
        return False, f"{field_name} is required"
    if not isinstance(record_id, str):
        return False, f"{field_name} must be a string"
    if len(record_id) > MAX_RECORD_ID_LENGTH:
        return False, f"{field_name} is too long"
    if not RECORD_ID_PATTERN.match(record_id):
        return False, f"{field_name} contains invalid characters"
    return True, None


def parse_period_days(value: Any) -> Tuple[Optional[int], Optional[str]]:
    """
    Parse the analysis period (days) from a query parameter.
    Returns (period_days, error_message).
    """
    if value is None or value == '':
        return None, "periodDays is required"
    if isinstance(value, bool):
        return None, "periodDays must be an integer"
    try:
        period_days = int(value)
    except (TypeError, ValueError):
        return None, "periodDays must be an integer"
    if period_days <= 0:
        return None, "periodDays must be greater than 0"
    if period_days > MAX_PERIOD_DAYS:
        return None, f"periodDays must not exceed {MAX_PERIOD_DAYS}"
    return period_days, None


def validate_configuration(data: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a configuration payload.
    Known sections must be objects whose known keys hold positive integers.
    Returns (is_valid, error_message).
    """
    if not data:
        return False, "Configuration data is required"
    if not isinstance(data, dict):
        return False, "Configuration must be an object"

    for section, defaults in DEFAULT_CONFIG.items():
        if section not in data:
            continue
        values = data[section]
        if not isinstance(values, dict):
            return False, f"{section} must be an object"
        for key in defaults:
            if key not in values:
                continue
            value = values[key]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                return False, f"{section}.{key} must be a positive integer"
            maximum = CONFIG_MAXIMUMS.get((section, key))
            if maximum is not None and value > maximum:
                return False, f"{section}.{key} must not exceed {maximum}"

    return True, None
