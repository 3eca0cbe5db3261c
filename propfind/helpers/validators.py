import re
from typing import Optional

from propfind.core.config import settings

WALLET_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_email(email: str) -> str:
    """Subject key used by the throttling gates: case-insensitive, trimmed."""
    return email.strip().lower()


def is_admin_email(email: str) -> bool:
    return normalize_email(email) in {normalize_email(e) for e in settings.ADMIN_EMAILS}


def validate_university_email(email: str) -> bool:
    """
    Accepts university addresses (.edu, .ac.uk, ...) and the configured admin emails.
    """
    if is_admin_email(email):
        return True
    email = normalize_email(email)
    return any(email.endswith(domain) for domain in settings.UNIVERSITY_EMAIL_DOMAINS)


def validate_wallet_address(address: Optional[str]) -> bool:
    if address is None:
        return True
    return bool(WALLET_ADDRESS_RE.match(address))


def format_duration_ms(remaining_ms: int) -> str:
    """Human-readable remaining block time, e.g. '14 minutes' or '23 hours'."""
    minutes = max(1, -(-remaining_ms // 60000))
    if minutes < 60:
        return f"{minutes} minute" + ("" if minutes == 1 else "s")
    hours = -(-minutes // 60)
    return f"{hours} hour" + ("" if hours == 1 else "s")
