"""
Access Gate

A single shared username/password pair in front of the whole app.
The gate is off unless BOTH BASIC_AUTH_USERNAME and BASIC_AUTH_PASSWORD are
set; with only one of them configured the app stays open.
"""

import hmac
from typing import Optional

from subtracker.config import BasicAuthSettings, get_settings


def _auth_settings(settings: Optional[BasicAuthSettings]) -> BasicAuthSettings:
    return settings if settings is not None else get_settings().basic_auth


def is_auth_required(settings: Optional[BasicAuthSettings] = None) -> bool:
    return _auth_settings(settings).enabled


def check_credentials(
    username: Optional[str],
    password: Optional[str],
    settings: Optional[BasicAuthSettings] = None,
) -> bool:
    """
    True when the pair matches the configured credentials.

    Always True when the gate is off. Both comparisons run in constant time
    and both always run, so a wrong username costs the same as a wrong password.
    """
    auth = _auth_settings(settings)
    if not auth.enabled:
        return True

    username_ok = hmac.compare_digest(
        (username or "").encode("utf-8"),
        auth.username.encode("utf-8"),
    )
    password_ok = hmac.compare_digest(
        (password or "").encode("utf-8"),
        auth.password.encode("utf-8"),
    )
    return username_ok and password_ok
