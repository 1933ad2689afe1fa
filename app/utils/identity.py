"""
Normalisation of candidate identity fields for comparison.

    >>> normalize_email("  Jane.Doe@Example.COM ")
    'jane.doe@example.com'
    >>> normalize_phone("+44 (0)20 7946-0958")
    '4402079460958'
    >>> email_domain("jane@example.com")
    'example.com'
"""

import re
from typing import Optional

_NON_DIGITS = re.compile(r"\D")
_WHITESPACE = re.compile(r"\s+")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_phone(phone: Optional[str]) -> str:
    return _NON_DIGITS.sub("", phone or "")


def normalize_name(name: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", (name or "").strip()).casefold()


def email_domain(email: Optional[str]) -> str:
    normalized = normalize_email(email)
    if "@" not in normalized:
        return ""
    return normalized.rsplit("@", 1)[1]
