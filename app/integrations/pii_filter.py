"""Sehat Sathi – PII Masking for Logs.

Phone numbers, e-mail addresses and dates (children's birth dates arrive in
"add child" messages) are masked in every log record. Replies to users are
never filtered.
"""

import re
from typing import Any, Callable

import structlog

logger = structlog.get_logger()

# Indian mobile: optional +91/91/0, first digit 6-9, 10 digits, optional space after 5
INDIAN_MOBILE = re.compile(r"\b(?:\+?91[\s-]?|0)?[6-9]\d{4}[\s-]?\d{5}\b")
# Other international numbers; the lookbehind keeps ids like "u_1234..." intact
INTL_PHONE = re.compile(r"(?<!\w)\+?\d{1,3}[\s-]?\d{8,13}\b")
EMAIL = re.compile(r"[\w.%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")
CALENDAR_DATE = re.compile(r"\b(?:\d{4}-\d{2}-\d{2}|\d{2}[./-]\d{2}[./-]\d{4})\b")


def _mask_phone(match: re.Match[str]) -> str:
    digits = match.group(0)
    return f"{digits[:5]}****" if len(digits) > 5 else "****"


def _mask_email(match: re.Match[str]) -> str:
    local, _, domain = match.group(0).partition("@")
    host, _, tld = domain.rpartition(".")
    return f"{local[:1]}****@{host[:1]}****.{tld}"


# Order matters: dates before phones, so digit runs inside a date are not
# mistaken for a number.
_RULES: list[tuple[str, re.Pattern[str], Callable[[re.Match[str]], str]]] = [
    ("date", CALENDAR_DATE, lambda _m: "****-**-**"),
    ("phone_in", INDIAN_MOBILE, _mask_phone),
    ("phone_intl", INTL_PHONE, _mask_phone),
    ("email", EMAIL, _mask_email),
]


class PIIFilter:
    """Detects and masks PII in free text.

    Usage:
        pii = PIIFilter()
        logger.info("debug.text", text=pii.mask(raw))
    """

    def __init__(self, rules=None) -> None:
        self._rules = rules or _RULES

    def contains_pii(self, text: str) -> bool:
        for name, pattern, _ in self._rules:
            if pattern.search(text):
                logger.debug("pii.detected", kind=name)
                return True
        return False

    def mask(self, text: str) -> str:
        """e.g. ``919876543210`` → ``91987****``, ``asha@mail.in`` → ``a****@m****.in``."""
        for _, pattern, replace in self._rules:
            text = pattern.sub(replace, text)
        return text


_default_filter = PIIFilter()
_SKIP_KEYS = {"timestamp", "level", "pseudonymous_id"}


def filter_log_record(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: mask PII in every string value of the record."""
    for key, value in event_dict.items():
        if isinstance(value, str) and key not in _SKIP_KEYS:
            event_dict[key] = _default_filter.mask(value)
    return event_dict
