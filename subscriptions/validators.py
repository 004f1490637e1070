from __future__ import annotations

import re
from typing import Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TELEGRAM_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{5,32}$")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def normalize_telegram_username(raw: Optional[str]) -> str:
    # "@abc12" and "abc12" are the same handle.
    s = raw or ""
    if s.startswith("@"):
        s = s[1:]
    return s


def is_valid_telegram_username(username: str) -> bool:
    return TELEGRAM_USERNAME_RE.fullmatch(username or "") is not None
