"""Opaque session token encoding.

Tokens are ``base64("<email>:<issued-at-millis>")``. They carry no signature
and no expiry: whether a token is accepted is decided by looking the decoded
email up in the registry.
"""

from __future__ import annotations

import base64
import binascii
import re
import time
from dataclasses import dataclass
from typing import Optional

TOKEN_SEPARATOR = ":"

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")
_NON_ALPHABET = re.compile(r"[^A-Za-z0-9+/]")


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of :func:`decode_token`: either an ``email`` or an ``error``."""

    email: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _current_millis() -> int:
    return time.time_ns() // 1_000_000


def generate_token(email: str, *, issued_at_ms: Optional[int] = None) -> str:
    if issued_at_ms is None:
        issued_at_ms = _current_millis()
    payload = f"{email}{TOKEN_SEPARATOR}{issued_at_ms}"
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_token(token: object) -> DecodeResult:
    """Extract the email embedded in ``token`` without ever raising.

    Decoding is lenient: URL-safe characters are accepted, whitespace and
    other characters outside the base64 alphabet are skipped, padding is
    optional, a dangling final character is dropped and bytes that are not
    valid UTF-8 are replaced. Only non-string input yields an error.
    """

    if not isinstance(token, str):
        return DecodeResult(error="Token must be a string")

    data = token.split("=", 1)[0].translate(_URLSAFE_TO_STANDARD)
    data = _NON_ALPHABET.sub("", data)
    if len(data) % 4 == 1:
        data = data[:-1]
    data += "=" * (-len(data) % 4)

    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return DecodeResult(error="Token is not valid base64")

    text = raw.decode("utf-8", errors="replace")
    return DecodeResult(email=text.split(TOKEN_SEPARATOR, 1)[0])


__all__ = ["DecodeResult", "TOKEN_SEPARATOR", "decode_token", "generate_token"]
