# src/json_formatter/domain/services/json_text.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Display text for JSON leaves.

Purpose:
    Produce the exact text shown for strings, keys and numbers so that the
    rendered tree reads like the JSON it came from.

Layer:
    domain/services

Notes:
    - String escaping follows the native JSON stringify rule, so
      ``json.loads('"' + escape_json_string(s) + '"') == s`` for every ``s``.
    - U+FFFE and U+FFFF are escaped as well: the element tree only stores
      XML-compatible text.
    - Numbers are shown the way a JavaScript host prints an IEEE-754 double.
"""

from __future__ import annotations

import math
import re
from typing import Final
from urllib.parse import quote

__all__ = [
    "escape_json_string",
    "format_number",
    "is_link_candidate",
    "xml_safe_href",
]

_SHORT_ESCAPES: Final[dict[str, str]] = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_NEEDS_ESCAPE: Final[re.Pattern[str]] = re.compile(r'["\\\x00-\x1f\ud800-\udfff\ufffe\uffff]')
_NOT_XML_SAFE: Final[re.Pattern[str]] = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]"
)

_LINK_PREFIXES: Final[tuple[str, ...]] = ("https://", "http://", "/")

# Decimal exponent bounds of the plain (non-exponential) notation.
_MAX_PLAIN_EXPONENT: Final[int] = 21
_MIN_PLAIN_EXPONENT: Final[int] = -6


def _escape_match(match: re.Match[str]) -> str:
    ch = match.group()
    return _SHORT_ESCAPES.get(ch) or f"\\u{ord(ch):04x}"


def escape_json_string(text: str) -> str:
    """Escape ``text`` for display between double quotes.

    Args:
        text: Raw string value or object key.

    Returns:
        The escaped text, without surrounding quotes.
    """
    return _NEEDS_ESCAPE.sub(_escape_match, text)


def is_link_candidate(text: str) -> bool:
    """Return True when a raw string value should render as a hyperlink."""
    return text.startswith(_LINK_PREFIXES)


def xml_safe_href(text: str) -> str:
    """Percent-encode the characters an attribute value cannot hold."""
    return _NOT_XML_SAFE.sub(lambda m: quote(m.group(), safe="", errors="surrogatepass"), text)


def _shortest_digits(value: float) -> tuple[str, int]:
    """Split a positive finite double into its shortest digits and exponent.

    Returns:
        ``(digits, n)`` such that ``value == 0.<digits> * 10**n`` and
        ``digits`` has no leading or trailing zeros.
    """
    mantissa, _, exp = repr(value).partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    all_digits = int_part + frac_part
    point = len(int_part) + (int(exp) if exp else 0)
    stripped = all_digits.lstrip("0")
    point -= len(all_digits) - len(stripped)
    return stripped.rstrip("0"), point


def format_number(value: int | float) -> str:
    """Return the canonical display form of a JSON number.

    Integers are converted to doubles first, so precision beyond 2**53 is
    lost exactly as in a JavaScript host.

    Args:
        value: Parsed number.

    Returns:
        Shortest round-trip text; exponential outside ``1e-7 < |x| < 1e21``.
    """
    if isinstance(value, int):
        try:
            value = float(value)
        except OverflowError:
            return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    digits, n = _shortest_digits(abs(value))
    k = len(digits)

    if k <= n <= _MAX_PLAIN_EXPONENT:
        return sign + digits + "0" * (n - k)
    if 0 < n <= _MAX_PLAIN_EXPONENT:
        return sign + digits[:n] + "." + digits[n:]
    if _MIN_PLAIN_EXPONENT < n <= 0:
        return sign + "0." + "0" * (-n) + digits

    e = n - 1
    exponent = f"e{'+' if e >= 0 else '-'}{abs(e)}"
    if k == 1:
        return sign + digits + exponent
    return sign + digits[0] + "." + digits[1:] + exponent
