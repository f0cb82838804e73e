"""Scrub raw channel output down to printable text."""

from __future__ import annotations

_TAB = 0x09
_LF = 0x0A


def _keep(char: str) -> bool:
    code = ord(char)
    return 0x20 <= code <= 0x7E or code in (_TAB, _LF)


def clean_output(raw: str | None, preserve_leading: bool = False) -> str:
    """Strip NULs, carriage returns and anything outside printable ASCII.

    Trailing newlines always go. With ``preserve_leading`` the leading
    whitespace survives, because porcelain status encodes meaning in the
    first column.
    """
    if not raw:
        return ""

    cleaned = raw.replace("\0", "").replace("\r", "")
    cleaned = "".join(c for c in cleaned if _keep(c))
    cleaned = cleaned.rstrip("\n")

    if preserve_leading:
        return cleaned
    return cleaned.strip()
