"""CLI command implementations and shared utilities."""

from __future__ import annotations

import os
import sys

# Result marker per outcome: (Unicode, ASCII fallback)
_STATUS_SYMBOLS = {
    True: ("✓", "[ OK ]"),
    False: ("✗", "[ FAIL ]"),
}


def can_display(text: str) -> bool:
    """Whether stdout can show text as-is."""
    # conhost (classic Windows console) mangles non-ASCII whatever the encoding
    if os.name == "nt" and "WT_SESSION" not in os.environ:
        return False

    encoding = sys.stdout.encoding
    if not encoding:
        return False
    try:
        text.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def status_symbol(ok: bool) -> str:
    """Marker for a finished recipe: a tick or cross, or their ASCII stand-ins."""
    symbol, fallback = _STATUS_SYMBOLS[ok]
    return symbol if can_display(symbol) else fallback
