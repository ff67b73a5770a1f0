"""
Cell value helpers shared by the comparison, quality and sorting modules.

Rows arrive from SQL drivers, so a cell can be a string, a number, a boolean,
a date, NULL (None / NaN / pd.NA / pd.NaT) or a binary blob. These helpers give
every other module one consistent answer to "is this null", "is this binary"
and "what is the canonical text of this value".
"""

import datetime as dt
import json
import re
from decimal import Decimal
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd


NULL_TOKEN = "\x00"
SIGNATURE_SEPARATOR = "\x1f"
NULL_DISPLAY = "NULL"

_REFERENCE_ID_PATTERN = re.compile(r"\(ID:\s*([^)]+)\)")
_REFERENCE_SUFFIX_PATTERN = re.compile(r"\n?\(ID:\s*[^)]+\)\s*$")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_DIGITS_PATTERN = re.compile(r"^\d+$")


def is_null(value: Any) -> bool:
    """Check if a cell value is NULL (None, NaN, pd.NA or pd.NaT)"""
    if value is None:
        return True
    if isinstance(value, (str, bytes, bytearray, memoryview, bool)):
        return False
    if not pd.api.types.is_scalar(value):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def is_binary(value: Any) -> bool:
    """Check if a value is a binary blob or a serialized buffer mapping"""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return True
    return (
        isinstance(value, dict)
        and value.get('type') == 'Buffer'
        and isinstance(value.get('data'), list)
    )


def binary_bytes(value: Any) -> bytes:
    """Return the raw bytes behind a binary marker"""
    if isinstance(value, dict):
        return bytes(int(b) & 0xFF for b in value['data'])
    return bytes(value)


def _format_number(value: Any) -> str:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        normalized = value.normalize()
        if normalized == normalized.to_integral_value():
            return str(normalized.quantize(Decimal(1)))
        return format(normalized, 'f')
    return str(value)


def canonical_text(value: Any) -> Optional[str]:
    """
    Convert a cell value to its canonical string form.

    Returns None for NULL values. Booleans become ``"true"``/``"false"``,
    integral floats lose their fractional part (``2.0`` -> ``"2"``), dates use
    ISO format, binary values become ``0x``-prefixed hex and containers are
    serialized as JSON with sorted keys.
    """
    if is_null(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, np.bool_)):
        return 'true' if value else 'false'
    if isinstance(value, (int, float, Decimal, np.number)):
        return _format_number(value)
    if isinstance(value, (pd.Timestamp, dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).isoformat()
    if is_binary(value):
        return '0x' + binary_bytes(value).hex()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def _escape(text: str) -> str:
    return (
        text.replace('\\', '\\\\')
        .replace(NULL_TOKEN, '\\0')
        .replace(SIGNATURE_SEPARATOR, '\\x1f')
    )


def canonicalize(value: Any, normalize_text: bool = False) -> str:
    """
    Canonicalize a value for signature building.

    NULL becomes :data:`NULL_TOKEN`; everything else becomes its canonical
    text with the token and :data:`SIGNATURE_SEPARATOR` escaped, so joined
    signatures can never collide.

    Args:
        value: Cell value
        normalize_text: If True, strip reference suffixes, collapse
            whitespace and lower-case non-numeric strings; blank strings
            become NULL.
    """
    text = canonical_text(value)
    if text is None:
        return NULL_TOKEN
    if normalize_text and isinstance(value, str):
        text = normalize_display_text(text)
        if not text:
            return NULL_TOKEN
    return _escape(text)


def normalize_display_text(text: str) -> str:
    """Lenient text normalization used for data-quality signatures"""
    cleaned = _REFERENCE_SUFFIX_PATTERN.sub('', text)
    cleaned = _WHITESPACE_PATTERN.sub(' ', cleaned).strip()
    if _DIGITS_PATTERN.match(cleaned):
        # keep leading zeros and exact digits
        return cleaned
    return cleaned.lower()


def extract_reference_id(value: Any) -> Any:
    """
    Extract the referenced id from a display value like ``"Name\\n(ID: 42)"``.

    Values without an ``(ID: ...)`` marker are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    match = _REFERENCE_ID_PATTERN.search(value)
    if match:
        return match.group(1).strip()
    return value


def split_display_name(value: Any) -> Tuple[str, str]:
    """
    Split the display part off a reference value.

    Returns:
        (normalized, original) where original is the text before the first
        newline or ``(ID`` marker, and normalized is its case-folded form.
        Both are empty for NULL values.
    """
    if is_null(value):
        return '', ''
    raw = canonical_text(value) or ''
    end = len(raw)
    for marker in ('\n', '(ID'):
        position = raw.find(marker)
        if position >= 0:
            end = min(end, position)
    display = raw[:end].strip()
    return display.casefold(), display


def format_cell_value(value: Any) -> str:
    """Human readable rendering of a cell value"""
    if is_null(value):
        return NULL_DISPLAY
    if is_binary(value):
        return f"[Binary Data - {len(binary_bytes(value))} bytes]"
    text = canonical_text(value)
    return text if text is not None else NULL_DISPLAY
