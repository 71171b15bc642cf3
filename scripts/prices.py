"""Price formatting, price parsing and discount badges (de-DE, EUR only)."""

from __future__ import annotations

import math
import re

NAN = float("nan")

_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_eur(value) -> str:
    """Return ``value`` as German currency text, e.g. ``1.234,56 €``."""
    try:
        num = float(value)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(num):
        return ""
    digits = f"{abs(num):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if num < 0 and digits != "0,00" else ""
    return f"{sign}{digits}\u00a0€"


def format_price(value) -> str:
    """Numbers are formatted, strings are already author-formatted."""
    if value is None:
        return ""
    if is_number(value):
        return format_eur(value)
    if isinstance(value, str):
        return value.strip()
    return ""


def parse_price_number(text) -> float:
    """Best-effort inverse of :func:`format_price`.

    Keeps digits, comma, period and minus, drops the ``.`` grouping and reads
    ``,`` as the decimal separator. Returns ``NAN`` when no number is left.
    """
    if text is None or text == "":
        return NAN
    cleaned = re.sub(r"[^\d,.\-]", "", str(text))
    cleaned = cleaned.replace(".", "").replace(",", ".")
    m = _NUMBER_RE.match(cleaned)
    if not m:
        return NAN
    try:
        num = float(m.group(0))
    except ValueError:
        return NAN
    return num if math.isfinite(num) else NAN


def discount_percent(price_text, reference_text):
    """Return the rounded discount in percent or ``None`` if there is none."""
    current = parse_price_number(price_text)
    reference = parse_price_number(reference_text)
    if math.isnan(current) or math.isnan(reference):
        return None
    if reference <= 0 or not reference > current:
        return None
    # half-up, not banker's rounding
    percent = math.floor((reference - current) / reference * 100 + 0.5)
    return percent if percent > 0 else None


def discount_badge(price_text, reference_text) -> str:
    percent = discount_percent(price_text, reference_text)
    return f"-{percent}%" if percent else ""


def format_date_de(iso) -> str:
    """Render ``YYYY-MM-DD`` as ``TT.MM.JJJJ``; other input is returned unchanged."""
    if not iso or not isinstance(iso, str):
        return ""
    m = _ISO_DATE_RE.match(iso)
    if not m:
        return iso
    yyyy, mm, dd = m.groups()
    return f"{dd}.{mm}.{yyyy}"
