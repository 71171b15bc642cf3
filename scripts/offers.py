"""Canonical offer type and the mapping from raw content records onto it.

Content files were written over several years and the field names drifted.
Every field is resolved on its own through a chain of known keys (newest
first), so a record can mix old and new names without a migration step.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from scripts.prices import is_number

DEFAULT_CTA_LINK = "https://unger-warburg.de/#kontakt"
DEFAULT_IMAGE_BASE = "/assets/offers/"

BULLETS_RECOMMENDED = (5, 10)
FEATURES_MAX = 10

# canonical field -> source keys, newest generation first
FIELD_KEYS: Dict[str, Tuple[str, ...]] = {
    "title": ("title", "name"),
    "category": ("category", "kategorie"),
    "price": ("price", "preis"),
    "reference_price": ("uvp", "rrp"),
    "bullets": ("bullets",),
    "features": ("features",),
    "highlights": ("highlights",),
    "image": ("image", "img"),
    "valid_until": ("valid_to", "valid_until"),
    "featured": ("featured",),
    "note": ("note",),
    "cta_link": ("cta_link", "link"),
    "active": ("active",),
}


@dataclass(frozen=True)
class Feature:
    title: str
    description: str


@dataclass(frozen=True)
class Offer:
    title: str = ""
    category: str = ""
    price: Any = None
    reference_price: Any = None
    bullets: Tuple[str, ...] = ()
    features: Tuple[Feature, ...] = ()
    highlights: Tuple[str, ...] = ()
    image: str = ""
    valid_until: str = ""
    featured: bool = False
    note: str = ""
    cta_link: str = DEFAULT_CTA_LINK
    active: bool = True
    source: str = ""


class OfferWarning(NamedTuple):
    source: str
    field: str
    message: str

    def __str__(self):
        return f"{self.source}: {self.message}"


def pick(raw: Dict[str, Any], field: str):
    """Return ``(key, value)`` of the first present source key for ``field``."""
    for key in FIELD_KEYS[field]:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return key, value
    return None, None


def clean_text(value) -> str:
    if isinstance(value, str):
        return value.strip()
    if is_number(value):
        return str(value)
    return ""


def normalize_price(value):
    """Numbers stay numbers, strings are trimmed, anything else is kept as-is."""
    if isinstance(value, str):
        return value.strip()
    return value


def normalize_bullets(raw) -> Tuple[str, ...]:
    """Accept ``["a", "b"]`` or ``[{"text": "a"}, ...]``; keep order and duplicates."""
    if not isinstance(raw, list):
        return ()
    out: List[str] = []
    for b in raw:
        if isinstance(b, dict) and len(b) == 1:
            b = next(iter(b.values()))
        if isinstance(b, str) and b.strip():
            out.append(b.strip())
    return tuple(out)


def normalize_features(raw) -> Tuple[Feature, ...]:
    if not isinstance(raw, list):
        return ()
    out: List[Feature] = []
    for f in raw:
        if not isinstance(f, dict):
            continue
        title = f.get("title")
        desc = f.get("description")
        title = title.strip() if isinstance(title, str) else ""
        desc = desc.strip() if isinstance(desc, str) else ""
        if title and desc:
            out.append(Feature(title, desc))
    return tuple(out)


def _highlight_text(h) -> str:
    if isinstance(h, str):
        return h.strip()
    if isinstance(h, dict):
        if isinstance(h.get("item"), str):
            return h["item"].strip()
        for v in h.values():
            if isinstance(v, str):
                return v.strip()
    return ""


def normalize_highlights(raw) -> Tuple[str, ...]:
    """Legacy highlights: a string, a list of strings or a list of wrapper objects."""
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return ()
    return tuple(t for t in (_highlight_text(h) for h in raw) if t)


def normalize_date(value) -> str:
    # YAML turns unquoted 2026-12-31 into a date object
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return clean_text(value)


def resolve_image(path: str, key: Optional[str], image_base: str = DEFAULT_IMAGE_BASE,
                  site_url: str = "") -> str:
    """Resolve a relative image path; legacy ``img`` paths are site-absolute."""
    if not path:
        return ""
    if path.startswith(("http://", "https://", "//", "/", "data:")):
        return path
    if path.startswith("./"):
        path = path[2:]
    if key == "img" and site_url:
        return f"{site_url.rstrip('/')}/{path}"
    return f"{image_base.rstrip('/')}/{path}"


def normalize_offer(raw, source: str = "", *, image_base: str = DEFAULT_IMAGE_BASE,
                    site_url: str = "", cta_default: str = DEFAULT_CTA_LINK) -> Offer:
    """Map one raw record onto an :class:`Offer`.

    Unknown shapes map to the emptiest valid offer instead of raising.
    """
    if not isinstance(raw, dict):
        return Offer(cta_link=cta_default, source=source)

    image_key, image = pick(raw, "image")
    _, featured = pick(raw, "featured")
    _, active = pick(raw, "active")

    return Offer(
        title=clean_text(pick(raw, "title")[1]),
        category=clean_text(pick(raw, "category")[1]),
        price=normalize_price(pick(raw, "price")[1]),
        reference_price=normalize_price(pick(raw, "reference_price")[1]),
        bullets=normalize_bullets(pick(raw, "bullets")[1]),
        features=normalize_features(pick(raw, "features")[1]),
        highlights=normalize_highlights(pick(raw, "highlights")[1]),
        image=resolve_image(clean_text(image), image_key, image_base, site_url),
        valid_until=normalize_date(pick(raw, "valid_until")[1]),
        featured=featured is True,
        note=clean_text(pick(raw, "note")[1]),
        cta_link=clean_text(pick(raw, "cta_link")[1]) or cta_default,
        active=active is not False,
        source=source,
    )


def collect_warnings(offer: Offer) -> List[OfferWarning]:
    """Field-quality hints for authors. None of them excludes the offer."""
    warnings: List[OfferWarning] = []
    src = offer.source or "?"
    lo, hi = BULLETS_RECOMMENDED
    n = len(offer.bullets)
    if n and not lo <= n <= hi:
        warnings.append(OfferWarning(src, "bullets", f"{n} Bullets (empfohlen {lo}–{hi})"))
    if len(offer.features) > FEATURES_MAX:
        warnings.append(OfferWarning(
            src, "features", f"{len(offer.features)} Features (maximal {FEATURES_MAX})"))
    if not offer.title:
        warnings.append(OfferWarning(src, "title", "Titel fehlt"))
    if offer.price is None or (isinstance(offer.price, str) and not offer.price):
        warnings.append(OfferWarning(src, "price", "Preis fehlt"))
    if not offer.image:
        warnings.append(OfferWarning(src, "image", "Bild fehlt"))
    return warnings
