"""Split offer descriptions into a short summary and an expandable detail block.

Structured ``features`` win over legacy ``highlights``. Legacy highlights are
free text copied from vendor material: short ones are shown on the tile
directly, long ones go into the detail block. A single long passage is cut
into feature blocks at known marketing keywords (``detail_keywords`` in
``config/offers.yaml``). That split is a heuristic and can misfire on new
vendor phrasing; when fewer than two keywords match the passage is rendered as
plain paragraphs instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from scripts.offers import Feature, Offer

SHORT_MAX = 140
SUMMARY_CAP = 4

DEFAULT_KEYWORDS = (
    "AutoDose",
    "TwinDos",
    "SteamCare",
    "PowerWash",
    "QuickPower",
    "ProMix",
    "VarioSpeed",
    "EcoSilence Drive",
    "Zeolith",
    "Home Connect",
    "SmartThings",
    "Dolby Atmos",
    "HDR10+",
    "Ambilight",
)

_WS_RE = re.compile(r"\s+")
_DASH_RE = re.compile(r"\s+(?:--|[-–—])\s+")
_PARA_RE = re.compile(r"\n\s*\n")
_LEAD_SEP_RE = re.compile(r"^[\s:;,\-–—]+")


@dataclass(frozen=True)
class DetailView:
    summary: Tuple[str, ...] = ()
    bullets: Tuple[str, ...] = ()
    features: Tuple[Feature, ...] = ()
    paragraphs: Tuple[str, ...] = ()

    @property
    def has_details(self) -> bool:
        return bool(self.bullets or self.features or self.paragraphs)


def normalize_text(text: str) -> str:
    """Collapse whitespace and unify spaced dashes to `` – ``."""
    text = _WS_RE.sub(" ", text or "").strip()
    return _DASH_RE.sub(" – ", text)


def split_paragraphs(text: str) -> List[str]:
    return [p for p in (normalize_text(x) for x in _PARA_RE.split(text or "")) if p]


def partition_highlights(highlights: Iterable[str], short_max: int = SHORT_MAX,
                         cap: int = SUMMARY_CAP) -> Tuple[List[str], List[str]]:
    """Return ``(short, long)``; short entries beyond ``cap`` are moved to long."""
    short: List[str] = []
    long: List[str] = []
    for h in highlights:
        if len(normalize_text(h)) <= short_max:
            short.append(h)
        else:
            long.append(h)
    return short[:cap], short[cap:] + long


def _anchor_pattern(keyword: str) -> re.Pattern:
    # \b does not work next to "+" or other punctuation at the edges
    return re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)", re.IGNORECASE)


def find_anchors(text: str, keywords: Sequence[str]) -> List[Tuple[int, int, str]]:
    """Return non-overlapping ``(start, end, keyword)`` matches in text order."""
    hits = []
    for kw in keywords:
        if not kw:
            continue
        for m in _anchor_pattern(kw).finditer(text):
            hits.append((m.start(), m.end(), kw))
    # longest keyword wins when two start at the same position
    hits.sort(key=lambda h: (h[0], -(h[1] - h[0])))
    anchors = []
    last_end = -1
    for start, end, kw in hits:
        if start < last_end:
            continue
        anchors.append((start, end, kw))
        last_end = end
    return anchors


def segment_long_text(text: str, keywords: Sequence[str] = DEFAULT_KEYWORDS):
    """Cut ``text`` into ``(intro, blocks)`` at keyword anchors.

    Returns ``None`` when fewer than two anchors are found.
    """
    text = normalize_text(text)
    anchors = find_anchors(text, keywords)
    if len(anchors) < 2:
        return None
    intro = text[:anchors[0][0]].strip()
    blocks: List[Feature] = []
    for i, (start, end, kw) in enumerate(anchors):
        stop = anchors[i + 1][0] if i + 1 < len(anchors) else len(text)
        body = _LEAD_SEP_RE.sub("", text[end:stop]).strip()
        if body:
            blocks.append(Feature(kw, body))
    return intro, blocks


def build_details(offer: Offer, keywords: Sequence[str] = DEFAULT_KEYWORDS,
                  short_max: int = SHORT_MAX, cap: int = SUMMARY_CAP) -> DetailView:
    """Derive the summary lines and the expandable content for ``offer``.

    Bullets always go into the expandable block, on every record.
    """
    bullets = tuple(normalize_text(b) for b in offer.bullets)
    if offer.features:
        features = tuple(
            Feature(normalize_text(f.title), normalize_text(f.description))
            for f in offer.features
        )
        return DetailView(bullets=bullets, features=features)

    short, long = partition_highlights(offer.highlights, short_max, cap)
    summary = tuple(normalize_text(s) for s in short)
    features = ()
    paragraphs: List[str] = []

    if len(long) == 1:
        segmented = segment_long_text(long[0], keywords)
        if segmented and segmented[1]:
            intro, blocks = segmented
            if intro:
                paragraphs.append(intro)
            features = tuple(blocks)
        else:
            paragraphs.extend(split_paragraphs(long[0]))
    else:
        for text in long:
            paragraphs.extend(split_paragraphs(text))

    return DetailView(summary=summary, bullets=bullets, features=features,
                      paragraphs=tuple(paragraphs))
