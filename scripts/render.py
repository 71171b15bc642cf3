"""HTML rendering for the offers page.

Tiles and the grid are Jinja2 templates with autoescaping switched on, so
every value that comes from a content file is escaped. The page shell is a
plain HTML file with ``{{TITLE}}``, ``{{DESCRIPTION}}`` and ``{{CONTENT}}``
tokens that are replaced literally.
"""

from __future__ import annotations

import pathlib
import re
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from scripts.details import DEFAULT_KEYWORDS, SHORT_MAX, SUMMARY_CAP, build_details
from scripts.offers import Offer
from scripts.prices import discount_badge, format_date_de, format_price

ROOT = pathlib.Path(__file__).resolve().parents[1]
TEMPLATES = ROOT / "templates"

PAGE_TOKENS = ("{{TITLE}}", "{{DESCRIPTION}}", "{{CONTENT}}")
_TOKEN_RE = re.compile("|".join(re.escape(t) for t in PAGE_TOKENS))

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES)),
    autoescape=select_autoescape(["html", "jinja"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class TemplateMissingError(FileNotFoundError):
    """The page shell could not be read; nothing can be built without it."""


def load_page_template(path) -> str:
    path = pathlib.Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TemplateMissingError(f"Seitenvorlage fehlt: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateMissingError(f"Seitenvorlage nicht lesbar: {path} ({exc})") from exc


def valid_text(offer: Offer) -> str:
    if not offer.valid_until:
        return ""
    return f"Angebot ist gültig bis {format_date_de(offer.valid_until)}"


def render_tile(offer: Offer, keywords: Sequence[str] = DEFAULT_KEYWORDS,
                short_max: int = SHORT_MAX, cap: int = SUMMARY_CAP) -> Markup:
    price_text = format_price(offer.price)
    uvp_text = format_price(offer.reference_price)
    tpl = env.get_template("offer_tile.html.jinja")
    return Markup(tpl.render(
        offer=offer,
        price_text=price_text,
        uvp_text=uvp_text,
        badge=discount_badge(price_text, uvp_text),
        valid_text=valid_text(offer),
        details=build_details(offer, keywords, short_max, cap),
    ))


def render_offers(offers: Sequence[Offer], **kwargs) -> str:
    """Return the grid of tiles, or the placeholder when ``offers`` is empty."""
    tiles = [render_tile(o, **kwargs) for o in offers]
    return env.get_template("offers_grid.html.jinja").render(tiles=tiles)


def render_page(template: str, content: str, title: str = "", description: str = "") -> str:
    """Substitute every occurrence of the page tokens in ``template``."""
    values = dict(zip(PAGE_TOKENS, (str(escape(title)), str(escape(description)), content)))
    # one pass, so tokens inside the inserted values stay as they are
    return _TOKEN_RE.sub(lambda m: values[m.group(0)], template)
