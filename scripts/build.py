"""Build the offers page from ``content/offers``.

Reads every offer file, maps it onto the canonical :class:`Offer`, drops
inactive and expired offers, sorts the rest and writes the same page to all
configured outputs (``index.html`` and ``angebote.html`` by default).

    python -m scripts.build [--today 2026-10-18] [--out dist/index.html]
"""

import os, json, pathlib, yaml, logging, argparse, unicodedata, datetime as dt
from typing import Any, Dict, List, Optional, Sequence, Tuple

from scripts.details import DEFAULT_KEYWORDS, SHORT_MAX, SUMMARY_CAP
from scripts.offers import (
    DEFAULT_CTA_LINK, DEFAULT_IMAGE_BASE, Offer, collect_warnings, normalize_offer,
)
from scripts.render import (
    TEMPLATES, TemplateMissingError, load_page_template, render_offers, render_page,
)

ROOT = pathlib.Path(__file__).resolve().parents[1]
CONTENT = ROOT / "content" / "offers"
CONFIG_PATH = ROOT / "config" / "offers.yaml"
PAGE_TEMPLATE = TEMPLATES / "offers-page.html"

OFFER_EXTENSIONS = (".json", ".yaml", ".yml")

log = logging.getLogger(__name__)


def load_env_file(path: pathlib.Path):
    if path.exists():
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            os.environ.setdefault(k.strip(), v.strip())


def load_yaml(path):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_config(path: pathlib.Path) -> Dict[str, Any]:
    """Return build settings from YAML file or an empty dict if missing."""
    if path.exists():
        return load_yaml(path) or {}
    return {}


def setting(cfg: Dict[str, Any], key: str, default):
    """Return ``cfg[key]`` unless it is missing or null; 0 and "" are kept."""
    value = cfg.get(key)
    return default if value is None else value


def load_record(path: pathlib.Path):
    """Parse one content file; YAML for ``.yaml``/``.yml``, JSON otherwise."""
    if path.suffix.lower() in (".yaml", ".yml"):
        data = load_yaml(path)
    else:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"erwartet ein Objekt, nicht {type(data).__name__}")
    return data


def load_records(content_dir: pathlib.Path) -> List[Tuple[str, Dict[str, Any]]]:
    """Return ``(file name, raw record)`` for every readable offer file.

    A missing directory means no offers. Broken files are skipped with a
    warning and never stop the build.
    """
    content_dir = pathlib.Path(content_dir)
    if not content_dir.is_dir():
        return []
    records = []
    for p in sorted(content_dir.iterdir()):
        if not p.is_file() or p.suffix.lower() not in OFFER_EXTENSIONS:
            continue
        try:
            records.append((p.name, load_record(p)))
        except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
            log.warning("⚠️ Offer-Datei kaputt: %s (%s)", p.name, exc)
    return records


def parse_iso_date(value) -> Optional[dt.date]:
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if len(value) != 10:
        return None
    try:
        return dt.datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def is_expired(offer: Offer, today: dt.date) -> bool:
    """Expired means a valid date strictly before ``today``; bad dates never expire."""
    d = parse_iso_date(offer.valid_until)
    return d is not None and d < today


def german_sort_key(title: str):
    """DIN 5007-1 ordering: umlauts sort with their base letter, ß as ss."""
    folded = title.casefold().replace("ß", "ss")
    base = "".join(
        c for c in unicodedata.normalize("NFD", folded) if not unicodedata.combining(c)
    )
    return (base, folded, title)


def sort_offers(offers: Sequence[Offer]) -> List[Offer]:
    """Featured first, then by title in German order. Stable for equal keys."""
    return sorted(offers, key=lambda o: (not o.featured, german_sort_key(o.title)))


def filter_offers(offers: Sequence[Offer], today: dt.date) -> List[Offer]:
    """Drop inactive and expired offers and return the rest in display order."""
    kept = [o for o in offers if o.active and not is_expired(o, today)]
    return sort_offers(kept)


def read_offers(content_dir: pathlib.Path, today: dt.date, cfg: Optional[Dict[str, Any]] = None,
                site_url: str = "") -> List[Offer]:
    cfg = cfg or {}
    offers = []
    for name, raw in load_records(content_dir):
        offer = normalize_offer(
            raw,
            name,
            image_base=cfg.get("image_base") or DEFAULT_IMAGE_BASE,
            site_url=site_url,
            cta_default=cfg.get("cta_default") or DEFAULT_CTA_LINK,
        )
        for w in collect_warnings(offer):
            log.warning("⚠️ %s", w)
        offers.append(offer)
    return filter_offers(offers, today)


def write_pages(html: str, targets: Sequence[pathlib.Path]):
    """Overwrite every target with ``html``.

    All temp files are written before the first target is replaced, so a
    target that cannot be written leaves every existing page untouched.
    """
    staged = []
    try:
        for target in targets:
            target = pathlib.Path(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_name(f".{target.name}.tmp")
            staged.append((tmp, target))
            tmp.write_text(html, encoding="utf-8")
        for tmp, target in staged:
            os.replace(tmp, target)
    finally:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)


def build(content_dir: pathlib.Path = CONTENT, template_path: pathlib.Path = PAGE_TEMPLATE,
          outputs: Optional[Sequence[pathlib.Path]] = None, today: Optional[dt.date] = None,
          cfg: Optional[Dict[str, Any]] = None, site_url: str = "") -> List[Offer]:
    """Run the whole pipeline once and return the rendered offers."""
    cfg = cfg if cfg is not None else load_config(CONFIG_PATH)
    today = today or dt.date.today()
    if outputs is None:
        outputs = [ROOT / p for p in cfg.get("outputs") or ["index.html", "angebote.html"]]

    # read the shell first so a missing template fails before anything else
    template = load_page_template(template_path)
    offers = read_offers(content_dir, today, cfg, site_url)

    content = render_offers(
        offers,
        keywords=cfg.get("detail_keywords") or DEFAULT_KEYWORDS,
        short_max=int(setting(cfg, "short_highlight_max", SHORT_MAX)),
        cap=int(setting(cfg, "summary_cap", SUMMARY_CAP)),
    )
    html = render_page(
        template,
        content,
        title=cfg.get("site_title", ""),
        description=cfg.get("site_description", ""),
    )
    write_pages(html, outputs)
    log.info("✔ Angebote gebaut: %d", len(offers))
    return offers


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the offers page from content/offers.")
    parser.add_argument("--content", help="Directory with offer files (default: content/offers).")
    parser.add_argument("--template", help="Page template (default: templates/offers-page.html).")
    parser.add_argument("--out", action="append", help="Output file, may be given several times.")
    parser.add_argument("--today", type=dt.date.fromisoformat,
                        help="Reference date for expiry checks (YYYY-MM-DD).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    load_env_file(ROOT / ".env")
    content_dir = pathlib.Path(args.content or os.getenv("OFFERS_DIR") or CONTENT)
    template_path = pathlib.Path(args.template or os.getenv("OFFERS_TEMPLATE") or PAGE_TEMPLATE)
    outputs = [pathlib.Path(p) for p in args.out] if args.out else None
    site_url = os.getenv("SITE_URL", "https://unger-warburg.de").strip()
    try:
        build(content_dir, template_path, outputs, args.today, site_url=site_url)
    except TemplateMissingError as exc:
        print(f"❌ {exc}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
