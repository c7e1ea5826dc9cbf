"""Reusable parsing helpers shared by the offer extractors."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

_NUMBER = r"\d+(?:[.,]\d+)*"

AMOUNT_BEFORE_EURO = re.compile(rf"({_NUMBER})\s*€")
AMOUNT_AFTER_EURO = re.compile(rf"€\s*({_NUMBER})")
FIRST_NUMBER = re.compile(rf"({_NUMBER})")

PRICE_PHRASE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(rf"ab\s*({_NUMBER})\s*€", re.IGNORECASE),
    re.compile(rf"({_NUMBER})\s*€\s*p\.\s?P\.", re.IGNORECASE),
    re.compile(rf"preis\s*:?\s*({_NUMBER})\s*€", re.IGNORECASE),
    re.compile(rf"({_NUMBER})\s*€\s*pro\s*Person", re.IGNORECASE),
    re.compile(rf"({_NUMBER})\s*€\s*(?:/|pro)\s*Nacht", re.IGNORECASE),
    re.compile(rf"({_NUMBER})\s*€\s*(?:/|pro)\s*Zimmer", re.IGNORECASE),
)
BARE_PRICE_PATTERN = re.compile(rf"({_NUMBER})\s*€")

_DURATION_UNITS = r"Übernachtungen|Übernachtung|Nächten?|Nacht|Tagen?|Tage|Tag|ÜN"
DURATION_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(rf"(\d+)\s*(?:x\s*)?(?:{_DURATION_UNITS})\b", re.IGNORECASE),
    re.compile(rf"(?:Aufenthalt|Dauer)\s*:?\s*(\d+)\s*(?:{_DURATION_UNITS})", re.IGNORECASE),
    re.compile(r"(\d+)[-\s]Tages[-\s]Reise", re.IGNORECASE),
    re.compile(r"(\d+)[-\s]Tage[-\s]Angebot", re.IGNORECASE),
)
_NIGHT_MARKERS = ("nacht", "nächte", "übernacht", "ün")

_DATE = r"\d{1,2}\.\d{1,2}\.\d{4}|\d{4}-\d{2}-\d{2}"
DATE_PAIR_PATTERN = re.compile(
    rf"(?:Anreise|Check-in)[:;\s]+({_DATE}).*?(?:Abreise|Check-out)[:;\s]+({_DATE})",
    re.IGNORECASE | re.DOTALL,
)
_DATE_FORMATS = ["%d.%m.%Y", "%Y-%m-%d"]

PHONE_PATTERN = re.compile(r"^\+?\d[\d\s-]{7,}$")

ERROR_KEYWORDS: Tuple[str, ...] = (
    "keine angebote",
    "nicht verfügbar",
    "keine ergebnisse",
    "leider",
    "suche",
    "sorry",
    "fehler",
)

HOSPITALITY_KEYWORDS: Tuple[str, ...] = (
    "pool", "strand", "meer", "zimmer", "frühstück", "restaurant", "spa", "wellness",
    "lage", "zentral", "aussicht", "blick", "view", "familie", "kinder", "suite",
    "design", "bar", "terrasse", "balkon", "service", "sport", "aktivität", "lounge",
    "fitness", "massage", "sauna", "garten", "beach", "zentrum", "natur", "luxus",
)

NON_FEATURE_KEYWORDS: Tuple[str, ...] = (
    "kontakt", "impressum", "datenschutz", "agb", "login", "registrieren", "anmelden",
    "abmelden", "buchen", "anfrage", "suchen", "telefon", "e-mail", "newsletter",
    "konto", "menü", "reisebüro", "finden", "ucandoo", "zahlbar", "seite",
    "verlassen", "neuendorfer", "straße", "gmbh", "persönlich",
)

SPECIAL_FRAGMENTS: Tuple[str, ...] = (
    "http", "www.", "@", "tel:", "gmbh", "persönlich", "str.", "straße",
)


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def element_text(element: Tag) -> str:
    """Return the visible text of ``element`` with whitespace collapsed."""

    return collapse_whitespace(element.get_text(" "))


def select_all(root: BeautifulSoup | Tag, selectors: Sequence[str]) -> List[Tag]:
    """Return matches of a selector group in document order."""

    if not selectors:
        return []
    return list(root.select(", ".join(selectors)))


def first_text(root: BeautifulSoup | Tag, selectors: Sequence[str]) -> Optional[str]:
    """Return the first non-empty text found using the provided selectors."""

    for selector in selectors:
        element = root.select_one(selector)
        if element is None:
            continue
        text = element_text(element)
        if text:
            return text
    return None


def first_attribute(element: Tag, attributes: Iterable[str]) -> Optional[str]:
    for attribute in attributes:
        value = element.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        if value and value.strip():
            return value.strip()
    return None


def _format_amount(token: str) -> str:
    decimal_match = re.fullmatch(r"(.+?)[.,](\d{1,2})", token)
    if decimal_match:
        whole, decimals = decimal_match.groups()
    else:
        whole, decimals = token, None
    digits = re.sub(r"\D", "", whole) or "0"
    grouped = f"{int(digits):,}".replace(",", ".")
    if decimals:
        return f"{grouped},{decimals.ljust(2, '0')}"
    return grouped


def normalize_price(text: str) -> str:
    """Normalise a price snippet to the German ``ab 1.299,00 €`` form.

    The amount next to the euro sign wins over other numbers in the snippet.
    A trailing ``.``/``,`` group of one or two digits is read as decimals and
    every other separator as thousands grouping. Text without digits is only
    whitespace-collapsed, so the function is idempotent.
    """

    collapsed = collapse_whitespace(text)
    match = (
        AMOUNT_BEFORE_EURO.search(collapsed)
        or AMOUNT_AFTER_EURO.search(collapsed)
        or FIRST_NUMBER.search(collapsed)
    )
    if not match:
        return collapsed
    return f"ab {_format_amount(match.group(1))} €"


def parse_date(value: str | None) -> Optional[date]:
    if not value:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def format_duration(count: int, nights: bool) -> str:
    if nights:
        return f"{count} {'Nacht' if count == 1 else 'Nächte'}"
    return f"{count} {'Tag' if count == 1 else 'Tage'}"


def parse_duration(text: str, max_days: int = 30) -> Optional[str]:
    """Return the first plausible ``<N> Tage/Nächte`` mention in ``text``."""

    for pattern in DURATION_PATTERNS:
        for match in pattern.finditer(text):
            count = int(match.group(1))
            if not 0 < count <= max_days:
                continue
            lowered = match.group(0).lower()
            nights = any(marker in lowered for marker in _NIGHT_MARKERS)
            return format_duration(count, nights)
    return None


def parse_date_span(text: str, max_days: int = 30) -> Optional[str]:
    """Derive a duration from an arrival/departure date pair."""

    match = DATE_PAIR_PATTERN.search(text)
    if not match:
        return None
    start = parse_date(match.group(1))
    end = parse_date(match.group(2))
    if start is None or end is None:
        return None
    days = abs((end - start).days)
    if not 0 < days <= max_days:
        return None
    return format_duration(days, nights=False)


def title_case(text: str) -> str:
    return re.sub(r"\w+", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)


def dedupe_fragments(text: str) -> str:
    """Split on commas and ampersands, drop repeats, rejoin with ``", "``."""

    if "," not in text and "&" not in text:
        return text.strip()
    unique: List[str] = []
    seen = set()
    for part in re.split(r"[,&]", text):
        trimmed = part.strip()
        if trimmed and trimmed.lower() not in seen:
            seen.add(trimmed.lower())
            unique.append(trimmed)
    return ", ".join(unique)


def normalize_destination(text: str) -> str:
    cleaned = title_case(text.replace("-", " "))
    return dedupe_fragments(collapse_whitespace(cleaned))


def clean_destination(text: str) -> str:
    """Destination form embedded into prompts and checked by the validator."""

    return dedupe_fragments(collapse_whitespace(text))


@dataclass(frozen=True)
class FeatureFilter:
    """Heuristic predicate separating hotel amenities from site boilerplate."""

    feature_keywords: Tuple[str, ...] = HOSPITALITY_KEYWORDS
    non_feature_keywords: Tuple[str, ...] = NON_FEATURE_KEYWORDS
    error_keywords: Tuple[str, ...] = ERROR_KEYWORDS
    special_fragments: Tuple[str, ...] = SPECIAL_FRAGMENTS
    min_length: int = 8
    max_length: int = 70

    def __call__(self, text: str) -> bool:
        lowered = text.lower()
        if any(keyword in lowered for keyword in self.error_keywords):
            return False
        if not any(keyword in lowered for keyword in self.feature_keywords):
            return False
        if any(keyword in lowered for keyword in self.non_feature_keywords):
            return False
        if not self.min_length < len(text) < self.max_length:
            return False
        if any(fragment in lowered for fragment in self.special_fragments):
            return False
        return not PHONE_PATTERN.match(lowered)


DEFAULT_FEATURE_FILTER = FeatureFilter()
