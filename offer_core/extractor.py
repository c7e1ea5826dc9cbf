"""Heuristic extraction of hotel offers from travel-site HTML."""
from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .emoji import DEFAULT_MAPPER, EmojiMapper
from .models import DEFAULT_FEATURE_ICON, MAX_FEATURES, PLACEHOLDER_DESTINATION, ExtractionFailure, OfferData
from .sources.html_common import (
    BARE_PRICE_PATTERN,
    DEFAULT_FEATURE_FILTER,
    PRICE_PHRASE_PATTERNS,
    FeatureFilter,
    collapse_whitespace,
    element_text,
    first_attribute,
    first_text,
    normalize_destination,
    normalize_price,
    parse_date_span,
    parse_duration,
    select_all,
)
from .sources.site_profiles import DEFAULT_PROFILE, SiteProfile

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

MIN_NAME_LENGTH = 3
MIN_FEATURES = 4

_NON_CONTENT_TAGS = ("script", "style", "noscript", "template")
_DURATION_MARKERS = ("Tag", "Nacht", "Nächte", "Übernacht", "ÜN")
_PRICE_UI_WORDS = ("suchen", "buchen", "anmelden")
_BREADCRUMB_NOISE = ("home", "start", "hotel")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")

LUXURY_FEATURES: Tuple[Tuple[str, str], ...] = (
    ("Luxuriöse Ausstattung", "✨"),
    ("Erstklassiger Service", "👑"),
)
COMFORT_FEATURES: Tuple[Tuple[str, str], ...] = (
    ("Komfortable Zimmer", "🛏️"),
    ("Qualitätsservice", "👍"),
)
GENERIC_FEATURES: Tuple[Tuple[str, str], ...] = (
    ("Komfortable Zimmer mit stilvollem Design", "🛏️"),
    ("Ideale Lage für Ihren {destination} Aufenthalt", "📍"),
    ("Hervorragender Service und Komfort", "👑"),
    ("Entspannung und Erholung garantiert", "🧘"),
)

MINIMAL_FEATURE_KEYWORDS: Tuple[str, ...] = (
    "pool", "strand", "meer", "frühstück", "restaurant", "spa", "wellness",
    "zentral", "aussicht", "blick", "kinder", "suite", "bar",
)
MINIMAL_DEFAULT_FEATURES: Tuple[str, ...] = ("Komfortable Zimmer", "Zentrale Lage")
MINIMAL_DESTINATION = "Reiseziel"


@dataclass(frozen=True, eq=False)
class OfferPage:
    """Parsed document plus the context every field strategy may consult."""

    soup: BeautifulSoup
    url: str
    body_text: str
    title: str
    profile: SiteProfile = DEFAULT_PROFILE
    name: str = ""
    max_duration_days: int = 30


Strategy = Callable[[OfferPage], Optional[T]]


def first_result(strategies: Iterable[Strategy[T]], page: OfferPage) -> Optional[T]:
    """Run ``strategies`` in order and return the first non-empty result."""

    for strategy in strategies:
        result = strategy(page)
        if result:
            return result
    return None


def load_page(
    html: str, url: str, profile: SiteProfile = DEFAULT_PROFILE, max_duration_days: int = 30
) -> OfferPage:
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(list(_NON_CONTENT_TAGS)):
        tag.decompose()
    body = soup.body or soup
    title_tag = soup.title
    return OfferPage(
        soup=soup,
        url=url,
        body_text=collapse_whitespace(body.get_text(" ")),
        title=collapse_whitespace(title_tag.get_text(" ")) if title_tag else "",
        profile=profile,
        max_duration_days=max_duration_days,
    )


def _name_from_selectors(page: OfferPage) -> Optional[str]:
    return first_text(page.soup, page.profile.name)


def repair_name(name: str, title: str, profile: SiteProfile = DEFAULT_PROFILE) -> str:
    """Recover brand names cut at ``&`` and drop query-string artefacts."""

    for truncated, marker, pattern, label in profile.brand_repairs:
        if name == truncated and marker in title:
            match = re.search(pattern, title, re.IGNORECASE)
            name = match.group(0).strip() if match else label
            break
    if "?" in name:
        name = name.split("?")[0].strip()
    return name


NAME_STRATEGIES: Tuple[Strategy[str], ...] = (_name_from_selectors,)


def _category_from_icons(page: OfferPage) -> Optional[str]:
    icons = {}
    for container in select_all(page.soup, page.profile.category_containers):
        for icon in select_all(container, page.profile.star_icons):
            icons[id(icon)] = icon
    count = len(icons)
    if 0 < count <= 5:
        return f"{count}-Sterne Hotel"
    return None


def _category_from_text(page: OfferPage) -> Optional[str]:
    for stars in range(5, 0, -1):
        pattern = rf"(?<!\d){stars}(?:\s*Sterne?|-Sterne|\*)"
        if re.search(pattern, page.body_text):
            return f"{stars}-Sterne Hotel"
    return None


CATEGORY_STRATEGIES: Tuple[Strategy[str], ...] = (_category_from_icons, _category_from_text)


def _has_euro_amount(text: str) -> bool:
    return "€" in text and any(char.isdigit() for char in text)


def _price_from_elements(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.price):
        text = element_text(element)
        if _has_euro_amount(text):
            return text
    return None


def _price_from_phrases(page: OfferPage) -> Optional[str]:
    for pattern in PRICE_PHRASE_PATTERNS:
        match = pattern.search(page.body_text)
        if match:
            return match.group(0)
    return None


def _price_from_short_blocks(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.price_candidates):
        text = element_text(element)
        if len(text) >= 50 or not _has_euro_amount(text):
            continue
        lowered = text.lower()
        if any(word in lowered for word in _PRICE_UI_WORDS):
            continue
        return text
    return None


def _price_from_bare_amount(page: OfferPage) -> Optional[str]:
    match = BARE_PRICE_PATTERN.search(page.body_text)
    if match:
        return f"{match.group(1)} €"
    return None


PRICE_STRATEGIES: Tuple[Strategy[str], ...] = (
    _price_from_elements,
    _price_from_phrases,
    _price_from_short_blocks,
    _price_from_bare_amount,
)


def _duration_from_elements(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.duration):
        text = element_text(element)
        if not any(marker in text for marker in _DURATION_MARKERS):
            continue
        parsed = parse_duration(text, page.max_duration_days)
        if parsed:
            return parsed
    return None


def _duration_from_text(page: OfferPage) -> Optional[str]:
    return parse_duration(page.body_text, page.max_duration_days)


def _duration_from_dates(page: OfferPage) -> Optional[str]:
    return parse_date_span(page.body_text, page.max_duration_days)


DURATION_STRATEGIES: Tuple[Strategy[str], ...] = (
    _duration_from_elements,
    _duration_from_text,
    _duration_from_dates,
)


def _mentions_name(text: str, name: str) -> bool:
    return bool(name) and name in text


def _destination_from_location(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.location):
        text = element_text(element)
        if 2 < len(text) <= 80 and "http" not in text and not _mentions_name(text, page.name):
            return text
    return None


def _destination_from_breadcrumbs(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.breadcrumb_items):
        text = element_text(element)
        lowered = text.lower()
        if len(text) <= 2 or any(word in lowered for word in _BREADCRUMB_NOISE):
            continue
        if _mentions_name(text, page.name):
            continue
        return text
    return None


def _url_segments(url: str, noise: Sequence[str]) -> List[str]:
    segments = []
    for part in url.split("/"):
        part = part.split("?")[0]
        if len(part) <= 3 or not re.search(r"[^\W\d_]", part):
            continue
        if any(token in part.lower() for token in noise):
            continue
        segments.append(part)
    return segments


def _destination_from_url(page: OfferPage) -> Optional[str]:
    segments = _url_segments(page.url, page.profile.url_noise)
    return segments[0].replace("-", " ") if segments else None


DESTINATION_STRATEGIES: Tuple[Strategy[str], ...] = (
    _destination_from_location,
    _destination_from_breadcrumbs,
    _destination_from_url,
)


def _destination_from_path(url: str, profile: SiteProfile) -> Optional[str]:
    """Second pass over the URL path once the first found nothing usable."""

    noise = ("hotel",) + tuple(profile.url_room_noise)
    for part in urlparse(url).path.split("/"):
        if len(part) <= 3 or "." in part:
            continue
        if any(token in part.lower() for token in noise):
            continue
        if not re.search(r"[^\W\d_]", part):
            continue
        return normalize_destination(part)
    return None


def _icon_for_item(element, text: str, mapper: EmojiMapper, profile: SiteProfile) -> str:
    icon = select_all(element, profile.feature_icon)
    if icon:
        css_class = first_attribute(icon[0], ("class",)) or ""
        symbol = mapper.icon_class_emoji(css_class)
        if symbol:
            return symbol
    return mapper.feature_emoji(text, default=DEFAULT_FEATURE_ICON)


def _collect_amenities(page: OfferPage, feature_filter: FeatureFilter) -> List[str]:
    amenities: List[str] = []
    for element in select_all(page.soup, page.profile.amenity_items):
        text = element_text(element)
        if text and text not in amenities and feature_filter(text):
            amenities.append(text)
    return amenities


def _collect_features(
    page: OfferPage,
    destination: str,
    category: Optional[str],
    amenities: Sequence[str],
    mapper: EmojiMapper,
    feature_filter: FeatureFilter,
) -> Tuple[List[str], List[str]]:
    features: List[str] = []
    icons: List[str] = []

    def add(text: str, icon: str) -> None:
        features.append(text)
        icons.append(icon)

    for element in select_all(page.soup, page.profile.feature_items):
        text = element_text(element)
        if text and text not in features and feature_filter(text):
            add(text, _icon_for_item(element, text, mapper, page.profile))

    if len(features) < MIN_FEATURES:
        for element in select_all(page.soup, page.profile.description_paragraphs):
            paragraph = element_text(element)
            if not 20 < len(paragraph) < 200:
                continue
            for sentence in _SENTENCE_SPLIT.split(paragraph):
                sentence = sentence.strip()
                if not 15 < len(sentence) < 70 or sentence in features:
                    continue
                if feature_filter(sentence):
                    add(sentence, mapper.feature_emoji(sentence, default=DEFAULT_FEATURE_ICON))
                if len(features) >= MAX_FEATURES:
                    break
            if len(features) >= MAX_FEATURES:
                break

    if len(features) < MIN_FEATURES:
        for amenity in amenities:
            if len(features) >= MAX_FEATURES:
                break
            if amenity not in features:
                add(amenity, mapper.feature_emoji(amenity, default=DEFAULT_FEATURE_ICON))

    if len(features) < MIN_FEATURES:
        LOGGER.info("Only %s features found on %s, adding generic ones", len(features), page.url)
        synthesized: Tuple[Tuple[str, str], ...] = GENERIC_FEATURES
        if category and "5" in category:
            synthesized = LUXURY_FEATURES + GENERIC_FEATURES
        elif category and "4" in category:
            synthesized = COMFORT_FEATURES + GENERIC_FEATURES
        for template, icon in synthesized:
            if len(features) >= MIN_FEATURES:
                break
            text = template.format(destination=destination)
            if text not in features:
                add(text, icon)

    return features[:MAX_FEATURES], icons[:MAX_FEATURES]


def _description(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.description):
        text = element_text(element)
        if len(text) > 50 and "http" not in text:
            return text
    return None


def _image_url(page: OfferPage) -> Optional[str]:
    for element in select_all(page.soup, page.profile.images):
        src = first_attribute(element, ("src", "data-src"))
        if src and "logo" not in src:
            return urljoin(page.url, src)
    return None


def extract(
    html: str,
    source_url: str,
    *,
    profile: SiteProfile = DEFAULT_PROFILE,
    mapper: EmojiMapper = DEFAULT_MAPPER,
    feature_filter: FeatureFilter = DEFAULT_FEATURE_FILTER,
    max_duration_days: int = 30,
) -> Union[OfferData, ExtractionFailure]:
    """Recover an :class:`OfferData` from ``html``.

    Every field except the name degrades to ``None`` (or a placeholder);
    an implausible name yields an :class:`ExtractionFailure`.
    """

    page = load_page(html, source_url, profile, max_duration_days)

    name = repair_name(first_result(NAME_STRATEGIES, page) or "", page.title, profile)
    if len(name) < MIN_NAME_LENGTH:
        LOGGER.warning("Implausible hotel name %r on %s", name, source_url)
        return ExtractionFailure(url=source_url, reason="name-implausible", detail=name or None)
    page = replace(page, name=name)

    category = first_result(CATEGORY_STRATEGIES, page)
    raw_price = first_result(PRICE_STRATEGIES, page)
    price = normalize_price(raw_price) if raw_price else None
    duration = first_result(DURATION_STRATEGIES, page)

    raw_destination = first_result(DESTINATION_STRATEGIES, page)
    destination = normalize_destination(raw_destination) if raw_destination else ""
    if not destination:
        destination = _destination_from_path(source_url, profile) or PLACEHOLDER_DESTINATION

    amenities = _collect_amenities(page, feature_filter)
    features, icons = _collect_features(
        page, destination, category, amenities, mapper, feature_filter
    )

    offer = OfferData.build(
        name=name,
        destination=destination,
        features=features,
        feature_icons=icons,
        amenities=amenities,
        category=category,
        description=_description(page),
        image_url=_image_url(page),
        price=price,
        duration=duration,
    )
    LOGGER.info("Extracted offer %s in %s from %s", offer.name, offer.destination, source_url)
    return offer


def extract_minimal(
    html: str,
    url: str,
    *,
    profile: SiteProfile = DEFAULT_PROFILE,
    mapper: EmojiMapper = DEFAULT_MAPPER,
) -> OfferData:
    """Coarse parser used after the primary fetch failed; never fails."""

    page = load_page(html, url, profile)

    heading = page.soup.find("h1")
    name = element_text(heading) if heading else ""
    if not name:
        name = page.title.split("|")[0].strip()
    name = name or "Hotel"

    segments = _url_segments(url, profile.url_noise)
    if segments:
        coarse = segments[0].replace("-", " ")
        destination = coarse[:1].upper() + coarse[1:].lower()
    else:
        destination = MINIMAL_DESTINATION

    features: List[str] = []
    for keyword in MINIMAL_FEATURE_KEYWORDS:
        match = re.search(rf"[^.!?]*{re.escape(keyword)}[^.!?]*[.!?]", page.body_text, re.IGNORECASE)
        if not match or not 10 < len(match.group(0)) < 100:
            continue
        sentence = collapse_whitespace(re.sub(r"^[^a-zA-Z0-9äöüÄÖÜß]+", "", match.group(0).strip()))
        if sentence not in features:
            features.append(sentence)
        if len(features) >= 3:
            break
    if len(features) < 2:
        for default in MINIMAL_DEFAULT_FEATURES:
            if default not in features:
                features.append(default)

    icons = [mapper.feature_emoji(feature, default=DEFAULT_FEATURE_ICON) for feature in features]
    LOGGER.info("Minimal extraction produced %s in %s", name, destination)
    return OfferData.build(name=name, destination=destination, features=features, feature_icons=icons)


__all__ = [
    "OfferPage",
    "extract",
    "extract_minimal",
    "first_result",
    "load_page",
    "repair_name",
]
