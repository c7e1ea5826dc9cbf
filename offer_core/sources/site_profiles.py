"""Selector profiles describing where offer fields live on a travel site."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class SiteProfile:
    """CSS selectors and URL hints for one offer site.

    Selector tuples with several entries are either tried one after the other
    (``name``) or queried as one group in document order (everything else).
    """

    site: str
    base_url: str
    name: Sequence[str] = ("h1.hotel-name", ".hotel-title", "h1")
    category_containers: Sequence[str] = (".stars", ".hotel-stars", ".category")
    star_icons: Sequence[str] = (".icon-star", ".star-icon", "[class*='star']")
    price: Sequence[str] = (
        "[class*='price']",
        ".price",
        ".total-price",
        ".offer-price",
        ".rate-price",
        "[class*='Price']",
        "[class*='preis']",
    )
    price_candidates: Sequence[str] = ("p", "div", "span")
    duration: Sequence[str] = (
        "[class*='duration']",
        ".stay-duration",
        ".travel-duration",
        "[class*='Duration']",
        "[class*='dauer']",
        "[class*='aufenthalt']",
    )
    location: Sequence[str] = (
        ".destination",
        ".location",
        ".city",
        "[class*='location']",
        "[class*='destination']",
    )
    breadcrumb_items: Sequence[str] = (
        ".breadcrumb li",
        ".breadcrumb span",
        ".breadcrumb a",
        ".breadcrumbs li",
        ".breadcrumbs span",
        ".breadcrumbs a",
        "[class*='breadcrumb'] li",
        "[class*='breadcrumb'] span",
        "[class*='breadcrumb'] a",
    )
    feature_items: Sequence[str] = (
        ".features li",
        ".amenities li",
        ".hotel-features li",
        ".facility-item",
        "[class*='feature'] li",
        "[class*='amenity'] li",
        ".highlights li",
    )
    feature_icon: Sequence[str] = ("i", "svg", "[class*='icon']")
    description_paragraphs: Sequence[str] = (
        ".description p",
        ".hotel-description p",
        ".about p",
        "[class*='description'] p",
        "[class*='content'] p",
    )
    amenity_items: Sequence[str] = (
        ".amenities li",
        ".facilities li",
        "[class*='amenity'] li",
        "[class*='facility'] li",
    )
    description: Sequence[str] = (
        ".hotel-description",
        ".description",
        "[class*='description']",
        ".content p",
        "[class*='about'] p",
    )
    images: Sequence[str] = (
        ".hotel-image img",
        ".carousel img",
        ".gallery img",
        ".slider img",
        "[class*='hotel'] img",
        ".main-image img",
    )
    # URL path segments containing any of these never name a destination.
    url_noise: Tuple[str, ...] = ("hotel", "www", "http", ".com", ".de")
    # Extra noise for the second pass once the first pass found nothing.
    url_room_noise: Tuple[str, ...] = ("angebot", "zimmer", "suite", "room")
    # (truncated heading, title marker, title pattern, generic label)
    brand_repairs: Tuple[Tuple[str, str, str, str], ...] = (
        ("B", "B&B", r"B&B\s+[\w\s\d]+", "B&B Hotel"),
    )


MEINREISEBUERO24 = SiteProfile(
    site="meinreisebuero24.com",
    base_url="https://www.meinreisebuero24.com",
    url_noise=("hotel", "meinreisebuero24", "www", "http", ".com", ".de"),
)

DEFAULT_PROFILE = MEINREISEBUERO24

SITE_PROFILES: Dict[str, SiteProfile] = {
    "meinreisebuero24.com": MEINREISEBUERO24,
    "www.meinreisebuero24.com": MEINREISEBUERO24,
}


def profile_for_url(url: str) -> Optional[SiteProfile]:
    """Return the profile whose site occurs in ``url``."""

    for site, profile in SITE_PROFILES.items():
        if site in url:
            return profile
    return None


__all__ = ["DEFAULT_PROFILE", "SITE_PROFILES", "SiteProfile", "profile_for_url"]
