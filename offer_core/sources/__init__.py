"""Site access helpers: HTTP fetching, selector profiles and text parsing."""
from .fetcher import FALLBACK_HEADERS, PRIMARY_HEADERS, FetchError, Fetcher, fetch_html, fetch_with_retry
from .site_profiles import DEFAULT_PROFILE, SITE_PROFILES, SiteProfile, profile_for_url

__all__ = [
    "DEFAULT_PROFILE",
    "FALLBACK_HEADERS",
    "FetchError",
    "Fetcher",
    "PRIMARY_HEADERS",
    "SITE_PROFILES",
    "SiteProfile",
    "fetch_html",
    "fetch_with_retry",
    "profile_for_url",
]
