"""Configuration helpers for the offer post pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import STYLES, GenerationOptions

FALLBACK_POLICIES = ("raise", "template")

_TRUE_VALUES = {"1", "true", "yes", "ja", "on"}
_FALSE_VALUES = {"0", "false", "no", "nein", "off"}


@dataclass
class PipelineConfig:
    """Canonical configuration used by the scraping and generation workflow."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-pro"
    safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE"
    max_output_tokens: int = 1000
    fallback_policy: str = "raise"
    revalidate_on_retry: bool = False
    strict_prompt: bool = False
    retry_temperature_floor: float = 0.3
    retry_temperature_step: float = 0.3
    example_count: int = 2
    post_cache_ttl: int = 1800
    offer_cache_ttl: int = 21600
    fetch_attempts: int = 3
    fetch_backoff_seconds: float = 1.0
    fetch_timeout: float = 10.0
    fallback_fetch_timeout: float = 15.0
    max_duration_days: int = 30
    price_prefix_digits: int = 4
    min_post_lines: int = 10
    allowed_domains: List[str] = field(default_factory=lambda: ["meinreisebuero24.com"])

    def __post_init__(self) -> None:
        if self.fallback_policy not in FALLBACK_POLICIES:
            raise ValueError(f"Unsupported fallback policy: {self.fallback_policy!r}")

    @property
    def use_fallback_template(self) -> bool:
        return self.fallback_policy == "template"

    def is_allowed_url(self, url: str) -> bool:
        """Return whether ``url`` belongs to one of the configured offer sites."""

        if not self.allowed_domains:
            return True
        return any(domain in url for domain in self.allowed_domains)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable version of the configuration without secrets."""

        return {
            "gemini_model": self.gemini_model,
            "fallback_policy": self.fallback_policy,
            "revalidate_on_retry": self.revalidate_on_retry,
            "strict_prompt": self.strict_prompt,
            "example_count": self.example_count,
            "post_cache_ttl": self.post_cache_ttl,
            "offer_cache_ttl": self.offer_cache_ttl,
            "fetch_attempts": self.fetch_attempts,
            "fetch_backoff_seconds": self.fetch_backoff_seconds,
            "max_duration_days": self.max_duration_days,
            "price_prefix_digits": self.price_prefix_digits,
            "allowed_domains": self.allowed_domains,
        }


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def _parse_int(value: str | None, default: int) -> int:
    if not value:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _parse_float(value: str | None, default: float) -> float:
    if not value:
        return default
    cleaned = str(value).strip().replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return default


def _ensure_list(value: str | Iterable[str] | None) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        if not value:
            return []
        return [item.strip() for item in value.split(",") if item.strip()]
    return [item for item in value if item]


def create_config_from_env(environ: Mapping[str, str] | None = None) -> PipelineConfig:
    """Create a configuration object from environment variables."""

    env = os.environ if environ is None else environ
    defaults = PipelineConfig()

    allowed_domains = defaults.allowed_domains
    if "OFFER_ALLOWED_DOMAINS" in env:
        allowed_domains = _ensure_list(env.get("OFFER_ALLOWED_DOMAINS"))

    policy = (env.get("OFFER_FALLBACK_POLICY") or defaults.fallback_policy).strip().lower()
    if policy not in FALLBACK_POLICIES:
        policy = defaults.fallback_policy

    return PipelineConfig(
        gemini_api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY") or None,
        gemini_model=env.get("GEMINI_MODEL") or defaults.gemini_model,
        fallback_policy=policy,
        revalidate_on_retry=_parse_bool(
            env.get("OFFER_REVALIDATE_ON_RETRY"), defaults.revalidate_on_retry
        ),
        strict_prompt=_parse_bool(env.get("OFFER_STRICT_PROMPT"), defaults.strict_prompt),
        example_count=max(1, min(3, _parse_int(env.get("OFFER_EXAMPLE_COUNT"), defaults.example_count))),
        post_cache_ttl=_parse_int(env.get("OFFER_POST_CACHE_TTL"), defaults.post_cache_ttl),
        offer_cache_ttl=_parse_int(env.get("OFFER_CACHE_TTL"), defaults.offer_cache_ttl),
        fetch_attempts=max(1, _parse_int(env.get("OFFER_FETCH_ATTEMPTS"), defaults.fetch_attempts)),
        fetch_backoff_seconds=_parse_float(
            env.get("OFFER_FETCH_BACKOFF"), defaults.fetch_backoff_seconds
        ),
        max_duration_days=_parse_int(
            env.get("OFFER_MAX_DURATION_DAYS"), defaults.max_duration_days
        ),
        price_prefix_digits=_parse_int(
            env.get("OFFER_PRICE_PREFIX_DIGITS"), defaults.price_prefix_digits
        ),
        allowed_domains=allowed_domains,
    )


def create_options(payload: Mapping[str, Any]) -> GenerationOptions:
    """Create generation options from a JSON or form payload.

    Accepts both the snake_case keys used by the API and the camelCase keys
    sent by older clients.
    """

    use_emojis = payload.get("use_emojis", payload.get("useEmojis"))
    style = str(payload.get("style") or "enthusiastic").strip().lower()
    if style not in STYLES:
        raise ValueError(f"Unsupported style: {style!r}")
    return GenerationOptions(use_emojis=_parse_bool(use_emojis, True), style=style)
