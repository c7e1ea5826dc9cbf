"""Shared data structures used across scraping, prompting and validation."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

PLACEHOLDER_DESTINATION = "Traumdestination"
DEFAULT_FEATURE_ICON = "✓"
MAX_FEATURES = 5

STYLES: Tuple[str, ...] = ("enthusiastic", "elegant", "family", "adventure")


@dataclass(frozen=True)
class OfferData:
    """A hotel offer as recovered from a travel site's HTML."""

    name: str
    destination: str
    features: Tuple[str, ...] = ()
    feature_icons: Tuple[str, ...] = ()
    amenities: Tuple[str, ...] = ()
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[str] = None
    duration: Optional[str] = None

    def __post_init__(self) -> None:
        if len(self.features) != len(self.feature_icons):
            raise ValueError("features and feature_icons must have the same length")
        if len(self.features) > MAX_FEATURES:
            raise ValueError(f"at most {MAX_FEATURES} features are allowed")

    @classmethod
    def build(
        cls,
        name: str,
        destination: str,
        features: Sequence[str] = (),
        feature_icons: Sequence[str] = (),
        amenities: Iterable[str] = (),
        **optional: Any,
    ) -> "OfferData":
        """Truncate features to the cap and pad icons with the default symbol."""

        final_features = tuple(features[:MAX_FEATURES])
        icons: List[str] = list(feature_icons[: len(final_features)])
        while len(icons) < len(final_features):
            icons.append(DEFAULT_FEATURE_ICON)
        return cls(
            name=name,
            destination=destination,
            features=final_features,
            feature_icons=tuple(icons),
            amenities=tuple(amenities),
            **optional,
        )

    @property
    def features_with_icons(self) -> List[Dict[str, str]]:
        return [
            {"icon": icon, "text": text}
            for icon, text in zip(self.feature_icons, self.features)
        ]

    def source_info(self, url: str) -> Dict[str, Any]:
        """Fields shown next to the generated post for review and editing."""

        return {
            "hotel_name": self.name,
            "hotel_category": self.category,
            "destination": self.destination,
            "features_with_icons": self.features_with_icons,
            "original_url": url,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable version of the offer."""

        return {
            "name": self.name,
            "category": self.category,
            "destination": self.destination,
            "features": list(self.features),
            "feature_icons": list(self.feature_icons),
            "amenities": list(self.amenities),
            "description": self.description,
            "image_url": self.image_url,
            "price": self.price,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class ExtractionFailure:
    """Structured result returned when no usable offer could be extracted."""

    url: str
    reason: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "reason": self.reason, "detail": self.detail}


@dataclass(frozen=True)
class GenerationOptions:
    """Per-request options that drive the prompt and the sampling parameters."""

    use_emojis: bool = True
    style: str = "enthusiastic"

    def __post_init__(self) -> None:
        if self.style not in STYLES:
            raise ValueError(f"Unsupported style: {self.style!r}")

    def cache_key(self) -> str:
        return f"{self.style}:{'emoji' if self.use_emojis else 'plain'}"

    def to_dict(self) -> Dict[str, Any]:
        return {"use_emojis": self.use_emojis, "style": self.style}


@dataclass(frozen=True)
class SamplingParams:
    """Scalar controls passed to the generation endpoint."""

    temperature: float
    top_p: float
    top_k: int
    max_output_tokens: int = 1000

    def with_temperature(self, temperature: float) -> "SamplingParams":
        return replace(self, temperature=round(temperature, 4))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_output_tokens": self.max_output_tokens,
        }


@dataclass(frozen=True)
class PromptRequest:
    """A fully assembled generation request."""

    instructions: str
    user_content: str
    sampling: SamplingParams


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking a generated post; ``failed_check`` is for logs only."""

    passed: bool
    failed_check: Optional[str] = None
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.passed


class GenerationOutcome(str, Enum):
    ACCEPTED = "accepted"
    ACCEPTED_UNVALIDATED = "accepted-unvalidated"
    FALLBACK_USED = "fallback-used"


@dataclass(frozen=True)
class GenerationResult:
    """Final message text plus the path the orchestrator took to produce it."""

    text: str
    outcome: GenerationOutcome
    attempts: int
    validation: Optional[ValidationResult] = None
    errors: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "outcome": self.outcome.value,
            "attempts": self.attempts,
            "failed_check": self.validation.failed_check if self.validation else None,
            "errors": list(self.errors),
        }
