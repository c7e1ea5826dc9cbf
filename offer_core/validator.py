"""Rule-based checks applied to generated posts before they are accepted."""
from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
import re
from typing import Callable, List, Optional, Pattern, Tuple

from .config import PipelineConfig
from .models import OfferData, ValidationResult
from .prompt import CTA_LABELS
from .sources.html_common import clean_destination

LOGGER = logging.getLogger(__name__)

FORBIDDEN_LITERALS: Tuple[str, ...] = (
    "nicht verfügbar",
    "keine Angabe",
    "leider",
    "Fehler",
    "@",
    "http",
    "www",
    "[",
    "]",
    "{",
    "}",
    "Impressum",
    "Datenschutz",
    "Kontakt",
    "+49",
    "Tel",
    "Telefon",
)

FORBIDDEN_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\+\d{2,}"),
    re.compile(r"\(\d+\)"),
    re.compile(r"\d{5,}"),
    re.compile(r"Bitte", re.IGNORECASE),
    re.compile(r"Anfrage", re.IGNORECASE),
    re.compile(r"\bEmail\b", re.IGNORECASE),
    re.compile(r"\bSeite\b.*\bnicht\b", re.IGNORECASE),
    re.compile(r"\bSeite\b.*\bverlassen\b", re.IGNORECASE),
)

IMPORTANT_FEATURE_TERMS: Tuple[str, ...] = (
    "pool", "strand", "meer", "spa", "wellness", "restaurant", "frühstück",
)


@dataclass(frozen=True)
class ValidationRules:
    """Every constant the validator relies on."""

    cta_labels: Tuple[str, ...] = CTA_LABELS
    cta_glyph: str = "👉"
    payment_keyword: str = "ucandoo"
    payment_glyph: str = "💳"
    closing_glyph: str = "✨"
    final_glyph: str = "➡"
    min_lines: int = 10
    price_prefix_digits: int = 4
    long_name_threshold: int = 15
    name_word_ratio: float = 0.7
    short_word_length: int = 3
    important_feature_terms: Tuple[str, ...] = IMPORTANT_FEATURE_TERMS
    feature_word_min_length: int = 5
    forbidden_literals: Tuple[str, ...] = FORBIDDEN_LITERALS
    forbidden_patterns: Tuple[Pattern[str], ...] = FORBIDDEN_PATTERNS


DEFAULT_RULES = ValidationRules()


def rules_from_config(config: PipelineConfig, base: ValidationRules = DEFAULT_RULES) -> ValidationRules:
    return replace(
        base,
        price_prefix_digits=config.price_prefix_digits,
        min_lines=config.min_post_lines,
    )


def _word_present(word: str, text: str, rules: ValidationRules) -> bool:
    if len(word) <= rules.short_word_length:
        return re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text) is not None
    return word in text


def name_present(name: str, candidate: str, rules: ValidationRules = DEFAULT_RULES) -> bool:
    """Exact match for short names, a share of the words for long ones."""

    lowered = candidate.lower()
    if len(name) <= rules.long_name_threshold:
        return name.lower() in lowered
    words = [word.lower() for word in name.split() if any(char.isalnum() for char in word)]
    if not words:
        return name.lower() in lowered
    required = math.ceil(len(words) * rules.name_word_ratio - 1e-9)
    matched = sum(1 for word in words if _word_present(word, lowered, rules))
    return matched >= required


def _check_literals(candidate: str, offer: OfferData, rules: ValidationRules) -> Optional[str]:
    if not name_present(offer.name, candidate, rules):
        return f"hotel name {offer.name!r} missing"
    lowered = candidate.lower()
    destination = clean_destination(offer.destination)
    for literal in (destination, rules.payment_keyword, *rules.cta_labels):
        if literal.lower() not in lowered:
            return f"{literal!r} missing"
    return None


def _check_price(candidate: str, offer: OfferData, rules: ValidationRules) -> Optional[str]:
    if not offer.price:
        return None
    whole = re.search(r"\d[\d.]*", offer.price)
    if not whole:
        return None
    digits = whole.group(0).replace(".", "")
    if int(digits) == 0:
        return None
    prefix = digits[: rules.price_prefix_digits]
    pattern = rf"\b{prefix}" + (r"\b" if len(digits) <= len(prefix) else "")
    if re.search(pattern, candidate.replace(".", "")) is None:
        return f"price {offer.price!r} missing"
    return None


def _last_non_blank(candidate: str) -> str:
    lines = [line for line in candidate.splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""


def _check_structure(candidate: str, offer: OfferData, rules: ValidationRules) -> Optional[str]:
    for label in rules.cta_labels:
        if not re.search(rf"{re.escape(rules.cta_glyph)}\s*{re.escape(label)}", candidate, re.IGNORECASE):
            return f"link line {label!r} missing"
    payment = rf"{re.escape(rules.payment_glyph)}|{re.escape(rules.payment_keyword)}"
    if not re.search(payment, candidate, re.IGNORECASE):
        return "payment line missing"
    glyph = re.escape(rules.closing_glyph)
    if not re.search(rf"{glyph}[^\S\n]*[^\s{glyph}][^\n]*{glyph}", candidate):
        return "closing sentence missing"
    if not _last_non_blank(candidate).startswith(rules.final_glyph):
        return "final call to action missing"
    return None


def _check_features(candidate: str, offer: OfferData, rules: ValidationRules) -> Optional[str]:
    if len(offer.features) < 2:
        return None
    lowered = candidate.lower()
    for feature in offer.features:
        feature_lower = feature.lower()
        for term in rules.important_feature_terms:
            if term in feature_lower and term in lowered:
                return None
    for feature in offer.features:
        for word in feature.split():
            if len(word) >= rules.feature_word_min_length and word.lower() in lowered:
                return None
    return "no hotel feature mentioned"


def _check_forbidden(candidate: str, offer: OfferData, rules: ValidationRules) -> Optional[str]:
    for literal in rules.forbidden_literals:
        if literal in candidate:
            return f"forbidden text {literal!r}"
    for pattern in rules.forbidden_patterns:
        if pattern.search(candidate):
            return f"forbidden pattern {pattern.pattern!r}"
    return None


def _check_length(candidate: str, offer: OfferData, rules: ValidationRules) -> Optional[str]:
    lines = [line for line in candidate.splitlines() if line.strip()]
    if len(lines) < rules.min_lines:
        return f"only {len(lines)} lines"
    return None


Check = Callable[[str, OfferData, ValidationRules], Optional[str]]

CHECKS: List[Tuple[str, Check]] = [
    ("required-literals", _check_literals),
    ("price", _check_price),
    ("structure", _check_structure),
    ("feature-grounding", _check_features),
    ("forbidden-content", _check_forbidden),
    ("min-lines", _check_length),
]


def validate(candidate: str, offer: OfferData, rules: ValidationRules = DEFAULT_RULES) -> ValidationResult:
    """Run the checks in order and stop at the first failure."""

    for check_id, check in CHECKS:
        detail = check(candidate, offer, rules)
        if detail is not None:
            LOGGER.warning("Generated post failed %s check: %s", check_id, detail)
            return ValidationResult(passed=False, failed_check=check_id, detail=detail)
    return ValidationResult(passed=True)


__all__ = [
    "CHECKS",
    "DEFAULT_RULES",
    "ValidationRules",
    "name_present",
    "rules_from_config",
    "validate",
]
