"""Deterministic post rendering and edits applied to existing posts."""
from __future__ import annotations

import copy
import re
from typing import Any, Dict, List, Mapping

from .emoji import DEFAULT_MAPPER, EmojiMapper
from .models import GenerationOptions, OfferData
from .prompt import CTA_LABELS, DEFAULT_CATEGORY_LABEL
from .sources.html_common import clean_destination

DEMO_NOTICE = "ℹ️ Demo-Modus: Dieser Text wurde ohne KI-Unterstützung aus den Angebotsdaten erstellt."
FALLBACK_FEATURES = ("Komfortable Zimmer", "Zentrale Lage")
CLOSING_LINE = "✨ Urlaub, der in Erinnerung bleibt! ✨"
FINAL_LINE = "➡️ Jetzt Angebot sichern und Vorfreude genießen!"


def build_fallback_message(
    offer: OfferData,
    options: GenerationOptions | None = None,
    mapper: EmojiMapper = DEFAULT_MAPPER,
) -> str:
    """Render a complete post from the offer data alone."""

    options = options or GenerationOptions()
    destination = clean_destination(offer.destination)

    headline = f"Traumurlaub in {destination}"
    if offer.price:
        headline += f" – {offer.price}"
    headline += "!"
    if options.use_emojis:
        headline = f"{mapper.destination_emoji(offer.destination)} {headline}"

    lines: List[str] = [
        headline,
        f"{offer.name} – {offer.category or DEFAULT_CATEGORY_LABEL} in {destination}",
        "",
    ]

    if offer.features:
        bullets = list(zip(offer.feature_icons, offer.features))
    else:
        bullets = [(mapper.feature_emoji(text), text) for text in FALLBACK_FEATURES]
    for icon, text in bullets:
        lines.append(f"{icon} {text}" if options.use_emojis else f"- {text}")

    lines.extend(
        [
            "",
            f"💳 Und wie immer bei uns: {mapper.payment_phrase(options.style)}",
            "",
            *(f"👉 {label}" for label in CTA_LABELS),
            "",
            DEMO_NOTICE,
            "",
            CLOSING_LINE,
            FINAL_LINE,
        ]
    )
    return "\n".join(lines)


def merge_source_edits(source_info: Mapping[str, Any], edits: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``source_info`` with user edits applied; feature icons are kept."""

    updated: Dict[str, Any] = copy.deepcopy(dict(source_info))
    for key in ("hotel_name", "hotel_category", "destination"):
        value = edits.get(key)
        if isinstance(value, str) and value.strip():
            updated[key] = value.strip()

    features = [dict(item) for item in updated.get("features_with_icons") or []]
    for raw_index, text in (edits.get("features") or {}).items():
        try:
            index = int(raw_index)
        except (TypeError, ValueError):
            continue
        if 0 <= index < len(features) and isinstance(text, str) and text.strip():
            features[index]["text"] = text.strip()
    updated["features_with_icons"] = features
    return updated


def _replace_words(text: str, old: str, new: str) -> str:
    pattern = rf"(?<!\w){re.escape(old)}(?!\w)"
    return re.sub(pattern, lambda _match: new, text)


def apply_source_update(
    post_text: str, old_info: Mapping[str, Any], new_info: Mapping[str, Any]
) -> str:
    """Carry edited source fields over into an already generated post.

    Name and destination are replaced everywhere on word boundaries; the
    category and each edited feature only at their first occurrence.
    """

    text = post_text

    old_name, new_name = old_info.get("hotel_name"), new_info.get("hotel_name")
    if old_name and new_name and old_name != new_name:
        text = _replace_words(text, old_name, new_name)

    old_category, new_category = old_info.get("hotel_category"), new_info.get("hotel_category")
    if old_category and new_category and old_category != new_category:
        text = text.replace(old_category, new_category, 1)

    old_destination, new_destination = old_info.get("destination"), new_info.get("destination")
    if old_destination and new_destination and old_destination != new_destination:
        text = _replace_words(text, old_destination, new_destination)

    old_features = old_info.get("features_with_icons") or []
    for index, feature in enumerate(new_info.get("features_with_icons") or []):
        if index >= len(old_features):
            break
        before, after = old_features[index].get("text"), feature.get("text")
        if before and after and before != after:
            text = text.replace(before, after, 1)

    return text


__all__ = [
    "DEMO_NOTICE",
    "apply_source_update",
    "build_fallback_message",
    "merge_source_edits",
]
