"""Lookup tables mapping feature and destination text to symbols and styles to tone."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

KeywordTable = Tuple[Tuple[str, str], ...]

DONE_SYMBOL = "✅"
SPARKLE_SYMBOL = "✨"

FEATURE_EMOJIS: KeywordTable = (
    ("pool", "🏊‍♀️"),
    ("strand", "🏖️"),
    ("meer", "🌊"),
    ("frühstück", "🍽️"),
    ("restaurant", "🍽️"),
    ("essen", "🍽️"),
    ("gourmet", "🍽️"),
    ("kulinarisch", "🍽️"),
    ("dining", "🍽️"),
    ("spa", "💆‍♂️"),
    ("wellness", "🧖‍♀️"),
    ("massage", "💆‍♀️"),
    ("fitness", "💪"),
    ("gym", "🏋️‍♂️"),
    ("lage", "📍"),
    ("zentral", "📍"),
    ("zentrum", "📍"),
    ("aussicht", "🌇"),
    ("view", "🌇"),
    ("blick", "🌇"),
    ("family", "👨‍👩‍👧‍👦"),
    ("familie", "👨‍👩‍👧‍👦"),
    ("kinder", "👶"),
    ("zimmer", "🛏️"),
    ("suite", "🛏️"),
    ("bett", "🛏️"),
    ("design", "🎨"),
    ("stil", "🎨"),
    ("stylish", "🎨"),
    ("modern", "🎨"),
    ("bar", "🍸"),
    ("cocktail", "🍹"),
    ("wein", "🍷"),
    ("garten", "🌿"),
    ("terrasse", "🌴"),
    ("balkon", "🌴"),
    ("infinity", "♾️"),
    ("service", "👑"),
    ("exklusiv", "✨"),
    ("luxus", "✨"),
    ("boutique", "🛍️"),
    ("rooftop", "🏙️"),
    ("dachterrasse", "🏙️"),
    ("stadt", "🏙️"),
    ("privat", "🔐"),
    ("ruhig", "🧘"),
    ("entspannung", "🧘"),
    ("party", "🎉"),
    ("unterhaltung", "🎭"),
    ("show", "🎭"),
    ("kultur", "🏛️"),
    ("sehenswürdigkeiten", "🏛️"),
    ("sport", "⚽"),
    ("aktivität", "🚶‍♂️"),
    ("abenteuer", "🧗‍♂️"),
    ("natur", "🌲"),
    ("landschaft", "🏞️"),
    ("shopping", "🛍️"),
    ("einkaufen", "🛍️"),
    ("transfer", "🚗"),
    ("flughafen", "✈️"),
    ("internet", "📶"),
    ("wifi", "📶"),
    ("wlan", "📶"),
    ("parken", "🅿️"),
    ("garage", "🅿️"),
)

# Icon font classes seen on offer pages (``<i class="icon-wifi">``).
ICON_CLASS_EMOJIS: KeywordTable = (
    ("wifi", "📶"),
    ("pool", "🏊‍♀️"),
    ("restaurant", "🍽️"),
    ("food", "🍽️"),
    ("bar", "🍹"),
    ("drink", "🍹"),
    ("spa", "💆‍♂️"),
    ("wellness", "💆‍♂️"),
    ("gym", "💪"),
    ("fitness", "💪"),
    ("beach", "🏖️"),
    ("sand", "🏖️"),
)

COUNTRY_EMOJIS: KeywordTable = (
    ("mallorca", "🇪🇸"),
    ("spanien", "🇪🇸"),
    ("italien", "🇮🇹"),
    ("griechenland", "🇬🇷"),
    ("türkei", "🇹🇷"),
    ("ägypten", "🇪🇬"),
    ("dubai", "🇦🇪"),
    ("vae", "🇦🇪"),
    ("thailand", "🇹🇭"),
    ("malediven", "🇲🇻"),
    ("marokko", "🇲🇦"),
    ("tunesien", "🇹🇳"),
    ("frankreich", "🇫🇷"),
    ("österreich", "🇦🇹"),
    ("schweiz", "🇨🇭"),
    ("usa", "🇺🇸"),
    ("amerika", "🇺🇸"),
    ("karibik", "🏝️"),
    ("caribbean", "🏝️"),
    ("bali", "🇮🇩"),
    ("indonesien", "🇮🇩"),
    ("mexiko", "🇲🇽"),
    ("dom rep", "🇩🇴"),
    ("dominikanische", "🇩🇴"),
    ("portugal", "🇵🇹"),
    ("kroatien", "🇭🇷"),
)

SCENE_EMOJIS: KeywordTable = (
    ("strand", "🏖️"),
    ("beach", "🏖️"),
    ("berg", "🏔️"),
    ("alpen", "🏔️"),
    ("city", "🌆"),
    ("stadt", "🌆"),
    ("insel", "🏝️"),
    ("see", "🌊"),
    ("lake", "🌊"),
)

TONE_GUIDANCE: KeywordTable = (
    (
        "enthusiastic",
        "begeistert, energetisch und lebhaft. Verwende ausdrucksstarke Sprache und "
        "Ausrufezeichen, um Begeisterung zu vermitteln.",
    ),
    (
        "elegant",
        "elegant, kultiviert und luxuriös. Verwende gehobene Sprache, die Exklusivität "
        "und Premium-Qualität betont.",
    ),
    (
        "family",
        "familienfreundlich und warm. Betone Aspekte, die für Familien wichtig sind, wie "
        "Sicherheit, Komfort und Aktivitäten für Kinder.",
    ),
    (
        "adventure",
        "abenteuerlich und aufregend. Betone die Möglichkeit für Erlebnisse, Entdeckungen "
        "und aktive Freizeitgestaltung.",
    ),
)

PAYMENT_PHRASES: KeywordTable = (
    ("enthusiastic", "Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo."),
    ("elegant", "Sie buchen jetzt – und zahlen später ganz flexibel mit ucandoo."),
    ("family", "Ihr bucht jetzt – und zahlt später ganz flexibel mit ucandoo."),
    ("adventure", "Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo."),
)


def _lookup(text: str, table: Sequence[Tuple[str, str]]) -> Optional[str]:
    lowered = text.lower()
    for keyword, symbol in table:
        if keyword in lowered:
            return symbol
    return None


def _by_style(table: KeywordTable, style: str) -> str:
    entries = dict(table)
    return entries.get(style) or entries["enthusiastic"]


@dataclass(frozen=True)
class EmojiMapper:
    """Pure keyword lookups; construct with smaller tables to isolate tests."""

    feature_table: KeywordTable = FEATURE_EMOJIS
    icon_class_table: KeywordTable = ICON_CLASS_EMOJIS
    country_table: KeywordTable = COUNTRY_EMOJIS
    scene_table: KeywordTable = SCENE_EMOJIS
    tone_table: KeywordTable = TONE_GUIDANCE
    payment_table: KeywordTable = PAYMENT_PHRASES
    feature_default: str = DONE_SYMBOL
    destination_default: str = SPARKLE_SYMBOL

    def feature_emoji(self, text: str, default: Optional[str] = None) -> str:
        symbol = _lookup(text, self.feature_table)
        if symbol is not None:
            return symbol
        return self.feature_default if default is None else default

    def icon_class_emoji(self, css_class: str) -> Optional[str]:
        return _lookup(css_class, self.icon_class_table)

    def destination_emoji(self, text: str) -> str:
        return (
            _lookup(text, self.country_table)
            or _lookup(text, self.scene_table)
            or self.destination_default
        )

    def tone_guidance(self, style: str) -> str:
        return _by_style(self.tone_table, style)

    def payment_phrase(self, style: str) -> str:
        return _by_style(self.payment_table, style)


DEFAULT_MAPPER = EmojiMapper()


def feature_emoji(text: str, default: Optional[str] = None) -> str:
    return DEFAULT_MAPPER.feature_emoji(text, default)


def icon_class_emoji(css_class: str) -> Optional[str]:
    return DEFAULT_MAPPER.icon_class_emoji(css_class)


def destination_emoji(text: str) -> str:
    return DEFAULT_MAPPER.destination_emoji(text)


def tone_guidance(style: str) -> str:
    return DEFAULT_MAPPER.tone_guidance(style)


def payment_phrase(style: str) -> str:
    return DEFAULT_MAPPER.payment_phrase(style)
