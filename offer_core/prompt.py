"""Assembly of generation requests for WhatsApp offer posts."""
from __future__ import annotations

import random
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .emoji import DEFAULT_MAPPER, EmojiMapper
from .models import GenerationOptions, OfferData, PromptRequest, SamplingParams
from .sources.html_common import clean_destination

CTA_LABELS: Tuple[str, ...] = ("Jetzt buchen", "Ratenrechner", "Reisebüro finden")
EXAMPLE_SEPARATOR = "\n\n--- WEITERES BEISPIEL ---\n\n"
DEFAULT_CATEGORY_LABEL = "Traumhotel"

CORRECTION_INSTRUCTION = (
    "WICHTIG: Stelle sicher, dass der Hotelname, die Destination und alle anderen "
    "Informationen korrekt enthalten sind. Halte dich EXAKT an das vorgegebene Format!"
)

STRICT_INSTRUCTION = (
    "- Allgemeine Floskeln ohne konkreten Bezug wie \"tolles Hotel\" oder \"super Lage\". "
    "Beschreibe jedes Merkmal konkret und messbar (Lage, Anzahl, Ausstattung)."
)

FAMILY_TERMS = ("familie", "kinder", "family")
BEACH_TERMS = ("strand", "meer", "beach")

# style -> (temperature, top_p, top_k)
STYLE_SAMPLING: Dict[str, Tuple[float, float, int]] = {
    "enthusiastic": (0.8, 0.97, 40),
    "elegant": (0.6, 0.92, 30),
    "family": (0.7, 0.95, 50),
    "adventure": (0.75, 0.96, 40),
}

_CTA_BLOCK = "\n".join(f"👉 {label}" for label in CTA_LABELS)

_ENTHUSIASTIC_EXAMPLES = (
    """☀️ Traumurlaub auf Mallorca - Nur 799€! 🇪🇸
Hotel Paradiso - dein 4-Sterne Hotel direkt am Strand!

🏖️ Direkt am traumhaften Sandstrand gelegen
🍽️ All-Inclusive-Verpflegung mit mediterranen Spezialitäten
🏊‍♀️ Großzügige Poollandschaft mit Swim-up-Bar
👨‍👩‍👧‍👦 Vielfältiges Unterhaltungsprogramm für die ganze Familie
🧖‍♀️ Wellnessbereich mit Sauna und Massage-Anwendungen

💳 Und wie immer bei uns: Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Dein Sommermärchen wartet - Pack die Koffer und los! ✨
➡️ Jetzt schnell sichern, bevor die besten Plätze weg sind!""",
    """🌴 Bali ruft! Tropisches Paradies ab nur 1.099€! 🇮🇩
Sunset Beach Resort - dein 5-Sterne Traumhotel auf Bali!

🌊 Atemberaubender Meerblick aus jedem Zimmer
🍹 2 exotische Restaurants & 3 stilvolle Bars
🏊‍♀️ Infinity-Pool mit Blick auf den Ozean
💆‍♂️ Traditionelle balinesische Spa-Behandlungen
🚣‍♀️ Kostenlose Wassersportaktivitäten inklusive

💳 Und wie immer bei uns: Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Erlebe den Zauber der Insel der Götter! ✨
➡️ Jetzt deine Auszeit im Paradies buchen!""",
)

_ELEGANT_EXAMPLES = (
    """✨ Exklusiver Aufenthalt an der Amalfiküste - ab 1.290€ 🇮🇹
Villa Belvedere - Ihr distinguiertes 5-Sterne Hideaway in Positano

🌇 Privilegierte Lage mit spektakulärem Panoramablick
🍽️ Preisgekröntes Restaurant mit mediterraner Gourmetküche
🍷 Exquisite Weinverkostungen in historischem Gewölbekeller
🛏️ Elegant gestaltete Suiten mit privaten Terrassen
🧖‍♀️ Exklusiver Spa-Bereich mit maßgeschneiderten Anwendungen

💳 Und wie immer bei uns: Sie buchen jetzt – und zahlen später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Erleben Sie italienische Lebenskunst in ihrer vollendeten Form ✨
➡️ Sichern Sie sich Ihren Aufenthalt in einem der begehrtesten Refugien Italiens""",
    """🌺 Diskreter Luxus auf Mauritius - Premium-Suite ab 1.890€ 🇲🇺
Royal Palm Beachcomber - Ihr exquisites 5-Sterne Luxusresort

🏝️ Privilegierte Lage an einem der schönsten Strände der Insel
👨‍🍳 Kulinarische Meisterwerke des Sternekochs Michel Laurent
🛥️ Privater Jachtausflug zu den Nachbarinseln inklusive
🧖‍♀️ Preisgekrönter Spa mit Clarins-Treatments
🍸 Erlesene Cocktailkreationen in der Royal Sunset Lounge

💳 Und wie immer bei uns: Sie buchen jetzt – und zahlen später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Ein Ort zeitloser Eleganz für den distinguierten Reisenden ✨
➡️ Reservieren Sie jetzt Ihren Aufenthalt in diskreter Exklusivität""",
)

_FAMILY_EXAMPLES = (
    """🌞 Familienurlaub in der Türkei - All-Inclusive ab 899€! 🇹🇷
SunnyBeach Family Resort - euer kinderfreundliches 4-Sterne Hotel in Antalya

👨‍👩‍👧‍👦 Großzügige Familienzimmer mit getrennten Kinderbereichen
🎡 Wasserspielplatz und Kinderclub mit täglichem Programm (3-12 Jahre)
🍦 Kinderfreundliches Buffet mit gesunden Optionen
🏊‍♀️ Kinderbecken mit Wasserrutschen und Spritztieren
🎭 Abendliche Familienunterhaltung und Mini-Disco

💳 Und wie immer bei uns: Ihr bucht jetzt – und zahlt später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Glückliche Kinder, entspannte Eltern - Urlaub wie er sein soll! ✨
➡️ Jetzt euren perfekten Familienurlaub planen und gemeinsam Erinnerungen schaffen!""",
)

_ADVENTURE_EXAMPLES = (
    """🏔️ Abenteuer in Costa Rica - 14 Tage ab 1.299€! 🇨🇷
Jungle Explorer Lodge - dein außergewöhnliches Naturresort im Regenwald

🌋 Spektakuläre Lage zwischen Vulkan Arenal und Nebelwald
🦥 Geführte Wildlife-Touren mit Chancen auf Faultiere, Tukane & mehr
🧗‍♂️ Zip-Lining und Canyoning-Abenteuer inklusive
🚣‍♀️ Wildwasser-Rafting auf dem Rio Pacuare (Klasse III-IV)
🌿 Nachhaltig gebaute Eco-Lodges mit Panorama-Regenwaldsicht

💳 Und wie immer bei uns: Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Das Abenteuer deines Lebens wartet im Herzen des Regenwalds! ✨
➡️ Schnapp dir deinen Rucksack und erlebe die pure Kraft der Natur!""",
)


class ExampleBank:
    """Worked example posts grouped by style."""

    def __init__(self, examples: Mapping[str, Sequence[str]], default_style: str = "enthusiastic") -> None:
        self._examples: Dict[str, Tuple[str, ...]] = {
            style: tuple(items) for style, items in examples.items() if items
        }
        if default_style not in self._examples:
            raise ValueError(f"Example bank needs examples for {default_style!r}")
        self.default_style = default_style

    def for_style(self, style: str) -> Tuple[str, ...]:
        return self._examples.get(style) or self._examples[self.default_style]

    def select(self, style: str, count: int = 2, rng: Optional[random.Random] = None) -> List[str]:
        """Pick up to ``count`` examples; the first ones unless ``rng`` is given."""

        candidates = list(self.for_style(style))
        count = max(1, min(count, 3, len(candidates)))
        if rng is None:
            return candidates[:count]
        return rng.sample(candidates, count)


DEFAULT_EXAMPLE_BANK = ExampleBank(
    {
        "enthusiastic": _ENTHUSIASTIC_EXAMPLES,
        "elegant": _ELEGANT_EXAMPLES,
        "family": _FAMILY_EXAMPLES,
        "adventure": _ADVENTURE_EXAMPLES,
    }
)


def _mentions_any(features: Sequence[str], terms: Sequence[str]) -> bool:
    return any(term in feature.lower() for feature in features for term in terms)


def derive_sampling(style: str, offer: OfferData, max_output_tokens: int = 1000) -> SamplingParams:
    """Sampling parameters tuned to the style and to the offer itself."""

    temperature, top_p, top_k = STYLE_SAMPLING.get(style, STYLE_SAMPLING["enthusiastic"])

    if offer.category and "5-Sterne" in offer.category:
        temperature = max(0.55, temperature - 0.1)
        top_p = max(0.9, top_p - 0.02)

    if style != "elegant":
        if _mentions_any(offer.features, FAMILY_TERMS):
            temperature = min(0.85, temperature + 0.05)
        if _mentions_any(offer.features, BEACH_TERMS):
            temperature = min(0.85, temperature + 0.05)

    return SamplingParams(
        temperature=round(temperature, 4),
        top_p=round(top_p, 4),
        top_k=top_k,
        max_output_tokens=max_output_tokens,
    )


def feature_bullets(offer: OfferData, use_emojis: bool) -> List[str]:
    if use_emojis:
        return [f"{icon} {text}" for icon, text in zip(offer.feature_icons, offer.features)]
    return [f"- {text}" for text in offer.features]


def _instructions(
    offer: OfferData, destination: str, options: GenerationOptions, mapper: EmojiMapper, strict: bool
) -> str:
    required = [
        f'1. Der genaue Hotelname: "{offer.name}"',
        f'2. Die genaue Destination: "{destination}"',
    ]
    if offer.price:
        required.append(f'{len(required) + 1}. Der exakte Preis: "{offer.price}"')
    required.append(
        f"{len(required) + 1}. Die exakten Merkmale des Hotels (nutze genau die angegebenen, erfinde keine)"
    )
    required.append(
        f'{len(required) + 1}. Die exakte ucandoo-Zahlungsinfo: "{mapper.payment_phrase(options.style)}"'
    )
    labels = ", ".join(f'"{label}"' for label in CTA_LABELS)
    required.append(f"{len(required) + 1}. Die exakten 3 Links: {labels}")

    forbidden = [
        "- Telefonnummern, E-Mail-Adressen oder Internetadressen",
        '- Fehlermeldungen oder "keine Ergebnisse", "leider nicht verfügbar" etc.',
        "- Platzhalter wie [TEXT] oder ähnliches",
        "- Zusätzliche Links oder CTAs außer den vorgegebenen",
        '- Website-Navigation wie "Impressum", "Startseite" etc.',
    ]
    if strict:
        forbidden.append(STRICT_INSTRUCTION)

    lines = [
        "Du bist ein erstklassiger WhatsApp-Marketing-Texter für Reiseangebote der Firma ucandoo.",
        "Deine Aufgabe ist es, einen präzisen, ansprechenden WhatsApp-Post im vorgegebenen Format "
        f"zu erstellen, der {mapper.tone_guidance(options.style)}",
        "",
        "WICHTIG - Folgendes muss EXAKT so in dem Post enthalten sein:",
        *required,
        "",
        "VERBOTEN im Post:",
        *forbidden,
    ]
    return "\n".join(lines)


def _user_content(
    offer: OfferData,
    destination: str,
    options: GenerationOptions,
    mapper: EmojiMapper,
    examples: Sequence[str],
) -> str:
    payment = mapper.payment_phrase(options.style)
    destination_emoji = mapper.destination_emoji(offer.destination) if options.use_emojis else ""
    headline = f"☀️ {destination} – Urlaub, der begeistert! {destination_emoji}".rstrip()

    facts = [
        "Hier sind die Informationen zum Reiseangebot:",
        f"- Hotelname: {offer.name}",
        f"- Kategorie: {offer.category or 'Luxuriöses Hotel'}",
        f"- Destination: {destination}",
    ]
    if offer.price:
        facts.append(f"- Preis: {offer.price}")
    if offer.duration:
        facts.append(f"- Dauer: {offer.duration}")
    facts.append("- Hauptmerkmale:")
    facts.extend(f"  * {feature}" for feature in offer.features)
    if offer.description:
        facts.append(f"- Beschreibung: {offer.description}")

    price_hint = " Erwähne den Preis." if offer.price else ""
    layout = [
        "EXAKTES FORMAT für den Post:",
        f"1. Beginne mit einer catchy Headline, die Destination und Hotel nennt.{price_hint}",
        "2. Dann 4-5 Bullet Points mit den Hauptmerkmalen",
        f'3. Dann die Zeile mit dem ucandoo-Bezahlhinweis: "💳 Und wie immer bei uns: {payment}"',
        "4. Dann die folgenden 3 Links exakt so formatiert:",
        *(f"   👉 {label}" for label in CTA_LABELS),
        "5. Dann einen markanten Abschlusssatz zwischen ✨ Emojis",
        "6. Als allerletzte Zeile ein Call-to-Action, der mit ➡️ beginnt",
    ]

    sample = [
        "Beispiel-Format:",
        headline,
        f"{offer.name} – dein {offer.category or DEFAULT_CATEGORY_LABEL} in {destination}!",
        "",
        *feature_bullets(offer, options.use_emojis),
        f"💳 Und wie immer bei uns: {payment}",
        "",
        _CTA_BLOCK,
        "",
        "✨ Dein Traumurlaub wartet – Sonne, Strand und pure Erholung! ✨",
        "➡️ Schnell buchen und Koffer packen!",
    ]

    sections = [
        "\n".join(facts),
        "\n".join(layout),
        "\n".join(sample),
        "Hier sind erfolgreiche Beispiele als Inspiration:\n\n" + EXAMPLE_SEPARATOR.join(examples),
        "Erstelle nun einen neuen originellen Post im gleichen Format für das angegebene Hotel!",
    ]
    return "\n\n".join(sections)


def build_prompt(
    offer: OfferData,
    options: GenerationOptions,
    *,
    mapper: EmojiMapper = DEFAULT_MAPPER,
    examples: ExampleBank = DEFAULT_EXAMPLE_BANK,
    rng: Optional[random.Random] = None,
    example_count: int = 2,
    strict: bool = False,
    max_output_tokens: int = 1000,
) -> PromptRequest:
    """Build the instructions, user content and sampling parameters for ``offer``.

    Price and duration lines only appear when the offer carries them; the
    worked examples come from ``examples`` and are chosen with ``rng`` when
    one is injected.
    """

    destination = clean_destination(offer.destination)
    selected = examples.select(options.style, example_count, rng)
    return PromptRequest(
        instructions=_instructions(offer, destination, options, mapper, strict),
        user_content=_user_content(offer, destination, options, mapper, selected),
        sampling=derive_sampling(options.style, offer, max_output_tokens),
    )


def with_correction(prompt: PromptRequest, floor: float = 0.3, step: float = 0.3) -> PromptRequest:
    """Append the correction instruction and lower the temperature for a retry."""

    temperature = max(floor, prompt.sampling.temperature - step)
    return PromptRequest(
        instructions=prompt.instructions,
        user_content=f"{prompt.user_content}\n\n{CORRECTION_INSTRUCTION}",
        sampling=prompt.sampling.with_temperature(temperature),
    )


__all__ = [
    "CTA_LABELS",
    "CORRECTION_INSTRUCTION",
    "DEFAULT_EXAMPLE_BANK",
    "ExampleBank",
    "build_prompt",
    "derive_sampling",
    "feature_bullets",
    "with_correction",
]
