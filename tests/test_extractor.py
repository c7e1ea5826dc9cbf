"""Extraction of hotel offers from saved offer pages."""
from __future__ import annotations

import unittest

from offer_core.emoji import DEFAULT_MAPPER
from offer_core.extractor import extract, extract_minimal, repair_name
from offer_core.models import MAX_FEATURES, PLACEHOLDER_DESTINATION, ExtractionFailure, OfferData

OFFER_URL = "https://www.meinreisebuero24.com/mallorca/hotel-sol-palma?id=42"

OFFER_HTML = """
<html>
  <head><title>Hotel Sol Palma | meinreisebuero24</title><script>var price = "1 €";</script></head>
  <body>
    <h1 class="hotel-name">Hotel Sol Palma</h1>
    <div class="stars">
      <i class="icon-star"></i><i class="icon-star"></i><i class="icon-star"></i><i class="icon-star"></i>
    </div>
    <div class="location">Spanien, Spanien &amp; Mallorca</div>
    <div class="offer-price">ab 1299 € p.P.</div>
    <div class="travel-duration">7 Nächte</div>
    <ul class="features">
      <li><i class="icon-pool"></i>Großer Außenpool mit Liegen</li>
      <li>Direkte Lage am Strand</li>
      <li>Frühstücksbuffet im Restaurant</li>
      <li>Wellnessbereich mit Sauna</li>
      <li>Jetzt buchen</li>
    </ul>
    <div class="hotel-description">
      <p>Ein wunderbares Hotel direkt am Meer mit eigenem Strandzugang und vielen Extras.</p>
    </div>
    <div class="hotel-image"><img src="/images/sol-palma.jpg"></div>
  </body>
</html>
"""

BARE_HTML = """
<html>
  <head><title>Casa Azul</title></head>
  <body>
    <h1>Casa Azul</h1>
    <p>Willkommen.</p>
  </body>
</html>
"""


class ExtractTests(unittest.TestCase):
    def setUp(self) -> None:
        result = extract(OFFER_HTML, OFFER_URL)
        self.assertIsInstance(result, OfferData)
        self.offer = result

    def test_extracts_core_fields(self) -> None:
        self.assertEqual(self.offer.name, "Hotel Sol Palma")
        self.assertEqual(self.offer.category, "4-Sterne Hotel")
        self.assertEqual(self.offer.destination, "Spanien, Mallorca")
        self.assertEqual(self.offer.price, "ab 1.299 €")
        self.assertEqual(self.offer.duration, "7 Nächte")
        self.assertEqual(self.offer.image_url, "https://www.meinreisebuero24.com/images/sol-palma.jpg")
        self.assertIn("Strandzugang", self.offer.description or "")

    def test_features_skip_boilerplate_and_carry_icons(self) -> None:
        self.assertEqual(
            list(self.offer.features),
            [
                "Großer Außenpool mit Liegen",
                "Direkte Lage am Strand",
                "Frühstücksbuffet im Restaurant",
                "Wellnessbereich mit Sauna",
            ],
        )
        self.assertEqual(self.offer.feature_icons[0], DEFAULT_MAPPER.icon_class_emoji("icon-pool"))
        self.assertEqual(self.offer.feature_icons[1], DEFAULT_MAPPER.feature_emoji("strand"))
        self.assertEqual(len(self.offer.features), len(self.offer.feature_icons))

    def test_extraction_is_deterministic(self) -> None:
        self.assertEqual(extract(OFFER_HTML, OFFER_URL), self.offer)


class SparsePageTests(unittest.TestCase):
    def test_missing_fields_degrade_to_none(self) -> None:
        offer = extract(BARE_HTML, "https://www.meinreisebuero24.com/hotel/123")
        self.assertIsInstance(offer, OfferData)
        self.assertEqual(offer.name, "Casa Azul")
        self.assertIsNone(offer.price)
        self.assertIsNone(offer.duration)
        self.assertIsNone(offer.category)
        self.assertEqual(offer.destination, PLACEHOLDER_DESTINATION)

    def test_generic_features_fill_up_sparse_pages(self) -> None:
        offer = extract(BARE_HTML, "https://www.meinreisebuero24.com/kreta/123")
        self.assertEqual(offer.destination, "Kreta")
        self.assertGreaterEqual(len(offer.features), 4)
        self.assertLessEqual(len(offer.features), MAX_FEATURES)
        self.assertIn("Ideale Lage für Ihren Kreta Aufenthalt", offer.features)

    def test_implausible_name_is_a_failure_value(self) -> None:
        result = extract("<html><body><h1>X</h1></body></html>", OFFER_URL)
        self.assertIsInstance(result, ExtractionFailure)
        self.assertEqual(result.reason, "name-implausible")

    def test_more_than_five_features_are_truncated(self) -> None:
        items = "".join(
            f"<li>Pool Nummer {index} mit Meerblick</li>" for index in range(1, 8)
        )
        html = f"<html><body><h1>Hotel Vista</h1><ul class='features'>{items}</ul></body></html>"
        offer = extract(html, OFFER_URL)
        self.assertEqual(len(offer.features), MAX_FEATURES)
        self.assertEqual(offer.features[-1], "Pool Nummer 5 mit Meerblick")


def _page(body: str, title: str = "Angebot") -> str:
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


class FallbackStrategyTests(unittest.TestCase):
    """Each fixture leaves the earlier strategies for a field empty-handed."""

    def test_destination_from_breadcrumbs_skips_navigation_and_name(self) -> None:
        html = _page(
            """
            <h1>Casa Olivia</h1>
            <ul class="breadcrumb">
              <li>Home</li><li>Startseite</li><li>Hotels</li><li>Casa Olivia Resort</li><li>Kreta</li>
            </ul>
            """
        )
        offer = extract(html, "https://www.meinreisebuero24.com/hotel/123")
        self.assertEqual(offer.destination, "Kreta")

    def test_category_from_text_prefers_highest_rating(self) -> None:
        html = _page("<h1>Hotel Vista</h1><p>3 Sterne Komfort und 5 Sterne Service.</p>")
        offer = extract(html, OFFER_URL)
        self.assertEqual(offer.category, "5-Sterne Hotel")

    def test_price_from_phrase_wins_over_bare_amounts(self) -> None:
        html = _page(
            "<h1>Hotel Vista</h1><p>Kurtaxe 3 € vor Ort.</p>"
            "<p>Sommerangebot: Doppelzimmer ab 749 € inklusive Frühstück</p>"
        )
        offer = extract(html, OFFER_URL)
        self.assertEqual(offer.price, "ab 749 €")

    def test_price_from_short_block_skips_ui_text(self) -> None:
        html = _page(
            "<h1>Hotel Vista</h1>"
            "<section><span>Jetzt buchen für 99 €</span><span>Gesamt 1.450 € inkl. Flug</span></section>"
        )
        offer = extract(html, OFFER_URL)
        self.assertEqual(offer.price, "ab 1.450 €")

    def test_price_from_bare_amount(self) -> None:
        html = _page("<h1>Hotel Vista</h1><h2>Nur 549 €</h2><span>Jetzt buchen: 10 €</span>")
        offer = extract(html, OFFER_URL)
        self.assertEqual(offer.price, "ab 549 €")

    def test_features_from_description_sentences_then_amenities(self) -> None:
        html = _page(
            """
            <h1>Hotel Vista</h1>
            <div class="description">
              <p>Der beheizte Pool liegt im ruhigen Garten. Alle Zimmer haben einen eigenen Balkon. Gut.</p>
            </div>
            <ul class="facilities"><li>Kostenloses WLAN im Zimmer</li><li>Fitnessraum mit Geräten</li></ul>
            """
        )
        offer = extract(html, OFFER_URL)
        self.assertEqual(
            list(offer.features),
            [
                "Der beheizte Pool liegt im ruhigen Garten",
                "Alle Zimmer haben einen eigenen Balkon",
                "Kostenloses WLAN im Zimmer",
                "Fitnessraum mit Geräten",
            ],
        )
        self.assertEqual(list(offer.amenities), ["Kostenloses WLAN im Zimmer", "Fitnessraum mit Geräten"])

    def test_duration_from_iso_date_pair(self) -> None:
        html = _page("<h1>Hotel Vista</h1><p>Anreise: 2025-06-01 Abreise: 2025-06-11</p>")
        offer = extract(html, OFFER_URL)
        self.assertEqual(offer.duration, "10 Tage")


def test_repair_name_restores_truncated_brand_and_drops_query() -> None:
    assert repair_name("B", "B&B Hotel Palma Centro | Angebot") == "B&B Hotel Palma Centro"
    assert repair_name("B", "Ohne Marke") == "B"
    assert repair_name("Hotel Mar?ref=abc", "") == "Hotel Mar"


def test_name_never_contains_query_string() -> None:
    html = "<html><body><h1>Hotel Sol?utm=1</h1></body></html>"
    offer = extract(html, OFFER_URL)
    assert offer.name == "Hotel Sol"


def test_extract_minimal_never_fails() -> None:
    html = """
    <html><head><title>Villa Mare | Angebot</title></head>
    <body><p>Der große Pool liegt im Garten. Frühstück gibt es täglich bis 11 Uhr.</p></body></html>
    """
    offer = extract_minimal(html, "https://www.meinreisebuero24.com/sardinien/angebot")
    assert offer.name == "Villa Mare"
    assert offer.destination == "Sardinien"
    assert offer.features[0] == "Der große Pool liegt im Garten."
    assert len(offer.features) == len(offer.feature_icons)

    empty = extract_minimal("", "https://www.meinreisebuero24.com/")
    assert empty.name == "Hotel"
    assert empty.destination == "Reiseziel"
    assert list(empty.features) == ["Komfortable Zimmer", "Zentrale Lage"]


if __name__ == "__main__":
    unittest.main()
