"""Prompt assembly and sampling derivation."""
from __future__ import annotations

import random
import unittest

from offer_core.models import GenerationOptions, OfferData
from offer_core.prompt import (
    CORRECTION_INSTRUCTION,
    CTA_LABELS,
    DEFAULT_EXAMPLE_BANK,
    ExampleBank,
    build_prompt,
    derive_sampling,
    with_correction,
)


def _offer(**overrides) -> OfferData:
    fields = dict(
        name="Hotel Sol Palma",
        destination="Spanien, Mallorca",
        features=["Großer Außenpool mit Liegen", "Frühstücksbuffet im Restaurant"],
        feature_icons=["🏊", "🍽️"],
        category="4-Sterne Hotel",
        price="ab 1.299 €",
        duration="7 Nächte",
    )
    fields.update(overrides)
    return OfferData.build(**fields)


class BuildPromptTests(unittest.TestCase):
    def test_prompt_names_all_required_literals(self) -> None:
        prompt = build_prompt(_offer(), GenerationOptions())

        self.assertIn('"Hotel Sol Palma"', prompt.instructions)
        self.assertIn('"Spanien, Mallorca"', prompt.instructions)
        self.assertIn('"ab 1.299 €"', prompt.instructions)
        for label in CTA_LABELS:
            self.assertIn(f"👉 {label}", prompt.user_content)
        self.assertIn("- Preis: ab 1.299 €", prompt.user_content)
        self.assertIn("- Dauer: 7 Nächte", prompt.user_content)
        self.assertIn("🏊 Großer Außenpool mit Liegen", prompt.user_content)

    def test_missing_price_and_duration_leave_no_placeholder_lines(self) -> None:
        prompt = build_prompt(_offer(price=None, duration=None), GenerationOptions(style="enthusiastic"))

        self.assertNotIn("Preis", prompt.instructions)
        self.assertNotIn("- Preis:", prompt.user_content)
        self.assertNotIn("- Dauer:", prompt.user_content)
        self.assertNotIn("None", prompt.user_content)
        self.assertIn("5. Die exakten 3 Links", prompt.instructions)

    def test_plain_style_uses_dashes_instead_of_icons(self) -> None:
        prompt = build_prompt(_offer(), GenerationOptions(use_emojis=False))
        self.assertIn("- Großer Außenpool mit Liegen", prompt.user_content)
        self.assertNotIn("🏊 Großer", prompt.user_content)

    def test_strict_mode_adds_instruction(self) -> None:
        relaxed = build_prompt(_offer(), GenerationOptions())
        strict = build_prompt(_offer(), GenerationOptions(), strict=True)
        self.assertNotIn("konkret und messbar", relaxed.instructions)
        self.assertIn("konkret und messbar", strict.instructions)

    def test_payment_phrase_follows_style(self) -> None:
        prompt = build_prompt(_offer(), GenerationOptions(style="elegant"))
        self.assertIn("Sie buchen jetzt", prompt.instructions)
        self.assertIn("Sie buchen jetzt", prompt.user_content)


class ExampleBankTests(unittest.TestCase):
    def test_selection_without_rng_is_deterministic(self) -> None:
        bank = ExampleBank({"enthusiastic": ["a", "b", "c", "d"]})
        self.assertEqual(bank.select("enthusiastic", 2), ["a", "b"])
        self.assertEqual(bank.select("enthusiastic", 9), ["a", "b", "c"])
        self.assertEqual(bank.select("elegant", 1), ["a"])

    def test_injected_rng_controls_sampling(self) -> None:
        bank = ExampleBank({"enthusiastic": ["a", "b", "c", "d"]})
        first = bank.select("enthusiastic", 2, random.Random(7))
        second = bank.select("enthusiastic", 2, random.Random(7))
        self.assertEqual(first, second)
        self.assertEqual(len(set(first)), 2)

    def test_default_bank_covers_every_style(self) -> None:
        for style in ("enthusiastic", "elegant", "family", "adventure"):
            with self.subTest(style=style):
                examples = DEFAULT_EXAMPLE_BANK.for_style(style)
                self.assertTrue(examples)
                for example in examples:
                    self.assertIn("ucandoo", example)

    def test_bank_requires_default_style(self) -> None:
        with self.assertRaises(ValueError):
            ExampleBank({"elegant": ["x"]})


class SamplingTests(unittest.TestCase):
    def test_style_baselines(self) -> None:
        offer = _offer(features=["Ruhige Zimmer", "Kostenloses WLAN"], feature_icons=[])
        for style, expected in [
            ("enthusiastic", (0.8, 0.97, 40)),
            ("elegant", (0.6, 0.92, 30)),
            ("family", (0.7, 0.95, 50)),
            ("adventure", (0.75, 0.96, 40)),
        ]:
            with self.subTest(style=style):
                sampling = derive_sampling(style, offer)
                self.assertEqual((sampling.temperature, sampling.top_p, sampling.top_k), expected)

    def test_five_star_offers_are_sampled_more_conservatively(self) -> None:
        offer = _offer(category="5-Sterne Hotel", features=["Ruhige Zimmer"], feature_icons=[])
        sampling = derive_sampling("elegant", offer)
        self.assertEqual(sampling.temperature, 0.55)
        self.assertEqual(sampling.top_p, 0.9)

    def test_family_and_beach_features_raise_temperature_with_cap(self) -> None:
        offer = _offer(features=["Kinderclub", "Direkt am Strand"], feature_icons=[])
        self.assertEqual(derive_sampling("family", offer).temperature, 0.8)
        self.assertEqual(derive_sampling("enthusiastic", offer).temperature, 0.85)
        self.assertEqual(derive_sampling("elegant", offer).temperature, 0.6)

    def test_correction_lowers_temperature_to_floor(self) -> None:
        prompt = build_prompt(_offer(features=["Ruhige Zimmer"], feature_icons=[]), GenerationOptions())
        corrected = with_correction(prompt)
        self.assertEqual(corrected.sampling.temperature, 0.5)
        self.assertTrue(corrected.user_content.endswith(CORRECTION_INSTRUCTION))
        self.assertEqual(corrected.instructions, prompt.instructions)
        self.assertEqual(with_correction(corrected).sampling.temperature, 0.3)


if __name__ == "__main__":
    unittest.main()
