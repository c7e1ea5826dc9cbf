"""Generation state machine and end-to-end workflow with stubbed collaborators."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace
import unittest
import warnings
from unittest.mock import AsyncMock

import pytest

from offer_core.cache import ResponseCache
from offer_core.config import PipelineConfig
from offer_core.generation import ProviderError, QuotaExceededError
from offer_core.models import GenerationOptions, GenerationOutcome, OfferData
from offer_core.reporter import DEMO_NOTICE
from offer_core.validator import validate
from offer_core.workflow import OfferNotFoundError, generate_post, run_post_workflow, run_post_workflow_sync

OFFER = OfferData.build(
    name="Hotel Sol Palma",
    destination="Spanien, Mallorca",
    features=["Großer Außenpool mit Liegen", "Frühstücksbuffet im Restaurant"],
    feature_icons=["🏊", "🍽️"],
    category="4-Sterne Hotel",
    price="ab 1.299 €",
)

GOOD_POST = """☀️ Mallorca wartet – Hotel Sol Palma ab 1.299 €! 🇪🇸
Hotel Sol Palma – dein 4-Sterne Hotel in Spanien, Mallorca!

🏊 Großer Außenpool mit Liegen
🍽️ Frühstücksbuffet im Restaurant
🌊 Nur wenige Schritte zum Meer
🛏️ Helle Zimmer mit Balkon

💳 Und wie immer bei uns: Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo.

👉 Jetzt buchen
👉 Ratenrechner
👉 Reisebüro finden

✨ Sonne, Meer und pure Erholung! ✨
➡️ Jetzt sichern und Koffer packen!"""

BAD_POST = "Schöner Urlaub auf Mallorca!"

URL = "https://www.meinreisebuero24.com/kreta/hotel-olivia"
PAGE = """
<html><body>
  <h1 class="hotel-name">Hotel Olivia</h1>
  <div class="location">Kreta</div>
  <ul class="features"><li>Beheizter Pool mit Liegewiese</li></ul>
</body></html>
"""


def _client(*responses) -> SimpleNamespace:
    return SimpleNamespace(generate=AsyncMock(side_effect=list(responses)))


def _run(coro):
    return asyncio.run(coro)


class GeneratePostTests(unittest.TestCase):
    def setUp(self) -> None:
        self.options = GenerationOptions(style="enthusiastic")

    def test_valid_first_attempt_is_accepted(self) -> None:
        client = _client(GOOD_POST)
        result = _run(generate_post(OFFER, self.options, client))

        self.assertEqual(result.outcome, GenerationOutcome.ACCEPTED)
        self.assertEqual(result.attempts, 1)
        self.assertEqual(result.text, GOOD_POST)

    def test_retry_result_is_returned_unvalidated_by_default(self) -> None:
        client = _client(BAD_POST, "Zweiter Versuch")
        result = _run(generate_post(OFFER, self.options, client))

        self.assertEqual(result.outcome, GenerationOutcome.ACCEPTED_UNVALIDATED)
        self.assertEqual(result.attempts, 2)
        self.assertEqual(result.text, "Zweiter Versuch")
        self.assertEqual(result.validation.failed_check, "required-literals")

        first_prompt, first_sampling = client.generate.await_args_list[0].args
        second_prompt, second_sampling = client.generate.await_args_list[1].args
        self.assertLess(second_sampling.temperature, first_sampling.temperature)
        self.assertGreaterEqual(second_sampling.temperature, 0.3)
        self.assertIn("WICHTIG: Stelle sicher", second_prompt.user_content)
        self.assertNotIn("WICHTIG: Stelle sicher", first_prompt.user_content)

    def test_never_more_than_two_generation_calls(self) -> None:
        client = _client(BAD_POST, BAD_POST, BAD_POST)
        config = PipelineConfig(revalidate_on_retry=True)
        result = _run(generate_post(OFFER, self.options, client, config=config))

        self.assertEqual(client.generate.await_count, 2)
        self.assertEqual(result.outcome, GenerationOutcome.ACCEPTED_UNVALIDATED)

    def test_revalidated_retry_can_be_accepted(self) -> None:
        client = _client(BAD_POST, GOOD_POST)
        config = PipelineConfig(revalidate_on_retry=True)
        result = _run(generate_post(OFFER, self.options, client, config=config))

        self.assertEqual(result.outcome, GenerationOutcome.ACCEPTED)
        self.assertEqual(result.attempts, 2)

    def test_failed_revalidation_uses_template_under_template_policy(self) -> None:
        client = _client(BAD_POST, BAD_POST)
        config = PipelineConfig(revalidate_on_retry=True, fallback_policy="template")
        result = _run(generate_post(OFFER, self.options, client, config=config))

        self.assertEqual(result.outcome, GenerationOutcome.FALLBACK_USED)
        self.assertIn(DEMO_NOTICE, result.text)

    def test_quota_error_with_template_policy_returns_valid_fallback(self) -> None:
        client = _client(QuotaExceededError("quota"))
        config = PipelineConfig(fallback_policy="template")
        result = _run(generate_post(OFFER, self.options, client, config=config))

        self.assertEqual(result.outcome, GenerationOutcome.FALLBACK_USED)
        self.assertEqual(result.errors, ("quota",))
        self.assertIn("Hotel Sol Palma", result.text)
        self.assertIn("Spanien, Mallorca", result.text)
        self.assertIn("Du buchst jetzt – und zahlst später ganz flexibel mit ucandoo.", result.text)
        self.assertEqual(result.text.count("👉 "), 3)
        self.assertIn(DEMO_NOTICE, result.text)
        self.assertTrue(validate(result.text, OFFER))

    def test_strict_prompt_setting_reaches_the_prompt(self) -> None:
        for strict in (False, True):
            with self.subTest(strict=strict):
                client = _client(GOOD_POST)
                _run(generate_post(OFFER, self.options, client, config=PipelineConfig(strict_prompt=strict)))
                prompt = client.generate.await_args.args[0]
                self.assertEqual("konkret und messbar" in prompt.instructions, strict)

    def test_generation_errors_propagate_under_raise_policy(self) -> None:
        for error in [QuotaExceededError("quota"), ProviderError("boom")]:
            with self.subTest(error=type(error).__name__):
                with self.assertRaises(type(error)):
                    _run(generate_post(OFFER, self.options, _client(error)))


class RunPostWorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.cache = ResponseCache()
        self.sleep = AsyncMock()

    def test_second_request_is_served_from_cache(self) -> None:
        fetch = AsyncMock(return_value=PAGE)
        client = _client(BAD_POST, "Zweiter Versuch")
        options = GenerationOptions()

        first = _run(run_post_workflow(URL, options, client=client, cache=self.cache, fetch=fetch, sleep=self.sleep))
        second = _run(run_post_workflow(URL, options, client=client, cache=self.cache, fetch=fetch, sleep=self.sleep))

        self.assertIs(first, second)
        self.assertEqual(fetch.await_count, 1)
        self.assertEqual(client.generate.await_count, 2)
        payload = first.to_dict()
        self.assertEqual(payload["outcome"], "accepted-unvalidated")
        self.assertEqual(payload["source_info"]["hotel_name"], "Hotel Olivia")
        self.assertEqual(payload["source_info"]["original_url"], URL)

    def test_other_options_reuse_the_cached_offer(self) -> None:
        fetch = AsyncMock(return_value=PAGE)
        client = _client("eins", "zwei", "drei", "vier")

        _run(run_post_workflow(URL, GenerationOptions(), client=client, cache=self.cache, fetch=fetch, sleep=self.sleep))
        _run(
            run_post_workflow(
                URL,
                GenerationOptions(style="elegant"),
                client=client,
                cache=self.cache,
                fetch=fetch,
                sleep=self.sleep,
            )
        )

        self.assertEqual(fetch.await_count, 1)
        self.assertEqual(client.generate.await_count, 4)

    def test_fallback_posts_are_not_cached(self) -> None:
        fetch = AsyncMock(return_value=PAGE)
        client = _client(QuotaExceededError("quota"), QuotaExceededError("quota"))
        config = PipelineConfig(fallback_policy="template")

        for _ in range(2):
            result = _run(
                run_post_workflow(URL, config=config, client=client, cache=self.cache, fetch=fetch, sleep=self.sleep)
            )
            self.assertEqual(result.generation.outcome, GenerationOutcome.FALLBACK_USED)

        self.assertEqual(client.generate.await_count, 2)
        self.assertEqual(fetch.await_count, 1)

    def test_unusable_page_raises_not_found(self) -> None:
        fetch = AsyncMock(return_value="<html><body><h1>X</h1></body></html>")
        with self.assertRaises(OfferNotFoundError) as context:
            _run(run_post_workflow(URL, client=_client(), cache=self.cache, fetch=fetch, sleep=self.sleep))
        self.assertEqual(context.exception.failure.reason, "name-implausible")
        self.assertEqual(context.exception.http_status, 404)


def test_sync_runner_returns_post_result() -> None:
    fetch = AsyncMock(return_value=PAGE)
    result = run_post_workflow_sync(
        URL,
        GenerationOptions(use_emojis=False),
        client=_client("eins", "zwei"),
        cache=ResponseCache(),
        fetch=fetch,
        sleep=AsyncMock(),
    )
    assert result.offer.name == "Hotel Olivia"
    assert result.text == "zwei"


def test_sync_runner_propagates_errors() -> None:
    fetch = AsyncMock(return_value=PAGE)
    with pytest.raises(QuotaExceededError):
        run_post_workflow_sync(URL, client=_client(QuotaExceededError("quota")), cache=ResponseCache(), fetch=fetch)


def test_sync_runner_inside_running_loop_leaves_no_stray_coroutine() -> None:
    async def caller():
        return run_post_workflow_sync(
            URL,
            client=_client("eins", "zwei"),
            cache=ResponseCache(),
            fetch=AsyncMock(return_value=PAGE),
            sleep=AsyncMock(),
        )

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = asyncio.run(caller())

    assert result.text == "zwei"
    assert not [warning for warning in caught if "was never awaited" in str(warning.message)]


if __name__ == "__main__":
    unittest.main()
