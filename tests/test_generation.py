import asyncio
from types import SimpleNamespace
import unittest
from unittest.mock import AsyncMock

import httpx
from google.genai import errors

from offer_core.generation import (
    GeminiClient,
    ProviderError,
    QuotaExceededError,
    TransportError,
    build_safety_settings,
)
from offer_core.models import PromptRequest, SamplingParams

PROMPT = PromptRequest(
    instructions="Du bist ein Texter.",
    user_content="Schreibe einen Post.",
    sampling=SamplingParams(temperature=0.8, top_p=0.97, top_k=40, max_output_tokens=1000),
)


def _stub_client(generate: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate)))


class GeminiClientTests(unittest.TestCase):
    def test_returns_stripped_text_and_passes_sampling(self) -> None:
        generate = AsyncMock(return_value=SimpleNamespace(text="  Hallo Mallorca!  \n"))
        client = GeminiClient(model="gemini-test", client=_stub_client(generate))

        text = asyncio.run(client.generate(PROMPT, PROMPT.sampling.with_temperature(0.5)))

        self.assertEqual(text, "Hallo Mallorca!")
        kwargs = generate.await_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-test")
        config = kwargs["config"]
        self.assertEqual(config.system_instruction, "Du bist ein Texter.")
        self.assertEqual(config.temperature, 0.5)
        self.assertEqual(config.top_k, 40)
        self.assertEqual(config.max_output_tokens, 1000)
        self.assertEqual(len(config.safety_settings), 4)
        self.assertEqual(kwargs["contents"][0].parts[0].text, "Schreibe einen Post.")

    def test_missing_key_is_a_provider_error(self) -> None:
        client = GeminiClient(api_key=None)
        self.assertFalse(client.configured)
        with self.assertRaises(ProviderError):
            asyncio.run(client.generate(PROMPT))

    def test_quota_errors_are_classified(self) -> None:
        error = errors.ClientError(
            429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}
        )
        client = GeminiClient(client=_stub_client(AsyncMock(side_effect=error)))

        with self.assertRaises(QuotaExceededError) as context:
            asyncio.run(client.generate(PROMPT))
        self.assertEqual(context.exception.http_status, 429)

    def test_other_api_errors_are_provider_errors(self) -> None:
        error = errors.ServerError(
            500, {"error": {"code": 500, "message": "boom", "status": "INTERNAL"}}
        )
        client = GeminiClient(client=_stub_client(AsyncMock(side_effect=error)))

        with self.assertRaises(ProviderError) as context:
            asyncio.run(client.generate(PROMPT))
        self.assertEqual(context.exception.http_status, 500)

    def test_network_failures_are_transport_errors(self) -> None:
        for failure in [httpx.ConnectError("refused"), asyncio.TimeoutError()]:
            with self.subTest(failure=type(failure).__name__):
                client = GeminiClient(client=_stub_client(AsyncMock(side_effect=failure)))
                with self.assertRaises(TransportError):
                    asyncio.run(client.generate(PROMPT))

    def test_empty_response_is_a_provider_error(self) -> None:
        client = GeminiClient(client=_stub_client(AsyncMock(return_value=SimpleNamespace(text=None))))
        with self.assertRaises(ProviderError):
            asyncio.run(client.generate(PROMPT))


def test_safety_settings_cover_all_categories() -> None:
    settings = build_safety_settings("BLOCK_ONLY_HIGH")
    assert len(settings) == 4
    assert all(setting.threshold == "BLOCK_ONLY_HIGH" for setting in settings)


if __name__ == "__main__":
    unittest.main()
