"""High level orchestration from offer URL to accepted WhatsApp post."""
from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
import logging
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from .cache import ResponseCache, offer_key, post_key
from .config import PipelineConfig
from .emoji import DEFAULT_MAPPER, EmojiMapper
from .generation import GeminiClient, GenerationError
from .models import (
    ExtractionFailure,
    GenerationOptions,
    GenerationOutcome,
    GenerationResult,
    OfferData,
    PromptRequest,
    SamplingParams,
    ValidationResult,
)
from .prompt import DEFAULT_EXAMPLE_BANK, ExampleBank, build_prompt, with_correction
from .reporter import build_fallback_message
from .scraper import scrape_offer
from .sources import Fetcher, fetch_html
from .validator import ValidationRules, rules_from_config, validate

LOGGER = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, prompt: PromptRequest, sampling: Optional[SamplingParams] = None) -> str:
        ...


class GenerationState(str, Enum):
    FIRST_ATTEMPT = "first-attempt"
    RETRY_ATTEMPT = "retry-attempt"


class OfferNotFoundError(Exception):
    """Raised when no usable offer could be extracted from a URL."""

    http_status = 404

    def __init__(self, failure: ExtractionFailure) -> None:
        self.failure = failure
        super().__init__(f"Keine Angebotsdaten für {failure.url} ({failure.reason})")


def _fallback_result(
    offer: OfferData,
    options: GenerationOptions,
    mapper: EmojiMapper,
    attempts: int,
    errors: List[str],
    validation: Optional[ValidationResult] = None,
) -> GenerationResult:
    return GenerationResult(
        text=build_fallback_message(offer, options, mapper),
        outcome=GenerationOutcome.FALLBACK_USED,
        attempts=attempts,
        validation=validation,
        errors=tuple(errors),
    )


async def generate_post(
    offer: OfferData,
    options: GenerationOptions,
    client: TextGenerator,
    *,
    config: Optional[PipelineConfig] = None,
    rng: Optional[random.Random] = None,
    mapper: EmojiMapper = DEFAULT_MAPPER,
    examples: ExampleBank = DEFAULT_EXAMPLE_BANK,
    rules: Optional[ValidationRules] = None,
) -> GenerationResult:
    """Generate, validate and at most once retry a post for ``offer``.

    A second result is only re-validated when ``config.revalidate_on_retry``
    is set; otherwise it is returned as ``accepted-unvalidated``. Generation
    errors propagate unless the fallback template policy is configured.
    """

    config = config or PipelineConfig()
    rules = rules or rules_from_config(config)
    prompt = build_prompt(
        offer,
        options,
        mapper=mapper,
        examples=examples,
        rng=rng,
        example_count=config.example_count,
        strict=config.strict_prompt,
        max_output_tokens=config.max_output_tokens,
    )

    state = GenerationState.FIRST_ATTEMPT
    attempts = 0
    errors: List[str] = []
    first_validation: Optional[ValidationResult] = None

    while True:
        attempts += 1
        try:
            text = await client.generate(prompt, prompt.sampling)
        except GenerationError as exc:
            if not config.use_fallback_template:
                raise
            LOGGER.warning("Generation failed on attempt %s, using fallback template: %s", attempts, exc)
            errors.append(str(exc))
            return _fallback_result(offer, options, mapper, attempts, errors)

        if state is GenerationState.FIRST_ATTEMPT:
            first_validation = validate(text, offer, rules)
            if first_validation:
                return GenerationResult(text, GenerationOutcome.ACCEPTED, attempts, first_validation)
            LOGGER.info("Retrying generation after failed %s check", first_validation.failed_check)
            prompt = with_correction(
                prompt,
                floor=config.retry_temperature_floor,
                step=config.retry_temperature_step,
            )
            state = GenerationState.RETRY_ATTEMPT
            continue

        if not config.revalidate_on_retry:
            return GenerationResult(
                text, GenerationOutcome.ACCEPTED_UNVALIDATED, attempts, first_validation
            )

        retry_validation = validate(text, offer, rules)
        if retry_validation:
            return GenerationResult(text, GenerationOutcome.ACCEPTED, attempts, retry_validation)
        if config.use_fallback_template:
            errors.append(f"validation failed: {retry_validation.failed_check}")
            return _fallback_result(offer, options, mapper, attempts, errors, retry_validation)
        return GenerationResult(
            text, GenerationOutcome.ACCEPTED_UNVALIDATED, attempts, retry_validation
        )


@dataclass
class PostResult:
    """Result returned by :func:`run_post_workflow`."""

    url: str
    options: GenerationOptions
    offer: OfferData
    generation: GenerationResult

    @property
    def text(self) -> str:
        return self.generation.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_post": self.generation.text,
            "outcome": self.generation.outcome.value,
            "attempts": self.generation.attempts,
            "source_info": self.offer.source_info(self.url),
            "offer": self.offer.to_dict(),
            "options": self.options.to_dict(),
        }


async def run_post_workflow(
    url: str,
    options: Optional[GenerationOptions] = None,
    *,
    config: Optional[PipelineConfig] = None,
    client: Optional[TextGenerator] = None,
    cache: Optional[ResponseCache] = None,
    fetch: Fetcher = fetch_html,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Optional[random.Random] = None,
) -> PostResult:
    """Execute extraction and generation for ``url``, reusing cached results."""

    options = options or GenerationOptions()
    config = config or PipelineConfig()
    cache = cache if cache is not None else ResponseCache()
    if client is None:
        client = GeminiClient(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            safety_threshold=config.safety_threshold,
        )

    cached_post = cache.get(post_key(url, options.cache_key()))
    if cached_post is not None:
        LOGGER.info("Serving cached post for %s", url)
        return cached_post

    offer = cache.get(offer_key(url))
    if offer is None:
        scraped = await scrape_offer(url, config=config, fetch=fetch, sleep=sleep)
        if isinstance(scraped, ExtractionFailure):
            raise OfferNotFoundError(scraped)
        offer = scraped
        cache.set(offer_key(url), offer, config.offer_cache_ttl)

    generation = await generate_post(offer, options, client, config=config, rng=rng)
    result = PostResult(url=url, options=options, offer=offer, generation=generation)
    if generation.outcome is not GenerationOutcome.FALLBACK_USED:
        cache.set(post_key(url, options.cache_key()), result, config.post_cache_ttl)
    return result


def run_post_workflow_sync(url: str, options: Optional[GenerationOptions] = None, **kwargs: Any) -> PostResult:
    """Run :func:`run_post_workflow` from synchronous code."""

    def runner() -> PostResult:
        return asyncio.run(run_post_workflow(url, options, **kwargs))

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return runner()
    # Already inside an event loop: run on a fresh loop in a worker thread.
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(runner).result()


__all__ = [
    "GenerationState",
    "OfferNotFoundError",
    "PostResult",
    "generate_post",
    "run_post_workflow",
    "run_post_workflow_sync",
]
