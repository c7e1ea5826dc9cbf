"""Offer post package turning hotel offer pages into WhatsApp marketing posts."""
from .cache import ResponseCache
from .config import PipelineConfig, create_config_from_env, create_options
from .extractor import extract, extract_minimal
from .generation import GeminiClient, GenerationError, ProviderError, QuotaExceededError, TransportError
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
from .prompt import build_prompt, derive_sampling, with_correction
from .scraper import scrape_offer
from .validator import validate
from .workflow import OfferNotFoundError, PostResult, generate_post, run_post_workflow, run_post_workflow_sync

__all__ = [
    "ExtractionFailure",
    "GeminiClient",
    "GenerationError",
    "GenerationOptions",
    "GenerationOutcome",
    "GenerationResult",
    "OfferData",
    "OfferNotFoundError",
    "PipelineConfig",
    "PostResult",
    "PromptRequest",
    "ProviderError",
    "QuotaExceededError",
    "ResponseCache",
    "SamplingParams",
    "TransportError",
    "ValidationResult",
    "build_prompt",
    "create_config_from_env",
    "create_options",
    "derive_sampling",
    "extract",
    "extract_minimal",
    "generate_post",
    "run_post_workflow",
    "run_post_workflow_sync",
    "scrape_offer",
    "validate",
    "with_correction",
]
