"""Flask based backend for generating and editing WhatsApp offer posts."""
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from flask import Flask, jsonify, request

from offer_core import (
    GeminiClient,
    GenerationError,
    OfferNotFoundError,
    PipelineConfig,
    PostResult,
    QuotaExceededError,
    ResponseCache,
    create_config_from_env,
    create_options,
    run_post_workflow_sync,
)
from offer_core.reporter import apply_source_update, merge_source_edits
from offer_core.workflow import TextGenerator
from post_repository import PostRecord, PostRepository

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

SOURCE_FIELDS = ("hotel_name", "hotel_category", "destination", "features")


def _record_from_result(result: PostResult) -> PostRecord:
    now = datetime.now(timezone.utc)
    info = result.offer.source_info(result.url)
    return PostRecord(
        id=uuid4().hex,
        source_url=result.url,
        generated_post=result.text,
        original_post=result.text,
        hotel_name=info["hotel_name"],
        hotel_category=info["hotel_category"],
        destination=info["destination"],
        outcome=result.generation.outcome.value,
        features=info["features_with_icons"],
        options=result.options.to_dict(),
        created_at=now,
        updated_at=now,
    )


def _parse_items(raw: Any) -> List[Dict[str, str]]:
    items: List[Dict[str, str]] = []
    for entry in raw or []:
        if isinstance(entry, str):
            entry = {"text": entry}
        if not isinstance(entry, dict):
            continue
        text = str(entry.get("text") or "").strip()
        if text:
            items.append({"text": text, "icon": str(entry.get("icon") or "").strip()})
    return items


def create_app(
    config: Optional[PipelineConfig] = None,
    repository: Optional[PostRepository] = None,
    client: Optional[TextGenerator] = None,
    cache: Optional[ResponseCache] = None,
) -> Flask:
    """Create the Flask application with its collaborators wired in."""

    config = config or create_config_from_env()
    if repository is None:
        repository = PostRepository(os.getenv("POST_DB_PATH", os.path.join(os.getcwd(), "posts.db")))
    if client is None:
        client = GeminiClient(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            safety_threshold=config.safety_threshold,
        )
    cache = cache if cache is not None else ResponseCache()

    app = Flask(__name__)

    @app.route("/api/generate-post", methods=["POST"])
    def generate_post():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "JSON body required"}), 400
        url = str(payload.get("url") or "").strip()
        if not url.startswith(("http://", "https://")):
            return jsonify({"error": "Eine gültige URL ist erforderlich."}), 400
        try:
            options = create_options(payload)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        if not config.is_allowed_url(url):
            domains = ", ".join(config.allowed_domains)
            return jsonify({"error": f"Bitte eine URL von {domains} angeben."}), 400

        try:
            result = run_post_workflow_sync(url, options, config=config, client=client, cache=cache)
        except OfferNotFoundError as exc:
            LOGGER.info("No offer data for %s: %s", url, exc.failure.reason)
            return jsonify({"error": "Konnte keine Angebotsdaten von der URL extrahieren."}), 404
        except QuotaExceededError as exc:
            return jsonify({"error": str(exc)}), exc.http_status
        except GenerationError as exc:
            LOGGER.error("Generation failed for %s: %s", url, exc)
            return jsonify({"error": str(exc)}), exc.http_status

        record = _record_from_result(result)
        repository.create_post(record)
        LOGGER.info("Stored post %s (%s) for %s", record.id, record.outcome, url)
        return jsonify(
            {
                "id": record.id,
                "generated_post": record.generated_post,
                "outcome": record.outcome,
                "source_info": record.source_info(),
            }
        )

    @app.route("/api/posts/<post_id>", methods=["GET"])
    def get_post(post_id: str):
        record = repository.get(post_id)
        if not record:
            return jsonify({"error": "unknown post"}), 404
        return jsonify(record.to_dict())

    @app.route("/api/posts/<post_id>", methods=["PATCH"])
    def update_post(post_id: str):
        record = repository.get(post_id)
        if not record:
            return jsonify({"error": "unknown post"}), 404
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "JSON body required"}), 400
        if "features" in payload and not isinstance(payload["features"], dict):
            return jsonify({"error": "features must map an index to a text"}), 400

        text = payload.get("generated_post")
        if text is not None and not isinstance(text, str):
            return jsonify({"error": "generated_post must be a string"}), 400
        text = text if text is not None else record.generated_post

        old_info = record.source_info()
        new_info = old_info
        if any(key in payload for key in SOURCE_FIELDS):
            new_info = merge_source_edits(old_info, payload)
            text = apply_source_update(text, old_info, new_info)

        updated = repository.update_post(
            post_id,
            generated_post=text,
            hotel_name=new_info["hotel_name"],
            hotel_category=new_info["hotel_category"],
            destination=new_info["destination"],
            features=new_info["features_with_icons"],
        )
        return jsonify(updated.to_dict())

    @app.route("/api/posts/<post_id>/sections", methods=["POST"])
    def add_section(post_id: str):
        payload = request.get_json(silent=True) or {}
        title = str(payload.get("title") or "").strip()
        if not title:
            return jsonify({"error": "title required"}), 400
        record = repository.add_custom_section(post_id, title, _parse_items(payload.get("items")))
        if not record:
            return jsonify({"error": "unknown post"}), 404
        return jsonify(record.to_dict()), 201

    @app.route("/api/posts/<post_id>/features", methods=["POST"])
    def add_feature(post_id: str):
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text") or "").strip()
        if not text:
            return jsonify({"error": "text required"}), 400
        record = repository.add_feature(post_id, text, payload.get("icon"))
        if not record:
            return jsonify({"error": "unknown post"}), 404
        return jsonify(record.to_dict()), 201

    @app.route("/api/posts/<post_id>/sections/<int:index>/items", methods=["POST"])
    def add_section_item(post_id: str, index: int):
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text") or "").strip()
        if not text:
            return jsonify({"error": "text required"}), 400
        try:
            record = repository.add_section_item(post_id, index, text, payload.get("icon"))
        except IndexError:
            return jsonify({"error": "unknown section"}), 404
        if not record:
            return jsonify({"error": "unknown post"}), 404
        return jsonify(record.to_dict()), 201

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
