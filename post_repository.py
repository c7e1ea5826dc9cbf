"""SQLite-backed persistence for generated posts and the edits made to them."""
from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_ITEM_ICON = "✓"


@dataclass
class PostRecord:
    """One generated post together with the source fields shown beside it."""

    id: str
    source_url: str
    generated_post: str
    original_post: str
    hotel_name: str
    destination: str
    created_at: datetime
    updated_at: datetime
    hotel_category: Optional[str] = None
    outcome: str = "accepted"
    features: List[Dict[str, str]] = field(default_factory=list)
    custom_sections: List[Dict[str, Any]] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    def source_info(self) -> Dict[str, Any]:
        return {
            "hotel_name": self.hotel_name,
            "hotel_category": self.hotel_category,
            "destination": self.destination,
            "features_with_icons": [dict(item) for item in self.features],
            "original_url": self.source_url,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the post into a JSON-ready structure."""

        return {
            "id": self.id,
            "source_url": self.source_url,
            "generated_post": self.generated_post,
            "original_post": self.original_post,
            "outcome": self.outcome,
            "options": self.options,
            "source_info": self.source_info(),
            "custom_sections": self.custom_sections,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def _item(text: str, icon: Optional[str] = None) -> Dict[str, str]:
    return {"icon": icon or DEFAULT_ITEM_ICON, "text": text}


class PostRepository:
    """SQLite backed persistence for :class:`PostRecord` objects."""

    def __init__(self, database: str) -> None:
        self.database = database
        db_path = Path(database)
        if db_path.parent and not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self.database)
        connection.row_factory = sqlite3.Row
        return connection

    def _ensure_schema(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS posts (
                    id TEXT PRIMARY KEY,
                    source_url TEXT NOT NULL,
                    generated_post TEXT NOT NULL,
                    original_post TEXT NOT NULL,
                    hotel_name TEXT NOT NULL,
                    hotel_category TEXT,
                    destination TEXT NOT NULL,
                    outcome TEXT NOT NULL,
                    features TEXT NOT NULL,
                    custom_sections TEXT NOT NULL,
                    options TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def create_post(self, record: PostRecord) -> None:
        payload = (
            record.id,
            record.source_url,
            record.generated_post,
            record.original_post,
            record.hotel_name,
            record.hotel_category,
            record.destination,
            record.outcome,
            json.dumps(record.features, ensure_ascii=False),
            json.dumps(record.custom_sections, ensure_ascii=False),
            json.dumps(record.options or {}),
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
        )
        with self._connect() as connection:
            connection.execute(
                """
                INSERT INTO posts (
                    id, source_url, generated_post, original_post, hotel_name, hotel_category,
                    destination, outcome, features, custom_sections, options, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                payload,
            )

    def get(self, post_id: str) -> Optional[PostRecord]:
        with self._connect() as connection:
            cursor = connection.execute("SELECT * FROM posts WHERE id = ?", (post_id,))
            row = cursor.fetchone()
        if not row:
            return None
        return PostRecord(
            id=row["id"],
            source_url=row["source_url"],
            generated_post=row["generated_post"],
            original_post=row["original_post"],
            hotel_name=row["hotel_name"],
            hotel_category=row["hotel_category"],
            destination=row["destination"],
            outcome=row["outcome"],
            features=json.loads(row["features"]) if row["features"] else [],
            custom_sections=json.loads(row["custom_sections"]) if row["custom_sections"] else [],
            options=json.loads(row["options"]) if row["options"] else {},
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _save_columns(self, post_id: str, columns: Dict[str, Any]) -> None:
        columns["updated_at"] = datetime.now(timezone.utc).isoformat()
        assignments = ", ".join(f"{name} = ?" for name in columns)
        with self._connect() as connection:
            connection.execute(
                f"UPDATE posts SET {assignments} WHERE id = ?",
                (*columns.values(), post_id),
            )

    def update_post(
        self,
        post_id: str,
        *,
        generated_post: Optional[str] = None,
        hotel_name: Optional[str] = None,
        hotel_category: Optional[str] = None,
        destination: Optional[str] = None,
        features: Optional[Iterable[Dict[str, str]]] = None,
    ) -> Optional[PostRecord]:
        """Overwrite the given fields in place; ``None`` leaves a field untouched."""

        if self.get(post_id) is None:
            return None
        columns: Dict[str, Any] = {}
        if generated_post is not None:
            columns["generated_post"] = generated_post
        if hotel_name is not None:
            columns["hotel_name"] = hotel_name
        if hotel_category is not None:
            columns["hotel_category"] = hotel_category
        if destination is not None:
            columns["destination"] = destination
        if features is not None:
            columns["features"] = json.dumps(
                [_item(item["text"], item.get("icon")) for item in features], ensure_ascii=False
            )
        if columns:
            self._save_columns(post_id, columns)
        return self.get(post_id)

    def add_custom_section(
        self, post_id: str, title: str, items: Iterable[Dict[str, str]] = ()
    ) -> Optional[PostRecord]:
        record = self.get(post_id)
        if record is None:
            return None
        sections = record.custom_sections + [
            {"title": title, "items": [_item(item["text"], item.get("icon")) for item in items]}
        ]
        self._save_columns(post_id, {"custom_sections": json.dumps(sections, ensure_ascii=False)})
        return self.get(post_id)

    def add_feature(self, post_id: str, text: str, icon: Optional[str] = None) -> Optional[PostRecord]:
        record = self.get(post_id)
        if record is None:
            return None
        features = record.features + [_item(text, icon)]
        self._save_columns(post_id, {"features": json.dumps(features, ensure_ascii=False)})
        return self.get(post_id)

    def add_section_item(
        self, post_id: str, section_index: int, text: str, icon: Optional[str] = None
    ) -> Optional[PostRecord]:
        """Append an item to a custom section; raises ``IndexError`` for unknown sections."""

        record = self.get(post_id)
        if record is None:
            return None
        sections = record.custom_sections
        if not 0 <= section_index < len(sections):
            raise IndexError(f"post {post_id} has no section {section_index}")
        sections[section_index]["items"].append(_item(text, icon))
        self._save_columns(post_id, {"custom_sections": json.dumps(sections, ensure_ascii=False)})
        return self.get(post_id)
