"""SQLite record store for prompts, versions, categories and embeddings.

Wraps a SQLAlchemy engine and hands plain dicts to the core. Storage
encodings (comma-joined tags, float32 vector buffers, naive SQLite
timestamps) never leave this module.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import numpy as np
import structlog
from sqlalchemy import create_engine, delete, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from prompt_vault.config import get_settings
from prompt_vault.core.errors import DuplicateCategoryError
from prompt_vault.db.models import (
    DEFAULT_CATEGORY_COLOR,
    Base,
    CategoryRecord,
    EmbeddingRecord,
    PromptRecord,
    PromptVersionRecord,
)

logger = structlog.get_logger()

FTS_TABLE = "prompts_fts"
_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


# --- Storage encodings ---


def encode_tags(tags: Sequence[str] | str | None) -> str:
    """Encode a tag list for storage. Drops blanks and duplicates, keeps order."""
    if not tags:
        return ""
    if isinstance(tags, str):
        tags = tags.split(",")
    cleaned: list[str] = []
    for tag in tags:
        tag = str(tag).replace(",", " ").strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return ",".join(cleaned)


def decode_tags(raw: str | None) -> list[str]:
    """Decode the stored tag string into a list."""
    if not raw:
        return []
    return [tag for tag in raw.split(",") if tag]


def encode_vector(vector: Sequence[float]) -> bytes:
    """Serialise a vector as little-endian float32 bytes."""
    return np.asarray(vector, dtype="<f4").tobytes()


def decode_vector(raw: bytes) -> list[float]:
    """Inverse of ``encode_vector``."""
    return np.frombuffer(raw, dtype="<f4").tolist()


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _prompt_to_dict(record: PromptRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "title": record.title,
        "content": record.content,
        "category": record.category,
        "tags": decode_tags(record.tags),
        "created_at": as_utc(record.created_at),
        "updated_at": as_utc(record.updated_at),
    }


def _version_to_dict(record: PromptVersionRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "prompt_id": record.prompt_id,
        "version_number": record.version_number,
        "title": record.title,
        "content": record.content,
        "category": record.category,
        "tags": decode_tags(record.tags),
        "change_reason": record.change_reason,
        "created_at": as_utc(record.created_at),
    }


def _category_to_dict(record: CategoryRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "name": record.name,
        "color": record.color,
        "created_at": as_utc(record.created_at),
    }


def _embedding_to_dict(record: EmbeddingRecord) -> dict[str, Any]:
    return {
        "prompt_id": record.prompt_id,
        "vector": decode_vector(record.vector),
        "dimension": record.dimension,
        "model": record.model,
        "created_at": as_utc(record.created_at),
        "updated_at": as_utc(record.updated_at),
    }


def _build_engine(database_url: str) -> Engine:
    """Create a SQLite engine with foreign keys enforced on every connection."""
    in_memory = database_url in _MEMORY_URLS
    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if in_memory:
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


class PromptStore:
    """Persistence for the prompt collection.

    Every method accepts an optional ``session`` so that callers can group
    several writes into one transaction (see ``transaction``). Without one,
    the method runs in its own short transaction.
    """

    def __init__(self, database_url: str, index_tags: bool = True) -> None:
        self.database_url = database_url
        self.index_tags = index_tags
        self.engine = _build_engine(database_url)
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    # ------------------------------------------------------------------
    # Schema and transactions
    # ------------------------------------------------------------------

    @property
    def fts_columns(self) -> list[str]:
        columns = ["title", "content", "category"]
        if self.index_tags:
            columns.append("tags")
        return columns

    def init_schema(self) -> None:
        """Create tables and (re)build the full-text index and its triggers.

        The FTS table is recreated on every start so that switching
        ``index_tags`` takes effect; ``rebuild`` repopulates it from prompts.
        """
        Base.metadata.create_all(self.engine)

        columns = ", ".join(self.fts_columns)
        new_values = ", ".join(f"new.{c}" for c in self.fts_columns)
        old_values = ", ".join(f"old.{c}" for c in self.fts_columns)
        statements = [
            "DROP TRIGGER IF EXISTS prompts_fts_insert",
            "DROP TRIGGER IF EXISTS prompts_fts_update",
            "DROP TRIGGER IF EXISTS prompts_fts_delete",
            f"DROP TABLE IF EXISTS {FTS_TABLE}",
            f"CREATE VIRTUAL TABLE {FTS_TABLE} USING fts5("
            f"{columns}, content='prompts', content_rowid='rowid')",
            f"""CREATE TRIGGER prompts_fts_insert AFTER INSERT ON prompts BEGIN
                INSERT INTO {FTS_TABLE}(rowid, {columns}) VALUES (new.rowid, {new_values});
            END""",
            f"""CREATE TRIGGER prompts_fts_delete AFTER DELETE ON prompts BEGIN
                INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, {columns})
                VALUES ('delete', old.rowid, {old_values});
            END""",
            f"""CREATE TRIGGER prompts_fts_update AFTER UPDATE ON prompts BEGIN
                INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, {columns})
                VALUES ('delete', old.rowid, {old_values});
                INSERT INTO {FTS_TABLE}(rowid, {columns}) VALUES (new.rowid, {new_values});
            END""",
            f"INSERT INTO {FTS_TABLE}({FTS_TABLE}) VALUES ('rebuild')",
        ]
        with self.engine.begin() as conn:
            for statement in statements:
                conn.exec_driver_sql(statement)
        logger.info("store.schema_ready", index_tags=self.index_tags)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Unit of work: commits on success, rolls back on any exception."""
        with self._session_factory.begin() as session:
            yield session

    @contextmanager
    def _scope(self, session: Session | None) -> Iterator[Session]:
        if session is not None:
            yield session
        else:
            with self.transaction() as new_session:
                yield new_session

    def dispose(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def insert_prompt(self, data: dict[str, Any], session: Session | None = None) -> dict[str, Any]:
        """Insert a prompt and return the created row."""
        now = _utcnow()
        record = PromptRecord(
            title=data["title"],
            content=data["content"],
            category=data.get("category"),
            tags=encode_tags(data.get("tags")),
            created_at=data.get("created_at") or now,
            updated_at=data.get("updated_at") or now,
        )
        if data.get("id"):
            record.id = data["id"]
        with self._scope(session) as s:
            s.add(record)
            s.flush()
            return _prompt_to_dict(record)

    def get_prompt(self, prompt_id: str, session: Session | None = None) -> dict[str, Any] | None:
        with self._scope(session) as s:
            record = s.get(PromptRecord, prompt_id)
            return _prompt_to_dict(record) if record else None

    def list_prompts(self, category: str | None = None) -> list[dict[str, Any]]:
        """All prompts, most recently updated first."""
        stmt = select(PromptRecord).order_by(PromptRecord.updated_at.desc())
        if category:
            stmt = stmt.where(PromptRecord.category == category)
        with self._scope(None) as s:
            return [_prompt_to_dict(r) for r in s.scalars(stmt).all()]

    def find_prompt_ids(self, prefix: str) -> list[str]:
        """IDs starting with ``prefix`` (LIKE wildcards in the prefix are literal)."""
        stmt = select(PromptRecord.id).where(PromptRecord.id.startswith(prefix, autoescape=True))
        with self._scope(None) as s:
            return list(s.scalars(stmt).all())

    def update_prompt(
        self,
        prompt_id: str,
        changes: dict[str, Any],
        session: Session | None = None,
    ) -> dict[str, Any] | None:
        """Apply the given fields and bump ``updated_at``. Returns None if absent."""
        with self._scope(session) as s:
            record = s.get(PromptRecord, prompt_id)
            if record is None:
                return None
            for field in ("title", "content", "category"):
                if field in changes:
                    setattr(record, field, changes[field])
            if "tags" in changes:
                record.tags = encode_tags(changes["tags"])
            record.updated_at = _utcnow()
            s.flush()
            return _prompt_to_dict(record)

    def upsert_prompt(self, data: dict[str, Any], session: Session | None = None) -> dict[str, Any]:
        """Insert or overwrite a prompt by id, keeping the supplied timestamps."""
        with self._scope(session) as s:
            record = s.get(PromptRecord, data["id"]) if data.get("id") else None
            if record is None:
                return self.insert_prompt(data, session=s)
            record.title = data["title"]
            record.content = data["content"]
            record.category = data.get("category")
            record.tags = encode_tags(data.get("tags"))
            record.created_at = data.get("created_at") or record.created_at
            record.updated_at = data.get("updated_at") or _utcnow()
            s.flush()
            return _prompt_to_dict(record)

    def delete_prompt(self, prompt_id: str) -> bool:
        """Delete a prompt; versions and embedding go with it (ON DELETE CASCADE)."""
        with self._scope(None) as s:
            result = s.execute(delete(PromptRecord).where(PromptRecord.id == prompt_id))
            return result.rowcount > 0

    def delete_all_prompts(self) -> int:
        with self._scope(None) as s:
            result = s.execute(delete(PromptRecord))
            return result.rowcount

    def full_text_matches(
        self,
        expression: str,
        category: str | None = None,
    ) -> list[tuple[dict[str, Any], float]]:
        """Run an FTS5 MATCH and return ``(prompt, bm25)`` pairs, unordered.

        FTS5's ``bm25()`` is lower-is-better (matches score below zero).
        """
        sql = (
            f"SELECT p.id AS id, bm25({FTS_TABLE}) AS bm25_score "
            f"FROM {FTS_TABLE} JOIN prompts p ON p.rowid = {FTS_TABLE}.rowid "
            f"WHERE {FTS_TABLE} MATCH :expression"
        )
        params: dict[str, Any] = {"expression": expression}
        if category:
            sql += " AND p.category = :category"
            params["category"] = category

        with self._scope(None) as s:
            rows = s.execute(text(sql), params).all()
            if not rows:
                return []
            ranks = {row.id: float(row.bm25_score) for row in rows}
            records = s.scalars(select(PromptRecord).where(PromptRecord.id.in_(list(ranks)))).all()
            return [(_prompt_to_dict(r), ranks[r.id]) for r in records]

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def max_version_number(self, prompt_id: str, session: Session | None = None) -> int:
        """Highest version number for a prompt, 0 if it has no history."""
        stmt = select(func.max(PromptVersionRecord.version_number)).where(
            PromptVersionRecord.prompt_id == prompt_id
        )
        with self._scope(session) as s:
            return s.scalar(stmt) or 0

    def insert_version(self, data: dict[str, Any], session: Session | None = None) -> dict[str, Any]:
        record = PromptVersionRecord(
            prompt_id=data["prompt_id"],
            version_number=data["version_number"],
            title=data["title"],
            content=data["content"],
            category=data.get("category"),
            tags=encode_tags(data.get("tags")),
            change_reason=data.get("change_reason"),
            created_at=_utcnow(),
        )
        with self._scope(session) as s:
            s.add(record)
            s.flush()
            return _version_to_dict(record)

    def list_versions(self, prompt_id: str) -> list[dict[str, Any]]:
        """Version history, newest first."""
        stmt = (
            select(PromptVersionRecord)
            .where(PromptVersionRecord.prompt_id == prompt_id)
            .order_by(PromptVersionRecord.version_number.desc())
        )
        with self._scope(None) as s:
            return [_version_to_dict(r) for r in s.scalars(stmt).all()]

    def get_version(
        self,
        prompt_id: str,
        version_number: int,
        session: Session | None = None,
    ) -> dict[str, Any] | None:
        stmt = select(PromptVersionRecord).where(
            PromptVersionRecord.prompt_id == prompt_id,
            PromptVersionRecord.version_number == version_number,
        )
        with self._scope(session) as s:
            record = s.scalars(stmt).first()
            return _version_to_dict(record) if record else None

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> list[dict[str, Any]]:
        with self._scope(None) as s:
            records = s.scalars(select(CategoryRecord).order_by(CategoryRecord.name)).all()
            return [_category_to_dict(r) for r in records]

    def get_category(self, name: str) -> dict[str, Any] | None:
        with self._scope(None) as s:
            record = s.scalars(select(CategoryRecord).where(CategoryRecord.name == name)).first()
            return _category_to_dict(record) if record else None

    def insert_category(self, name: str, color: str | None = None) -> dict[str, Any]:
        """Insert a category. Raises DuplicateCategoryError on a name collision."""
        record = CategoryRecord(name=name, color=color or DEFAULT_CATEGORY_COLOR)
        try:
            with self.transaction() as s:
                s.add(record)
                s.flush()
                created = _category_to_dict(record)
        except IntegrityError as exc:
            raise DuplicateCategoryError(name) from exc
        return created

    def upsert_category(
        self,
        data: dict[str, Any],
        session: Session | None = None,
    ) -> dict[str, Any]:
        """Insert a category or update the color of the existing one with that name."""
        with self._scope(session) as s:
            record = s.scalars(
                select(CategoryRecord).where(CategoryRecord.name == data["name"])
            ).first()
            if record is None:
                record = CategoryRecord(
                    name=data["name"],
                    color=data.get("color") or DEFAULT_CATEGORY_COLOR,
                )
                if data.get("id"):
                    record.id = data["id"]
                s.add(record)
            elif data.get("color"):
                record.color = data["color"]
            s.flush()
            return _category_to_dict(record)

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def save_embedding(self, prompt_id: str, vector: Sequence[float], model: str) -> dict[str, Any]:
        """Insert or replace the embedding of a prompt."""
        now = _utcnow()
        with self._scope(None) as s:
            record = s.get(EmbeddingRecord, prompt_id)
            if record is None:
                record = EmbeddingRecord(prompt_id=prompt_id, created_at=now)
                s.add(record)
            record.vector = encode_vector(vector)
            record.dimension = len(vector)
            record.model = model
            record.updated_at = now
            s.flush()
            return _embedding_to_dict(record)

    def get_embedding(self, prompt_id: str) -> dict[str, Any] | None:
        with self._scope(None) as s:
            record = s.get(EmbeddingRecord, prompt_id)
            return _embedding_to_dict(record) if record else None

    def count_embeddings(self) -> int:
        with self._scope(None) as s:
            return s.scalar(select(func.count()).select_from(EmbeddingRecord)) or 0

    def list_embeddings(self) -> list[tuple[dict[str, Any], list[float]]]:
        """Every stored embedding paired with its prompt."""
        stmt = select(PromptRecord, EmbeddingRecord).join(
            EmbeddingRecord, EmbeddingRecord.prompt_id == PromptRecord.id
        )
        with self._scope(None) as s:
            return [
                (_prompt_to_dict(prompt), decode_vector(embedding.vector))
                for prompt, embedding in s.execute(stmt).all()
            ]


@lru_cache
def get_store() -> PromptStore:
    """Get the cached application store, with its schema initialised."""
    settings = get_settings()
    store = PromptStore(settings.database_url, index_tags=settings.index_tags)
    store.init_schema()
    logger.info("store.connected", url=settings.database_url)
    return store
