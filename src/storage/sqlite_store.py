# src/storage/sqlite_store.py
"""SQLite-backed article store.

Uses stdlib sqlite3, no external dependency. Version allocation runs inside a
BEGIN IMMEDIATE transaction, which takes the database write lock before the
current maximum version is read, so concurrent writers (threads or processes)
cannot both claim the same version.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import Any

from newsforge.core.models import ArticleStatus
from newsforge.storage.base_article_store import ArticleNotFoundError, BaseArticleStore
from newsforge.storage.models import Article, NewArticle, NewRun, Run, utcnow

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS articles (
    id TEXT PRIMARY KEY,
    org_id TEXT NOT NULL,
    slug TEXT NOT NULL,
    version INTEGER NOT NULL,
    headline TEXT,
    blob TEXT,
    content TEXT,
    rich_content TEXT,
    sentences TEXT,
    sources TEXT NOT NULL,
    preset_title TEXT NOT NULL DEFAULT '',
    preset_instructions TEXT NOT NULL DEFAULT '',
    preset_blobs INTEGER NOT NULL DEFAULT 1,
    preset_length TEXT NOT NULL,
    status TEXT NOT NULL,
    source_type TEXT NOT NULL,
    created_by TEXT NOT NULL,
    updated_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (org_id, slug, version)
);
CREATE INDEX IF NOT EXISTS idx_articles_org_slug ON articles(org_id, slug);

CREATE TABLE IF NOT EXISTS runs (
    id TEXT PRIMARY KEY,
    article_id TEXT NOT NULL REFERENCES articles(id),
    user_id TEXT NOT NULL,
    source_type TEXT NOT NULL,
    length TEXT NOT NULL,
    cost_usd REAL NOT NULL DEFAULT 0,
    input_tokens_used INTEGER NOT NULL DEFAULT 0,
    output_tokens_used INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_runs_article ON runs(article_id);
"""

_JSON_COLUMNS = ("sources", "sentences")


class SqliteArticleStore(BaseArticleStore):
    """Durable store for articles and runs in a single SQLite file."""

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            self._db_path = None
            target = ":memory:"
        else:
            self._db_path = Path(db_path).expanduser()
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self._db_path)
        # Autocommit mode; transactions are opened explicitly.
        self._conn = sqlite3.connect(target, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)

    # --- Articles ---

    async def create_article_record(self, new_article: NewArticle) -> Article:
        now = utcnow()
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            row = self._conn.execute(
                "SELECT MAX(version) FROM articles WHERE org_id = ? AND slug = ?",
                (new_article.org_id, new_article.slug),
            ).fetchone()
            article = Article(
                id=str(uuid.uuid4()),
                version=(row[0] or 0) + 1,
                status="pending",
                updated_by=new_article.created_by,
                created_at=now,
                updated_at=now,
                **new_article.model_dump(),
            )
            self._conn.execute(
                """INSERT INTO articles
                   (id, org_id, slug, version, headline, blob, content, rich_content,
                    sentences, sources, preset_title, preset_instructions, preset_blobs,
                    preset_length, status, source_type, created_by, updated_by,
                    created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, NULL, NULL, NULL, NULL, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    article.id, article.org_id, article.slug, article.version,
                    article.headline,
                    json.dumps([s.model_dump() for s in article.sources]),
                    article.preset_title, article.preset_instructions,
                    article.preset_blobs, article.preset_length,
                    article.status, article.source_type,
                    article.created_by, article.updated_by,
                    now.isoformat(), now.isoformat(),
                ),
            )
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise
        logger.info(
            "Created article %s (%s v%d)", article.id, article.slug, article.version
        )
        return article

    async def get_article_by_id(self, article_id: str) -> Article | None:
        row = self._conn.execute(
            "SELECT * FROM articles WHERE id = ?", (article_id,)
        ).fetchone()
        return _row_to_article(row) if row else None

    async def list_article_versions(self, org_id: str, slug: str) -> list[Article]:
        rows = self._conn.execute(
            "SELECT * FROM articles WHERE org_id = ? AND slug = ? ORDER BY version DESC",
            (org_id, slug),
        ).fetchall()
        return [_row_to_article(r) for r in rows]

    async def update_article_status(
        self, article_id: str, user_id: str, status: ArticleStatus
    ) -> Article | None:
        cursor = self._conn.execute(
            "UPDATE articles SET status = ?, updated_by = ?, updated_at = ? WHERE id = ?",
            (status, user_id, utcnow().isoformat(), article_id),
        )
        if cursor.rowcount == 0:
            logger.warning("Article %s not found for status update", article_id)
            return None
        return await self.get_article_by_id(article_id)

    async def update_article_with_results(
        self,
        article_id: str,
        user_id: str,
        success: bool,
        headline: str,
        blobs: list[str],
        content: str,
        rich_content: str | None = None,
        sentences: list[str] | None = None,
    ) -> None:
        cursor = self._conn.execute(
            """UPDATE articles
               SET status = ?, headline = ?, blob = ?, content = ?, rich_content = ?,
                   sentences = ?, updated_by = ?, updated_at = ?
               WHERE id = ?""",
            (
                "completed" if success else "failed",
                headline if success else None,
                "\n".join(blobs) if success else None,
                content if success else None,
                rich_content if success else None,
                json.dumps(sentences) if success and sentences else None,
                user_id,
                utcnow().isoformat(),
                article_id,
            ),
        )
        if cursor.rowcount == 0:
            raise ArticleNotFoundError(article_id)

    # --- Runs ---

    async def create_run(self, new_run: NewRun) -> Run:
        run = Run(id=str(uuid.uuid4()), **new_run.model_dump())
        self._conn.execute(
            """INSERT INTO runs
               (id, article_id, user_id, source_type, length, cost_usd,
                input_tokens_used, output_tokens_used, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                run.id, run.article_id, run.user_id, run.source_type, run.length,
                run.cost_usd, run.input_tokens_used, run.output_tokens_used,
                run.created_at.isoformat(), run.updated_at.isoformat(),
            ),
        )
        return run

    async def update_run(
        self, run_id: str, cost_usd: float, input_tokens: int, output_tokens: int
    ) -> Run | None:
        cursor = self._conn.execute(
            """UPDATE runs
               SET cost_usd = ?, input_tokens_used = ?, output_tokens_used = ?, updated_at = ?
               WHERE id = ?""",
            (cost_usd, input_tokens, output_tokens, utcnow().isoformat(), run_id),
        )
        if cursor.rowcount == 0:
            logger.warning("Run %s not found for update", run_id)
            return None
        return await self.get_run(run_id)

    async def get_run(self, run_id: str) -> Run | None:
        row = self._conn.execute("SELECT * FROM runs WHERE id = ?", (run_id,)).fetchone()
        return Run(**dict(row)) if row else None

    async def list_runs(self, article_id: str) -> list[Run]:
        rows = self._conn.execute(
            "SELECT * FROM runs WHERE article_id = ? ORDER BY created_at, rowid",
            (article_id,),
        ).fetchall()
        return [Run(**dict(r)) for r in rows]

    async def close(self) -> None:
        self._conn.close()


def _row_to_article(row: sqlite3.Row) -> Article:
    data: dict[str, Any] = dict(row)
    for column in _JSON_COLUMNS:
        if data.get(column) is not None:
            data[column] = json.loads(data[column])
    if data.get("sources") is None:
        data["sources"] = []
    return Article(**data)
