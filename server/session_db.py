"""SQLite storage for serialized research graphs, keyed by session id."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from research_graph import settings


@dataclass
class SessionRow:
    session_id: str
    created_at: str
    updated_at: str


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteSessionRepository:
    """Persists serialize() blobs. Satisfies research_graph.session.SessionRepository."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path) if db_path else settings.DB_PATH
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                create table if not exists research_graphs (
                    session_id text primary key,
                    graph_json text not null,
                    created_at text not null,
                    updated_at text not null
                )
                """
            )
            conn.commit()

    def save(self, session_id: str, blob: str) -> None:
        """insert or update a session's graph."""
        now = _utc_now()
        with self._connect() as conn:
            conn.execute(
                """
                insert into research_graphs (session_id, graph_json, created_at, updated_at)
                values (?, ?, ?, ?)
                on conflict(session_id) do update set
                    graph_json = excluded.graph_json,
                    updated_at = excluded.updated_at
                """,
                (session_id, blob, now, now),
            )
            conn.commit()

    def load(self, session_id: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "select graph_json from research_graphs where session_id = ?",
                (session_id,),
            ).fetchone()
        if not row:
            return None
        return row["graph_json"]

    def list_sessions(self, limit: int = 100, offset: int = 0) -> list[SessionRow]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                select session_id, created_at, updated_at
                from research_graphs
                order by updated_at desc
                limit ? offset ?
                """,
                (limit, offset),
            ).fetchall()
        return [
            SessionRow(
                session_id=row["session_id"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def delete(self, session_id: str) -> None:
        with self._connect() as conn:
            conn.execute("delete from research_graphs where session_id = ?", (session_id,))
            conn.commit()
