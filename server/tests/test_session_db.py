"""Tests for sqlite session storage."""

from server.session_db import SqliteSessionRepository


class TestSqliteSessionRepository:
    def test_upsert(self, tmp_path):
        repository = SqliteSessionRepository(tmp_path / "nested" / "graphs.db")
        repository.save("s-1", '{"v": 1}')
        first = repository.list_sessions()[0]
        repository.save("s-1", '{"v": 2}')

        assert repository.load("s-1") == '{"v": 2}'
        [row] = repository.list_sessions()
        assert row.created_at == first.created_at

    def test_missing_and_delete(self, tmp_path):
        repository = SqliteSessionRepository(tmp_path / "graphs.db")
        assert repository.load("nope") is None
        repository.save("s-1", "{}")
        repository.delete("s-1")
        assert repository.load("s-1") is None

    def test_list_paging(self, tmp_path):
        repository = SqliteSessionRepository(tmp_path / "graphs.db")
        for i in range(3):
            repository.save(f"s-{i}", "{}")
        assert len(repository.list_sessions(limit=2)) == 2
        assert len(repository.list_sessions(limit=2, offset=2)) == 1
