import contextlib

import psycopg
import pytest

from link_dispenser.errors import StorageFailure
from link_dispenser.storage.base import Claim
from link_dispenser.storage.db_store import (
    COUNT_UNUSED_SQL,
    INSERT_IGNORE_SQL,
    MARK_USED_SQL,
    PostgresLinkStore,
    SELECT_CANDIDATE_SQL,
)


class DummyCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = -1

    def execute(self, query, params=None):
        self.conn.executed.append((query, params))
        if self.conn.fail_on and self.conn.fail_on in query:
            raise psycopg.OperationalError("boom")
        self.rowcount = self.conn.rowcounts.pop(0) if self.conn.rowcounts else 1
        return self

    def fetchone(self):
        return self.conn.results.pop(0) if self.conn.results else None

    def fetchall(self):
        return self.conn.results.pop(0) if self.conn.results else []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class DummyTransaction:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        self.conn.transactions += 1
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.conn.commits += 1
            return False
        self.conn.rollbacks += 1
        # psycopg swallows Rollback raised inside its own block
        return isinstance(exc, psycopg.Rollback)


class DummyConnection:
    def __init__(self, results=None, rowcounts=None, fail_on=None):
        self.results = list(results or [])
        self.rowcounts = list(rowcounts or [])
        self.fail_on = fail_on
        self.executed = []
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, row_factory=None):
        return DummyCursor(self)

    def transaction(self):
        return DummyTransaction(self)

    def queries(self):
        return [q for q, _ in self.executed]


class DummyPool:
    def __init__(self, conn):
        self.conn = conn
        self.closed = False

    @contextlib.contextmanager
    def connection(self):
        yield self.conn

    def close(self):
        self.closed = True


def _store(conn):
    return PostgresLinkStore("fake", pool=DummyPool(conn))


# ---------------------------------------------------------------------
# consume
# ---------------------------------------------------------------------

def test_consume_claims_row_and_reports_remaining():
    conn = DummyConnection(results=[(7, "https://a.example"), (3,)])
    claim = _store(conn).consume(100)

    assert claim == Claim(url="https://a.example", remaining=3)
    assert conn.executed == [
        (SELECT_CANDIDATE_SQL, (100,)),
        (MARK_USED_SQL, (7,)),
        (COUNT_UNUSED_SQL, (100,)),
    ]
    # the count runs inside the claim transaction
    assert conn.transactions == 1
    assert conn.commits == 1 and conn.rollbacks == 0


def test_consume_count_failure_rolls_back_the_claim():
    conn = DummyConnection(results=[(7, "https://a.example")], fail_on="SELECT COUNT(*)")
    with pytest.raises(StorageFailure):
        _store(conn).consume(100)

    assert (MARK_USED_SQL, (7,)) in conn.executed
    assert conn.commits == 0
    assert conn.rollbacks == 1


def test_consume_selects_with_skip_locked_lowest_id():
    sql = " ".join(SELECT_CANDIDATE_SQL.split())
    assert "usado = FALSE" in sql
    assert "ORDER BY id LIMIT 1 FOR UPDATE SKIP LOCKED" in sql


def test_consume_no_row_rolls_back_and_returns_none():
    conn = DummyConnection(results=[])
    assert _store(conn).consume(100) is None
    assert conn.rollbacks == 1
    assert MARK_USED_SQL not in conn.queries()


def test_consume_storage_error_rolls_back_and_raises():
    conn = DummyConnection(results=[(7, "https://a.example")], fail_on="UPDATE links")
    with pytest.raises(StorageFailure):
        _store(conn).consume(100)
    assert conn.rollbacks == 1
    assert conn.commits == 0


# ---------------------------------------------------------------------
# add / clear
# ---------------------------------------------------------------------

def test_add_links_counts_new_rows_in_one_transaction():
    conn = DummyConnection(rowcounts=[1, 0, 1])
    added = _store(conn).add_links(100, ["https://a", "https://b", "https://c"])

    assert added == 2
    assert conn.transactions == 1 and conn.commits == 1
    assert conn.executed == [
        (INSERT_IGNORE_SQL, (100, "https://a")),
        (INSERT_IGNORE_SQL, (100, "https://b")),
        (INSERT_IGNORE_SQL, (100, "https://c")),
    ]
    assert "ON CONFLICT (valor, url) DO NOTHING" in INSERT_IGNORE_SQL


def test_add_links_failure_rolls_back_whole_batch():
    conn = DummyConnection(fail_on="INSERT")
    with pytest.raises(StorageFailure):
        _store(conn).add_links(100, ["https://a"])
    assert conn.rollbacks == 1


def test_clear_links_deletes_only_unused():
    conn = DummyConnection(rowcounts=[4])
    assert _store(conn).clear_links(100) == 4
    query, params = conn.executed[0]
    assert query.startswith("DELETE FROM links") and "usado = FALSE" in query
    assert params == (100,)


# ---------------------------------------------------------------------
# reads
# ---------------------------------------------------------------------

def test_count_unused():
    conn = DummyConnection(results=[(5,)])
    assert _store(conn).count_unused(100) == 5


def test_status_maps_keys_to_counts():
    conn = DummyConnection(results=[[(100, 2), (500, 0)]])
    assert _store(conn).status() == {100: 2, 500: 0}


def test_list_all_groups_in_query_order():
    conn = DummyConnection(results=[[(100, "https://a", False), (100, "https://b", False), (500, "https://c", False)]])
    assert _store(conn).list_all() == {100: ["https://a", "https://b"], 500: ["https://c"]}


def test_list_all_keeps_drained_keys_as_empty_lists():
    conn = DummyConnection(results=[[(100, "https://a", True), (100, "https://b", False), (500, "https://c", True)]])
    assert _store(conn).list_all() == {100: ["https://b"], 500: []}


def test_list_for_key():
    conn = DummyConnection(results=[[("https://a",), ("https://b",)]])
    assert _store(conn).list_for_key(100) == ["https://a", "https://b"]
    assert conn.executed[0][1] == (100,)


# ---------------------------------------------------------------------
# lifecycle
# ---------------------------------------------------------------------

def test_open_creates_schema_and_close_releases_pool():
    conn = DummyConnection()
    pool = DummyPool(conn)
    store = PostgresLinkStore("fake", pool=pool)
    store.open()

    ddl = " ".join(" ".join(conn.queries()).split())
    assert "CREATE TABLE IF NOT EXISTS links" in ddl
    assert "UNIQUE (valor, url)" in ddl
    assert "creado_en TIMESTAMP NOT NULL DEFAULT NOW()" in ddl
    assert "ON links (valor, usado)" in ddl

    store.close()
    assert pool.closed is True


def test_use_before_open_raises_storage_failure():
    store = PostgresLinkStore("fake")
    with pytest.raises(StorageFailure, match="before open"):
        store.count_unused(100)


def test_open_builds_pool_from_dsn(monkeypatch):
    built = {}

    class FakePool(DummyPool):
        def __init__(self, conninfo, **kwargs):
            super().__init__(DummyConnection())
            built["conninfo"] = conninfo
            built.update(kwargs)

        def open(self, wait=False, timeout=None):
            built["opened"] = wait

    monkeypatch.setattr("link_dispenser.storage.db_store.ConnectionPool", FakePool)
    store = PostgresLinkStore("postgresql://u:p@db:5432/links", min_size=2, max_size=4, sslmode="require")
    store.open()

    assert built["conninfo"] == "postgresql://u:p@db:5432/links"
    assert built["min_size"] == 2 and built["max_size"] == 4
    assert built["kwargs"] == {"sslmode": "require"}
    assert built["opened"] is True
    assert repr(store) == "PostgresLinkStore(host='db:5432/links')"
