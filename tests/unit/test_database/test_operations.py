"""
Unit tests for database operations
"""

import random
import threading

import pytest
from sqlalchemy.exc import OperationalError

from database.connection import DatabaseManager
from database.models import Quote
from database.operations import QuoteStore, open_store
from utils.exceptions import PersistenceError, NotFoundError, ErrorCodes
from tests.factories import QuoteFactory, EdgeCaseFactory, FakeClock


@pytest.mark.unit
class TestQuoteStore:
    """Test cases for QuoteStore class"""

    def test_initialize(self, store):
        """Test store initialization"""
        assert store is not None
        assert store.db.is_initialized

    def test_empty_store(self, store):
        """Test listing and picking on a fresh store"""
        assert store.get_all_quotes() == []
        assert store.get_random_quote() is None
        assert store.count_quotes() == 0

    def test_insert_returns_generated_id(self, store):
        first = store.insert_quote("Life is beautiful", "Anonymous")
        second = store.insert_quote("Carpe diem", "Horace")
        assert first == 1
        assert second == 2

    def test_round_trip_unicode(self, store):
        """Test arbitrary UTF-8 content is returned exactly"""
        inputs = EdgeCaseFactory.create_unicode_inputs()
        ids = {store.insert_quote(text, author): (text, author) for text, author in inputs}

        for quote in store.get_all_quotes():
            assert (quote.text, quote.author) == ids[quote.id]

    def test_round_trip_random_content(self, store):
        for text, author in QuoteFactory.create_quote_inputs(20):
            quote_id = store.insert_quote(text, author)
            stored = store.get_quote(quote_id)
            assert stored.text == text
            assert stored.author == author

    def test_list_newest_first(self, store):
        """Test A, B, C inserted in order list as C, B, A"""
        a = store.insert_quote("A", "first")
        b = store.insert_quote("B", "second")
        c = store.insert_quote("C", "third")

        assert [q.id for q in store.get_all_quotes()] == [c, b, a]

    def test_list_ties_broken_by_id(self, db_path):
        """Test equal timestamps still list newest insert first"""
        with QuoteStore(DatabaseManager(db_path), clock=lambda: 1000.0) as store:
            ids = [store.insert_quote(f"quote {i}", "same time") for i in range(5)]
            assert [q.id for q in store.get_all_quotes()] == list(reversed(ids))

    def test_created_at_set_by_clock(self, store, clock):
        expected = clock.now
        quote_id = store.insert_quote("text", "author")
        assert store.get_quote(quote_id).created_at == expected

    def test_created_at_never_moves_backwards(self, db_path):
        """Test clock going backwards does not reorder inserts"""
        times = iter([100.0, 200.0, 150.0, 50.0])
        with QuoteStore(DatabaseManager(db_path), clock=lambda: next(times)) as store:
            ids = [store.insert_quote(str(i), "clock") for i in range(4)]
            created = [store.get_quote(i).created_at for i in ids]

            assert created == sorted(created)
            assert [q.id for q in store.get_all_quotes()] == list(reversed(ids))

    def test_created_at_monotonic_after_reopen(self, db_path):
        with QuoteStore(DatabaseManager(db_path), clock=lambda: 500.0) as store:
            store.insert_quote("old", "first run")

        with QuoteStore(DatabaseManager(db_path), clock=lambda: 10.0) as store:
            new_id = store.insert_quote("new", "second run")
            assert store.get_quote(new_id).created_at == 500.0
            assert store.get_all_quotes()[0].id == new_id

    def test_random_pick_single_row(self, store):
        quote_id = store.insert_quote("only", "one")
        for _ in range(10):
            assert store.get_random_quote().id == quote_id

    def test_random_pick_covers_rows(self, store):
        """Test repeated random picks return more than one row"""
        ids = {store.insert_quote(f"quote {i}", "author") for i in range(5)}
        picked = {store.get_random_quote().id for _ in range(200)}

        assert picked <= ids
        assert len(picked) > 1

    def test_random_pick_roughly_uniform(self, db_path):
        with QuoteStore(DatabaseManager(db_path), rng=random.Random(42)) as store:
            ids = [store.insert_quote(f"quote {i}", "author") for i in range(4)]
            counts = dict.fromkeys(ids, 0)
            for _ in range(4000):
                counts[store.get_random_quote().id] += 1

        # 期望每个 1000 次
        assert all(700 < count < 1300 for count in counts.values())

    def test_random_pick_ignores_deleted(self, store):
        keep = store.insert_quote("keep", "a")
        gone = store.insert_quote("gone", "b")
        store.delete_quote(gone)

        assert {store.get_random_quote().id for _ in range(20)} == {keep}

    def test_update_preserves_id_and_created_at(self, store):
        quote_id = store.insert_quote("original", "someone")
        before = store.get_quote(quote_id)

        updated = store.update_quote(before.model_copy(update={"text": "edited", "author": "someone else"}))

        assert updated.id == before.id
        assert updated.created_at == before.created_at
        assert updated.text == "edited"
        assert updated.author == "someone else"
        assert store.get_quote(quote_id) == updated

    def test_update_ignores_passed_created_at(self, store):
        quote_id = store.insert_quote("original", "someone")
        before = store.get_quote(quote_id)

        store.update_quote(Quote(id=quote_id, text="new", author="new", created_at=0.0))
        assert store.get_quote(quote_id).created_at == before.created_at

    def test_update_keeps_list_position(self, store):
        a = store.insert_quote("A", "x")
        b = store.insert_quote("B", "y")
        store.update_quote(Quote(id=a, text="A2", author="x", created_at=0.0))

        assert [q.id for q in store.get_all_quotes()] == [b, a]

    def test_update_missing_raises_not_found(self, store):
        store.insert_quote("present", "author")
        with pytest.raises(NotFoundError) as exc_info:
            store.update_quote(Quote(id=999, text="t", author="a", created_at=0.0))

        assert exc_info.value.error_code == ErrorCodes.QUOTE_NOT_FOUND
        assert exc_info.value.context == {"id": 999}
        assert store.count_quotes() == 1

    def test_delete_existing(self, store):
        """Test delete removes exactly the matching row"""
        a = store.insert_quote("A", "x")
        b = store.insert_quote("B", "y")
        c = store.insert_quote("C", "z")

        assert store.delete_quote(b) is True
        assert [q.id for q in store.get_all_quotes()] == [c, a]
        assert store.get_quote(b) is None

    def test_delete_missing_is_noop(self, store):
        """Test deleting a missing id succeeds and changes nothing"""
        store.insert_quote("A", "x")
        before = store.get_all_quotes()

        assert store.delete_quote(12345) is True
        assert store.get_all_quotes() == before

    def test_delete_twice(self, store):
        quote_id = store.insert_quote("A", "x")
        assert store.delete_quote(quote_id) is True
        assert store.delete_quote(quote_id) is True
        assert store.get_all_quotes() == []

    def test_ids_not_reused(self, store):
        first = store.insert_quote("A", "x")
        second = store.insert_quote("B", "y")
        store.delete_quote(second)

        third = store.insert_quote("C", "z")
        assert third not in (first, second)
        assert third > second

    def test_scenario_insert_list_delete(self, store):
        quote_id = store.insert_quote("Life is beautiful", "Anonymous")
        assert quote_id == 1

        quotes = store.get_all_quotes()
        assert len(quotes) == 1
        assert (quotes[0].id, quotes[0].text, quotes[0].author) == (1, "Life is beautiful", "Anonymous")

        assert store.delete_quote(1) is True
        assert store.get_all_quotes() == []

    def test_data_persists_across_instances(self, db_path):
        with open_store(db_path) as store:
            quote_id = store.insert_quote("durable", "disk")

        with open_store(db_path) as store:
            assert store.get_quote(quote_id).text == "durable"

    def test_stores_are_independent(self, temp_dir):
        """Test two stores on different files do not share state"""
        with open_store(str(temp_dir / "a.db")) as first, open_store(str(temp_dir / "b.db")) as second:
            first.insert_quote("only in a", "a")
            assert second.get_all_quotes() == []

    def test_concurrent_inserts_serialized(self, store):
        """Test inserts from several threads all land with unique ids"""
        errors = []

        def worker(n):
            try:
                for i in range(20):
                    store.insert_quote(f"thread {n} quote {i}", f"thread {n}")
            except PersistenceError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        quotes = store.get_all_quotes()
        assert len(quotes) == 100
        assert len({q.id for q in quotes}) == 100

    def test_write_failure_raises_persistence_error(self, store, monkeypatch):
        def broken_session():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(store.db, "get_session", broken_session)

        with pytest.raises(PersistenceError) as exc_info:
            store.insert_quote("text", "author")
        assert exc_info.value.error_code == ErrorCodes.DB_WRITE_FAILED
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_read_failure_raises_persistence_error(self, store, monkeypatch):
        def broken_session():
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(store.db, "get_session", broken_session)

        with pytest.raises(PersistenceError):
            store.get_all_quotes()
        with pytest.raises(PersistenceError):
            store.get_random_quote()

    def test_update_failure_raises_persistence_error(self, store, monkeypatch):
        quote_id = store.insert_quote("text", "author")

        def broken_session():
            raise OperationalError("UPDATE", {}, Exception("disk I/O error"))

        monkeypatch.setattr(store.db, "get_session", broken_session)

        with pytest.raises(PersistenceError) as exc_info:
            store.update_quote(Quote(id=quote_id, text="new", author="new", created_at=0.0))
        assert exc_info.value.error_code == ErrorCodes.DB_WRITE_FAILED
        assert exc_info.value.context == {"id": quote_id}
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_delete_failure_raises_persistence_error(self, store, monkeypatch):
        quote_id = store.insert_quote("text", "author")

        def broken_session():
            raise OperationalError("DELETE", {}, Exception("database is locked"))

        monkeypatch.setattr(store.db, "get_session", broken_session)

        with pytest.raises(PersistenceError) as exc_info:
            store.delete_quote(quote_id)
        assert exc_info.value.error_code == ErrorCodes.DB_WRITE_FAILED
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_lone_surrogate_insert_raises_persistence_error(self, store):
        """Test text the driver cannot encode is reported as a store failure"""
        with pytest.raises(PersistenceError) as exc_info:
            store.insert_quote("bad \ud800 text", "author")

        assert exc_info.value.error_code == ErrorCodes.DB_WRITE_FAILED
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)
        # 失败后存储仍可正常使用
        assert store.count_quotes() == 0
        assert store.insert_quote("good text", "author") == 1

    def test_lone_surrogate_update_raises_persistence_error(self, store):
        quote_id = store.insert_quote("original", "author")

        with pytest.raises(PersistenceError) as exc_info:
            store.update_quote(Quote(id=quote_id, text="ok", author="bad \udfff", created_at=0.0))

        assert exc_info.value.error_code == ErrorCodes.DB_WRITE_FAILED
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)
        assert store.get_quote(quote_id).author == "author"

    def test_failed_insert_does_not_advance_created_at(self, db_path):
        times = iter([500.0, 100.0])
        with QuoteStore(DatabaseManager(db_path), clock=lambda: next(times)) as store:
            with pytest.raises(PersistenceError):
                store.insert_quote("bad \ud800", "author")

            quote_id = store.insert_quote("good", "author")
            assert store.get_quote(quote_id).created_at == 100.0

    def test_operations_after_close_raise(self, db_path):
        store = open_store(db_path)
        store.close()

        with pytest.raises(PersistenceError):
            store.insert_quote("text", "author")

    def test_backup(self, store, temp_dir):
        store.insert_quote("backed up", "me")
        backup_path = store.backup(str(temp_dir / "backup" / "copy.db"))

        assert backup_path.exists()
        with open_store(str(backup_path)) as copy:
            assert [q.text for q in copy.get_all_quotes()] == ["backed up"]


@pytest.mark.unit
class TestFakeClock:

    def test_clock_advances(self):
        clock = FakeClock(start=10.0, step=0.5)
        assert [clock(), clock(), clock()] == [10.0, 10.5, 11.0]
