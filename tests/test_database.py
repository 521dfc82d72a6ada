from contextlib import contextmanager
from unittest.mock import MagicMock

import pymongo
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from kutuphane.api import create_app
from kutuphane.config import settings
from kutuphane.database import connect, ensure_indexes, parse_object_id
from kutuphane.errors import BadRequestError
from kutuphane.services import BookService, LendingService, UserService


@pytest.fixture
def active_deadlines(monkeypatch):
    """pymongo.timeout yerine geçen ve o an açık olan süreleri tutan sahte bağlam."""
    active = []

    @contextmanager
    def recording_timeout(seconds):
        active.append(seconds)
        try:
            yield
        finally:
            active.pop()

    monkeypatch.setattr(pymongo, "timeout", recording_timeout)
    return active


def recording(collection, active_deadlines, *methods):
    # Her çağrıda hangi sürelerin açık olduğunu kaydeden sarmalayıcı
    seen = []
    wrapped = MagicMock(wraps=collection)
    for name in methods:
        real = getattr(collection, name)

        def call(*args, _real=real, **kwargs):
            seen.append(list(active_deadlines))
            return _real(*args, **kwargs)

        getattr(wrapped, name).side_effect = call
    return wrapped, seen


def test_user_operations_run_under_request_deadline(users, active_deadlines):
    wrapped, seen = recording(users, active_deadlines, "count_documents", "insert_one", "find_one", "delete_one")
    service = UserService(wrapped)

    user_id = service.register("alice", "pw1")
    service.authenticate("alice", "pw1")
    service.get_by_id(str(user_id))
    service.delete_by_id(str(user_id))

    assert len(seen) == 5
    assert all(deadlines == [settings.request_timeout] for deadlines in seen)


def test_book_operations_run_under_request_deadline(books, active_deadlines):
    wrapped, seen = recording(books, active_deadlines, "insert_one", "find")
    service = BookService(wrapped)

    service.create("Dune")
    service.list_all()

    assert seen == [[settings.request_timeout], [settings.request_timeout]]


def test_borrow_and_return_share_one_request_deadline(users, books, active_deadlines):
    user_id = users.insert_one({"username": "alice", "password": "x", "books": []}).inserted_id
    book_id = books.insert_one({"title": "Dune"}).inserted_id
    wrapped_users, seen_users = recording(users, active_deadlines, "find_one", "update_one")
    wrapped_books, seen_books = recording(books, active_deadlines, "find_one", "update_one")
    lending = LendingService(wrapped_users, wrapped_books)

    lending.borrow(str(user_id), str(book_id))
    lending.return_book(str(user_id), str(book_id))

    # Tek bir süre açık: iç içe ya da işlem başına ayrı bir süre yok
    assert seen_users and seen_books
    assert all(deadlines == [settings.request_timeout] for deadlines in seen_users + seen_books)


def test_request_timeout_default_is_five_seconds():
    assert settings.request_timeout == 5
    assert settings.connect_timeout == 10


def test_connect_pings_within_connect_timeout(monkeypatch, active_deadlines):
    seen = []
    fake_client = MagicMock()
    fake_client.admin.command.side_effect = lambda name: seen.append((name, list(active_deadlines)))
    client_factory = MagicMock(return_value=fake_client)
    monkeypatch.setattr("kutuphane.database.MongoClient", client_factory)

    assert connect("mongodb://example:27017") is fake_client

    assert seen == [("ping", [settings.connect_timeout])]
    client_factory.assert_called_once_with(
        "mongodb://example:27017", serverSelectionTimeoutMS=int(settings.connect_timeout * 1000)
    )
    fake_client.close.assert_not_called()


def test_connect_failure_closes_client_and_raises(monkeypatch):
    fake_client = MagicMock()
    fake_client.admin.command.side_effect = ServerSelectionTimeoutError("sunucu yok")
    monkeypatch.setattr("kutuphane.database.MongoClient", MagicMock(return_value=fake_client))

    with pytest.raises(ServerSelectionTimeoutError):
        connect("mongodb://example:27017", timeout=0.5)
    fake_client.close.assert_called_once()


def test_ensure_indexes_creates_unique_username_index(db):
    assert ensure_indexes(db) is True
    index = next(i for i in db["users"].index_information().values() if i["key"] == [("username", 1)])
    assert index.get("unique") is True


def test_ensure_indexes_tolerates_duplicate_usernames(caplog):
    # Tekrarlanan kullanıcı adları olan eski bir veritabanında dizin kurulamaz
    fake_db = MagicMock()
    fake_db.__getitem__.return_value.create_index.side_effect = OperationFailure(
        "E11000 duplicate key error", code=11000
    )
    assert ensure_indexes(fake_db) is False
    assert "Kullanıcı adı dizini oluşturulamadı" in caplog.text


def test_app_starts_when_index_cannot_be_created(db, monkeypatch):
    def failing_create_index(*args, **kwargs):
        raise OperationFailure("E11000 duplicate key error", code=11000)

    monkeypatch.setattr(db["users"].__class__, "create_index", failing_create_index)
    with TestClient(create_app(database=db)) as test_client:
        assert test_client.get("/books").status_code == 200
        response = test_client.post("/register", json={"username": "alice", "password": "pw1"})
        assert response.status_code == 201
        duplicate = test_client.post("/register", json={"username": "alice", "password": "pw2"})
        assert duplicate.status_code == 400


def test_parse_object_id():
    oid = ObjectId()
    assert parse_object_id(str(oid), "Geçersiz") == oid
    for value in ("abc", "", 42, None):
        with pytest.raises(BadRequestError, match="Geçersiz"):
            parse_object_id(value, "Geçersiz")
