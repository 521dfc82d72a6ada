import os

# Testlerde bcrypt'i hızlı tut; ayarlar içe aktarılırken okunur
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

from kutuphane.api import create_app
from kutuphane.database import BOOKS_COLLECTION, USERS_COLLECTION, ensure_indexes


@pytest.fixture
def db():
    # Her test için ayrı bir bellek içi veritabanı
    database = mongomock.MongoClient()["library_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def users(db):
    return db[USERS_COLLECTION]


@pytest.fixture
def books(db):
    return db[BOOKS_COLLECTION]


@pytest.fixture
def client(db):
    app = create_app(database=db)
    with TestClient(app) as test_client:
        yield test_client


def register(client, username="alice", password="pw1") -> str:
    response = client.post("/register", json={"username": username, "password": password})
    assert response.status_code == 201
    return response.json()["inserted_id"]


def add_book(client, title="Dune") -> str:
    response = client.post("/book", json={"title": title})
    assert response.status_code == 201
    return response.json()["inserted_id"]
