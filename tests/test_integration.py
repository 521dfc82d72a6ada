import uuid

import pytest
from fastapi.testclient import TestClient

from kutuphane.api import create_app
from kutuphane.database import connect, get_database

# Gerçek bir MongoDB gerektirir; varsayılan olarak atlanır (pytest -m integration)
pytestmark = pytest.mark.integration


@pytest.fixture
def live_client():
    mongo = connect()
    name = f"library_test_{uuid.uuid4().hex[:8]}"
    app = create_app(database=get_database(mongo, name))
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        mongo.drop_database(name)
        mongo.close()


def test_full_lending_lifecycle(live_client):
    user_id = live_client.post("/register", json={"username": "alice", "password": "pw1"}).json()["inserted_id"]
    book_ids = [live_client.post("/book", json={"title": t}).json()["inserted_id"] for t in ("A", "B", "C")]

    for book_id in book_ids[:2]:
        assert live_client.post("/borrow", json={"user_id": user_id, "book_id": book_id}).status_code == 200
    assert live_client.post("/borrow", json={"user_id": user_id, "book_id": book_ids[2]}).status_code == 400

    assert live_client.post("/return", json={"user_id": user_id, "book_id": book_ids[0]}).status_code == 200
    assert live_client.get(f"/user/{user_id}").json()["books"] == [book_ids[1]]
    assert live_client.get("/health").json()["db"] is True
