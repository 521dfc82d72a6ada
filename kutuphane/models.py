from __future__ import annotations

from bson import ObjectId


class User:
    """Kütüphanedeki tek bir kullanıcıyı ve ödünç aldığı kitapları temsil eder."""

    def __init__(self, username: str, password: str = "", books: list[ObjectId] | None = None,
                 id: ObjectId | None = None) -> None:
        self.id = id
        self.username = username
        self.password = password
        self.books = list(books or [])

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.username} ({len(self.books)} kitap)"

    def to_document(self) -> dict:
        doc = {"username": self.username, "password": self.password, "books": list(self.books)}
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    def to_dict(self) -> dict:
        # Parola hash'i asla dışarı verilmez
        return {
            "id": str(self.id) if self.id is not None else None,
            "username": self.username,
            "books": [str(b) for b in self.books],
        }

    @staticmethod
    def from_document(doc: dict) -> "User":
        return User(
            id=doc.get("_id"),
            username=doc["username"],
            password=doc.get("password") or "",
            books=doc.get("books") or [],
        )


class Book:
    """Tek bir kitap; ``borrower_id`` yoksa kitap rafta demektir."""

    def __init__(self, title: str, borrower_id: ObjectId | None = None, id: ObjectId | None = None) -> None:
        self.id = id
        self.title = title
        self.borrower_id = borrower_id

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return self.title

    @property
    def is_available(self) -> bool:
        return self.borrower_id is None

    def to_document(self) -> dict:
        doc = {"title": self.title}
        if self.borrower_id is not None:
            doc["borrower_id"] = self.borrower_id
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    def to_dict(self) -> dict:
        data = {"id": str(self.id) if self.id is not None else None, "title": self.title}
        if self.borrower_id is not None:
            data["borrower_id"] = str(self.borrower_id)
        return data

    @staticmethod
    def from_document(doc: dict) -> "Book":
        # Eski kayıtlarda borrower_id null olarak saklanmış olabilir; yokmuş gibi davran
        return Book(id=doc.get("_id"), title=doc["title"], borrower_id=doc.get("borrower_id"))
