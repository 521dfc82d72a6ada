import logging
from typing import List

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from kutuphane.database import request_deadline
from kutuphane.errors import InternalError
from kutuphane.models import Book

logger = logging.getLogger(__name__)


class BookService:
    """Kitap ekleme ve listeleme."""

    def __init__(self, books: Collection) -> None:
        self.books = books

    def create(self, title: str) -> ObjectId:
        """Ödünç verilmemiş yeni bir kitap ekler. Aynı başlık tekrar eklenebilir."""
        book = Book(title=title)
        with request_deadline():
            try:
                result = self.books.insert_one(book.to_document())
            except PyMongoError:
                logger.exception("Kitap eklenemedi")
                raise InternalError("Kitap eklenemedi")
        logger.info("Kitap eklendi: %s", result.inserted_id)
        return result.inserted_id

    def list_all(self) -> List[Book]:
        with request_deadline():
            try:
                docs = list(self.books.find({}))
            except PyMongoError:
                logger.exception("Kitaplar alınamadı")
                raise InternalError("Kitaplar alınamadı")
        try:
            return [Book.from_document(doc) for doc in docs]
        except (KeyError, TypeError):
            logger.exception("Kitap belgesi çözümlenemedi")
            raise InternalError("Kitaplar parse edilemedi")
