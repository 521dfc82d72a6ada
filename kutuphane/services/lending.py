"""Ödünç alma ve iade işlemleri.

Bir kitabın durumu iki koleksiyona yayılır: kitabın ``borrower_id`` alanı
ve kullanıcının ``books`` listesi. İki yazma sırayla yapılır (önce kitap,
sonra kullanıcı); arada bir işlem (transaction) yoktur.

Ödünç almada kitap önce işaretlenir. Kullanıcı güncellemesi başarısız olursa
kitaptaki işaret geri alınmaya çalışılır; bu geri alma doğrulanmaz ve
tekrarlanmaz, yalnızca başarısızlığı loglanır. Arada süreç çökerse kitap
kimseye görünmeden "ödünçte" kalır, ama iki kişiye birden verilmez.

İadede kitap önce serbest bırakılır; kullanıcı güncellemesi başarısız
olursa geri alma yapılmaz ve kullanıcının listesinde iade edilmiş bir kitap
kalabilir.
"""

import logging
from typing import Optional

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from kutuphane.config import settings
from kutuphane.database import parse_object_id, request_deadline
from kutuphane.errors import BadRequestError, InternalError, NotFoundError
from kutuphane.models import Book, User

logger = logging.getLogger(__name__)

ALREADY_BORROWED = "Kitap zaten ödünç alınmış"
BOOK_UPDATE_FAILED = "Kitap güncellenemedi"
USER_UPDATE_FAILED = "Kullanıcı güncellenemedi"


class LendingService:

    def __init__(self, users: Collection, books: Collection, limit: Optional[int] = None) -> None:
        self.users = users
        self.books = books
        self.limit = settings.lending_limit if limit is None else limit

    def borrow(self, user_id: str, book_id: str) -> str:
        user_oid = parse_object_id(user_id, "Geçersiz user_id")
        book_oid = parse_object_id(book_id, "Geçersiz book_id")

        with request_deadline():
            user = self._load_user(user_oid)
            if len(user.books) >= self.limit:
                raise BadRequestError(f"Kullanıcının {self.limit} kitap limiti doldu")

            book = self._load_book(book_oid)
            if not book.is_available:
                raise BadRequestError(ALREADY_BORROWED)

            # Yalnızca hâlâ boştaysa işaretle; okuma ile yazma arasında
            # başka bir istek kitabı almışsa eşleşme olmaz
            try:
                result = self.books.update_one(
                    {"_id": book_oid, "borrower_id": None},
                    {"$set": {"borrower_id": user_oid}},
                )
            except PyMongoError:
                logger.exception("Kitap güncellenemedi: %s", book_oid)
                raise InternalError(BOOK_UPDATE_FAILED)
            if result.matched_count == 0:
                raise BadRequestError(ALREADY_BORROWED)

            try:
                self.users.update_one({"_id": user_oid}, {"$push": {"books": book_oid}})
            except PyMongoError:
                logger.exception("Kullanıcı güncellenemedi: %s", user_oid)
                self._release_book(book_oid, user_oid)
                raise InternalError(USER_UPDATE_FAILED)

        logger.info("Kitap ödünç verildi: kitap=%s kullanıcı=%s", book_oid, user_oid)
        return "Kitap başarıyla ödünç alındı"

    def return_book(self, user_id: str, book_id: str) -> str:
        user_oid = parse_object_id(user_id, "Geçersiz user_id")
        book_oid = parse_object_id(book_id, "Geçersiz book_id")

        with request_deadline():
            book = self._load_book(book_oid)
            # Boştaki bir kitabı iade etmek de, başkasının kitabını iade etmek de aynı hatadır
            if book.borrower_id != user_oid:
                raise BadRequestError("Bu kitap bu kullanıcıya ait değil")

            try:
                self.books.update_one({"_id": book_oid}, {"$unset": {"borrower_id": ""}})
            except PyMongoError:
                logger.exception("Kitap güncellenemedi: %s", book_oid)
                raise InternalError(BOOK_UPDATE_FAILED)

            try:
                self.users.update_one({"_id": user_oid}, {"$pull": {"books": book_oid}})
            except PyMongoError:
                logger.exception("Kullanıcı güncellenemedi, kitap %s listede kaldı: %s", book_oid, user_oid)
                raise InternalError(USER_UPDATE_FAILED)

        logger.info("Kitap iade edildi: kitap=%s kullanıcı=%s", book_oid, user_oid)
        return "Kitap başarıyla iade edildi"

    # ------------------------- Yardımcılar ------------------------- #
    def _load_user(self, oid: ObjectId) -> User:
        try:
            doc = self.users.find_one({"_id": oid})
        except PyMongoError:
            logger.exception("Kullanıcı okunamadı: %s", oid)
            raise InternalError("Veritabanı hatası")
        if doc is None:
            raise NotFoundError("Kullanıcı bulunamadı")
        return User.from_document(doc)

    def _load_book(self, oid: ObjectId) -> Book:
        try:
            doc = self.books.find_one({"_id": oid})
        except PyMongoError:
            logger.exception("Kitap okunamadı: %s", oid)
            raise InternalError("Veritabanı hatası")
        if doc is None:
            raise NotFoundError("Kitap bulunamadı")
        return Book.from_document(doc)

    def _release_book(self, book_oid: ObjectId, user_oid: ObjectId) -> None:
        """Ödünç işaretini geri almayı dener; sonuç çağırana bildirilmez."""
        try:
            self.books.update_one(
                {"_id": book_oid, "borrower_id": user_oid},
                {"$unset": {"borrower_id": ""}},
            )
        except PyMongoError:
            logger.warning("Geri alma başarısız, kitap %s ödünçte kaldı (kullanıcı %s)", book_oid, user_oid)
