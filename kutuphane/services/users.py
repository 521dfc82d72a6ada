import logging

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from kutuphane.database import parse_object_id, request_deadline
from kutuphane.errors import ConflictError, InternalError, NotFoundError, UnauthorizedError
from kutuphane.models import User
from kutuphane.security import hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_USER_ID = "Geçersiz kullanıcı ID"
USER_NOT_FOUND = "Kullanıcı bulunamadı"


class UserService:
    """Kullanıcı kaydı, girişi, okunması ve silinmesi."""

    def __init__(self, users: Collection) -> None:
        self.users = users

    def register(self, username: str, password: str) -> ObjectId:
        """Yeni kullanıcı oluşturur ve kimliğini döndürür.

        Kullanıcı adı önce bir sayım sorgusuyla kontrol edilir; iki eşzamanlı
        kayıt bu kontrolü birlikte geçerse benzersiz dizin ikincisini reddeder.
        """
        with request_deadline():
            try:
                count = self.users.count_documents({"username": username})
            except PyMongoError:
                logger.exception("Kullanıcı adı kontrolü başarısız")
                raise InternalError("Veritabanı hatası")
            if count > 0:
                raise ConflictError("Kullanıcı adı zaten mevcut")

            try:
                hashed = hash_password(password)
            except (ValueError, TypeError):
                logger.exception("Parola hashlenemedi")
                raise InternalError("Şifre hashlenemedi")

            user = User(username=username, password=hashed, books=[])
            try:
                result = self.users.insert_one(user.to_document())
            except DuplicateKeyError:
                raise ConflictError("Kullanıcı adı zaten mevcut")
            except PyMongoError:
                logger.exception("Kullanıcı eklenemedi")
                raise InternalError("Kullanıcı eklenemedi")

        logger.info("Kullanıcı kaydedildi: %s", result.inserted_id)
        return result.inserted_id

    def authenticate(self, username: str, password: str) -> ObjectId:
        """Kullanıcı adı ve şifreyi doğrular, kullanıcının kimliğini döndürür.

        Kayıt yoksa NotFoundError (404) verilir. Veritabanı okunamazsa ya da
        süre aşılırsa bu bir "bulunamadı" sayılmaz: InternalError (500,
        "Veritabanı hatası") yükseltilir.
        """
        with request_deadline():
            try:
                doc = self.users.find_one({"username": username})
            except PyMongoError:
                logger.exception("Giriş sırasında kullanıcı okunamadı")
                raise InternalError("Veritabanı hatası")
        if doc is None:
            raise NotFoundError(USER_NOT_FOUND)

        user = User.from_document(doc)
        if not verify_password(password, user.password):
            raise UnauthorizedError("Hatalı şifre")
        return user.id

    def get_by_id(self, user_id: str) -> User:
        """Kullanıcıyı şifresi temizlenmiş olarak döndürür.

        Yoksa NotFoundError (404); veritabanı hatası ya da süre aşımında
        InternalError (500, "Veritabanı hatası").
        """
        oid = parse_object_id(user_id, INVALID_USER_ID)
        with request_deadline():
            try:
                doc = self.users.find_one({"_id": oid})
            except PyMongoError:
                logger.exception("Kullanıcı okunamadı: %s", oid)
                raise InternalError("Veritabanı hatası")
        if doc is None:
            raise NotFoundError(USER_NOT_FOUND)

        user = User.from_document(doc)
        user.password = ""
        return user

    def delete_by_id(self, user_id: str) -> None:
        """Kullanıcıyı siler.

        Kullanıcının elindeki kitaplar serbest bırakılmaz; bu kitapların
        ``borrower_id`` alanı artık var olmayan bir kullanıcıyı gösterir.
        """
        oid = parse_object_id(user_id, INVALID_USER_ID)
        with request_deadline():
            try:
                result = self.users.delete_one({"_id": oid})
            except PyMongoError:
                logger.exception("Kullanıcı silinemedi: %s", oid)
                raise InternalError("Kullanıcı silinemedi")
        if result.deleted_count == 0:
            raise NotFoundError(USER_NOT_FOUND)
        logger.info("Kullanıcı silindi: %s", oid)
