import logging
from typing import Optional

import pymongo
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.database import Database

from kutuphane.config import settings
from kutuphane.errors import BadRequestError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
BOOKS_COLLECTION = "books"


def connect(uri: Optional[str] = None, timeout: Optional[float] = None) -> MongoClient:
    """MongoDB'ye bağlanır ve sunucunun yanıt verdiğini ping ile doğrular.

    Bağlantı kurulamazsa hata yukarı iletilir; uygulama başlatılmaz.
    """
    uri = uri or settings.mongo_uri
    timeout = timeout if timeout is not None else settings.connect_timeout
    client = MongoClient(uri, serverSelectionTimeoutMS=int(timeout * 1000))
    try:
        with pymongo.timeout(timeout):
            client.admin.command("ping")
    except pymongo.errors.PyMongoError:
        logger.exception("MongoDB'ye bağlanılamadı: %s", uri)
        client.close()
        raise
    logger.info("MongoDB bağlantısı kuruldu: %s", uri)
    return client


def get_database(client: MongoClient, name: Optional[str] = None) -> Database:
    return client[name or settings.mongo_database]


def ensure_indexes(db: Database) -> bool:
    """Kullanıcı adları için benzersiz dizin oluşturur (yoksa).

    Mevcut veride tekrarlanan kullanıcı adları varsa dizin kurulamaz; bu
    durumda uyarı loglanır ve servis yalnızca kayıt öncesi sayım kontrolüyle
    çalışmaya devam eder. Dizin hazırsa True döner.
    """
    try:
        with pymongo.timeout(settings.connect_timeout):
            db[USERS_COLLECTION].create_index("username", unique=True)
    except pymongo.errors.OperationFailure as exc:
        logger.warning("Kullanıcı adı dizini oluşturulamadı, yalnızca sayım kontrolü kullanılacak: %s", exc)
        return False
    return True


def ping(db: Database) -> bool:
    """Hafif sağlık kontrolü; veritabanı yanıt veriyorsa True."""
    try:
        with request_deadline():
            db.command("ping")
        return True
    except pymongo.errors.PyMongoError:
        return False


def request_deadline():
    """Tek bir isteğin tüm veritabanı işlemlerini ``request_timeout`` ile sınırlar."""
    return pymongo.timeout(settings.request_timeout)


def parse_object_id(value, message: str) -> ObjectId:
    """24 karakterlik hex dizesini ObjectId'ye çevirir; geçersizse BadRequestError."""
    if not isinstance(value, str):
        raise BadRequestError(message)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise BadRequestError(message)
